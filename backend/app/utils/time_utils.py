"""
时间工具
---------------------------------
- 所有持久化时间统一为 ISO-8601 UTC 字符串
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """当前 UTC 时间（不带时区，用于 DateTime 列）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_now_iso() -> str:
    """当前 UTC 时间（ISO-8601）"""
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: str | None) -> datetime:
    """解析 ISO 时间字符串，无时区的按 UTC 处理；空值返回最小时间"""
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    # 兼容前端/旧数据中的 `Z` 结尾
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
