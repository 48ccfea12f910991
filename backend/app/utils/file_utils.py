"""
文件存储工具
---------------------------------
功能：
- 保存用户上传的转账凭证到 `backend/uploads/proofs/` 目录
- 返回绝对路径（用于文件操作）和相对路径（存入支付记录，供管理员查看）
- 提供文件删除功能，支付提交失败时清理已保存的凭证

存储策略：
- 支付记录中存储相对路径（如：/uploads/proofs/uuid_transfer.png）
- 命名规则：<uuid>_<原文件名>，避免重名覆盖
"""

from pathlib import Path
from uuid import uuid4
from typing import Tuple
import logging

from fastapi import UploadFile

from ..config.settings import UPLOAD_DIR, PROOF_UPLOAD_DIR

logger = logging.getLogger(__name__)


async def save_upload_file(file: UploadFile, target: Path = PROOF_UPLOAD_DIR) -> Tuple[Path, str]:
    """保存上传文件。

    Args:
        file: 上传的文件对象
        target: 目标目录（需位于 UPLOAD_DIR 之下）

    Returns:
        Tuple[Path, str]: (绝对路径, 相对路径)
        - 相对路径：如 /uploads/proofs/uuid_file.png
    """
    target.mkdir(parents=True, exist_ok=True)

    original_name = Path(file.filename or "upload.bin").name
    safe_name = f"{uuid4().hex}_{original_name}"
    save_path = target / safe_name

    content = await file.read()
    with save_path.open("wb") as out:
        out.write(content)

    relative_path = "/uploads/" + save_path.relative_to(UPLOAD_DIR).as_posix()
    return save_path.resolve(), relative_path


def delete_upload_file(relative_path: str) -> bool:
    """删除上传的文件

    Args:
        relative_path: 相对路径（如：/uploads/proofs/uuid_file.png）

    Returns:
        bool: 是否删除成功
    """
    if not relative_path.startswith("/uploads/"):
        return False

    file_path = (UPLOAD_DIR / relative_path[len("/uploads/"):]).resolve()
    # 只允许删除上传目录内的文件
    if UPLOAD_DIR not in file_path.parents:
        return False

    try:
        if file_path.is_file():
            file_path.unlink()
            return True
    except OSError as e:
        logger.warning(f"删除文件失败: {relative_path}, 错误: {e}")
    return False
