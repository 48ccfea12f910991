"""
集合存储数据模型
---------------------------------
功能：
- 定义 collections 表：每个命名集合（users / payments / progress）一行
- payload 字段保存整个集合的 JSON 文本

使用：
- 仅由 SqlCollectionStore 读写，业务层不直接访问
"""

from sqlalchemy import Column, String, Text, DateTime
from ..utils.time_utils import utc_now
from .base import Base


class CollectionRecord(Base):
    """命名集合"""
    __tablename__ = "collections"

    name = Column(String(64), primary_key=True, comment="集合名称")
    payload = Column(Text, nullable=False, comment="集合内容（JSON）")
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, comment="更新时间")

    def __repr__(self):
        return f"<CollectionRecord(name={self.name}, size={len(self.payload or '')})>"
