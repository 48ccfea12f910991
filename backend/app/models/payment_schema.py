"""
支付相关的 Pydantic Schema
---------------------------------
- RejectRequest: 拒绝支付请求（原因可选）
"""

from typing import Optional

from pydantic import BaseModel


class RejectRequest(BaseModel):
    """拒绝支付请求"""
    reason: Optional[str] = None
