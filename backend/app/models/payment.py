"""
支付数据模型
---------------------------------
功能：
- 定义 PaymentRecord 记录结构（payments 集合中的一项）
- 定义支付状态枚举：pending -> approved | rejected
- 定义积分套餐目录（价格、积分数），提交时金额与积分必须与目录完全一致

使用：
- PaymentRecord.model_validate(record) / payment.to_record()
- PACKAGES[package_id] 查询套餐
"""

import enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentStatus(str, enum.Enum):
    """支付状态枚举"""
    PENDING = "pending"  # 待审核
    APPROVED = "approved"  # 已通过（终态）
    REJECTED = "rejected"  # 已拒绝（终态）


class PaymentPackage(NamedTuple):
    """积分套餐"""
    name: str
    points: int
    price: int  # 金额（IDR）


PACKAGES: dict[str, PaymentPackage] = {
    "starter": PaymentPackage("Starter (50 pts)", 50, 25000),
    "regular": PaymentPackage("Regular (100 pts)", 100, 45000),
    "premium": PaymentPackage("Premium (200 pts)", 200, 80000),
    "ultimate": PaymentPackage("Ultimate (500 pts)", 500, 175000),
    "single": PaymentPackage("Single Language (300 pts)", 300, 15000),
    "full": PaymentPackage("Full Access 7-in-1 (2,100 pts)", 2100, 49000),
}


class PaymentRecord(BaseModel):
    """支付记录"""
    id: str
    user_id: str = Field(..., alias="userId")
    user_name: Optional[str] = Field(None, alias="userName")
    user_email: Optional[str] = Field(None, alias="userEmail")
    package_id: str = Field(..., alias="packageId")
    package_name: Optional[str] = Field(None, alias="packageName")
    points: int = Field(..., gt=0)
    amount: int = Field(..., gt=0)
    method: Optional[str] = None
    proof_image: str = Field(..., alias="proofImage", description="凭证相对路径")
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: str = Field(..., alias="createdAt")
    approved_at: Optional[str] = Field(None, alias="approvedAt")
    rejected_at: Optional[str] = Field(None, alias="rejectedAt")
    reject_reason: Optional[str] = Field(None, alias="rejectReason")

    model_config = ConfigDict(populate_by_name=True)

    def __repr__(self):
        return f"<PaymentRecord(id={self.id}, user_id={self.user_id}, status={self.status.value})>"

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
