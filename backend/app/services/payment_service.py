"""
支付审核服务
---------------------------------
功能：
- 用户提交支付（上传转账凭证），记录为 pending
- 管理员审核：pending -> approved（同时给用户加积分）或 pending -> rejected
- 每条支付只能处理一次，重复处理返回 AlreadyProcessed
- 状态变更与积分到账在同一次提交中完成；邮件通知在提交之后后台发送

使用：
- payment_service = PaymentService(store, notifier)
- await payment_service.submit(...)
- await payment_service.approve(payment_id)
"""

from fastapi import Depends
from uuid import uuid4
import logging

from ..models.payment import PACKAGES, PaymentPackage, PaymentRecord, PaymentStatus
from ..models.user import User
from ..utils.time_utils import parse_iso, utc_now_iso
from .errors import AlreadyProcessed, InvalidPackage, MissingProof, NotFound
from .ledger_service import apply_credit, find_user_index
from .notification_service import NotificationService, get_notification_service
from .store import CollectionStore, PAYMENTS, USERS, get_store

logger = logging.getLogger(__name__)


def validate_package(package_id: str, amount: int, points: int) -> PaymentPackage:
    """
    校验套餐：金额与积分必须与目录完全一致（防止客户端篡改）

    Raises:
        InvalidPackage
    """
    package = PACKAGES.get(package_id)
    if package is None:
        raise InvalidPackage(f"未知套餐: {package_id}")
    if package.price != amount or package.points != points:
        raise InvalidPackage("套餐金额或积分不匹配")
    return package


def find_payment_index(payments: list[dict], payment_id: str) -> int:
    for i, record in enumerate(payments):
        if record.get("id") == payment_id:
            return i
    return -1


class PaymentService:
    """支付审核服务"""

    def __init__(self, store: CollectionStore, notifier: NotificationService):
        self.store = store
        self.notifier = notifier

    async def submit(
        self,
        user_id: str,
        package_id: str,
        amount: int,
        points: int,
        method: str | None,
        proof_ref: str | None,
    ) -> PaymentRecord:
        """
        提交支付

        Args:
            user_id: 用户ID
            package_id: 套餐ID
            amount: 金额（必须与套餐价格一致）
            points: 积分（必须与套餐积分一致）
            method: 支付方式
            proof_ref: 转账凭证路径

        Returns:
            新建的 pending 支付记录
        """
        if not proof_ref:
            raise MissingProof()
        package = validate_package(package_id, amount, points)

        users = await self.store.get(USERS)
        index = find_user_index(users, user_id)
        if index == -1:
            raise NotFound("用户不存在")
        user = User.model_validate(users[index])

        payment = PaymentRecord(
            id=uuid4().hex,
            user_id=user.id,
            user_name=user.name,
            user_email=user.email,
            package_id=package_id,
            package_name=package.name,
            points=package.points,
            amount=package.price,
            method=method,
            proof_image=proof_ref,
            status=PaymentStatus.PENDING,
            created_at=utc_now_iso(),
        )

        async with self.store.lock(PAYMENTS):
            payments = await self.store.get(PAYMENTS)
            payments.append(payment.to_record())
            await self.store.commit({PAYMENTS: payments})

        logger.info(f"用户 {user_id} 提交支付 {payment.id}: {package_id} {amount}")
        self.notifier.dispatch(self.notifier.notify_admin_new_payment(payment))
        self.notifier.dispatch(self.notifier.notify_user_payment_received(payment))
        return payment

    async def approve(self, payment_id: str) -> PaymentRecord:
        """
        审核通过：状态改为 approved 并给用户增加积分

        Raises:
            NotFound: 支付或其用户不存在
            AlreadyProcessed: 支付已处理
        """
        async with self.store.lock(PAYMENTS, USERS):
            payments = await self.store.get(PAYMENTS)
            p_index = find_payment_index(payments, payment_id)
            if p_index == -1:
                raise NotFound("支付记录不存在")

            payment = PaymentRecord.model_validate(payments[p_index])
            if not payment.is_pending:
                raise AlreadyProcessed()

            users = await self.store.get(USERS)
            u_index = find_user_index(users, payment.user_id)
            if u_index == -1:
                raise NotFound("支付对应的用户不存在")
            user = User.model_validate(users[u_index])

            payment.status = PaymentStatus.APPROVED
            payment.approved_at = utc_now_iso()
            apply_credit(user, payment.points)

            payments[p_index] = payment.to_record()
            users[u_index] = user.to_record()
            await self.store.commit({PAYMENTS: payments, USERS: users})

        logger.info(f"支付 {payment_id} 已通过，用户 {user.id} +{payment.points} 积分（当前 {user.points}）")
        self.notifier.dispatch(self.notifier.notify_user_payment_approved(payment))
        return payment

    async def reject(self, payment_id: str, reason: str | None = None) -> PaymentRecord:
        """
        审核拒绝：状态改为 rejected，不影响积分

        Raises:
            NotFound: 支付不存在
            AlreadyProcessed: 支付已处理
        """
        async with self.store.lock(PAYMENTS):
            payments = await self.store.get(PAYMENTS)
            index = find_payment_index(payments, payment_id)
            if index == -1:
                raise NotFound("支付记录不存在")

            payment = PaymentRecord.model_validate(payments[index])
            if not payment.is_pending:
                raise AlreadyProcessed()

            payment.status = PaymentStatus.REJECTED
            payment.rejected_at = utc_now_iso()
            payment.reject_reason = reason
            payments[index] = payment.to_record()
            await self.store.commit({PAYMENTS: payments})

        logger.info(f"支付 {payment_id} 已拒绝，原因：{reason or '-'}")
        self.notifier.dispatch(self.notifier.notify_user_payment_rejected(payment))
        return payment

    async def list_pending(self) -> list[PaymentRecord]:
        payments = await self.store.get(PAYMENTS)
        records = [PaymentRecord.model_validate(p) for p in payments]
        return [p for p in records if p.is_pending]

    async def list_all(self) -> list[PaymentRecord]:
        """全部支付，按创建时间倒序"""
        payments = await self.store.get(PAYMENTS)
        records = [PaymentRecord.model_validate(p) for p in payments]
        return sorted(records, key=lambda p: parse_iso(p.created_at), reverse=True)

    async def list_for_user(self, user_id: str) -> list[PaymentRecord]:
        payments = await self.store.get(PAYMENTS)
        return [PaymentRecord.model_validate(p) for p in payments if p.get("userId") == user_id]


def get_payment_service(
    store: CollectionStore = Depends(get_store),
    notifier: NotificationService = Depends(get_notification_service),
) -> PaymentService:
    return PaymentService(store, notifier)
