"""
积分账本服务
---------------------------------
功能：
- 消耗：优先扣免费次数，其次扣积分；两者都不足时抛出 InsufficientBalance，余额不变
- 充值：支付审核通过后增加积分

使用：
- apply_consume / apply_credit 只修改内存中的 User，由调用方与其他集合的修改一起提交
- consume() 为独立操作：加锁、读取、扣减、写回
"""

from fastapi import Depends
import logging

from ..models.user import User
from .errors import InsufficientBalance, NotFound
from .store import CollectionStore, USERS, get_store

logger = logging.getLogger(__name__)


def apply_consume(user: User, cost: int = 1) -> str:
    """
    扣减余额

    Args:
        user: 用户对象（原地修改）
        cost: 扣减数量

    Returns:
        被扣减的账户："freeTrials" 或 "points"
    """
    if cost <= 0:
        raise ValueError("cost must be positive")
    if user.free_trials >= cost:
        user.free_trials -= cost
        return "freeTrials"
    if user.points >= cost:
        user.points -= cost
        return "points"
    raise InsufficientBalance()


def apply_credit(user: User, points: int) -> None:
    """增加积分"""
    if points <= 0:
        raise ValueError("points must be positive")
    user.points += points


def find_user_index(users: list[dict], user_id: str) -> int:
    for i, record in enumerate(users):
        if record.get("id") == user_id:
            return i
    return -1


class LedgerService:
    """积分账本"""

    def __init__(self, store: CollectionStore):
        self.store = store

    async def consume(self, user_id: str, cost: int = 1) -> User:
        """扣减用户余额并保存，返回扣减后的用户"""
        async with self.store.lock(USERS):
            users = await self.store.get(USERS)
            index = find_user_index(users, user_id)
            if index == -1:
                raise NotFound("用户不存在")

            user = User.model_validate(users[index])
            pool = apply_consume(user, cost)
            users[index] = user.to_record()
            await self.store.commit({USERS: users})

        logger.info(f"用户 {user_id} 消耗 {cost} ({pool})，剩余 trials={user.free_trials} points={user.points}")
        return user

    async def get_balance(self, user_id: str) -> dict:
        users = await self.store.get(USERS)
        index = find_user_index(users, user_id)
        if index == -1:
            raise NotFound("用户不存在")
        user = User.model_validate(users[index])
        return {"freeTrials": user.free_trials, "points": user.points}


def get_ledger_service(store: CollectionStore = Depends(get_store)) -> LedgerService:
    return LedgerService(store)
