"""
学习进度服务
---------------------------------
功能：
- 查询用户全部进度
- 记录一次关卡成绩：先扣减一次免费次数/积分，再更新进度
  - level 取最大值，score 累加
  - 扣减失败时整个操作失败（InsufficientBalance），进度不写入

使用：
- 在进度接口中调用 record_result()
- 重复提交同一成绩会重复累加分数，去重由调用方负责
"""

from fastapi import Depends
import logging

from ..models.progress import ProgressEntry, progress_key
from ..models.user import User
from .errors import NotFound
from .ledger_service import apply_consume, find_user_index
from .store import CollectionStore, PROGRESS, USERS, get_store

logger = logging.getLogger(__name__)

# 每次提交成绩消耗的次数
RESULT_COST = 1


class ProgressService:
    """学习进度服务"""

    def __init__(self, store: CollectionStore):
        self.store = store

    async def get_progress(self, user_id: str) -> dict:
        """
        获取用户全部进度

        Returns:
            {"<languageId>_<difficultyId>": {"level": int, "score": int}}，无记录时为 {}
        """
        progress = await self.store.get(PROGRESS)
        return progress.get(user_id, {})

    async def record_result(
        self,
        user_id: str,
        language_id,
        difficulty_id,
        level: int,
        score: int,
    ) -> dict:
        """
        记录一次关卡成绩

        Args:
            user_id: 用户ID
            language_id: 语言ID
            difficulty_id: 难度ID
            level: 达到的关卡
            score: 本次得分

        Returns:
            {"progress": 用户全部进度, "entry": 本次更新的条目, "freeTrials": int, "points": int}
        """
        if level < 0 or score < 0:
            raise ValueError("level and score must be non-negative")

        async with self.store.lock(PROGRESS, USERS):
            users = await self.store.get(USERS)
            index = find_user_index(users, user_id)
            if index == -1:
                raise NotFound("用户不存在")

            # 先扣减，失败时直接抛出，不做任何写入
            user = User.model_validate(users[index])
            pool = apply_consume(user, RESULT_COST)
            users[index] = user.to_record()

            progress = await self.store.get(PROGRESS)
            user_progress = progress.setdefault(user_id, {})
            key = progress_key(language_id, difficulty_id)
            entry = ProgressEntry.model_validate(user_progress.get(key, {})).merge(level, score)
            user_progress[key] = entry.model_dump()

            await self.store.commit({PROGRESS: progress, USERS: users})

        logger.info(f"用户 {user_id} 进度 {key}: level={entry.level}, score={entry.score}（扣减 {pool}）")
        return {
            "progress": user_progress,
            "entry": entry.model_dump(),
            "freeTrials": user.free_trials,
            "points": user.points,
        }


def get_progress_service(store: CollectionStore = Depends(get_store)) -> ProgressService:
    return ProgressService(store)
