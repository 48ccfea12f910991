"""
学习进度数据模型
---------------------------------
功能：
- progress 集合结构：{userId: {"<languageId>_<difficultyId>": {level, score}}}
- level 只增不减（取最大值），score 累加
"""

from pydantic import BaseModel, Field


class ProgressEntry(BaseModel):
    """单个语言/难度的进度"""
    level: int = Field(0, ge=0)
    score: int = Field(0, ge=0)

    def merge(self, level: int, score: int) -> "ProgressEntry":
        """合并一次新成绩"""
        return ProgressEntry(level=max(self.level, level), score=self.score + score)


def progress_key(language_id, difficulty_id) -> str:
    return f"{language_id}_{difficulty_id}"
