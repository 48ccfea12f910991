"""
进度相关的 Pydantic Schema
---------------------------------
- ProgressUpdateRequest: 提交一次关卡成绩
"""

from pydantic import BaseModel, Field


class ProgressUpdateRequest(BaseModel):
    """提交成绩请求"""
    languageId: str | int
    difficultyId: str | int
    level: int = Field(..., ge=0, description="达到的关卡")
    score: int = Field(..., ge=0, description="本次得分")
