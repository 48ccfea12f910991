"""
学习进度路由
---------------------------------
功能：
- GET /api/progress - 获取当前用户全部进度
- POST /api/progress - 提交一次关卡成绩（消耗一次免费次数或 1 积分）
- GET /api/progress/balance - 查询剩余免费次数与积分
"""

from fastapi import APIRouter, Depends

from ..models.progress_schema import ProgressUpdateRequest
from ..models.response_schema import ApiResponse
from ..models.user import User
from ..services.auth_service import get_current_user
from ..services.ledger_service import LedgerService, get_ledger_service
from ..services.progress_service import ProgressService, get_progress_service

router = APIRouter(prefix="/api/progress", tags=["进度"])


@router.get("", response_model=ApiResponse)
async def get_progress(
    current_user: User = Depends(get_current_user),
    progress_service: ProgressService = Depends(get_progress_service)
):
    progress = await progress_service.get_progress(current_user.id)
    return ApiResponse.ok(progress)


@router.post("", response_model=ApiResponse)
async def update_progress(
    req: ProgressUpdateRequest,
    current_user: User = Depends(get_current_user),
    progress_service: ProgressService = Depends(get_progress_service)
):
    """
    提交关卡成绩

    - level 取历史最大值，score 累加
    - 免费次数和积分都为 0 时返回 403，进度不保存
    """
    result = await progress_service.record_result(
        current_user.id,
        req.languageId,
        req.difficultyId,
        req.level,
        req.score,
    )
    return ApiResponse.ok(result, message="进度已保存")


@router.get("/balance", response_model=ApiResponse)
async def get_balance(
    current_user: User = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service)
):
    balance = await ledger_service.get_balance(current_user.id)
    return ApiResponse.ok(balance)
