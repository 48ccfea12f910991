"""
支付路由
---------------------------------
功能：
- 用户提交支付（multipart 表单 + 转账凭证），查询自己的支付记录
- 管理员查询待审核/全部支付，审核通过或拒绝

端点：
- POST /api/payments - 提交支付（packageId, method, amount, points, proof）
- POST /api/payment/submit - 同上，套餐字段名为 packageType
- GET /api/payments/user - 当前用户的支付记录
- GET /api/payments/pending - 待审核支付（管理员）
- GET /api/payments/all - 全部支付，按时间倒序（管理员）
- POST /api/payments/{payment_id}/approve - 审核通过（管理员）
- POST /api/payments/{payment_id}/reject - 审核拒绝（管理员）
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..models.payment_schema import RejectRequest
from ..models.response_schema import ApiResponse
from ..models.user import User
from ..services.auth_service import get_current_user, require_admin
from ..services.errors import PolyglotError, StoreError
from ..services.payment_service import PaymentService, get_payment_service
from ..utils.file_utils import save_upload_file, delete_upload_file

router = APIRouter(prefix="/api", tags=["支付"])


def _parse_form_int(value: Optional[str]) -> int:
    """表单数字字段：缺失或无法解析时返回 0，交由套餐校验拒绝"""
    try:
        return int(value.strip()) if value else 0
    except ValueError:
        return 0


async def _submit_payment(
    payment_service: PaymentService,
    current_user: User,
    package_id: str,
    method: Optional[str],
    amount: Optional[str],
    points: Optional[str],
    proof: Optional[UploadFile],
) -> ApiResponse:
    proof_ref = None
    if proof is not None and proof.filename:
        _, proof_ref = await save_upload_file(proof)

    try:
        payment = await payment_service.submit(
            current_user.id,
            package_id,
            _parse_form_int(amount),
            _parse_form_int(points),
            method,
            proof_ref,
        )
    except (PolyglotError, StoreError):
        # 提交失败时清理已保存的凭证
        if proof_ref:
            delete_upload_file(proof_ref)
        raise

    return ApiResponse.ok(payment.to_record(), message="支付已提交，等待管理员审核")


@router.post("/payments", response_model=ApiResponse)
async def create_payment(
    packageId: str = Form(""),
    method: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    points: Optional[str] = Form(None),
    proof: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """
    提交支付

    参数（multipart/form-data）：
    - packageId: 套餐ID（starter/regular/premium/ultimate/single/full）
    - method: 支付方式
    - amount / points: 必须与套餐目录完全一致
    - proof: 转账凭证图片
    """
    return await _submit_payment(payment_service, current_user, packageId, method, amount, points, proof)


@router.post("/payment/submit", response_model=ApiResponse)
async def submit_payment(
    packageType: str = Form(""),
    method: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    points: Optional[str] = Form(None),
    proof: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    return await _submit_payment(payment_service, current_user, packageType, method, amount, points, proof)


@router.get("/payments/user", response_model=ApiResponse)
async def list_user_payments(
    current_user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    payments = await payment_service.list_for_user(current_user.id)
    return ApiResponse.ok([p.to_record() for p in payments])


@router.get("/payments/pending", response_model=ApiResponse, dependencies=[Depends(require_admin)])
async def list_pending_payments(payment_service: PaymentService = Depends(get_payment_service)):
    payments = await payment_service.list_pending()
    return ApiResponse.ok([p.to_record() for p in payments])


@router.get("/payments/all", response_model=ApiResponse, dependencies=[Depends(require_admin)])
async def list_all_payments(payment_service: PaymentService = Depends(get_payment_service)):
    payments = await payment_service.list_all()
    return ApiResponse.ok([p.to_record() for p in payments])


@router.post("/payments/{payment_id}/approve", response_model=ApiResponse, dependencies=[Depends(require_admin)])
async def approve_payment(payment_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    """
    审核通过

    - 404：支付不存在
    - 400：支付已处理
    """
    payment = await payment_service.approve(payment_id)
    return ApiResponse.ok(payment.to_record(), message="支付已通过")


@router.post("/payments/{payment_id}/reject", response_model=ApiResponse, dependencies=[Depends(require_admin)])
async def reject_payment(
    payment_id: str,
    req: Optional[RejectRequest] = None,
    payment_service: PaymentService = Depends(get_payment_service)
):
    """
    审核拒绝

    请求体（可选）：
    - reason: 拒绝原因
    """
    payment = await payment_service.reject(payment_id, req.reason if req else None)
    return ApiResponse.ok(payment.to_record(), message="支付已拒绝")
