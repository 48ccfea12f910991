"""
认证路由
---------------------------------
功能：
- /auth/register - 用户注册
- /auth/login - 用户登录（获取 Token）
- /auth/me - 获取当前用户信息（含免费次数与积分）

使用：
- 前端调用这些接口进行用户注册、登录、获取用户信息
- 登录成功后返回 JWT Token，前端保存并在后续请求中携带
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ..models.auth_schema import RegisterRequest, LoginRequest
from ..models.response_schema import ApiResponse
from ..models.user import User
from ..services.auth_service import get_current_user
from ..services.user_service import UserService, InvalidCredentials, get_user_service
from ..utils.phone_utils import mask_phone_number

router = APIRouter()


@router.post("/register", response_model=ApiResponse)
async def register(req: RegisterRequest, user_service: UserService = Depends(get_user_service)):
    """
    用户注册

    请求体：
    - name / email / password（至少8位）/ phone

    返回：
    - 注册成功的用户信息
    """
    user = await user_service.register(req.name, req.email, req.password, req.phone)

    return ApiResponse.ok({
        "message": "注册成功",
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "phone": mask_phone_number(user.phone)
        }
    })


@router.post("/login", response_model=ApiResponse)
async def login(req: LoginRequest, user_service: UserService = Depends(get_user_service)):
    """
    用户登录

    返回：
    - access_token: JWT Token
    - token_type: "bearer"
    - user: 用户信息（含免费次数与积分）
    """
    try:
        token, user = await user_service.authenticate(req.email, req.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return ApiResponse.ok({
        "access_token": token,
        "token_type": "bearer",
        "user": user.profile()
    })


@router.get("/me", response_model=ApiResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """
    获取当前用户信息

    需要在请求头中携带 Token：
    Authorization: Bearer <token>
    """
    return ApiResponse.ok(current_user.profile())
