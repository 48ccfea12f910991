"""
认证服务
---------------------------------
功能：
- 密码哈希与校验（bcrypt）
- JWT Token 签发与解析（python-jose，HS256）
- FastAPI 依赖：get_current_user（必须登录）、require_admin（管理员密钥）

使用：
- @router.get("/x") async def x(current_user: User = Depends(get_current_user))
"""

from datetime import datetime, timedelta, timezone
import logging

import bcrypt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from ..config.settings import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_EXPIRE_MINUTES, ADMIN_API_KEY
from ..models.user import User
from .store import CollectionStore, USERS, get_store

logger = logging.getLogger(__name__)

# auto_error=False：缺少 Token 时由 get_current_user 返回 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # 哈希格式错误或密码超长
        return False


def create_access_token(data: dict, expires_minutes: int = JWT_EXPIRE_MINUTES) -> str:
    """
    签发 JWT

    Args:
        data: 载荷（如 {"user_id": ..., "email": ...}）
        expires_minutes: 有效期（分钟）

    Returns:
        Token 字符串
    """
    payload = dict(data)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """解析 JWT，失败返回 None"""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    store: CollectionStore = Depends(get_store),
) -> User:
    """
    依赖注入：获取当前登录用户

    - 未携带 Token：401
    - Token 无效或过期：403
    - 用户不存在：404
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="未提供 Token")

    payload = decode_access_token(token)
    if not payload or not payload.get("user_id"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token 无效")

    users = await store.get(USERS)
    record = next((u for u in users if u.get("id") == payload["user_id"]), None)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="用户不存在")
    return User.model_validate(record)


async def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    """
    依赖注入：管理员接口校验

    未配置 ADMIN_API_KEY 时不做校验（本地开发）。
    """
    if not ADMIN_API_KEY:
        return
    if x_admin_key != ADMIN_API_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="无管理员权限")
