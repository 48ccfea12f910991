"""
用户服务
---------------------------------
功能：
- 注册：校验字段、邮箱/手机号唯一、哈希密码、赠送免费次数，并通知管理员
- 登录：校验邮箱与密码，签发 JWT

使用：
- user_service = UserService(store, notifier)
- await user_service.register(name, email, password, phone)
"""

from fastapi import Depends
from uuid import uuid4
import logging
import re

from ..config.settings import FREE_TRIALS_ON_REGISTER, PASSWORD_MIN_LENGTH
from ..models.user import User
from ..utils.phone_utils import normalize_phone_number, validate_phone_number
from ..utils.time_utils import utc_now_iso
from .auth_service import hash_password, verify_password, create_access_token
from .errors import DuplicateUser, InvalidInput
from .notification_service import NotificationService, get_notification_service
from .store import CollectionStore, USERS, get_store

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class InvalidCredentials(Exception):
    """邮箱或密码错误"""


class UserService:
    """用户服务"""

    def __init__(self, store: CollectionStore, notifier: NotificationService):
        self.store = store
        self.notifier = notifier

    async def register(self, name: str, email: str, password: str, phone: str) -> User:
        """
        注册新用户

        Raises:
            InvalidInput: 字段缺失或格式错误
            DuplicateUser: 邮箱或手机号已注册
        """
        if not name or not email or not password:
            raise InvalidInput("姓名、邮箱和密码均为必填项")
        if not EMAIL_PATTERN.match(email):
            raise InvalidInput("邮箱格式错误")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise InvalidInput(f"密码至少 {PASSWORD_MIN_LENGTH} 位")
        if not phone:
            raise InvalidInput("手机号为必填项")
        if not validate_phone_number(phone):
            raise InvalidInput("手机号格式错误")

        password_hash = hash_password(password)

        async with self.store.lock(USERS):
            users = await self.store.get(USERS)
            if any(u.get("email") == email for u in users):
                raise DuplicateUser("该邮箱已注册")
            normalized = normalize_phone_number(phone)
            if any(normalize_phone_number(u.get("phone", "")) == normalized for u in users):
                raise DuplicateUser("该手机号已注册")

            user = User(
                id=uuid4().hex,
                name=name,
                email=email,
                phone=phone,
                password_hash=password_hash,
                free_trials=FREE_TRIALS_ON_REGISTER,
                points=0,
                created_at=utc_now_iso(),
            )
            users.append(user.to_record())
            await self.store.commit({USERS: users})

        logger.info(f"新用户注册: {user.id} {email}")
        self.notifier.dispatch(self.notifier.notify_admin_new_user(user))
        return user

    async def authenticate(self, email: str, password: str) -> tuple[str, User]:
        """
        登录

        Returns:
            (access_token, 用户)

        Raises:
            InvalidCredentials
        """
        users = await self.store.get(USERS)
        record = next((u for u in users if u.get("email") == email), None)
        if record is None:
            raise InvalidCredentials("邮箱未注册")

        user = User.model_validate(record)
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials("密码错误")

        token = create_access_token({"user_id": user.id, "email": user.email})
        return token, user


def get_user_service(
    store: CollectionStore = Depends(get_store),
    notifier: NotificationService = Depends(get_notification_service),
) -> UserService:
    return UserService(store, notifier)
