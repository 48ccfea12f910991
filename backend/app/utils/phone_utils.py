"""
手机号工具函数
---------------------------------
功能：
- 手机号格式校验（去掉空格、横线、加号后为 10~15 位数字）
- 手机号规范化（用于 WhatsApp 链接）
- 手机号脱敏处理

使用：
- validate_phone_number() - 校验手机号格式
- normalize_phone_number() - 仅保留数字
- mask_phone_number() - 脱敏手机号
"""

import re


def normalize_phone_number(phone: str) -> str:
    """去掉空格、横线和加号"""
    return re.sub(r"[\s\-+]", "", phone or "")


def validate_phone_number(phone: str) -> bool:
    """
    校验手机号格式

    Args:
        phone: 手机号字符串（可带国际区号、空格、横线）

    Returns:
        是否符合格式
    """
    return bool(re.fullmatch(r"\d{10,15}", normalize_phone_number(phone)))


def mask_phone_number(phone: str) -> str:
    """
    脱敏手机号：0812****7890

    Args:
        phone: 原始手机号

    Returns:
        脱敏后的手机号
    """
    digits = normalize_phone_number(phone)
    if len(digits) >= 10:
        return f"{digits[:4]}****{digits[-4:]}"
    return phone
