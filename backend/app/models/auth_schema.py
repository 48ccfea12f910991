"""
认证相关的 Pydantic Schema
---------------------------------
功能：
- RegisterRequest: 注册请求（字段校验在 UserService 中完成，统一返回 400）
- LoginRequest: 登录请求
"""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """注册请求"""
    name: str = Field("", description="姓名")
    email: str = Field("", description="邮箱")
    password: str = Field("", description="密码（至少8位）")
    phone: str = Field("", description="手机号（10~15位数字，可带 + 与横线）")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Budi",
            "email": "budi@example.com",
            "password": "rahasia123",
            "phone": "+62 812-3456-7890"
        }
    })


class LoginRequest(BaseModel):
    """登录请求"""
    email: str
    password: str
