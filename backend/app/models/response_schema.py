"""
统一响应结构
---------------------------------
功能：
- 所有接口返回 {code, message, data}

使用：
- return ApiResponse.ok(data)
- return ApiResponse.error(404, "不存在")
"""

from typing import Any, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """统一响应"""
    code: int = 200
    message: str = "success"
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "success") -> "ApiResponse":
        return cls(code=200, message=message, data=data)

    @classmethod
    def error(cls, code: int, message: str, data: Any = None) -> "ApiResponse":
        return cls(code=code, message=message, data=data)
