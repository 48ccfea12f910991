"""
业务异常
---------------------------------
功能：
- 定义所有可由客户端修正的业务错误（附带 HTTP 状态码与错误码）
- 定义存储层错误 StoreError（统一返回 500）

使用：
- 服务层直接 raise，main.py 中的异常处理器负责转换为响应
"""


class PolyglotError(Exception):
    """业务异常基类"""
    status_code = 400
    code = "Error"
    default_message = "请求错误"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidPackage(PolyglotError):
    code = "InvalidPackage"
    default_message = "套餐无效"


class MissingProof(PolyglotError):
    code = "MissingProof"
    default_message = "必须上传转账凭证"


class NotFound(PolyglotError):
    status_code = 404
    code = "NotFound"
    default_message = "记录不存在"


class AlreadyProcessed(PolyglotError):
    code = "AlreadyProcessed"
    default_message = "该支付已处理"


class InsufficientBalance(PolyglotError):
    status_code = 403
    code = "InsufficientBalance"
    default_message = "没有剩余的免费次数或积分"


class DuplicateUser(PolyglotError):
    code = "DuplicateUser"
    default_message = "用户已存在"


class InvalidInput(PolyglotError):
    code = "InvalidInput"
    default_message = "参数错误"


class StoreError(Exception):
    """存储读写失败（I/O 错误、集合内容损坏等）"""
