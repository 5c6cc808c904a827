"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 Relay 边界统一转换为失败状态，或在展示层做统一提示。
"""

GENERIC_FAILURE_REASON = "Failed to get response from AI"
UNKNOWN_FAILURE_REASON = "An unknown error occurred"


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息，会作为失败原因展示。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 conversation_id、bound_id 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """输入校验失败（例如空白消息），在任何网络请求之前抛出。"""


class ConcurrencyRejected(BusinessError):
    """已有一轮对话在等待后端响应时再次发送。"""


class TransportError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class BackendError(BusinessError):
    """后端返回非 2xx 状态码。"""


class ProtocolViolation(BusinessError):
    """后端响应违反约定（缺少 response 字段、会话 ID 冲突等）。

    属于缺陷信号，必须与普通 BackendError 区分开，不能静默吞掉。
    """


class AlreadyBoundMismatch(ProtocolViolation):
    """会话已绑定 ID，却收到另一个不同的 ID。"""
