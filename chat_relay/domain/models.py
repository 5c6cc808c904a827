"""对话中继的数据模型。

本模块定义 Relay 内部共享的标准数据结构：

- Message: 消息存储中的一条消息（用户或助手）。
- CallState: 单轮调用的状态（idle / awaiting / failed）。
- BackendReply / BackendFailure: 后端调用的标记结果，
  传输层负责把原始 JSON 转换为二者之一，内部不再传递松散的 dict。
- TurnResult: 一轮 send 的最终结果，供展示层使用。
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional, Union

from .exceptions import BusinessError


# 消息发送方
Sender = Literal["user", "assistant"]

CallStatus = Literal["idle", "awaiting", "failed"]


@dataclass(frozen=True)
class Message:
    """一条已追加的消息，追加后不可修改。

    - id: 追加时在存储中的位置（从 1 开始），与后端无关。
    - text: 展示给用户的内容。
    - sender: user 或 assistant。
    - created_at: 追加时的本地时间（UTC）。
    """

    id: int
    text: str
    sender: Sender
    created_at: datetime


@dataclass(frozen=True)
class CallState:
    """单轮调用状态。

    status 为 "failed" 时 reason/error_code 记录失败原因，
    下一次成功的 send 会把状态恢复为 idle 并清除原因。
    """

    status: CallStatus = "idle"
    reason: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def idle(cls) -> "CallState":
        return cls("idle")

    @classmethod
    def awaiting(cls) -> "CallState":
        return cls("awaiting")

    @classmethod
    def failed(cls, error: BusinessError) -> "CallState":
        return cls("failed", reason=error.message, error_code=error.code)

    @property
    def is_typing(self) -> bool:
        # “正在输入”提示只由 awaiting 派生
        return self.status == "awaiting"


@dataclass(frozen=True)
class BackendReply:
    """后端成功响应。"""

    response: str
    conversation_id: Optional[str] = None


@dataclass(frozen=True)
class BackendFailure:
    """后端调用失败，error 已归类为具体的 BusinessError 子类。"""

    error: BusinessError


BackendResult = Union[BackendReply, BackendFailure]


@dataclass(frozen=True)
class TurnResult:
    """一轮对话（用户发送 + 后端回复或失败）的结果。"""

    user_message: Message
    state: CallState
    assistant_message: Optional[Message] = None
    conversation_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.assistant_message is not None
