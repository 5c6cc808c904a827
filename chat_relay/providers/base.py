"""对话后端抽象接口。

RelayClient 不直接依赖 HTTP 细节，而是依赖此协议：

- HttpChatBackend 通过 httpx 调用 `POST /api/chat`。
- 测试里可以用任意实现了 exchange 的假后端替换。

实现者负责把原始响应转换为标记结果（BackendReply / BackendFailure），
不允许把松散的 JSON 透传给上层。
"""

from typing import Optional, Protocol

from chat_relay.domain.models import BackendResult


class ChatBackend(Protocol):
    """对话后端协议。

    - name: 后端名称，用于日志。
    - exchange(message, conversation_id): 发送一条用户消息并等待唯一的响应。
    """

    name: str

    def exchange(self, message: str, conversation_id: Optional[str]) -> BackendResult:
        ...
