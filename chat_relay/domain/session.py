from typing import Optional

from .exceptions import AlreadyBoundMismatch, ProtocolViolation


class ConversationSession:
    """持有后端下发的会话 ID 及其绑定状态。

    状态只有两种：Unbound（id 为 None）与 Bound(id)。
    绑定后 id 不可变，后续每次请求都复用；只有 reset 能回到 Unbound。
    """

    def __init__(self):
        self._id: Optional[str] = None

    def current_id(self) -> Optional[str]:
        return self._id

    @property
    def is_bound(self) -> bool:
        return self._id is not None

    def bind(self, conversation_id: str) -> None:
        """绑定会话 ID。

        重复绑定同一个 ID 不做任何事；已绑定时传入不同 ID 说明后端或客户端有缺陷，
        抛出 AlreadyBoundMismatch，已绑定的 ID 保持不变。
        """
        if not conversation_id:
            raise ProtocolViolation(
                code="EMPTY_CONVERSATION_ID",
                message="Backend issued an empty conversation id",
            )
        if self._id is None:
            self._id = conversation_id
            return
        if self._id != conversation_id:
            raise AlreadyBoundMismatch(
                code="CONVERSATION_ID_MISMATCH",
                message=f"Conversation already bound to {self._id!r}, got {conversation_id!r}",
                bound_id=self._id,
                received_id=conversation_id,
            )

    def reset(self) -> None:
        self._id = None

    def __repr__(self) -> str:
        state = f"Bound({self._id!r})" if self._id is not None else "Unbound"
        return f"ConversationSession<{state}>"
