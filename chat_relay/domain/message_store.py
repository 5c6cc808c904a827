from datetime import datetime, timezone
from typing import Iterator, List, Optional, Tuple

from .models import Message, Sender


class MessageStore:
    """当前会话的有序、只追加消息日志。

    创建时即包含一条助手问候语；reset 后同样重新写入问候语。
    问候语只用于展示，不会发给后端。
    """

    def __init__(self, greeting: str):
        self._greeting = greeting
        self._messages: List[Message] = []
        self.reset()

    def append(self, sender: Sender, text: str) -> Message:
        """在尾部追加一条消息，id 取追加时的位置。"""
        message = Message(
            id=len(self._messages) + 1,
            text=text,
            sender=sender,
            created_at=datetime.now(timezone.utc),
        )
        self._messages.append(message)
        return message

    def reset(self) -> None:
        self._messages = []
        self.append("assistant", self._greeting)

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
