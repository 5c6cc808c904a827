"""会话记录器，把每条消息与关键事件追加到 JSONL 文件，便于审计。"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from chat_relay.domain.exceptions import BusinessError
from chat_relay.domain.models import Message


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class TranscriptRecorder:
    """一个 Relay 实例对应一个 transcript 文件。

    文件名使用本地生成的 key，而不是后端会话 ID：
    会话在第一轮成功前还没有 ID，且 new_conversation 之后仍写入同一文件。
    """

    def __init__(self, root: str | Path, key: Optional[str] = None):
        self.key = key or f"r-{uuid4().hex}"
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self.path = self._root / f"{self.key}.jsonl"

    def record_message(self, message: Message, conversation_id: Optional[str]) -> None:
        self._write(
            {
                "type": "message",
                "id": message.id,
                "sender": message.sender,
                "text": message.text,
                "created_at": message.created_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
                "conversation_id": conversation_id,
            }
        )

    def record_event(self, event: str, **fields: Any) -> None:
        entry: Dict[str, Any] = {"type": event, "timestamp": _utcnow()}
        entry.update(fields)
        self._write(entry)

    def read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        items: List[Dict[str, Any]] = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                items.append(json.loads(line))
        return items

    def _write(self, entry: Dict[str, Any]) -> None:
        try:
            line = json.dumps(entry, ensure_ascii=False)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except (OSError, TypeError, ValueError) as e:
            raise BusinessError(code="TRANSCRIPT_WRITE_ERROR", message=str(e))
