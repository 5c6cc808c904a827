from datetime import datetime, timezone

import pytest

from chat_relay.domain.exceptions import BusinessError
from chat_relay.domain.models import Message
from chat_relay.infrastructure.storage.transcript import TranscriptRecorder


def test_transcript_appends_jsonl(tmp_path):
    recorder = TranscriptRecorder(tmp_path / "t", key="r-test")
    msg = Message(id=2, text="你好", sender="user", created_at=datetime.now(timezone.utc))
    recorder.record_message(msg, None)
    recorder.record_event("bind", conversation_id="abc")
    assert recorder.path.name == "r-test.jsonl"
    lines = recorder.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    entries = recorder.read()
    assert entries[0]["text"] == "你好"
    assert entries[0]["created_at"].endswith("Z")
    assert entries[1] == {"type": "bind", "timestamp": entries[1]["timestamp"], "conversation_id": "abc"}


def test_transcript_write_error_is_business_error(tmp_path):
    recorder = TranscriptRecorder(tmp_path, key="r-bad")
    with pytest.raises(BusinessError) as exc:
        recorder.record_event("failure", payload=object())
    assert exc.value.code == "TRANSCRIPT_WRITE_ERROR"
