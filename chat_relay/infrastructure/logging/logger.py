"""Relay 日志。

每条记录写成一行 JSON，结构化字段通过 `extra={"extra": {...}}` 传入，
异常堆栈写入 `exc` 字段；开启 log_redact_content 时只保留消息前 64 个字符。
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from chat_relay.config.settings import settings

LOG_FILE_NAME = "relay.log"


class JsonFormatter(logging.Formatter):
    def __init__(self, redact: bool = False):
        super().__init__()
        self._redact = redact

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact:
            msg = preview(msg)
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": msg,
        }
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            # 结构化字段不能覆盖固定字段
            payload.update({k: v for k, v in fields.items() if k not in payload})
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def preview(text: str, limit: int = 64) -> str:
    """日志里只记录消息内容的截断预览。"""
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


def setup_logger(config=None) -> logging.Logger:
    cfg = config or settings
    relay_logger = logging.getLogger("chat_relay")
    relay_logger.setLevel(cfg.log_level.upper())
    if any(getattr(h, "_chat_relay", False) for h in relay_logger.handlers):
        return relay_logger
    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    handler.setFormatter(JsonFormatter(redact=cfg.log_redact_content))
    handler._chat_relay = True
    relay_logger.addHandler(handler)
    return relay_logger


logger = setup_logger()
