"""对外 API 服务模块。

提供创建 Relay 的工厂函数。每次调用返回一个独立的 RelayClient，
不在模块级缓存任何会话状态；调用方负责在结束时 close（或使用 with）。
"""

from typing import Optional

from chat_relay.api.relay import RelayClient
from chat_relay.config.settings import Settings, settings as default_settings
from chat_relay.domain.message_store import MessageStore
from chat_relay.domain.session import ConversationSession
from chat_relay.infrastructure.logging.logger import logger
from chat_relay.infrastructure.storage.transcript import TranscriptRecorder
from chat_relay.providers import create_backend
from chat_relay.providers.base import ChatBackend


def create_relay(
    config: Optional[Settings] = None,
    backend: Optional[ChatBackend] = None,
) -> RelayClient:
    """创建一个新的 Relay 实例。

    Args:
        config: 配置对象（可选，默认使用全局 settings）
        backend: 对话后端（可选，默认按配置创建 HttpChatBackend）

    Returns:
        处于 Unbound / idle 状态、只包含问候语的 RelayClient
    """
    cfg = config or default_settings
    transcript = None
    if cfg.transcript_dir:
        transcript = TranscriptRecorder(cfg.transcript_dir)
    backend = backend or create_backend(cfg)
    relay = RelayClient(
        backend=backend,
        store=MessageStore(cfg.greeting_text),
        session=ConversationSession(),
        transcript=transcript,
    )
    logger.info(
        "Relay created",
        extra={"extra": {
            "backend": getattr(backend, "name", "unknown"),
            "transcript": str(transcript.path) if transcript else None,
        }},
    )
    return relay
