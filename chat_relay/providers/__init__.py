"""对话后端集成层。

该包下的模块负责：
- 定义后端抽象接口 (base)。
- 提供 HTTP 实现 (http_backend)。
"""

from chat_relay.config.settings import settings
from chat_relay.providers.base import ChatBackend
from chat_relay.providers.http_backend import HttpChatBackend


def create_backend(config=None) -> ChatBackend:
    """根据配置创建后端实例，默认取全局配置。"""

    return HttpChatBackend(config or settings)


__all__ = ["ChatBackend", "HttpChatBackend", "create_backend"]
