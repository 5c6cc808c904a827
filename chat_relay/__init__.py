"""Chat Relay 顶层包。

该包实现对话中继协议：把用户输入转换为与后端会话关联、顺序严格的消息交换，
并维护会话 ID 绑定、等待/失败/输入中状态以及后端失败后的恢复。
"""

from chat_relay.api.relay import RelayClient
from chat_relay.api.service import create_relay

__all__ = ["RelayClient", "create_relay"]
