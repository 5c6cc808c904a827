"""领域层模型与协议。

包含：
- models: Message / CallState / BackendReply / TurnResult 等数据结构。
- message_store: 只追加的消息存储 MessageStore。
- session: 后端会话 ID 的绑定状态 ConversationSession。
- exceptions: 业务异常类型定义。
"""
