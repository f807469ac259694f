"""领域层模型与协议。

包含：
- models: ChatMessage / BackendReply / ProjectDescriptor 等统一模型。
- conversation: 以 system 消息开头、只追加的会话记录 Conversation。
- exceptions: 业务异常类型定义。
"""
