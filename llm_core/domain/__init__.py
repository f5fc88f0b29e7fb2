"""领域层模型与协议。

包含：
- models: 统一的 ConversationTurn / CompletionRequest / CompletionResult 模型。
- history: 客户端独占的会话历史存储 ConversationHistory。
- exceptions: 业务异常类型定义。
"""
