"""Chat Core 顶层包。

该包提供作品集聊天组件的核心实现，
包括配置加载、领域模型、Backend 适配、会话引擎、
对外服务接口与桌面聊天窗口等能力。
"""

from chat_core.agents.chat_session import ChatSession
from chat_core.providers.registry import BackendKind

__all__ = ["BackendKind", "ChatSession"]
