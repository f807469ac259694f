"""对外服务模块。

提供简化的函数接口供聊天窗口等上层调用：
- 进程内唯一的默认会话（页面/进程重启即丢弃，不做持久化）。
- 每次调用可传入 API Key，缺省时回退到配置中的 Key。
- 把 ChatError 转成可直接展示的文本，会话本身保持可用。
"""

from typing import Any, Dict, Mapping, Optional

from chat_core.agents.chat_session import ChatSession
from chat_core.config.settings import settings
from chat_core.domain.exceptions import (
    ChatError,
    EmptyInputError,
    MissingCredentialError,
    ReentrantSubmissionError,
)
from chat_core.domain.models import ProjectDescriptor
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_adapters
from chat_core.providers.registry import BackendKind


NO_RESPONSE_TEXT = "Sorry, no response. Check the logs."
SUMMARY_MISSING_KEY_TEXT = "Add OpenRouter key to generate summaries."


_session: Optional[ChatSession] = None


def get_default_session() -> ChatSession:
    """获取默认的会话实例（单例）。"""
    global _session
    if _session is None:
        _session = ChatSession(adapters=create_adapters())
    return _session


def resolve_credential(backend: "str | BackendKind", api_key: Optional[str] = None) -> Optional[str]:
    """本次调用传入的 Key 优先，其次使用配置中该 Backend 的 Key。"""

    key = (api_key or "").strip()
    if key:
        return key
    return settings.api_key_for(BackendKind.parse(backend).value)


async def send_message(
    user_input: str,
    backend: "str | BackendKind | None" = None,
    api_key: Optional[str] = None,
    session: Optional[ChatSession] = None,
) -> Dict[str, Any]:
    """发送一条用户消息。

    Returns:
        包含以下字段的字典：
        - status: "ok" / "error" / "ignored"（空输入或上一轮尚未结束）
        - reply: 要展示的文本（ignored 时为 None）
        - fallback: 是否为本地 Backend 的兜底提示
        - message_count: 当前会话记录条数
    """
    session = session or get_default_session()
    kind = BackendKind.parse(backend or settings.default_backend)
    try:
        reply = await session.submit_turn(user_input, kind, resolve_credential(kind, api_key))
    except (EmptyInputError, ReentrantSubmissionError) as e:
        return _result(session, "ignored", None, code=e.code)
    except ChatError as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {
            "backend": kind.value,
            "code": e.code,
            "error": str(e),
        }})
        return _result(session, "error", f"Error: {e.message}", code=e.code)
    return _result(session, "ok", reply.text or NO_RESPONSE_TEXT, fallback=reply.fallback)


async def generate_project_summary(
    project: "ProjectDescriptor | Mapping[str, Any]",
    backend: "str | BackendKind | None" = None,
    api_key: Optional[str] = None,
    session: Optional[ChatSession] = None,
) -> str:
    """生成项目摘要，失败时返回可展示的提示文本。"""

    session = session or get_default_session()
    kind = BackendKind.parse(backend or settings.default_backend)
    try:
        return await session.generate_summary(project, kind, resolve_credential(kind, api_key))
    except MissingCredentialError:
        return SUMMARY_MISSING_KEY_TEXT
    except ChatError as e:
        logger.error(f"Summary failed: {e}", extra={"extra": {"backend": kind.value, "error": str(e)}})
        return f"Failed to generate: {e.message}"


def get_transcript(session: Optional[ChatSession] = None) -> list[Dict[str, str]]:
    """返回当前会话记录（含 system 消息）。"""

    session = session or get_default_session()
    return [m.to_payload() for m in session.messages]


def _result(session: ChatSession, status: str, reply: Optional[str], **fields: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "status": status,
        "reply": reply,
        "fallback": False,
        "message_count": len(session.messages),
    }
    out.update(fields)
    return out
