"""会话引擎核心模块。

维护只追加的会话记录，保证同一时刻最多一轮请求在进行（single-flight），
并把各 Backend 的结果统一折算为会话记录的变化：

- 成功：追加 user + assistant 两条消息。
- 失败：只保留 user 消息，错误原样抛给调用方展示。
- 重入提交：直接拒绝，不排队，也不修改会话记录。
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional, Tuple
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import Conversation
from chat_core.domain.exceptions import (
    EmptyInputError,
    MissingCredentialError,
    ReentrantSubmissionError,
    ValidationError,
)
from chat_core.domain.models import BackendReply, ChatMessage, ProjectDescriptor
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts import build_project_summary_prompt, load_system_prompt
from chat_core.providers.base import BackendAdapter
from chat_core.providers.registry import BackendKind


SUMMARY_UNSUPPORTED_TEXT = "Use OpenRouter (gateway) mode for project summaries."


class ChatSession:
    def __init__(
        self,
        adapters: Mapping[BackendKind, BackendAdapter],
        system_prompt: Optional[str] = None,
        summary_max_tokens: Optional[int] = None,
    ):
        self._adapters = dict(adapters)
        if system_prompt is None:
            system_prompt = load_system_prompt(getattr(settings, "system_prompt_locale", "en"))
        self._conversation = Conversation(system_prompt)
        self._summary_max_tokens = summary_max_tokens or getattr(settings, "summary_max_tokens", 200)
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self._conversation.messages

    @property
    def last_message(self) -> ChatMessage:
        return self._conversation.last

    def append_user(self, text: str) -> ChatMessage:
        """把一条用户消息追加到会话记录（去掉首尾空白后不能为空）。"""

        content = (text or "").strip()
        if not content:
            raise EmptyInputError(code="EMPTY_INPUT", message="Message is empty")
        message = ChatMessage(role="user", content=content)
        self._conversation.append(message)
        return message

    async def submit_turn(
        self,
        text: str,
        backend: "str | BackendKind",
        credential: Optional[str] = None,
    ) -> BackendReply:
        """执行一轮对话。

        Args:
            text: 用户输入
            backend: 本轮使用的 Backend
            credential: 本轮使用的 API Key（本地 Backend 可省略）

        Returns:
            BackendReply，text 已作为 assistant 消息写入会话记录

        Raises:
            ReentrantSubmissionError: 上一轮尚未结束（会话记录不变）
            EmptyInputError: 输入为空（会话记录不变）
            MissingCredentialError: 缺少 API Key（在追加 user 消息之前检查，会话记录不变）
            ChatError: Backend 调用失败（会话记录只多出本轮的 user 消息）
        """

        if self._pending:
            raise ReentrantSubmissionError(
                code="TURN_PENDING",
                message="A message is already being sent",
                http_status=409,
            )
        if not (text or "").strip():
            raise EmptyInputError(code="EMPTY_INPUT", message="Message is empty")
        kind = BackendKind.parse(backend)
        adapter = self._adapter_for(kind)
        credential = (credential or "").strip() or None
        if adapter.requires_credential and not credential:
            raise MissingCredentialError(
                code="MISSING_API_KEY",
                message=f"{kind.label} API key required. Paste it in the API key field.",
                backend=kind.value,
            )

        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "backend": kind.value}
        self._pending = True
        try:
            user_msg = self.append_user(text)
            prompt = self._conversation.messages if adapter.uses_history else user_msg.content
            self._log(
                logging.INFO,
                "Calling backend",
                log_ctx,
                message_count=len(self._conversation),
                uses_history=adapter.uses_history,
            )
            try:
                reply = await adapter.invoke(prompt, credential)
            except Exception as e:
                self._log(logging.ERROR, "Backend call failed", log_ctx, error=str(e))
                raise
            self._conversation.append(ChatMessage(role="assistant", content=reply.text))
            self._log(
                logging.INFO,
                "Completed turn",
                log_ctx,
                fallback=reply.fallback,
                message_count=len(self._conversation),
                elapsed_seconds=round(time.time() - start_time, 2),
            )
            return reply
        finally:
            self._pending = False

    async def generate_summary(
        self,
        project: "ProjectDescriptor | Mapping[str, Any]",
        backend: "str | BackendKind",
        credential: Optional[str] = None,
    ) -> str:
        """为作品集项目生成简短摘要。

        使用“当前会话记录 + 一条临时 user 消息”的一次性副本调用 Gateway，
        不修改会话记录。其他 Backend 不支持，返回提示文本（不是错误）。
        """

        kind = BackendKind.parse(backend)
        if kind is not BackendKind.GATEWAY:
            return SUMMARY_UNSUPPORTED_TEXT
        if not isinstance(project, ProjectDescriptor):
            project = ProjectDescriptor.from_dict(project)
        adapter = self._adapter_for(kind)
        prompt = build_project_summary_prompt(project)
        credential = (credential or "").strip() or None
        one_shot = self._conversation.extended(ChatMessage(role="user", content=prompt))
        self._log(
            logging.INFO,
            "Generating project summary",
            {"trace_id": f"tr-{uuid4().hex}", "backend": kind.value},
            project=project.title,
        )
        reply = await adapter.invoke(one_shot, credential, max_tokens=self._summary_max_tokens)
        return reply.text

    def reset(self) -> None:
        """清空对话，只保留 system 消息。进行中的请求不受影响。"""

        self._conversation.reset()

    def _adapter_for(self, kind: BackendKind) -> BackendAdapter:
        try:
            return self._adapters[kind]
        except KeyError:
            raise ValidationError(code="UNKNOWN_BACKEND", message=f"Backend not configured: {kind.value}")

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
