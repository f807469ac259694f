"""Gateway（OpenRouter）适配器。

接口为 OpenAI 风格的 chat/completions 端点：
- URL: settings.gateway_url
- 认证: Authorization: Bearer <api_key>
- 免费档额外需要 HTTP-Referer / X-Title 请求头。

Gateway 是有状态的多轮接口，每次都发送完整的会话记录。
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import MissingCredentialError, NetworkError, BackendHttpError, RateLimitError
from chat_core.domain.models import BackendReply, ChatMessage
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import Prompt, dump_raw, is_success


class GatewayClient:
    """Gateway 客户端实现。"""

    name = "gateway"
    uses_history = True
    requires_credential = True

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def invoke(
        self,
        prompt: Prompt,
        credential: Optional[str] = None,
        max_tokens: Optional[int] = None,
        **_: Any,
    ) -> BackendReply:
        """执行一次非流式对话调用。

        步骤：
        1. 校验 API Key（缺失时不发请求）。
        2. 构造请求 payload（固定采样参数）。
        3. 发送请求并把网络错误/限流/非 2xx 包装为业务异常。
        4. 取 choices[0].message.content，结构不符时退化为原始 JSON 字符串。
        """

        credential = (credential or "").strip()
        if not credential:
            raise MissingCredentialError(
                code="MISSING_API_KEY",
                message="OpenRouter API key required. Paste it in the API key field.",
                backend=self.name,
            )
        messages = [prompt] if isinstance(prompt, str) else list(prompt)
        payload = self._build_payload(messages, max_tokens)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    self._settings.gateway_url,
                    json=payload,
                    headers=self._headers(credential),
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), backend=self.name)
        if resp.status_code == 429:
            raise RateLimitError(body=resp.text, backend="OpenRouter")
        if not is_success(resp.status_code):
            logger.log(
                logging.WARNING,
                "Gateway returned error status",
                extra={"extra": {"backend": self.name, "status": resp.status_code}},
            )
            raise BackendHttpError(status=resp.status_code, body=resp.text, backend="OpenRouter")
        try:
            data = resp.json()
        except ValueError:
            return BackendReply(text=resp.text, backend=self.name, raw=resp.text)
        return BackendReply(text=self._extract_text(data), backend=self.name, raw=data)

    def _build_payload(self, messages: Sequence, max_tokens: Optional[int]) -> Dict[str, Any]:
        return {
            "model": self._settings.gateway_model,
            "messages": self._serialize_messages(messages),
            "max_tokens": max_tokens or self._settings.gateway_max_tokens,
            "temperature": self._settings.gateway_temperature,
            "top_p": self._settings.gateway_top_p,
        }

    def _headers(self, credential: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._settings.site_url,
            "X-Title": self._settings.site_title,
        }

    @staticmethod
    def _serialize_messages(messages: Sequence) -> List[Dict[str, str]]:
        out = []
        for m in messages:
            if isinstance(m, ChatMessage):
                out.append(m.to_payload())
            else:
                # 直接传入字符串时视为一条 user 消息
                out.append({"role": "user", "content": str(m)})
        return out

    @staticmethod
    def _extract_text(data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return dump_raw(data)
        if content is None:
            return dump_raw(data)
        return str(content)
