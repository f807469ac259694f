"""本地推理（Ollama）适配器。

本地服务没启动是大多数用户的常态，不算异常：
连接失败、超时、非 2xx 或响应无法解析时，返回 fallback=True 的固定提示，
而不是抛出错误。
"""

import logging
from typing import Any, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.models import BackendReply
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import Prompt, dump_raw, is_success, latest_text


LOCAL_FALLBACK_TEXT = (
    "Local mode: Run `ollama run llama3` and try again. Or switch to the gateway backend."
)


class LocalInferenceClient:
    name = "local"
    uses_history = False
    requires_credential = False

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def invoke(self, prompt: Prompt, credential: Optional[str] = None, **_: Any) -> BackendReply:
        payload = {
            "model": self._settings.local_model,
            "prompt": latest_text(prompt),
            "stream": False,
        }
        try:
            async with httpx.AsyncClient(timeout=self._settings.local_timeout, trust_env=False) as client:
                resp = await client.post(
                    self._settings.local_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
            if not is_success(resp.status_code):
                return self._fallback(f"HTTP {resp.status_code}")
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            return self._fallback(str(e) or type(e).__name__)
        text = data.get("response") if isinstance(data, dict) else None
        if text is None:
            text = dump_raw(data)
        return BackendReply(text=str(text), backend=self.name, raw=data)

    def _fallback(self, reason: str) -> BackendReply:
        logger.log(
            logging.INFO,
            "Local inference unavailable, using fallback text",
            extra={"extra": {"backend": self.name, "reason": reason}},
        )
        return BackendReply(text=LOCAL_FALLBACK_TEXT, backend=self.name, fallback=True)
