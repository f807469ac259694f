"""Hosted model（Hugging Face Inference API）适配器。

单轮、无状态：只发送最新一条用户文本 {"inputs": text}，
响应预期为 [{"generated_text": ...}]。
"""

from typing import Any, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import MissingCredentialError, NetworkError, BackendHttpError, RateLimitError
from chat_core.domain.models import BackendReply
from chat_core.providers.base import Prompt, dump_raw, is_success, latest_text


class HostedModelClient:
    name = "hosted-model"
    uses_history = False
    requires_credential = True

    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def endpoint(self) -> str:
        base = self._settings.hosted_model_base_url.rstrip("/")
        return f"{base}/{self._settings.hosted_model_id}"

    async def invoke(self, prompt: Prompt, credential: Optional[str] = None, **_: Any) -> BackendReply:
        credential = (credential or "").strip()
        if not credential:
            raise MissingCredentialError(
                code="MISSING_API_KEY",
                message="HuggingFace API key required.",
                backend=self.name,
            )
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    self.endpoint,
                    json={"inputs": latest_text(prompt)},
                    headers={
                        "Authorization": f"Bearer {credential}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), backend=self.name)
        if resp.status_code == 429:
            raise RateLimitError(body=resp.text, backend="HF")
        if not is_success(resp.status_code):
            raise BackendHttpError(status=resp.status_code, body=resp.text, backend="HF")
        try:
            data = resp.json()
        except ValueError:
            return BackendReply(text=resp.text, backend=self.name, raw=resp.text)
        return BackendReply(text=self._extract_text(data), backend=self.name, raw=data)

    @staticmethod
    def _extract_text(data: Any) -> str:
        if isinstance(data, list) and data and isinstance(data[0], dict):
            generated = data[0].get("generated_text")
            if generated:
                return str(generated)
        return dump_raw(data)
