"""Backend 名称登记。

BackendKind 是会话层选择适配器的唯一依据；
parse() 同时兼容旧版聊天组件下拉框里的取值（openrouter / hf / local）。
"""

from enum import Enum

from chat_core.domain.exceptions import ValidationError


class BackendKind(str, Enum):
    GATEWAY = "gateway"
    HOSTED_MODEL = "hosted-model"
    LOCAL = "local"

    @property
    def label(self) -> str:
        return BACKEND_LABELS[self]

    @classmethod
    def parse(cls, value: "str | BackendKind") -> "BackendKind":
        """按名称解析 Backend，名称不区分大小写。"""

        if isinstance(value, BackendKind):
            return value
        key = (value or "").strip().lower()
        key = BACKEND_ALIASES.get(key, key)
        for kind in cls:
            if kind.value == key:
                return kind
        raise ValidationError(code="UNKNOWN_BACKEND", message=f"Unknown backend: {value!r}")


BACKEND_ALIASES = {
    "openrouter": "gateway",
    "hf": "hosted-model",
    "huggingface": "hosted-model",
    "hosted_model": "hosted-model",
    "ollama": "local",
}

BACKEND_LABELS = {
    BackendKind.GATEWAY: "OpenRouter (gateway)",
    BackendKind.HOSTED_MODEL: "Hugging Face (hosted model)",
    BackendKind.LOCAL: "Local (Ollama)",
}
