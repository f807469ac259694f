"""配置管理模块。

支持从初始化参数、环境变量、.env 以及 config.yaml 加载配置，
优先级依次降低。API Key 只是默认来源，调用方也可以每次请求单独传入。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Backend 选择 ----
    default_backend: str = Field(
        default="gateway",
        description="默认使用的 Backend：gateway、hosted-model 或 local",
    )

    # Gateway（OpenRouter 风格 chat/completions）
    gateway_api_key: Optional[str] = Field(default=None, description="Gateway API 密钥")
    gateway_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="Gateway chat/completions 完整地址",
    )
    gateway_model: str = Field(
        default="mistralai/mixtral-8x7b-instruct:free",
        description="Gateway 上使用的模型 ID",
    )
    gateway_max_tokens: int = Field(default=512, ge=1, description="单次回答最大 token 数")
    gateway_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    gateway_top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    summary_max_tokens: int = Field(default=200, ge=1, description="项目摘要的最大 token 数")
    site_url: str = Field(default="http://localhost", description="HTTP-Referer 请求头")
    site_title: str = Field(default="Anmol Portfolio", description="X-Title 请求头")

    # Hosted model（Hugging Face Inference API）
    hosted_model_api_key: Optional[str] = Field(default=None, description="Hosted model API 密钥")
    hosted_model_base_url: str = Field(
        default="https://api-inference.huggingface.co/models",
        description="Hosted model API 基础URL",
    )
    hosted_model_id: str = Field(default="microsoft/DialoGPT-medium")

    # Local inference（Ollama）
    local_url: str = Field(
        default="http://localhost:11434/api/generate",
        description="本地推理服务地址",
    )
    local_model: str = Field(default="llama3")

    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    local_timeout: float = Field(default=60.0, ge=1.0, description="本地推理超时时间（秒）")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")
    system_prompt_locale: str = Field(default="en", description="system 提示词语言目录")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("gateway_api_key", "hosted_model_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def api_key_for(self, backend: str) -> Optional[str]:
        """返回某个 Backend 在配置中的默认 API Key（可能为 None）。"""

        return {
            "gateway": self.gateway_api_key,
            "hosted-model": self.hosted_model_api_key,
        }.get(backend)


settings = Settings()
