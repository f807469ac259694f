"""Backend 集成层。

该包下的模块负责：
- 定义适配器抽象接口 (base)。
- 维护 Backend 名称与别名 (registry)。
- 提供各 Backend 的具体实现 (gateway_client、hosted_model_client、local_client)。
"""

from typing import Dict

from chat_core.config.settings import settings
from chat_core.providers.base import BackendAdapter
from chat_core.providers.gateway_client import GatewayClient
from chat_core.providers.hosted_model_client import HostedModelClient
from chat_core.providers.local_client import LocalInferenceClient
from chat_core.providers.registry import BackendKind


def create_adapter(kind: "str | BackendKind") -> BackendAdapter:
    """根据名称创建适配器实例。"""

    backend = BackendKind.parse(kind)
    if backend is BackendKind.GATEWAY:
        return GatewayClient(settings)
    if backend is BackendKind.HOSTED_MODEL:
        return HostedModelClient(settings)
    return LocalInferenceClient(settings)


def create_adapters() -> Dict[BackendKind, BackendAdapter]:
    return {kind: create_adapter(kind) for kind in BackendKind}

