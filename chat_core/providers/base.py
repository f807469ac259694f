"""Backend 适配器抽象接口。

会话层不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个 Backend 实现一个适配器（如 GatewayClient）。
- uses_history: True 时接收完整会话记录，False 时只接收最新一条用户文本。
- requires_credential: True 时缺少 API Key 必须在发请求前失败。
- invoke(prompt, credential): 执行一次调用，返回统一的 BackendReply。

新增第四种 Backend 只需实现本协议并在 registry 中登记。
"""

import json
from typing import Any, Optional, Protocol, Sequence, Union

from chat_core.domain.models import BackendReply, ChatMessage


Prompt = Union[Sequence[ChatMessage], str]


class BackendAdapter(Protocol):
    name: str
    uses_history: bool
    requires_credential: bool

    async def invoke(self, prompt: Prompt, credential: Optional[str] = None, **options: Any) -> BackendReply:
        ...


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def dump_raw(data: Any) -> str:
    """响应结构不符合预期时，把原始 JSON 转成字符串作为回答。"""

    return json.dumps(data, ensure_ascii=False)


def latest_text(prompt: Prompt) -> str:
    """单轮 Backend 只需要最新一条文本；兼容直接传字符串。"""

    if isinstance(prompt, str):
        return prompt
    return prompt[-1].content if prompt else ""
