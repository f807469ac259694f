"""统一的对话与结果数据模型。

本模块定义了会话层与各个 Backend 适配器之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant），追加后不可变。
- BackendReply: 适配器的一次调用结果，显式区分“真实回答”和“兜底提示”。
- ProjectDescriptor: 作品集页面上一个项目的描述，用于生成项目摘要。

所有 Backend 适配器都只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional


# 消息角色类型（与 OpenAI 风格 chat/completions 的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，system/user/assistant 之一。
    - content: 纯文本内容。

    frozen=True 保证消息一旦进入会话记录就不会再被修改，
    因为它会原样作为上下文发送给远端 Backend。
    """

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class BackendReply:
    """一次 Backend 调用的结果。

    - text: 要展示并写入会话记录的文本。
    - backend: 产生该结果的 Backend 名称（如 "gateway"）。
    - fallback: True 表示这是适配器主动给出的兜底提示（例如本地推理服务未启动），
      而不是模型生成的回答；它不是错误。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    text: str
    backend: str
    fallback: bool = False
    raw: Optional[Any] = None


@dataclass
class ProjectDescriptor:
    """作品集中的一个项目，用于构造项目摘要的提示词。"""

    title: str
    blurb: str
    tags: List[str] = field(default_factory=list)
    link: Optional[str] = None
    github: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectDescriptor":
        """从页面传来的字典构造（缺失字段按空值处理）。"""

        tags = data.get("tags") or []
        return cls(
            title=str(data.get("title") or ""),
            blurb=str(data.get("blurb") or ""),
            tags=[str(t) for t in tags],
            link=data.get("link") or None,
            github=data.get("github") or None,
        )
