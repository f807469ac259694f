from typing import Iterator, Tuple

from .exceptions import ValidationError
from .models import ChatMessage


class Conversation:
    """只追加的会话记录。

    - 第 0 条永远是 system 消息（人设/指令），不可移除。
    - 之后只允许追加 user/assistant 消息。
    - 失败的轮次只留下 user 消息，不补 assistant，
      下一次提交时上下文依然完整。
    """

    def __init__(self, system_prompt: str):
        self._messages = [ChatMessage(role="system", content=system_prompt)]

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def system_message(self) -> ChatMessage:
        return self._messages[0]

    @property
    def last(self) -> ChatMessage:
        return self._messages[-1]

    def append(self, message: ChatMessage) -> None:
        if message.role == "system":
            raise ValidationError(code="INVALID_ROLE", message="system message is fixed at index 0")
        self._messages.append(message)

    def extended(self, *extra: ChatMessage) -> Tuple[ChatMessage, ...]:
        """返回“当前记录 + extra”的一次性副本，不修改自身。"""

        return tuple(self._messages) + tuple(extra)

    def reset(self) -> None:
        del self._messages[1:]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._messages))
