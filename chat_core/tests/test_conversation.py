import dataclasses

import pytest

from chat_core.domain.conversation import Conversation
from chat_core.domain.exceptions import ValidationError
from chat_core.domain.models import ChatMessage, ProjectDescriptor


def test_conversation_starts_with_system_message():
    conv = Conversation("be nice")
    assert len(conv) == 1
    assert conv.system_message == ChatMessage(role="system", content="be nice")
    assert conv.last is conv.system_message


def test_conversation_rejects_second_system_message():
    conv = Conversation("sys")
    with pytest.raises(ValidationError):
        conv.append(ChatMessage(role="system", content="other"))
    assert len(conv) == 1


def test_extended_does_not_mutate():
    conv = Conversation("sys")
    conv.append(ChatMessage(role="user", content="hi"))
    extra = ChatMessage(role="user", content="summarize")
    snapshot = conv.extended(extra)
    assert [m.content for m in snapshot] == ["sys", "hi", "summarize"]
    assert len(conv) == 2


def test_reset_keeps_system_message():
    conv = Conversation("sys")
    conv.append(ChatMessage(role="user", content="a"))
    conv.append(ChatMessage(role="assistant", content="b"))
    conv.reset()
    assert conv.messages == (ChatMessage(role="system", content="sys"),)


def test_messages_are_immutable():
    msg = ChatMessage(role="user", content="hi")
    with pytest.raises(dataclasses.FrozenInstanceError):
        msg.content = "changed"
    assert msg.to_payload() == {"role": "user", "content": "hi"}


def test_project_descriptor_from_dict():
    p = ProjectDescriptor.from_dict({"title": "p1", "blurb": "demo", "tags": ["py", "ai"], "link": ""})
    assert p.tags == ["py", "ai"]
    assert p.link is None
    assert p.github is None
