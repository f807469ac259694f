"""测试会话引擎的轮次语义。"""

import asyncio

import pytest

from chat_core.agents.chat_session import SUMMARY_UNSUPPORTED_TEXT, ChatSession
from chat_core.domain.exceptions import (
    BackendHttpError,
    EmptyInputError,
    MissingCredentialError,
    ReentrantSubmissionError,
)
from chat_core.domain.models import BackendReply, ChatMessage, ProjectDescriptor
from chat_core.providers.registry import BackendKind


class FakeAdapter:
    """模拟的 Backend，记录每次收到的 prompt。"""

    def __init__(self, name, uses_history=True, requires_credential=True, reply="Hello!", error=None):
        self.name = name
        self.uses_history = uses_history
        self.requires_credential = requires_credential
        self.reply = reply
        self.error = error
        self.calls = []

    async def invoke(self, prompt, credential=None, **options):
        self.calls.append({"prompt": prompt, "credential": credential, "options": options})
        if self.error is not None:
            raise self.error
        return BackendReply(text=self.reply, backend=self.name)


class BlockingAdapter(FakeAdapter):
    def __init__(self):
        super().__init__("gateway")
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def invoke(self, prompt, credential=None, **options):
        self.started.set()
        await self.release.wait()
        return await super().invoke(prompt, credential, **options)


def make_session(**adapters):
    defaults = {
        BackendKind.GATEWAY: FakeAdapter("gateway"),
        BackendKind.HOSTED_MODEL: FakeAdapter("hosted-model", uses_history=False),
        BackendKind.LOCAL: FakeAdapter("local", uses_history=False, requires_credential=False),
    }
    for key, adapter in adapters.items():
        defaults[BackendKind.parse(key)] = adapter
    return ChatSession(adapters=defaults, system_prompt="sys"), defaults


@pytest.mark.asyncio
async def test_successful_turn_appends_user_and_assistant():
    session, adapters = make_session()
    reply = await session.submit_turn("Hi", "gateway", "key1")
    assert reply.text == "Hello!"
    assert session.messages == (
        ChatMessage(role="system", content="sys"),
        ChatMessage(role="user", content="Hi"),
        ChatMessage(role="assistant", content="Hello!"),
    )
    assert session.pending is False
    assert adapters[BackendKind.GATEWAY].calls[0]["credential"] == "key1"


@pytest.mark.asyncio
async def test_successful_turns_alternate_roles():
    session, _ = make_session()
    for i in range(3):
        await session.submit_turn(f"question {i}", BackendKind.GATEWAY, "key1")
        assert len(session.messages) == 1 + 2 * (i + 1)
    roles = [m.role for m in session.messages]
    assert roles == ["system", "user", "assistant", "user", "assistant", "user", "assistant"]


@pytest.mark.asyncio
async def test_gateway_receives_full_history_and_others_latest_text():
    session, adapters = make_session()
    await session.submit_turn("first", "gateway", "key1")
    await session.submit_turn("  second  ", "hosted-model", "hf-key")
    await session.submit_turn("third", "local")

    gateway_prompt = adapters[BackendKind.GATEWAY].calls[0]["prompt"]
    assert [m.role for m in gateway_prompt] == ["system", "user"]
    assert adapters[BackendKind.HOSTED_MODEL].calls[0]["prompt"] == "second"
    assert adapters[BackendKind.LOCAL].calls[0]["prompt"] == "third"
    assert session.messages[3] == ChatMessage(role="user", content="second")


@pytest.mark.asyncio
async def test_failed_turn_keeps_dangling_user_message():
    error = BackendHttpError(status=500, body="boom", backend="OpenRouter")
    session, _ = make_session(gateway=FakeAdapter("gateway", error=error))
    with pytest.raises(BackendHttpError):
        await session.submit_turn("Hi", "gateway", "key1")
    assert len(session.messages) == 2
    assert session.last_message == ChatMessage(role="user", content="Hi")
    assert session.pending is False


@pytest.mark.asyncio
async def test_session_usable_after_failure():
    failing = FakeAdapter("gateway", error=BackendHttpError(status=502, body="bad gateway"))
    session, _ = make_session(gateway=failing)
    with pytest.raises(BackendHttpError):
        await session.submit_turn("Hi", "gateway", "key1")
    failing.error = None
    await session.submit_turn("Hi again", "gateway", "key1")
    assert [m.role for m in session.messages] == ["system", "user", "user", "assistant"]
    # 重试时 Gateway 能看到上一次残留的 user 消息
    assert [m.content for m in failing.calls[-1]["prompt"]] == ["sys", "Hi", "Hi again"]


@pytest.mark.asyncio
async def test_missing_credential_leaves_conversation_unchanged():
    session, adapters = make_session()
    with pytest.raises(MissingCredentialError):
        await session.submit_turn("Hi", "gateway", "")
    assert session.messages == (ChatMessage(role="system", content="sys"),)
    assert adapters[BackendKind.GATEWAY].calls == []
    assert session.pending is False


@pytest.mark.asyncio
@pytest.mark.parametrize("backend", ["gateway", "hosted-model"])
async def test_blank_credential_treated_as_missing(backend):
    session, adapters = make_session()
    with pytest.raises(MissingCredentialError):
        await session.submit_turn("Hi", backend, "   ")
    assert session.messages == (ChatMessage(role="system", content="sys"),)
    assert all(a.calls == [] for a in adapters.values())
    assert session.pending is False


@pytest.mark.asyncio
async def test_credential_is_stripped_before_dispatch():
    session, adapters = make_session()
    await session.submit_turn("Hi", "gateway", "  key1 \n")
    assert adapters[BackendKind.GATEWAY].calls[0]["credential"] == "key1"


@pytest.mark.asyncio
async def test_local_backend_needs_no_credential():
    session, _ = make_session()
    reply = await session.submit_turn("Hi", "local", None)
    assert reply.text == "Hello!"
    assert len(session.messages) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_empty_input_rejected(text):
    session, adapters = make_session()
    with pytest.raises(EmptyInputError):
        await session.submit_turn(text, "gateway", "key1")
    assert len(session.messages) == 1
    assert adapters[BackendKind.GATEWAY].calls == []


@pytest.mark.asyncio
async def test_reentrant_submission_rejected_while_pending():
    blocking = BlockingAdapter()
    session, _ = make_session(gateway=blocking)
    first = asyncio.create_task(session.submit_turn("first", "gateway", "key1"))
    await blocking.started.wait()
    assert session.pending is True
    before = session.messages

    with pytest.raises(ReentrantSubmissionError):
        await session.submit_turn("second", "local")
    assert session.messages == before

    blocking.release.set()
    await first
    assert session.pending is False
    assert [m.content for m in session.messages] == ["sys", "first", "Hello!"]


def test_append_user():
    session, _ = make_session()
    msg = session.append_user("  hello ")
    assert msg == ChatMessage(role="user", content="hello")
    assert session.last_message == msg
    with pytest.raises(EmptyInputError):
        session.append_user("   ")


@pytest.mark.asyncio
async def test_generate_summary_does_not_mutate_conversation():
    session, adapters = make_session()
    await session.submit_turn("Hi", "gateway", "key1")
    before = session.messages
    project = ProjectDescriptor(title="p1", blurb="A chat widget", tags=["js", "ai"], github="https://github.com/x/p1")

    text = await session.generate_summary(project, "gateway", "key1")

    assert text == "Hello!"
    assert session.messages == before
    call = adapters[BackendKind.GATEWAY].calls[-1]
    prompt = call["prompt"]
    assert len(prompt) == len(before) + 1
    assert prompt[-1].role == "user"
    assert "Title: p1" in prompt[-1].content
    assert "Tags: js, ai" in prompt[-1].content
    assert "Link: n/a" in prompt[-1].content
    assert "GitHub: https://github.com/x/p1" in prompt[-1].content
    assert call["options"]["max_tokens"] == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("backend", ["hosted-model", "local"])
async def test_generate_summary_other_backends_is_noop(backend):
    session, adapters = make_session()
    text = await session.generate_summary({"title": "p1", "blurb": "x"}, backend, "key1")
    assert text == SUMMARY_UNSUPPORTED_TEXT
    assert all(a.calls == [] for a in adapters.values())


def test_reset_keeps_system_message():
    session, _ = make_session()
    session.append_user("hi")
    session.reset()
    assert session.messages == (ChatMessage(role="system", content="sys"),)


def test_default_system_prompt_loaded():
    session = ChatSession(adapters={})
    assert session.messages[0].role == "system"
    assert "Anmolz AI" in session.messages[0].content
