from __future__ import annotations

import asyncio

import pytest

from core.errors import ResolverError
from core.models import LineDatum, OutboundReply, ResolutionResult
from core.ports import JOIN_EVENT, MESSAGE_EVENT
from core.processor import EMPTY_MESSAGE_REPLY, EventOrchestrator, build_reply

from fakes import BOT_ID, FakeResolver, FakeTransport, make_event

ROOM = "!room:example.org"


def _orchestrator(result: ResolutionResult = None, error: Exception = None):
    transport = FakeTransport()
    resolver = FakeResolver(result=result, error=error)
    return EventOrchestrator(transport=transport, resolver=resolver), transport, resolver


def test_replies_with_rendered_excerpt() -> None:
    result = ResolutionResult(items=(LineDatum("def f():", "py"),), total_lines=1)
    orchestrator, transport, resolver = _orchestrator(result)

    asyncio.run(orchestrator.on_message(ROOM, make_event(body="see link")))

    assert resolver.calls == ["see link"]
    assert transport.sent == [
        (
            ROOM,
            "reply",
            OutboundReply(
                room_id=ROOM,
                related_event_id="$evt1",
                body='<pre><code class="language-py">def f():</code></pre>',
                formatted_body='<pre><code class="language-py">def f():</code></pre>',
                msgtype="notice",
            ),
        )
    ]


def test_redacted_event_is_ignored() -> None:
    orchestrator, transport, resolver = _orchestrator()
    asyncio.run(orchestrator.on_message(ROOM, make_event(with_content=False)))
    assert not resolver.calls
    assert not transport.sent


def test_own_messages_are_ignored() -> None:
    result = ResolutionResult(items=(LineDatum("x", "py"),), total_lines=1)
    orchestrator, transport, resolver = _orchestrator(result)
    asyncio.run(orchestrator.on_message(ROOM, make_event(sender_id=BOT_ID)))
    assert not resolver.calls
    assert not transport.sent


def test_self_id_is_resolved_for_every_event() -> None:
    orchestrator, transport, _ = _orchestrator()
    asyncio.run(orchestrator.on_message(ROOM, make_event(event_id="$a")))
    asyncio.run(orchestrator.on_message(ROOM, make_event(event_id="$b")))
    assert transport.whoami_calls == 2


@pytest.mark.parametrize("body", ["", None])
def test_empty_body_gets_fixed_notice(body) -> None:
    orchestrator, transport, resolver = _orchestrator()
    asyncio.run(orchestrator.on_message(ROOM, make_event(body=body)))

    assert not resolver.calls
    assert len(transport.sent) == 1
    reply = transport.sent[0][2]
    assert reply.body == EMPTY_MESSAGE_REPLY
    assert reply.msgtype == "notice"


def test_over_limit_result_sends_only_warning() -> None:
    items = tuple(LineDatum(f"line {i}", "py") for i in range(3))
    orchestrator, transport, _ = _orchestrator(ResolutionResult(items=items, total_lines=51))

    asyncio.run(orchestrator.on_message(ROOM, make_event()))

    reply = transport.sent[0][2]
    assert reply.body == "Sorry, but to prevent spam, we limit the number of lines displayed at 50"
    assert "<pre>" not in reply.formatted_body


def test_empty_result_sends_nothing() -> None:
    orchestrator, transport, resolver = _orchestrator(ResolutionResult.empty())
    asyncio.run(orchestrator.on_message(ROOM, make_event(body="no links here")))
    assert resolver.calls == ["no links here"]
    assert not transport.sent


def test_resolver_failure_propagates_without_reply() -> None:
    orchestrator, transport, _ = _orchestrator(error=ResolverError("down"))
    with pytest.raises(ResolverError):
        asyncio.run(orchestrator.on_message(ROOM, make_event()))
    assert not transport.sent


def test_invite_runs_onboarding() -> None:
    orchestrator, transport, _ = _orchestrator()
    asyncio.run(orchestrator.on_invite(ROOM))
    assert [kind for _, kind, _ in transport.sent] == ["markup", "plain"]


def test_build_reply_references_original_event() -> None:
    reply = build_reply(ROOM, make_event(event_id="$orig"), "<b>hi</b>")
    assert reply.related_event_id == "$orig"
    assert reply.body == reply.formatted_body == "<b>hi</b>"
    assert reply.msgtype == "notice"


def test_attach_dispatches_events_as_tasks() -> None:
    result = ResolutionResult(items=(LineDatum("x", "py"),), total_lines=1)
    orchestrator, transport, _ = _orchestrator(result)
    orchestrator.attach()

    async def scenario() -> None:
        await transport.handlers[MESSAGE_EVENT](ROOM, make_event(event_id="$a"))
        await transport.handlers[MESSAGE_EVENT](ROOM, make_event(event_id="$b"))
        await transport.handlers[JOIN_EVENT]("!other:example.org")
        await orchestrator.wait_idle()

    asyncio.run(scenario())

    replies = sorted(p.related_event_id for _, kind, p in transport.sent if kind == "reply")
    assert replies == ["$a", "$b"]
    assert [kind for room, kind, _ in transport.sent if room == "!other:example.org"] == [
        "markup",
        "plain",
    ]


def test_failure_in_one_event_does_not_affect_others() -> None:
    class FlakyResolver(FakeResolver):
        async def resolve(self, body: str) -> ResolutionResult:
            self.calls.append(body)
            if body == "boom":
                raise ResolverError("down")
            # Yield so both tasks are in flight at the same time.
            await asyncio.sleep(0)
            return ResolutionResult(items=(LineDatum(body, "txt"),), total_lines=1)

    transport = FakeTransport()
    orchestrator = EventOrchestrator(transport=transport, resolver=FlakyResolver())
    orchestrator.attach()

    async def scenario() -> None:
        handler = transport.handlers[MESSAGE_EVENT]
        await handler(ROOM, make_event(body="boom", event_id="$bad"))
        await handler(ROOM, make_event(body="ok", event_id="$good"))
        await orchestrator.wait_idle()

    asyncio.run(scenario())

    assert [p.related_event_id for _, _, p in transport.sent] == ["$good"]
