"""
Tests for ProviderChain ordering and failure classification
"""
import pytest

from app.core.exceptions import ParseError
from app.core.interfaces.text_provider import (
    EmptyResponse,
    Prompt,
    ProviderError,
    ProviderHandle,
    Timeout,
)
from app.services.generation.provider_chain import ProviderChain
from app.services.generation.types import Exhausted, SanitizedPayload, Validated

from conftest import ScriptedProvider, make_handles


PROMPT = Prompt(system="Respond with JSON", user="Make something")


def accept_all(raw: str) -> SanitizedPayload:
    return SanitizedPayload(payload={"raw": raw})


def accept_json_object(raw: str) -> SanitizedPayload:
    if not raw.startswith("{"):
        raise ParseError("not an object")
    return SanitizedPayload(payload={"raw": raw})


@pytest.mark.asyncio
async def test_first_success_stops_the_chain():
    first = ScriptedProvider("p1", EmptyResponse())
    second = ScriptedProvider("p2", ProviderError(reason="quota exceeded"))
    third = ScriptedProvider("p3", '{"ok": true}')
    fourth = ScriptedProvider("p4", '{"never": true}')

    result = await ProviderChain(make_handles(first, second, third, fourth)).run(PROMPT, accept_all)

    assert isinstance(result, Validated)
    assert result.provider_id == "p3"
    assert [a.provider_id for a in result.attempts] == ["p1", "p2", "p3"]
    assert [a.outcome for a in result.attempts] == ["empty_response", "provider_error", "success"]
    assert fourth.calls == []


@pytest.mark.asyncio
async def test_handles_tried_in_priority_order():
    low = ScriptedProvider("low", EmptyResponse())
    high = ScriptedProvider("high", EmptyResponse())
    handles = [
        ProviderHandle(id="low", priority=20, timeout_budget=1.0, provider=low),
        ProviderHandle(id="high", priority=10, timeout_budget=1.0, provider=high),
    ]

    result = await ProviderChain(handles).run(PROMPT, accept_all)

    assert [a.provider_id for a in result.attempts] == ["high", "low"]


@pytest.mark.asyncio
async def test_exhausted_reports_last_failure():
    providers = [
        ScriptedProvider("p1", Timeout(timeout_budget=5)),
        ScriptedProvider("p2", ProviderError(reason="HTTP 503")),
    ]

    result = await ProviderChain(make_handles(*providers)).run(PROMPT, accept_all)

    assert isinstance(result, Exhausted)
    assert result.last_failure_reason == "p2: HTTP 503"
    assert [p.calls != [] for p in providers] == [True, True]


@pytest.mark.asyncio
async def test_slow_provider_is_cut_off_by_timeout_budget():
    slow = ScriptedProvider("slow", 5.0)
    fast = ScriptedProvider("fast", '{"ok": true}')

    result = await ProviderChain(make_handles(slow, fast, timeout_budget=0.05)).run(PROMPT, accept_all)

    assert isinstance(result, Validated)
    assert result.attempts[0].outcome == "timeout"
    assert result.attempts[0].reason == "Provider timed out after 0.05s"


@pytest.mark.asyncio
async def test_raising_provider_is_classified_as_error():
    broken = ScriptedProvider("broken", RuntimeError("socket closed"))
    backup = ScriptedProvider("backup", '{"ok": true}')

    result = await ProviderChain(make_handles(broken, backup)).run(PROMPT, accept_all)

    assert result.provider_id == "backup"
    assert result.attempts[0].outcome == "provider_error"
    assert result.attempts[0].reason == "RuntimeError: socket closed"


@pytest.mark.asyncio
async def test_blank_success_counts_as_empty_response():
    blank = ScriptedProvider("blank", "   \n")

    result = await ProviderChain(make_handles(blank)).run(PROMPT, accept_all)

    assert isinstance(result, Exhausted)
    assert result.attempts[0].outcome == "empty_response"


@pytest.mark.asyncio
async def test_sanitizer_rejection_advances_without_retrying():
    sloppy = ScriptedProvider("sloppy", "I cannot do that", '{"second": "call"}')
    careful = ScriptedProvider("careful", '{"ok": true}')

    result = await ProviderChain(make_handles(sloppy, careful)).run(PROMPT, accept_json_object)

    assert result.provider_id == "careful"
    assert len(sloppy.calls) == 1
    assert result.attempts[0].reason == "Rejected by sanitizer: not an object"


@pytest.mark.asyncio
async def test_unexpected_sanitizer_error_counts_as_rejection():
    def accept_crashing(raw: str) -> SanitizedPayload:
        if raw == "inf":
            raise OverflowError("cannot convert float infinity to integer")
        return SanitizedPayload(payload={"raw": raw})

    odd = ScriptedProvider("odd", "inf")
    backup = ScriptedProvider("backup", '{"ok": true}')

    result = await ProviderChain(make_handles(odd, backup)).run(PROMPT, accept_crashing)

    assert isinstance(result, Validated)
    assert result.provider_id == "backup"
    assert result.attempts[0].outcome == "provider_error"
    assert result.attempts[0].reason == (
        "Rejected by sanitizer: OverflowError: cannot convert float infinity to integer"
    )


@pytest.mark.asyncio
async def test_empty_chain_is_exhausted():
    result = await ProviderChain([]).run(PROMPT, accept_all)

    assert isinstance(result, Exhausted)
    assert result.last_failure_reason == "No providers configured"
    assert result.attempts == []


def test_describe_lists_handles():
    chain = ProviderChain(make_handles(ScriptedProvider("p1"), ScriptedProvider("p2")))

    assert chain.describe() == [
        {"id": "p1", "priority": 0, "timeout_budget": 1.0, "service": "Scripted (p1)", "available": True},
        {"id": "p2", "priority": 1, "timeout_budget": 1.0, "service": "Scripted (p2)", "available": True},
    ]
