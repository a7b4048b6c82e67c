import asyncio

import pytest

from approvalbridge.contracts.errors.errors import DuplicateKey
from approvalbridge.contracts.services.channel import Decision
from approvalbridge.services.continuations.registry import CorrelationRegistry, CorrelationState


def _deadline(seconds: float = 5.0) -> float:
    return asyncio.get_running_loop().time() + seconds


@pytest.mark.asyncio
async def test_register_and_resolve_wakes_waiter_once():
    reg = CorrelationRegistry()
    corr = reg.register("42", _deadline())

    assert "42" in reg
    assert reg.resolve("42", "approve", "alice") is True
    assert reg.resolve("42", "reject", "bob") is False  # second resolution is a no-op

    decision = await corr.waiter
    assert decision == Decision(key="42", action="approve", actor="alice")
    assert corr.state is CorrelationState.resolved
    assert "42" not in reg
    assert len(reg) == 0


@pytest.mark.asyncio
async def test_register_duplicate_pending_key_fails():
    reg = CorrelationRegistry()
    reg.register("42", _deadline())

    with pytest.raises(DuplicateKey) as exc_info:
        reg.register("42", _deadline())
    assert exc_info.value.key == "42"


@pytest.mark.asyncio
async def test_key_can_be_registered_again_after_resolve_or_expire():
    reg = CorrelationRegistry()

    reg.register("42", _deadline())
    assert reg.resolve("42", "approve", "alice")
    second = reg.register("42", _deadline())

    assert reg.expire("42") is True
    assert second.state is CorrelationState.expired
    assert await second.waiter is None

    third = reg.register("42", _deadline())
    assert third.state is CorrelationState.pending


@pytest.mark.asyncio
async def test_resolve_unknown_key_returns_false():
    reg = CorrelationRegistry()
    assert reg.resolve("nope", "approve", "alice") is False
    assert reg.expire("nope") is False
    assert reg.unregister("nope") is False


@pytest.mark.asyncio
async def test_expired_key_cannot_be_resolved():
    reg = CorrelationRegistry()
    corr = reg.register("42", _deadline())

    assert reg.expire("42") is True
    assert reg.resolve("42", "approve", "alice") is False
    assert corr.state is CorrelationState.expired
    assert corr.decision is None


@pytest.mark.asyncio
async def test_unregister_then_late_event_is_noop():
    reg = CorrelationRegistry()
    corr = reg.register("42", _deadline())

    assert reg.unregister("42") is True
    assert corr.state is CorrelationState.cancelled
    assert reg.resolve("42", "approve", "alice") is False
    assert corr.decision is None


@pytest.mark.asyncio
async def test_exactly_one_terminal_transition_per_registration():
    reg = CorrelationRegistry()
    keys = [str(i) for i in range(20)]
    corrs = {k: reg.register(k, _deadline()) for k in keys}

    # interleave every kind of termination against every key
    outcomes = {k: [] for k in keys}
    for k in keys:
        outcomes[k].append(reg.resolve(k, "approve", "alice"))
        outcomes[k].append(reg.expire(k))
        outcomes[k].append(reg.unregister(k))
        outcomes[k].append(reg.resolve(k, "reject", "bob"))

    for k in keys:
        assert outcomes[k].count(True) == 1
        assert corrs[k].state is CorrelationState.resolved
    assert reg.pending_keys() == []
