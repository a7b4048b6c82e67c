import pytest

from approvalbridge.contracts.services.channel import Decision
from approvalbridge.services.continuations.sequencer import SideEffectSequencer

from conftest import decision_event


def _decision(key="42", action="approve", actor="alice", ack_id="cb-1"):
    return Decision(key=key, action=action, actor=actor, event=decision_event(1, key, action, actor, ack_id))


@pytest.mark.asyncio
async def test_sequencer_runs_all_three_steps_in_order(channel):
    seq = SideEffectSequencer(channel)

    report = await seq.run(_decision())

    assert report.complete
    assert list(report.steps) == ["acknowledge", "clear_controls", "confirm"]
    assert channel.acks == [("cb-1", "Action 'approve' recorded. Processing...")]
    assert channel.cleared == ["42"]
    assert channel.posted == ["✅ alice chose the action: approve."]


@pytest.mark.asyncio
async def test_sequencer_failure_in_one_step_does_not_abort_the_rest(channel):
    channel.fail_steps = {"acknowledge", "clear_controls"}
    seq = SideEffectSequencer(channel)

    report = await seq.run(_decision())

    assert not report.complete
    assert report.steps == {"acknowledge": "failed", "clear_controls": "failed", "confirm": "ok"}
    assert [e.step for e in report.errors] == ["acknowledge", "clear_controls"]
    assert all(e.key == "42" for e in report.errors)
    assert channel.posted == ["✅ alice chose the action: approve."]


@pytest.mark.asyncio
async def test_sequencer_skips_acknowledge_without_ack_id(channel):
    seq = SideEffectSequencer(channel)

    report = await seq.run(Decision(key="7", action="reject", actor=None))

    assert report.steps["acknowledge"] == "skipped"
    assert channel.acks == []
    assert channel.cleared == ["7"]
    assert channel.posted == ["✅ operator chose the action: reject."]


@pytest.mark.asyncio
async def test_sequencer_uses_custom_templates(channel):
    seq = SideEffectSequencer(
        channel,
        ack_template="ok {action}",
        confirm_template="{actor} -> {action}",
    )

    await seq.run(_decision(action="reject", actor="@bob"))

    assert channel.acks == [("cb-1", "ok reject")]
    assert channel.posted == ["@bob -> reject"]
