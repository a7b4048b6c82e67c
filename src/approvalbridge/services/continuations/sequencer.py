from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Literal

from approvalbridge.contracts.errors.errors import SequencerStepError
from approvalbridge.contracts.services.channel import ApprovalChannel, Decision

StepName = Literal["acknowledge", "clear_controls", "confirm"]
StepStatus = Literal["ok", "failed", "skipped"]

DEFAULT_ACK_TEMPLATE = "Action '{action}' recorded. Processing..."
DEFAULT_CONFIRM_TEMPLATE = "✅ {actor} chose the action: {action}."


@dataclass
class SequenceReport:
    key: str
    steps: dict[str, StepStatus] = field(default_factory=dict)
    errors: list[SequencerStepError] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors


class SideEffectSequencer:
    """
    Operator-facing acknowledgment for a resolved decision:

      1. acknowledge     -> stop the "processing" indicator on the pressed button
      2. clear_controls  -> strip the inline keyboard from the original message
      3. confirm         -> post "<actor> chose <action>" to the chat

    Best-effort and not transactional: each step is attempted even if an
    earlier one failed. Failures are logged and reported, never raised.
    Exactly-once is the registry's job; run() does not re-check it.
    """

    def __init__(
        self,
        channel: ApprovalChannel,
        *,
        ack_template: str = DEFAULT_ACK_TEMPLATE,
        confirm_template: str = DEFAULT_CONFIRM_TEMPLATE,
        logger: logging.Logger | None = None,
    ):
        self.channel = channel
        self.ack_template = ack_template
        self.confirm_template = confirm_template
        self.logger = logger or logging.getLogger("approvalbridge.services.continuations.sequencer")

    def _render(self, template: str, decision: Decision) -> str:
        return template.format(action=decision.action, actor=decision.actor or "operator")

    async def run(self, decision: Decision) -> SequenceReport:
        report = SequenceReport(key=decision.key)
        ack_id = decision.event.ack_id if decision.event else None

        if ack_id:
            await self._step(
                report,
                "acknowledge",
                self.channel.acknowledge_event(ack_id, self._render(self.ack_template, decision)),
            )
        else:
            report.steps["acknowledge"] = "skipped"

        await self._step(report, "clear_controls", self.channel.clear_controls(decision.key))
        await self._step(
            report,
            "confirm",
            self.channel.post_message(self._render(self.confirm_template, decision)),
        )

        if report.errors:
            self.logger.warning(
                "Acknowledgment for key=%s partially applied: %s",
                decision.key,
                ", ".join(e.step for e in report.errors),
            )
        return report

    async def _step(self, report: SequenceReport, step: StepName, call) -> None:
        try:
            await call
        except Exception as exc:  # noqa: BLE001
            err = SequencerStepError(step, report.key, exc)
            report.steps[step] = "failed"
            report.errors.append(err)
            self.logger.error("%s", err)
        else:
            report.steps[step] = "ok"
