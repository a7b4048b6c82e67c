from __future__ import annotations

import asyncio
import logging

from approvalbridge.contracts.services.channel import Decision, Timeout
from approvalbridge.services.continuations.registry import CorrelationRegistry
from approvalbridge.services.continuations.sequencer import SideEffectSequencer


class ApprovalGateway:
    """
    Request/response facade over the shared poller.

    wait_for_decision() registers a correlation, suspends until the poller
    resolves it or the deadline passes, runs the acknowledgment sequence once
    on resolution, and hands the Decision back. The caller's result depends on
    resolution only; acknowledgment failures are logged by the sequencer.
    """

    def __init__(
        self,
        *,
        registry: CorrelationRegistry,
        sequencer: SideEffectSequencer,
        default_timeout_s: float = 60.0,
        logger: logging.Logger | None = None,
    ):
        self.registry = registry
        self.sequencer = sequencer
        self.default_timeout_s = default_timeout_s
        self.logger = logger or logging.getLogger("approvalbridge.services.approval.gateway")

    async def wait_for_decision(self, key: str, timeout_s: float | None = None) -> Decision | Timeout:
        """
        Wait for the operator's decision on notification `key`.

        Raises:
          DuplicateKey: another caller is already waiting on `key`.
          asyncio.CancelledError: the caller went away; the correlation is
            removed and no acknowledgment is sent.
        """
        timeout_s = self.default_timeout_s if timeout_s is None else timeout_s
        loop = asyncio.get_running_loop()
        corr = self.registry.register(key, loop.time() + timeout_s)
        self.logger.info("Waiting up to %ss for decision on key=%s", timeout_s, key)

        try:
            result = await asyncio.wait_for(asyncio.shield(corr.waiter), timeout=timeout_s)
        except asyncio.TimeoutError:
            if self.registry.expire(key):
                self.logger.info("No decision for key=%s after %ss", key, timeout_s)
                return Timeout(key=key, waited_s=timeout_s)
            # resolved between the timer firing and expire(); resolution wins
            result = corr.waiter.result()
        except asyncio.CancelledError:
            if self.registry.unregister(key):
                self.logger.info("Caller cancelled wait for key=%s", key)
            raise

        if result is None:
            # removed by someone else (e.g. shutdown) without a decision
            return Timeout(key=key, waited_s=timeout_s)

        # acknowledgment keeps going even if the caller disconnects now
        await asyncio.shield(self._acknowledge(result))
        return result

    async def _acknowledge(self, decision: Decision) -> None:
        try:
            await self.sequencer.run(decision)
        except Exception:  # noqa: BLE001
            self.logger.exception("Acknowledgment sequence crashed for key=%s", decision.key)
