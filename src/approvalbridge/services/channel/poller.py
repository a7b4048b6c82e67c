from __future__ import annotations

import asyncio
from contextlib import suppress
import logging

from approvalbridge.contracts.errors.errors import ChannelFetchError, InvalidCursorMove
from approvalbridge.contracts.services.channel import ApprovalChannel, ExternalEvent
from approvalbridge.services.channel.cursor import EventCursor
from approvalbridge.services.continuations.registry import CorrelationRegistry


class ChannelPoller:
    """
    The single shared consumer of the external event feed.

    One loop per process, regardless of how many callers are waiting:
      - long-poll the channel for events after the cursor,
      - fan each event out to the CorrelationRegistry (first match wins),
      - advance the cursor past the whole batch, matched or not.

    The loop must outlive every failure except cancellation; a dead poller
    strands every pending and future correlation.
    """

    def __init__(
        self,
        *,
        channel: ApprovalChannel,
        cursor: EventCursor,
        registry: CorrelationRegistry,
        batch_limit: int = 100,
        wait_window_s: float = 30.0,
        backoff_s: float = 5.0,
        logger: logging.Logger | None = None,
    ):
        self.channel = channel
        self.cursor = cursor
        self.registry = registry
        self.batch_limit = batch_limit
        self.wait_window_s = wait_window_s
        self.backoff_s = backoff_s
        self.logger = logger or logging.getLogger("approvalbridge.services.channel.poller")
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            raise RuntimeError("ChannelPoller is already running")
        self._task = asyncio.create_task(self.run_forever(), name="approvalbridge-poller")
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def run_forever(self) -> None:
        self.logger.info(
            "Poller started at cursor=%s (batch=%s, wait=%ss)",
            self.cursor.current(),
            self.batch_limit,
            self.wait_window_s,
        )
        try:
            while True:
                try:
                    await self.poll_once()
                except asyncio.CancelledError:
                    raise
                except Exception:  # noqa: BLE001
                    self.logger.exception("Unexpected poller failure; backing off %ss", self.backoff_s)
                    await asyncio.sleep(self.backoff_s)
        finally:
            self.logger.info("Poller stopped at cursor=%s", self.cursor.current())

    async def poll_once(self) -> int:
        """
        Run one fetch/dispatch/advance iteration. Returns how many correlations
        the batch resolved. Fetch failures back off and leave the cursor alone.
        """
        after = self.cursor.current()
        try:
            events = await self.channel.fetch_events(
                after, limit=self.batch_limit, wait_s=self.wait_window_s
            )
        except ChannelFetchError as e:
            self.logger.warning("Fetch after cursor=%s failed: %s; retrying in %ss", after, e, self.backoff_s)
            await asyncio.sleep(self.backoff_s)
            return 0

        if not events:
            return 0

        fresh = [evt for evt in events if evt.id > after]
        if len(fresh) < len(events):
            self.logger.warning(
                "Dropping %d already consumed event(s) at or below cursor=%s",
                len(events) - len(fresh),
                after,
            )
        if not fresh:
            return 0

        highest = max(evt.id for evt in fresh)
        try:
            self.cursor.advance(highest)
        except InvalidCursorMove as e:
            self.logger.error("Skipping iteration: %s", e)
            return 0
        return self.dispatch(fresh)

    def dispatch(self, events: list[ExternalEvent]) -> int:
        resolved = 0
        for evt in events:
            if not evt.correlation_key or evt.action is None:
                continue
            if self.registry.resolve(evt.correlation_key, evt.action, evt.actor, event=evt):
                resolved += 1
                self.logger.info(
                    "Event %s resolved key=%s action=%s actor=%s",
                    evt.id,
                    evt.correlation_key,
                    evt.action,
                    evt.actor,
                )
            else:
                self.logger.debug("Event %s for key=%s matched no pending wait", evt.id, evt.correlation_key)
        return resolved
