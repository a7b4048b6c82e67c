from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import logging
import threading

from approvalbridge.contracts.errors.errors import DuplicateKey
from approvalbridge.contracts.services.channel import Decision, ExternalEvent

log = logging.getLogger("approvalbridge.services.continuations.registry")


class CorrelationState(str, Enum):
    pending = "pending"
    resolved = "resolved"
    expired = "expired"
    cancelled = "cancelled"


@dataclass
class Correlation:
    """
    One pending decision.

    `waiter` completes exactly once: with a Decision on resolve, or with None
    on expire/unregister. State only moves forward from `pending`.
    """

    key: str
    deadline: float  # loop.time() based
    waiter: asyncio.Future
    state: CorrelationState = CorrelationState.pending
    decision: Decision | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def done(self) -> bool:
        return self.state is not CorrelationState.pending


class CorrelationRegistry:
    """
    Shared table: correlation key -> pending Correlation.

    Every terminal transition (resolve / expire / unregister) removes the entry
    and completes its waiter under one table-wide lock, so:
      - a key is never resolved twice,
      - a late event for a removed key is a harmless no-op,
      - the key can be registered again once its previous wait has ended.

    All waiters must belong to the event loop the registry is used from.
    """

    def __init__(self) -> None:
        self._pending: dict[str, Correlation] = {}
        self._lock = threading.Lock()

    def register(self, key: str, deadline: float) -> Correlation:
        loop = asyncio.get_running_loop()
        with self._lock:
            if key in self._pending:
                raise DuplicateKey(key)
            corr = Correlation(key=key, deadline=deadline, waiter=loop.create_future())
            self._pending[key] = corr
        log.debug("registered correlation key=%s", key)
        return corr

    def resolve(
        self,
        key: str,
        action: str,
        actor: str | None = None,
        event: ExternalEvent | None = None,
    ) -> bool:
        with self._lock:
            corr = self._pending.pop(key, None)
            if corr is None:
                return False
            decision = Decision(key=key, action=action, actor=actor, event=event)
            corr.state = CorrelationState.resolved
            corr.decision = decision
            if not corr.waiter.done():
                corr.waiter.set_result(decision)
        log.debug("resolved correlation key=%s action=%s actor=%s", key, action, actor)
        return True

    def expire(self, key: str) -> bool:
        return self._terminate(key, CorrelationState.expired)

    def unregister(self, key: str) -> bool:
        return self._terminate(key, CorrelationState.cancelled)

    def _terminate(self, key: str, state: CorrelationState) -> bool:
        with self._lock:
            corr = self._pending.pop(key, None)
            if corr is None:
                return False
            corr.state = state
            if not corr.waiter.done():
                corr.waiter.set_result(None)
        log.debug("%s correlation key=%s", state.value, key)
        return True

    # --- inspection ---

    def get(self, key: str) -> Correlation | None:
        return self._pending.get(key)

    def pending_keys(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)
