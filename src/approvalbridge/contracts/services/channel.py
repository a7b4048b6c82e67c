from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True)
class ExternalEvent:
    """
    One update fetched from the external channel.

    - `id` is the feed position; the cursor advances past it.
    - `correlation_key` is the id of the notification the operator acted on,
      or None for updates that carry no decision (plain chat messages, etc.).
    - `ack_id` is what the channel needs to stop its "processing" indicator
      (Telegram: callback_query.id).
    """

    id: int
    correlation_key: str | None = None
    actor: str | None = None
    action: str | None = None
    ack_id: str | None = None
    payload: str | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class Decision:
    """Resolved outcome of one correlation."""

    key: str
    action: str
    actor: str | None = None
    event: ExternalEvent | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "actor": self.actor}


@dataclass(frozen=True)
class Timeout:
    """Returned instead of a Decision when the deadline elapses first."""

    key: str
    waited_s: float


@dataclass
class Button:
    label: str
    value: str | None = None
    url: str | None = None


@dataclass
class Notification:
    text: str
    buttons: list[list[Button]] = field(default_factory=list)
    parse_mode: str | None = None

    def reply_markup(self) -> dict[str, Any] | None:
        if not self.buttons:
            return None
        rows = []
        for row in self.buttons:
            rendered = []
            for b in row:
                item: dict[str, Any] = {"text": b.label}
                if b.url:
                    item["url"] = b.url
                else:
                    item["callback_data"] = b.value or b.label
                rendered.append(item)
            rows.append(rendered)
        return {"inline_keyboard": rows}


class ApprovalChannel(Protocol):
    """Everything the bridge needs from the external messaging channel."""

    async def fetch_events(self, after: int, *, limit: int, wait_s: float) -> list[ExternalEvent]:
        """
        Return events strictly after position `after`, oldest first.
        May hold the request open up to `wait_s` seconds when nothing is ready.
        Raises ChannelFetchError on transport or remote failure.
        """
        ...

    async def acknowledge_event(self, ack_id: str, text: str) -> None: ...

    async def clear_controls(self, message_id: str) -> None: ...

    async def post_message(self, text: str) -> str: ...

    async def send_notification(
        self,
        text: str,
        reply_markup: dict[str, Any] | None = None,
        *,
        parse_mode: str | None = None,
    ) -> str:
        """Send a notification and return its message id (the correlation key)."""
        ...

    async def aclose(self) -> None: ...
