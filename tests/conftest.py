import asyncio
from typing import Any

import pytest

from approvalbridge.contracts.errors.errors import ChannelRequestError
from approvalbridge.contracts.services.channel import ExternalEvent

# ----- tiny in-memory fakes -----


class FakeChannel:
    """
    In-memory ApprovalChannel.

    fetch_events() blocks on a queue the test feeds with push(), like a
    Telegram long poll that returns as soon as updates exist. Queue an
    Exception instance to make the next fetch fail with it.
    """

    def __init__(self):
        self.batches: asyncio.Queue = asyncio.Queue()
        self.fetch_calls: list[dict[str, Any]] = []
        self.acks: list[tuple[str, str]] = []
        self.cleared: list[str] = []
        self.posted: list[str] = []
        self.sent: list[dict[str, Any]] = []
        self.fail_steps: set[str] = set()
        self.closed = False
        self._next_message_id = 100

    def push(self, batch: list[ExternalEvent] | Exception) -> None:
        self.batches.put_nowait(batch)

    async def fetch_events(self, after: int, *, limit: int, wait_s: float) -> list[ExternalEvent]:
        self.fetch_calls.append({"after": after, "limit": limit, "wait_s": wait_s})
        item = await self.batches.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def acknowledge_event(self, ack_id: str, text: str) -> None:
        if "acknowledge" in self.fail_steps:
            raise ChannelRequestError("answerCallbackQuery", "query is too old")
        self.acks.append((ack_id, text))

    async def clear_controls(self, message_id: str) -> None:
        if "clear_controls" in self.fail_steps:
            raise ChannelRequestError("editMessageReplyMarkup", "message is not modified")
        self.cleared.append(message_id)

    async def post_message(self, text: str) -> str:
        if "confirm" in self.fail_steps:
            raise ChannelRequestError("sendMessage", "chat not found")
        self.posted.append(text)
        return self._new_id()

    async def send_notification(self, text, reply_markup=None, *, parse_mode=None) -> str:
        if "send" in self.fail_steps:
            raise ChannelRequestError("sendMessage", "Bad Request: chat not found", status_code=400)
        message_id = self._new_id()
        self.sent.append(
            {"message_id": message_id, "text": text, "reply_markup": reply_markup, "parse_mode": parse_mode}
        )
        return message_id

    async def aclose(self) -> None:
        self.closed = True

    def _new_id(self) -> str:
        self._next_message_id += 1
        return str(self._next_message_id)


def decision_event(
    event_id: int,
    key: str,
    action: str = "approve",
    actor: str = "alice",
    ack_id: str | None = None,
) -> ExternalEvent:
    return ExternalEvent(
        id=event_id,
        correlation_key=key,
        actor=actor,
        action=action,
        ack_id=ack_id or f"cb-{event_id}",
        payload=f"{action}:{key}",
    )


async def wait_until(predicate, timeout: float = 1.0, interval: float = 0.005) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()
