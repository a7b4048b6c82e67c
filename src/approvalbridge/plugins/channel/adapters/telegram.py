"""
Telegram channel adapter.

Implements ApprovalChannel on top of the Telegram Bot API:

  fetch_events      -> getUpdates (long poll, offset = cursor + 1)
  acknowledge_event -> answerCallbackQuery
  clear_controls    -> editMessageReplyMarkup with an empty inline keyboard
  post_message      -> sendMessage
  send_notification -> sendMessage (+ reply_markup); returns message_id

Only `callback_query` updates carry a decision; every other update kind is
still returned (so the cursor moves past it) but with no correlation key.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any

import httpx

from approvalbridge.contracts.errors.errors import ChannelFetchError, ChannelRequestError
from approvalbridge.contracts.services.channel import ApprovalChannel, ExternalEvent

log = logging.getLogger("approvalbridge.plugins.channel.adapters.telegram")

DEFAULT_API_BASE = "https://api.telegram.org"


def _display_name(user: dict[str, Any] | None) -> str | None:
    if not user:
        return None
    if user.get("username"):
        return f"@{user['username']}"
    name = f"{user.get('first_name', '')} {user.get('last_name') or ''}".strip()
    return name or None


def parse_update(update: dict[str, Any]) -> ExternalEvent:
    """Normalize one getUpdates entry into an ExternalEvent."""
    update_id = int(update["update_id"])
    cq = update.get("callback_query")
    if not cq:
        return ExternalEvent(id=update_id)

    message = cq.get("message") or {}
    message_id = message.get("message_id")
    data = cq.get("data") or ""
    ts = message.get("date")

    return ExternalEvent(
        id=update_id,
        correlation_key=str(message_id) if message_id is not None else None,
        actor=_display_name(cq.get("from")),
        # callback data is "<action>[:<anything>]"
        action=data.split(":", 1)[0] if data else None,
        ack_id=cq.get("id"),
        payload=data or None,
        timestamp=datetime.fromtimestamp(ts, tz=timezone.utc) if ts else None,
    )


class TelegramChannelAdapter(ApprovalChannel):
    """
    Thin async Bot API client bound to one operator chat.

    `client` may be injected (tests pass an httpx.AsyncClient over a
    MockTransport); otherwise one is created lazily and owned by the adapter.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        request_timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not bot_token or not chat_id:
            raise ValueError("Telegram adapter requires both bot_token and chat_id")
        self.chat_id = chat_id
        self.base_url = f"{api_base.rstrip('/')}/bot{bot_token}"
        self.request_timeout_s = request_timeout_s
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.request_timeout_s)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def _call(
        self,
        method: str,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> Any:
        url = f"{self.base_url}/{method}"
        try:
            resp = await self._get_client().post(
                url, json=payload, timeout=timeout or self.request_timeout_s
            )
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ChannelRequestError(method, str(e) or type(e).__name__) from e

        if not data.get("ok"):
            raise ChannelRequestError(
                method,
                data.get("description") or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return data.get("result")

    # --- ApprovalChannel ---

    async def fetch_events(self, after: int, *, limit: int, wait_s: float) -> list[ExternalEvent]:
        payload = {
            "offset": after + 1,
            "limit": limit,
            "timeout": int(wait_s),
        }
        try:
            # the HTTP timeout has to outlast Telegram's own long-poll window
            result = await self._call("getUpdates", payload, timeout=wait_s + self.request_timeout_s)
        except ChannelRequestError as e:
            raise ChannelFetchError(str(e)) from e

        events = []
        for update in result or []:
            try:
                events.append(parse_update(update))
            except (KeyError, TypeError, ValueError):
                log.warning("Dropping malformed update: %r", update)
        return events

    async def acknowledge_event(self, ack_id: str, text: str) -> None:
        await self._call(
            "answerCallbackQuery",
            {"callback_query_id": ack_id, "text": text, "show_alert": False},
        )

    async def clear_controls(self, message_id: str) -> None:
        await self._call(
            "editMessageReplyMarkup",
            {
                "chat_id": self.chat_id,
                "message_id": int(message_id),
                "reply_markup": {"inline_keyboard": []},
            },
        )

    async def post_message(self, text: str) -> str:
        return await self.send_notification(text)

    async def send_notification(
        self,
        text: str,
        reply_markup: dict[str, Any] | None = None,
        *,
        parse_mode: str | None = None,
    ) -> str:
        payload: dict[str, Any] = {"chat_id": self.chat_id, "text": text}
        if reply_markup:
            payload["reply_markup"] = reply_markup
        if parse_mode:
            payload["parse_mode"] = parse_mode
        result = await self._call("sendMessage", payload)
        return str(result["message_id"])
