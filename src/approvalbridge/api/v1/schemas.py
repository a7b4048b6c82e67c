# Schemas for request and response bodies used in the API.

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


# --------- Approval ---------
class DecisionResponse(BaseModel):
    action: str
    actor: str | None = None


# --------- Messages ---------
class SendMessageRequest(BaseModel):
    text: str | None = None
    # raw Telegram reply_markup, e.g. {"inline_keyboard": [[{"text": "OK", "callback_data": "ok"}]]}
    keyboard: dict[str, Any] | None = None
    # shorthand: one button per action, laid out on a single row
    actions: list[str] | None = None
    parse_mode: str | None = None


class SendMessageResponse(BaseModel):
    ok: bool = True
    message_id: str
    # Telegram-shaped echo for frontends that read result.message_id
    result: dict[str, Any]


# --------- Health ---------
class HealthResponse(BaseModel):
    ok: bool
    channel_configured: bool
    poller_running: bool
    pending: int
    cursor: int
