# /api/send-message

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from jsonschema import ValidationError, validate

from approvalbridge.contracts.errors.errors import ChannelRequestError
from approvalbridge.contracts.services.channel import Button, Notification
from approvalbridge.server.container import ApprovalContainer

from .deps import require_channel
from .schemas import SendMessageRequest, SendMessageResponse

router = APIRouter(tags=["messages"])

_BUTTON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["text"],
    "properties": {
        "text": {"type": "string", "minLength": 1},
        # Telegram limits callback_data to 64 bytes
        "callback_data": {"type": "string", "minLength": 1, "maxLength": 64},
        "url": {"type": "string"},
    },
    "anyOf": [{"required": ["callback_data"]}, {"required": ["url"]}],
}

KEYBOARD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["inline_keyboard"],
    "properties": {
        "inline_keyboard": {
            "type": "array",
            "items": {"type": "array", "items": _BUTTON_SCHEMA},
        },
    },
}


def build_reply_markup(body: SendMessageRequest) -> dict[str, Any] | None:
    if body.keyboard:
        try:
            validate(instance=body.keyboard, schema=KEYBOARD_SCHEMA)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid keyboard: {e.message}") from e
        return body.keyboard
    if body.actions:
        note = Notification(text=body.text or "", buttons=[[Button(label=a, value=a) for a in body.actions]])
        return note.reply_markup()
    return None


@router.post("/api/send-message", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    container: ApprovalContainer = Depends(require_channel),  # noqa: B008
) -> SendMessageResponse:
    """
    Send a notification to the operator chat.

    The returned `message_id` is what the caller later waits on via
    GET /approval/{message_id}.
    """
    if not body.text:
        raise HTTPException(status_code=400, detail="Message text is required.")

    reply_markup = build_reply_markup(body)
    try:
        message_id = await container.channel.send_notification(
            body.text, reply_markup, parse_mode=body.parse_mode
        )
    except ChannelRequestError as e:
        container.logger.for_namespace("api.messages").error("send-message failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    return SendMessageResponse(message_id=message_id, result={"message_id": message_id})
