# /approval

import asyncio
from contextlib import suppress

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from approvalbridge.contracts.errors.errors import DuplicateKey
from approvalbridge.contracts.services.channel import Timeout
from approvalbridge.server.container import ApprovalContainer

from .deps import require_channel
from .schemas import DecisionResponse

router = APIRouter(tags=["approval"])


async def _wait_for_disconnect(request: Request) -> None:
    # ASGI delivers http.disconnect once the client goes away
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


async def _await_decision(
    message_id: str,
    request: Request,
    container: ApprovalContainer,
    timeout_s: float | None,
) -> DecisionResponse:
    gateway = container.gateway
    log = container.logger.for_key(message_id)

    waiter = asyncio.create_task(gateway.wait_for_decision(message_id, timeout_s))
    watcher = asyncio.create_task(_wait_for_disconnect(request))
    try:
        done, _ = await asyncio.wait({waiter, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        watcher.cancel()
        with suppress(asyncio.CancelledError):
            await watcher

    if waiter not in done:
        log.info("Client disconnected while waiting")
        waiter.cancel()
        with suppress(asyncio.CancelledError):
            await waiter
        # nobody is listening any more; status only shows up in access logs
        raise HTTPException(status_code=499, detail="Client closed request")

    try:
        outcome = waiter.result()
    except DuplicateKey as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    if isinstance(outcome, Timeout):
        raise HTTPException(
            status_code=408,
            detail="Timeout: no response received from the operator.",
        )
    return DecisionResponse(**outcome.to_dict())


@router.get("/approval/{message_id}", response_model=DecisionResponse)
async def await_approval(
    message_id: str,
    request: Request,
    timeout_s: float | None = Query(None, gt=0, le=600),  # noqa: B008
    container: ApprovalContainer = Depends(require_channel),  # noqa: B008
) -> DecisionResponse:
    """
    Block until the operator presses a button on notification `message_id`.

    200 {action, actor} on decision, 408 on timeout, 409 if another request is
    already waiting on the same message.
    """
    return await _await_decision(message_id, request, container, timeout_s)


@router.get("/api/check-update/{message_id}", response_model=DecisionResponse, include_in_schema=False)
async def check_update(
    message_id: str,
    request: Request,
    container: ApprovalContainer = Depends(require_channel),  # noqa: B008
) -> DecisionResponse:
    # path polled by the payment frontend
    return await _await_decision(message_id, request, container, None)
