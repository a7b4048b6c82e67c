# catch-all: static SPA + visitor notification

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from starlette.responses import FileResponse, PlainTextResponse, Response

from approvalbridge.contracts.errors.errors import ChannelRequestError
from approvalbridge.server.container import ApprovalContainer

from .deps import client_ip, get_container

router = APIRouter(tags=["site"])

# prefixes owned by the API; never treated as SPA routes
RESERVED_PREFIXES = ("api", "approval", "consulta", "health")


def visitor_message(ip: str | None, now: datetime) -> str:
    return (
        "✨ *New User*\n\n"
        "Site access detected.\n"
        f"*IP:* `{ip or 'unknown'}`\n"
        f"*Time:* {now.strftime('%d/%m/%Y, %H:%M:%S')}"
    )


async def notify_visitor(container: ApprovalContainer, ip: str | None) -> None:
    log = container.logger.for_namespace("api.site")
    if container.channel is None:
        log.warning("Telegram not configured; new-visitor notification not sent.")
        return
    now = datetime.now(ZoneInfo(container.settings.site.timezone))
    try:
        await container.channel.send_notification(visitor_message(ip, now), parse_mode="Markdown")
    except ChannelRequestError as e:
        log.error("Failed to send new-visitor notification: %s", e)


def _static_root(container: ApprovalContainer) -> Path | None:
    static_dir = container.settings.site.static_dir
    if not static_dir:
        return None
    root = Path(static_dir).resolve()
    return root if root.is_dir() else None


@router.get("/{full_path:path}", include_in_schema=False)
async def spa(
    full_path: str,
    request: Request,
    background: BackgroundTasks,
    container: ApprovalContainer = Depends(get_container),  # noqa: B008
) -> Response:
    if full_path.split("/", 1)[0] in RESERVED_PREFIXES:
        raise HTTPException(status_code=404, detail="Not Found")

    root = _static_root(container)

    # existing static asset: serve it, no notification
    if root is not None and full_path:
        candidate = (root / full_path).resolve()
        if candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)

    if container.settings.site.notify_visitors:
        background.add_task(notify_visitor, container, client_ip(request))

    index = root / "index.html" if root is not None else None
    if index is None or not index.is_file():
        # returned, not raised, so the notification task still runs
        return PlainTextResponse("Not Found", status_code=404)
    return FileResponse(index)
