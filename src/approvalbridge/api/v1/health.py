from fastapi import APIRouter, Depends

from approvalbridge.server.container import ApprovalContainer

from .deps import get_container
from .schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(container: ApprovalContainer = Depends(get_container)) -> HealthResponse:  # noqa: B008
    poller_running = container.poller is not None and container.poller.running
    configured = container.channel is not None
    return HealthResponse(
        # unconfigured is a valid mode; a configured bridge needs its poller
        ok=poller_running or not configured,
        channel_configured=configured,
        poller_running=poller_running,
        pending=len(container.registry),
        cursor=container.cursor.current(),
    )
