from fastapi import HTTPException, Request

from approvalbridge.server.container import ApprovalContainer


def get_container(request: Request) -> ApprovalContainer:
    return request.app.state.container


def require_channel(request: Request) -> ApprovalContainer:
    """Container with a configured channel, else 503."""
    container = get_container(request)
    if container.channel is None or container.gateway is None:
        raise HTTPException(
            status_code=503,
            detail="Telegram environment variables are not configured on the server.",
        )
    return container


def client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For (proxies, Cloudflare, nginx), else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None
