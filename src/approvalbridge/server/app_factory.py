from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from approvalbridge.api.v1.approval import router as approval_router
from approvalbridge.api.v1.billing import router as billing_router
from approvalbridge.api.v1.health import router as health_router
from approvalbridge.api.v1.messages import router as messages_router
from approvalbridge.api.v1.site import router as site_router
from approvalbridge.config.config import AppSettings
from approvalbridge.config.runtime import get_settings
from approvalbridge.server.container import ApprovalContainer, build_container


def create_app(
    *,
    cfg: Optional[AppSettings] = None,
    container: Optional[ApprovalContainer] = None,
    log_level: Optional[str] = None,
) -> FastAPI:
    """
    Builds the FastAPI app, registers routers, and attaches the shared
    ApprovalContainer to app.state.container.

    The lifespan starts the one ChannelPoller task for this process and stops
    it (releasing any pending waiters) on shutdown.
    """

    # Resolve settings and container up front so lifespan can capture them
    settings = cfg or (container.settings if container else get_settings())
    if log_level:
        settings.logging.level = log_level.upper()

    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup: attach settings/container and start the poller ---
        app.state.settings = settings
        app.state.container = container
        await container.start()
        try:
            # Hand control back to FastAPI / TestClient
            yield
        finally:
            # --- Shutdown: stop the poller, release waiters, close clients ---
            await container.aclose()

    app = FastAPI(
        title="Approval Bridge",
        version="0.1",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.site.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers; the SPA catch-all must stay last
    app.include_router(router=health_router)
    app.include_router(router=approval_router)
    app.include_router(router=messages_router)
    app.include_router(router=billing_router)
    app.include_router(router=site_router)

    # Optional: keep these for immediate access before lifespan runs
    app.state.settings = settings
    app.state.container = container

    return app
