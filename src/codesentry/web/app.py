"""FastAPI application factory for the local scan dashboard."""

from __future__ import annotations

from fastapi import FastAPI

from codesentry import __version__
from codesentry.api.client import ApiClient
from codesentry.api.security import CodeSecurityApi
from codesentry.api.token import TokenStore
from codesentry.config import CodeSentryConfig
from codesentry.storage.db import get_db


async def create_app(
    config: CodeSentryConfig | None = None,
    client: ApiClient | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or CodeSentryConfig.load()
    client = client or ApiClient(
        config.api_base_url,
        token_store=TokenStore(config.token_path),
        timeout=config.request_timeout,
    )

    app = FastAPI(
        title="CodeSentry",
        version=__version__,
        docs_url="/api/docs",
    )

    # Store config, db and the remote API in app state
    app.state.config = config
    app.state.db = await get_db(config.db_path)
    app.state.security = CodeSecurityApi(client, status_timeout=config.status_timeout)
    app.state.trackers = {}

    from codesentry.web.api.live import router as live_router
    from codesentry.web.api.scans import router as scans_router

    app.include_router(scans_router, prefix="/api")
    app.include_router(live_router, prefix="/api")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        for tracker in list(app.state.trackers.values()):
            tracker.cancel()
        client.close()
        if hasattr(app.state, "db"):
            await app.state.db.close()

    return app
