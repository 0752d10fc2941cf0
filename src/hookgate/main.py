"""hookgate — FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from hookgate import __version__
from hookgate.auth import ConfigCredentialStore
from hookgate.catalog import catalog_values, load_api_version, load_catalog
from hookgate.config import HookgateConfig, get_config
from hookgate.controller import WebhookEndpoint
from hookgate.delivery import ChannelDispatcher
from hookgate.gatekeeper import is_bot
from hookgate.logging import setup_logging
from hookgate.topology import SELF_TOKEN, WILDCARD

logger = structlog.get_logger()


def create_app(config: HookgateConfig | None = None) -> FastAPI:
    """Create the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application startup/shutdown lifecycle."""
        cfg = config or get_config()
        setup_logging(level=cfg.log_level, fmt=cfg.log_format)

        logger.info("hookgate.starting", version=__version__, path=cfg.trigger.path)

        catalog = load_catalog(cfg.catalog_path)
        known = catalog_values(catalog) | {WILDCARD, SELF_TOKEN}
        unknown = [token for token in cfg.trigger.events if token not in known]
        if unknown:
            logger.warning("hookgate.events.unknown", events=unknown)

        app.state.config = cfg
        app.state.catalog = catalog
        app.state.api_version = load_api_version(cfg.catalog_path)
        app.state.endpoint = WebhookEndpoint.register(cfg.trigger)
        app.state.credential_store = ConfigCredentialStore(cfg.credentials)
        app.state.bot_predicate = is_bot
        app.state.dispatcher = ChannelDispatcher(
            targets=cfg.trigger.outputs,
            timeout_s=cfg.forward_timeout_s,
        )

        logger.info(
            "hookgate.ready",
            authentication=cfg.trigger.authentication,
            outputs=app.state.endpoint.topology.labels,
        )

        yield

        logger.info("hookgate.stopped")

    app = FastAPI(
        title="hookgate",
        version=__version__,
        description="Webhook ingress filter and event router for WAHA callbacks.",
        lifespan=lifespan,
    )

    # Register routes
    from hookgate.api.routes.events import router as events_router
    from hookgate.api.routes.health import router as health_router
    from hookgate.api.routes.webhook import router as webhook_router

    app.include_router(health_router, tags=["health"])
    app.include_router(events_router, tags=["events"])
    # Catch-all trigger path, must stay last
    app.include_router(webhook_router, tags=["webhook"])

    return app


app = create_app()


def main() -> None:
    """Run the server directly."""
    config = get_config()
    setup_logging(level=config.log_level, fmt=config.log_format)
    uvicorn.run(
        "hookgate.main:app",
        host=config.host,
        port=config.port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
