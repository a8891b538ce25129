"""FastAPI application factory and entry point."""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import Settings, get_settings
from .core.exceptions import register_exception_handlers
from .core.middleware import RequestLoggingMiddleware
from .services.discord_rest import DiscordRestClient
from .services.dispatcher import BackgroundErrorHook, DeferredDispatcher
from .services.gateway import InteractionGateway
from .services.registry import Registry

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_app(
    registry: Registry,
    settings: Optional[Settings] = None,
    rest: Optional[DiscordRestClient] = None,
    on_background_error: Optional[BackgroundErrorHook] = None
) -> FastAPI:
    """
    Build the webhook application around a handler registry.

    Args:
        registry: Handlers to route interactions to
        settings: Settings to use instead of the environment
        rest: REST client for follow-ups; built from settings when omitted
        on_background_error: Called with (job, exception) when a deferred job fails

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Interaction Gateway",
        description="Signed interaction webhook receiver and router",
        version="1.0.0",
        debug=settings.debug
    )

    register_exception_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)

    if rest is None:
        rest = DiscordRestClient(
            bot_token=settings.discord_token,
            base_url=settings.discord_api_base_url,
        )

    app.state.settings = settings
    app.state.gateway = InteractionGateway(
        public_key=settings.discord_public_key,
        registry=registry,
        rest=rest,
        dispatcher=DeferredDispatcher(
            owner_id=settings.owner_id,
            on_background_error=on_background_error,
        ),
        max_age_seconds=settings.signature_max_age_seconds,
    )

    @app.on_event("startup")
    async def startup_event():
        """Log the routing table on startup."""
        logger.info("Starting Interaction Gateway...")
        logger.info(f"Environment: {settings.environment}")
        logger.info(
            f"Routing {len(registry.commands)} commands, "
            f"{len(registry.buttons)} buttons, {len(registry.modals)} modals"
        )
        if settings.owner_id is None:
            logger.warning("OWNER_ID is not set; owner-only commands will be refused for everyone")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        logger.info("Shutting down Interaction Gateway...")
        await rest.aclose()
        logger.info("Discord REST client closed")

    # Register API routers
    from .api.endpoints.interactions import router as interactions_router
    from .api.endpoints.health import router as health_router
    from .core.metrics import metrics_router

    app.include_router(interactions_router, tags=["interactions"])
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["monitoring"])

    return app


def run(registry: Registry, settings: Optional[Settings] = None, **kwargs) -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = settings or get_settings()
    app = create_app(registry, settings=settings, **kwargs)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
