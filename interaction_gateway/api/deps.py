"""Dependency injection for FastAPI endpoints."""

from fastapi import HTTPException, Request, status

from ..services.gateway import InteractionGateway


def get_gateway(request: Request) -> InteractionGateway:
    """
    Interaction gateway dependency for FastAPI.

    Returns:
        The gateway attached to the application at startup
    """
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Interaction gateway not configured"
        )
    return gateway
