"""Health check endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Liveness probe - always returns ok if app is running.

    Returns:
        dict: Health status
    """
    settings = request.app.state.settings
    return {"status": "healthy", "environment": settings.environment}


@router.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness probe - checks the gateway is wired up.

    Returns:
        dict: Readiness status with handler counts
    """
    errors = []

    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        errors.append("gateway: not configured")
    elif gateway.rest is None:
        errors.append("rest: no Discord REST client")

    if errors:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "errors": errors}
        )

    registry = gateway.registry
    return {
        "status": "ready",
        "commands": len(registry.commands),
        "buttons": len(registry.buttons),
        "modals": len(registry.modals),
    }
