"""Interaction webhook endpoint."""

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from ..deps import get_gateway
from ...services.gateway import InteractionGateway

router = APIRouter()


@router.post("/interactions")
async def interactions(
    request: Request,
    gateway: InteractionGateway = Depends(get_gateway)
) -> Response:
    """
    Receive a signed interaction webhook.

    The raw body is read by the gateway itself since the signature covers
    the exact bytes sent.
    """
    return await gateway.handle(request)
