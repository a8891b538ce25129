"""Outbound Discord REST calls used after an interaction was acknowledged."""

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..core.exceptions import DiscordAPIError
from ..schemas.discord import InteractionResponseType
from ..schemas.handlers import File
from .responses import MessageOptions, multipart_fields, normalize_message

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://discord.com/api/v10"


class DiscordRestClient:
    """Async client for interaction webhooks and callbacks.

    Follow-up endpoints are addressed by ``(application_id, token)`` and stay
    valid for as long as the platform keeps the interaction token alive
    (15 minutes). Callback endpoints are addressed by the interaction id.
    """

    def __init__(
        self,
        bot_token: str = "",
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"User-Agent": "DiscordBot (interaction-gateway, 1.0.0)"}
        if bot_token:
            headers["Authorization"] = f"Bot {bot_token}"
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        files: Optional[Sequence[File]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if files:
            kwargs["data"], kwargs["files"] = multipart_fields(payload or {}, files)
        elif payload is not None:
            kwargs["json"] = payload

        response = await self.client.request(method, path, **kwargs)

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"message": response.text}
            if not isinstance(body, dict):
                body = {"message": str(body)}
            logger.error(f"Discord API error: {method} {path} -> {response.status_code} {body}")
            raise DiscordAPIError(
                status_code=response.status_code,
                error_message=str(body.get("message", "Unknown error")),
                details=body,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def follow_up(
        self,
        application_id: str,
        token: str,
        message: MessageOptions,
        files: Optional[Sequence[File]] = None
    ) -> Dict[str, Any]:
        """Send a follow-up message."""
        return await self._request(
            "POST",
            f"/webhooks/{application_id}/{token}",
            normalize_message(message),
            files,
            params={"wait": "true"},
        )

    async def edit_reply(
        self,
        application_id: str,
        token: str,
        message: MessageOptions,
        files: Optional[Sequence[File]] = None,
        message_id: str = "@original"
    ) -> Dict[str, Any]:
        """Edit the original response (or a follow-up when message_id is given)."""
        return await self._request(
            "PATCH",
            f"/webhooks/{application_id}/{token}/messages/{message_id}",
            normalize_message(message),
            files,
        )

    async def delete_reply(
        self,
        application_id: str,
        token: str,
        message_id: Optional[str] = None
    ) -> None:
        """Delete the original response (or a follow-up when message_id is given)."""
        await self._request(
            "DELETE",
            f"/webhooks/{application_id}/{token}/messages/{message_id or '@original'}",
        )

    async def get_original_reply(self, application_id: str, token: str) -> Dict[str, Any]:
        """Fetch the original response message."""
        return await self._request(
            "GET",
            f"/webhooks/{application_id}/{token}/messages/@original",
        )

    async def create_modal(self, interaction_id: str, token: str, modal: Dict[str, Any]) -> None:
        """Answer an interaction with a modal through the callback endpoint."""
        await self._request(
            "POST",
            f"/interactions/{interaction_id}/{token}/callback",
            {"type": int(InteractionResponseType.MODAL), "data": modal},
        )

    async def update_message(
        self,
        interaction_id: str,
        token: str,
        message: MessageOptions,
        files: Optional[Sequence[File]] = None
    ) -> None:
        """Update the message a component is attached to through the callback endpoint."""
        await self._request(
            "POST",
            f"/interactions/{interaction_id}/{token}/callback",
            {"type": int(InteractionResponseType.UPDATE_MESSAGE), "data": normalize_message(message)},
            files,
        )
