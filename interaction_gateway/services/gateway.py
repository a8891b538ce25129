"""
Request Gateway

Entry point for one interaction webhook request: verify the signature,
answer pings, classify the payload and route it to the registered handler.
"""

import json
import logging
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import Request
from pydantic import ValidationError
from starlette.responses import Response

from ..core import custom_id
from ..core.exceptions import (
    AuthenticationError,
    GatewayException,
    InvalidPayloadError,
    RoutingMissError,
    error_response,
)
from ..core.metrics import (
    track_handler_latency,
    track_interaction,
    track_routing_miss,
    track_signature_failure,
)
from ..core.security import (
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    load_public_key,
    verify_discord_signature,
)
from ..schemas.discord import (
    CommandType,
    ComponentType,
    InteractionResponseType,
    InteractionType,
    RawInteraction,
)
from ..schemas.interactions import (
    AutocompleteInteraction,
    CommandInteraction,
    ComponentInteraction,
    Interaction,
    InteractionKind,
    ModalSubmitInteraction,
)
from .arguments import flatten_modal_fields, normalize_options
from .classifier import classify
from .discord_rest import DiscordRestClient
from .dispatcher import DeferredDispatcher, call_handler
from .registry import Registry
from .responses import interaction_response

logger = logging.getLogger(__name__)


def _miss(kind: InteractionKind, key) -> RoutingMissError:
    track_routing_miss(kind.value)
    return RoutingMissError(kind.value, key)


class InteractionGateway:
    """Verifies, classifies and routes interaction webhook requests."""

    def __init__(
        self,
        public_key: Union[str, Ed25519PublicKey],
        registry: Registry,
        rest: Optional[DiscordRestClient] = None,
        dispatcher: Optional[DeferredDispatcher] = None,
        owner_id: Optional[str] = None,
        max_age_seconds: Optional[int] = None
    ):
        if isinstance(public_key, str):
            loaded = load_public_key(public_key)
            if loaded is None:
                raise ValueError("public_key is not a hex-encoded 32-byte Ed25519 key")
            public_key = loaded

        self.public_key = public_key
        self.registry = registry
        self.rest = rest
        self.dispatcher = dispatcher or DeferredDispatcher(owner_id=owner_id)
        self.max_age_seconds = max_age_seconds

    async def handle(self, request: Request) -> Response:
        """
        Produce the HTTP response for one webhook request.

        Gateway errors are rendered here (401 for signatures, 400 for
        routing misses and malformed payloads). Handler crashes on the
        inline path propagate to the application's exception handlers.
        """
        try:
            return await self._handle(request)
        except GatewayException as exc:
            logger.warning(f"[{exc.correlation_id}] {exc.__class__.__name__}: {exc.message}")
            return error_response(exc)

    async def _handle(self, request: Request) -> Response:
        body = await request.body()

        verified = verify_discord_signature(
            body,
            request.headers.get(TIMESTAMP_HEADER),
            request.headers.get(SIGNATURE_HEADER),
            self.public_key,
            max_age_seconds=self.max_age_seconds,
        )
        if not verified:
            track_signature_failure()
            raise AuthenticationError()

        raw = self.parse(body)

        if raw.type == InteractionType.PING:
            track_interaction(InteractionKind.PING.value)
            return interaction_response(InteractionResponseType.PONG)

        interaction = classify(raw, self.rest)
        if interaction is None:
            track_interaction("unknown")
            raise InvalidPayloadError(f"unsupported interaction type {raw.type}")

        kind = interaction.kind.value
        track_interaction(kind)
        with track_handler_latency(kind):
            return await self.route(interaction)

    @staticmethod
    def parse(body: bytes) -> RawInteraction:
        """Decode and validate the JSON body."""
        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidPayloadError(f"body is not valid JSON: {e}")

        if not isinstance(payload, dict):
            raise InvalidPayloadError("body is not a JSON object")

        try:
            return RawInteraction.model_validate(payload)
        except ValidationError as e:
            raise InvalidPayloadError.from_validation_error("body is not an interaction", e)

    async def route(self, interaction: Interaction) -> Response:
        if isinstance(interaction, CommandInteraction):
            return await self.route_command(interaction)
        if isinstance(interaction, ComponentInteraction):
            return await self.route_component(interaction)
        if isinstance(interaction, ModalSubmitInteraction):
            return await self.route_modal(interaction)
        if isinstance(interaction, AutocompleteInteraction):
            return await self.route_autocomplete(interaction)
        raise InvalidPayloadError(f"no route for {interaction.kind.value} interactions")

    async def route_command(self, interaction: CommandInteraction) -> Response:
        if interaction.subtype != CommandType.CHAT_INPUT:
            raise InvalidPayloadError(f"unsupported command type {interaction.subtype.name}")

        command = self.registry.lookup_command(interaction.command_name)
        if command is None:
            raise _miss(interaction.kind, interaction.command_name)

        arguments = normalize_options(interaction.options, command.arguments)
        return await self.dispatcher.dispatch_command(command, interaction, arguments)

    async def route_component(self, interaction: ComponentInteraction) -> Response:
        if interaction.subtype != ComponentType.BUTTON:
            raise InvalidPayloadError(f"unsupported component type {interaction.subtype.name}")

        decoded = custom_id.decode(interaction.custom_id)
        if decoded is None:
            raise InvalidPayloadError("component interaction without custom_id")

        button = self.registry.lookup_button(decoded.handler_id)
        if button is None:
            raise _miss(interaction.kind, decoded.handler_id)

        return await self.dispatcher.dispatch(
            button.runner,
            interaction,
            decoded.data,
            label=f"button:{button.id}",
        )

    async def route_modal(self, interaction: ModalSubmitInteraction) -> Response:
        decoded = custom_id.decode(interaction.custom_id)
        if decoded is None:
            raise InvalidPayloadError("modal submission without custom_id")

        modal = self.registry.lookup_modal(decoded.handler_id)
        if modal is None:
            raise _miss(interaction.kind, decoded.handler_id)

        fields = flatten_modal_fields(interaction.components)
        return await self.dispatcher.dispatch(
            modal.runner,
            interaction,
            fields,
            label=f"modal:{modal.id}",
        )

    async def route_autocomplete(self, interaction: AutocompleteInteraction) -> Response:
        command = self.registry.lookup_command(interaction.command_name)
        if command is None:
            raise _miss(interaction.kind, interaction.command_name)

        focused = interaction.focused_option()
        if focused is None:
            raise InvalidPayloadError("autocomplete interaction without a focused option")

        name = focused.get("name")
        argument = command.arguments.get(name)
        if argument is None or not argument.has_autocomplete:
            raise _miss(interaction.kind, f"{command.name}.{name}")

        if focused.get("type") != argument.type:
            raise InvalidPayloadError(
                f"focused option {name!r} has type {focused.get('type')}, "
                f"declared {argument.type.name}"
            )

        choices = await call_handler(argument.autocomplete, interaction, focused.get("value"))
        return interaction.respond(choices)
