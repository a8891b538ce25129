"""
Interaction Classifier

Turns a raw webhook payload into one interaction variant. Classification is a
two-level switch: first on the interaction type, then on the command type or
component type inside ``data``. ``data`` is validated against the model for
its interaction type; a malformed shape raises InvalidPayloadError. Unknown
combinations yield None and are answered with 400 by the gateway.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.exceptions import InvalidPayloadError
from ..schemas.discord import (
    SELECT_COMPONENT_TYPES,
    ApplicationCommandData,
    CommandType,
    ComponentType,
    InteractionType,
    MessageComponentData,
    ModalSubmitData,
    RawInteraction,
    Resolved,
)
from ..schemas.interactions import (
    AutocompleteInteraction,
    CommandInteraction,
    ComponentInteraction,
    Interaction,
    InteractionBase,
    ModalSubmitInteraction,
    PingInteraction,
)
from .discord_rest import DiscordRestClient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _enum_or_none(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _validate_data(model: Type[M], data: Dict[str, Any], interaction_type: InteractionType) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Malformed {interaction_type.name} data: {e.error_count()} error(s)")
        raise InvalidPayloadError.from_validation_error(
            f"malformed {interaction_type.name} data", e
        )


def build_base(raw: RawInteraction, interaction_type: InteractionType) -> InteractionBase:
    """Extract the fields every interaction kind carries."""
    member = raw.member
    user = (member.user if member else None) or raw.user
    channel_id = raw.channel_id or (raw.channel or {}).get("id")

    return InteractionBase(
        id=raw.id,
        type=interaction_type,
        application_id=raw.application_id,
        token=raw.token,
        user=user,
        member=member,
        channel_id=str(channel_id) if channel_id is not None else None,
        guild_id=raw.guild_id,
        locale=raw.locale,
        guild_locale=raw.guild_locale,
        app_permissions=raw.app_permissions,
        member_permissions=member.permissions if member else None,
        entitlements=list(raw.entitlements),
        authorizing_integration_owners=dict(raw.authorizing_integration_owners),
        context=raw.context,
        version=raw.version,
        attachment_size_limit=raw.attachment_size_limit,
        raw=raw.model_dump(),
    )


def _classify_command(
    base: InteractionBase,
    data: ApplicationCommandData,
    rest: Optional[DiscordRestClient]
) -> Optional[CommandInteraction]:
    subtype = _enum_or_none(CommandType, data.type)
    if subtype is None:
        return None

    if subtype in (CommandType.USER, CommandType.MESSAGE) and data.target_id is None:
        return None

    return CommandInteraction(
        base=base,
        subtype=subtype,
        command_id=data.id,
        command_name=data.name,
        command_guild_id=data.guild_id,
        options=[option.model_dump(exclude_unset=True) for option in data.options],
        resolved=data.resolved or Resolved(),
        target_id=data.target_id,
        rest=rest,
    )


def _classify_component(
    raw: RawInteraction,
    base: InteractionBase,
    data: MessageComponentData,
    rest: Optional[DiscordRestClient]
) -> Optional[ComponentInteraction]:
    subtype = _enum_or_none(ComponentType, data.component_type)
    if subtype is None:
        return None

    if subtype == ComponentType.BUTTON:
        values = []
        resolved = Resolved()
    elif subtype in SELECT_COMPONENT_TYPES:
        values = list(data.values)
        resolved = data.resolved or Resolved()
    else:
        return None

    return ComponentInteraction(
        base=base,
        subtype=subtype,
        custom_id=data.custom_id,
        message=dict(raw.message or {}),
        values=values,
        resolved=resolved,
        rest=rest,
    )


def _classify_autocomplete(
    base: InteractionBase,
    data: ApplicationCommandData
) -> Optional[AutocompleteInteraction]:
    command_type = _enum_or_none(CommandType, data.type)
    if command_type is None:
        return None

    return AutocompleteInteraction(
        base=base,
        command_id=data.id,
        command_name=data.name,
        command_type=command_type,
        command_guild_id=data.guild_id,
        options=[option.model_dump(exclude_unset=True) for option in data.options],
        resolved=data.resolved or Resolved(),
    )


def classify(
    raw: RawInteraction,
    rest: Optional[DiscordRestClient] = None
) -> Optional[Interaction]:
    """
    Build the interaction variant for a raw payload.

    Args:
        raw: Validated webhook payload
        rest: REST client handed to repliable variants for follow-ups

    Returns:
        The interaction variant, or None when the type combination is unknown

    Raises:
        InvalidPayloadError: ``data`` does not match its interaction type
    """
    interaction_type = _enum_or_none(InteractionType, raw.type)
    if interaction_type is None:
        logger.warning(f"Unknown interaction type: {raw.type}")
        return None

    base = build_base(raw, interaction_type)

    if interaction_type == InteractionType.PING:
        return PingInteraction(base=base)

    data = raw.data
    if not isinstance(data, dict):
        logger.warning(f"Interaction {raw.id} of type {interaction_type.name} has no data")
        return None

    if interaction_type == InteractionType.APPLICATION_COMMAND:
        interaction = _classify_command(
            base, _validate_data(ApplicationCommandData, data, interaction_type), rest
        )

    elif interaction_type == InteractionType.MESSAGE_COMPONENT:
        interaction = _classify_component(
            raw, base, _validate_data(MessageComponentData, data, interaction_type), rest
        )

    elif interaction_type == InteractionType.APPLICATION_COMMAND_AUTOCOMPLETE:
        interaction = _classify_autocomplete(
            base, _validate_data(ApplicationCommandData, data, interaction_type)
        )

    elif interaction_type == InteractionType.MODAL_SUBMIT:
        modal = _validate_data(ModalSubmitData, data, interaction_type)
        interaction = ModalSubmitInteraction(
            base=base,
            custom_id=modal.custom_id,
            components=[component.model_dump(exclude_unset=True) for component in modal.components],
            message=raw.message,
            resolved=modal.resolved or Resolved(),
            rest=rest,
        )

    else:
        interaction = None

    if interaction is None:
        logger.warning(
            f"Unrecognized {interaction_type.name} interaction: "
            f"data.type={data.get('type')} component_type={data.get('component_type')}"
        )
    return interaction
