"""Discord interaction wire constants and payload models."""

import enum
from typing import Optional, List, Dict, Any, Union

from pydantic import BaseModel, ConfigDict, Field


class InteractionType(enum.IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class InteractionResponseType(enum.IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8
    MODAL = 9
    LAUNCH_ACTIVITY = 12


class CommandType(enum.IntEnum):
    CHAT_INPUT = 1
    USER = 2
    MESSAGE = 3
    PRIMARY_ENTRY_POINT = 4


class ComponentType(enum.IntEnum):
    ACTION_ROW = 1
    BUTTON = 2
    STRING_SELECT = 3
    TEXT_INPUT = 4
    USER_SELECT = 5
    ROLE_SELECT = 6
    MENTIONABLE_SELECT = 7
    CHANNEL_SELECT = 8
    SECTION = 9
    TEXT_DISPLAY = 10
    THUMBNAIL = 11
    MEDIA_GALLERY = 12
    FILE = 13
    SEPARATOR = 14
    CONTAINER = 17
    LABEL = 18


SELECT_COMPONENT_TYPES = frozenset({
    ComponentType.STRING_SELECT,
    ComponentType.USER_SELECT,
    ComponentType.ROLE_SELECT,
    ComponentType.MENTIONABLE_SELECT,
    ComponentType.CHANNEL_SELECT,
})


class OptionType(enum.IntEnum):
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9
    NUMBER = 10
    ATTACHMENT = 11


class MessageFlags(enum.IntFlag):
    EPHEMERAL = 1 << 6



# ============================================================================
# Payload Shapes
# ============================================================================

class User(BaseModel):
    """A user object as embedded in interactions and resolved data."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    username: str = ""
    global_name: Optional[str] = None
    discriminator: Optional[str] = None
    avatar: Optional[str] = None
    bot: bool = False


class Member(BaseModel):
    """Guild member wrapper sent for interactions invoked inside a guild."""

    model_config = ConfigDict(extra="allow", frozen=True)

    user: Optional[User] = None
    nick: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    permissions: Optional[str] = None


class Resolved(BaseModel):
    """Entities referenced by the payload, keyed by id."""

    model_config = ConfigDict(extra="allow", frozen=True)

    users: Dict[str, User] = Field(default_factory=dict)
    members: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    roles: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    channels: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    messages: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    attachments: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class CommandOption(BaseModel):
    """One entry of ``data.options``; subcommands nest further options."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: int
    value: Optional[Union[bool, int, float, str]] = None
    focused: bool = False
    options: List["CommandOption"] = Field(default_factory=list)


class ApplicationCommandData(BaseModel):
    """``data`` of application command and autocomplete interactions."""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    name: str
    type: int = CommandType.CHAT_INPUT
    guild_id: Optional[str] = None
    target_id: Optional[str] = None
    options: List[CommandOption] = Field(default_factory=list)
    resolved: Optional[Resolved] = None


class MessageComponentData(BaseModel):
    """``data`` of message component interactions."""

    model_config = ConfigDict(extra="allow")

    custom_id: str
    component_type: int
    values: List[str] = Field(default_factory=list)
    resolved: Optional[Resolved] = None


class ModalComponent(BaseModel):
    """A submitted modal component: a label, an action row or an input."""

    model_config = ConfigDict(extra="allow")

    type: int
    custom_id: Optional[str] = None
    value: Optional[str] = None
    values: Optional[List[str]] = None
    component: Optional["ModalComponent"] = None
    components: Optional[List["ModalComponent"]] = None


class ModalSubmitData(BaseModel):
    """``data`` of modal submit interactions."""

    model_config = ConfigDict(extra="allow")

    custom_id: str
    components: List[ModalComponent] = Field(default_factory=list)
    resolved: Optional[Resolved] = None


class RawInteraction(BaseModel):
    """Interaction payload as delivered to the webhook.

    Only the discriminant and the fields needed for follow-ups are required;
    everything else is optional and unknown keys are kept. ``data`` is
    validated against the shape of its interaction type during classification.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(default="")
    type: int
    token: str = Field(default="")
    application_id: str = Field(default="")
    data: Optional[Dict[str, Any]] = None
    user: Optional[User] = None
    member: Optional[Member] = None
    channel: Optional[Dict[str, Any]] = None
    channel_id: Optional[str] = None
    guild_id: Optional[str] = None
    message: Optional[Dict[str, Any]] = None
    locale: Optional[str] = None
    guild_locale: Optional[str] = None
    app_permissions: Optional[str] = None
    entitlements: List[Dict[str, Any]] = Field(default_factory=list)
    authorizing_integration_owners: Dict[str, Any] = Field(default_factory=dict)
    context: Optional[int] = None
    version: int = Field(default=1)
    attachment_size_limit: Optional[int] = None
