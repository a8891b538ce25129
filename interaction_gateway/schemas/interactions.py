"""Interaction variants produced by the classifier.

Every variant embeds the same ``InteractionBase`` record and fixes its kind
(and subtype, where the kind has one) at construction. Variants are frozen;
one is built per request and dropped with it.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Sequence, Union

from starlette.responses import Response

from ..core import custom_id
from ..core.exceptions import (
    CommandInteractionCannotDeferUpdate,
    CommandInteractionCannotUpdate,
    ModalSubmitInteractionCannotShowModal,
)
from ..services.discord_rest import DiscordRestClient
from ..services.responses import MessageOptions, bad_request, interaction_response, normalize_message
from .discord import (
    CommandType,
    ComponentType,
    InteractionResponseType,
    InteractionType,
    Member,
    MessageFlags,
    Resolved,
    User,
)
from .handlers import Choice, File


class InteractionKind(str, enum.Enum):
    PING = "ping"
    COMMAND = "command"
    COMPONENT = "component"
    MODAL_SUBMIT = "modal_submit"
    AUTOCOMPLETE = "autocomplete"


@dataclass(frozen=True)
class InteractionBase:
    """Fields shared by every interaction kind."""

    id: str
    type: InteractionType
    application_id: str
    token: str
    user: Optional[User] = None
    member: Optional[Member] = None
    channel_id: Optional[str] = None
    guild_id: Optional[str] = None
    locale: Optional[str] = None
    guild_locale: Optional[str] = None
    app_permissions: Optional[str] = None
    member_permissions: Optional[str] = None
    entitlements: List[Dict[str, Any]] = field(default_factory=list)
    authorizing_integration_owners: Dict[str, Any] = field(default_factory=dict)
    context: Optional[int] = None
    version: int = 1
    attachment_size_limit: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def in_guild(self) -> bool:
        return self.guild_id is not None and self.member is not None


class _BaseAccessors:
    """Shortcuts to the embedded base record."""

    base: InteractionBase
    kind: ClassVar[InteractionKind]

    @property
    def id(self) -> str:
        return self.base.id

    @property
    def token(self) -> str:
        return self.base.token

    @property
    def application_id(self) -> str:
        return self.base.application_id

    @property
    def user(self) -> Optional[User]:
        return self.base.user

    @property
    def channel_id(self) -> Optional[str]:
        return self.base.channel_id

    @property
    def guild_id(self) -> Optional[str]:
        return self.base.guild_id

    def bad_request(self, error: str = "Bad Request") -> Response:
        return bad_request(error)


class _ReplyHelpers(_BaseAccessors):
    """Response and follow-up helpers for interactions that accept replies."""

    rest: Optional[DiscordRestClient]

    def reply(self, options: MessageOptions, files: Optional[Sequence[File]] = None) -> Response:
        return interaction_response(
            InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
            normalize_message(options),
            files,
        )

    def defer_reply(self, ephemeral: bool = False) -> Response:
        data = {"flags": int(MessageFlags.EPHEMERAL)} if ephemeral else {}
        return interaction_response(InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE, data)

    def update(self, options: MessageOptions, files: Optional[Sequence[File]] = None) -> Response:
        return interaction_response(
            InteractionResponseType.UPDATE_MESSAGE,
            normalize_message(options),
            files,
        )

    def defer_update(self) -> Response:
        return interaction_response(InteractionResponseType.DEFERRED_UPDATE_MESSAGE)

    def show_modal(self, modal: Dict[str, Any]) -> Response:
        return interaction_response(InteractionResponseType.MODAL, dict(modal))

    def launch_activity(self) -> Response:
        return interaction_response(InteractionResponseType.LAUNCH_ACTIVITY)

    def _require_rest(self) -> DiscordRestClient:
        if self.rest is None:
            raise RuntimeError("Discord REST client not configured")
        return self.rest

    async def follow_up(self, options: MessageOptions, files: Optional[Sequence[File]] = None) -> Dict[str, Any]:
        return await self._require_rest().follow_up(self.application_id, self.token, options, files)

    async def edit_reply(self, options: MessageOptions, files: Optional[Sequence[File]] = None) -> Dict[str, Any]:
        return await self._require_rest().edit_reply(self.application_id, self.token, options, files)

    async def delete_reply(self, message_id: Optional[str] = None) -> None:
        await self._require_rest().delete_reply(self.application_id, self.token, message_id)

    async def fetch_reply(self) -> Dict[str, Any]:
        return await self._require_rest().get_original_reply(self.application_id, self.token)

    async def create_modal(self, modal: Dict[str, Any]) -> None:
        await self._require_rest().create_modal(self.id, self.token, modal)

    async def update_message(self, options: MessageOptions, files: Optional[Sequence[File]] = None) -> None:
        await self._require_rest().update_message(self.id, self.token, options, files)


@dataclass(frozen=True)
class PingInteraction(_BaseAccessors):
    kind: ClassVar[InteractionKind] = InteractionKind.PING

    base: InteractionBase

    def pong(self) -> Response:
        return interaction_response(InteractionResponseType.PONG)


@dataclass(frozen=True)
class CommandInteraction(_ReplyHelpers):
    kind: ClassVar[InteractionKind] = InteractionKind.COMMAND

    base: InteractionBase
    subtype: CommandType
    command_id: str
    command_name: str
    command_guild_id: Optional[str] = None
    options: List[Dict[str, Any]] = field(default_factory=list)
    resolved: Resolved = field(default_factory=Resolved)
    target_id: Optional[str] = None
    rest: Optional[DiscordRestClient] = field(default=None, repr=False, compare=False)

    def update(self, options: MessageOptions = None, files: Optional[Sequence[File]] = None) -> Response:
        raise CommandInteractionCannotUpdate()

    def defer_update(self) -> Response:
        raise CommandInteractionCannotDeferUpdate()


@dataclass(frozen=True)
class ComponentInteraction(_ReplyHelpers):
    kind: ClassVar[InteractionKind] = InteractionKind.COMPONENT

    base: InteractionBase
    subtype: ComponentType
    custom_id: str
    message: Dict[str, Any] = field(default_factory=dict)
    values: List[str] = field(default_factory=list)
    resolved: Resolved = field(default_factory=Resolved)
    rest: Optional[DiscordRestClient] = field(default=None, repr=False, compare=False)

    @property
    def custom_id_data(self) -> str:
        decoded = custom_id.decode(self.custom_id)
        return decoded.data if decoded else ""

    def is_select_menu(self) -> bool:
        return self.subtype != ComponentType.BUTTON


@dataclass(frozen=True)
class ModalSubmitInteraction(_ReplyHelpers):
    kind: ClassVar[InteractionKind] = InteractionKind.MODAL_SUBMIT

    base: InteractionBase
    custom_id: str
    components: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[Dict[str, Any]] = None
    resolved: Resolved = field(default_factory=Resolved)
    rest: Optional[DiscordRestClient] = field(default=None, repr=False, compare=False)

    @property
    def custom_id_data(self) -> str:
        decoded = custom_id.decode(self.custom_id)
        return decoded.data if decoded else ""

    def show_modal(self, modal: Dict[str, Any]) -> Response:
        raise ModalSubmitInteractionCannotShowModal()

    async def create_modal(self, modal: Dict[str, Any]) -> None:
        raise ModalSubmitInteractionCannotShowModal()


@dataclass(frozen=True)
class AutocompleteInteraction(_BaseAccessors):
    kind: ClassVar[InteractionKind] = InteractionKind.AUTOCOMPLETE

    base: InteractionBase
    command_id: str
    command_name: str
    command_type: CommandType
    command_guild_id: Optional[str] = None
    options: List[Dict[str, Any]] = field(default_factory=list)
    resolved: Resolved = field(default_factory=Resolved)

    def focused_option(self) -> Optional[Dict[str, Any]]:
        """The option the user is currently typing in, if any."""
        return next((option for option in _leaf_options(self.options) if option.get("focused")), None)

    def respond(self, choices: Iterable[Union[Choice, Dict[str, Any]]]) -> Response:
        rendered = []
        for choice in choices:
            if isinstance(choice, Choice):
                rendered.append(choice.to_dict())
            else:
                rendered.append({
                    key: value
                    for key, value in choice.items()
                    if key in ("name", "value", "name_localizations")
                })
        return interaction_response(
            InteractionResponseType.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT,
            {"choices": rendered},
        )


def _leaf_options(options: List[Dict[str, Any]]) -> Iterable[Dict[str, Any]]:
    for option in options or []:
        if "options" in option and "value" not in option:
            yield from _leaf_options(option["options"])
        else:
            yield option


Interaction = Union[
    PingInteraction,
    CommandInteraction,
    ComponentInteraction,
    ModalSubmitInteraction,
    AutocompleteInteraction,
]
