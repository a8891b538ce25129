"""Handler definitions: commands, buttons and modals plus their runners."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..core import custom_id
from .discord import OptionType

# (interaction, payload) -> Response | dict | str, sync or async
HandlerCallback = Callable[[Any, Any], Union[Any, Awaitable[Any]]]
AutocompleteCallback = Callable[[Any, Any], Union[List[Any], Awaitable[List[Any]]]]


@dataclass(frozen=True)
class Runner:
    """A handler callback together with its response timing.

    With ``should_defer`` the platform gets an immediate deferred
    acknowledgment and the callback runs after the response is sent.
    ``update`` acknowledges with a deferred message update instead of a
    deferred reply (component and modal handlers only).
    """

    callback: HandlerCallback
    should_defer: bool = False
    ephemeral: bool = False
    update: bool = False


def as_runner(runner: Union[Runner, HandlerCallback]) -> Runner:
    """Normalize a plain callback into an immediate Runner."""
    if isinstance(runner, Runner):
        return runner
    return Runner(callback=runner)


@dataclass(frozen=True)
class Choice:
    name: str
    value: Union[str, int, float]
    name_localizations: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        choice = {"name": self.name, "value": self.value}
        if self.name_localizations is not None:
            choice["name_localizations"] = self.name_localizations
        return choice


@dataclass(frozen=True)
class Argument:
    """Runtime schema of one chat-input command option."""

    type: OptionType
    description: str = ""
    required: bool = False
    choices: Optional[List[Choice]] = None
    autocomplete: Optional[AutocompleteCallback] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    @property
    def has_autocomplete(self) -> bool:
        return self.autocomplete is not None


@dataclass(frozen=True)
class File:
    """An attachment sent with a reply as a multipart part."""

    name: str
    data: Union[bytes, str]
    key: Optional[str] = None
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class Command:
    name: str
    runner: Union[Runner, HandlerCallback]
    description: str = ""
    arguments: Dict[str, Argument] = field(default_factory=dict)
    owner_only: bool = False

    @property
    def resolved_runner(self) -> Runner:
        return as_runner(self.runner)


@dataclass(frozen=True)
class Button:
    id: int
    runner: Union[Runner, HandlerCallback]

    @property
    def resolved_runner(self) -> Runner:
        return as_runner(self.runner)

    def custom_id(self, data: str = "") -> str:
        """custom_id that routes a click back to this button."""
        return custom_id.encode(self.id, data)


@dataclass(frozen=True)
class Modal:
    id: int
    runner: Union[Runner, HandlerCallback]
    title: str = ""

    @property
    def resolved_runner(self) -> Runner:
        return as_runner(self.runner)

    def custom_id(self, data: str = "") -> str:
        """custom_id that routes a submission back to this modal."""
        return custom_id.encode(self.id, data)
