"""
Handler Registry

Immutable lookup tables from command name, button id and modal id to the
handler definition. Built once at startup and shared by every request.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, TypeVar

from ..core import custom_id
from ..core.exceptions import DuplicateHandlerError, InvalidHandlerError
from ..schemas.handlers import Button, Command, Modal

logger = logging.getLogger(__name__)

V = TypeVar("V")


def _index(kind: str, key_of, definitions: Iterable[V]) -> Mapping:
    table: Dict = {}
    for definition in definitions:
        key = key_of(definition)
        if key in table:
            raise DuplicateHandlerError(kind, key)
        table[key] = definition
    return MappingProxyType(table)


def _check_component_id(kind: str, definition) -> None:
    if not custom_id.is_valid_handler_id(definition.id):
        raise InvalidHandlerError(
            f"{kind} id {definition.id!r} is not a valid custom_id prefix "
            f"({custom_id.MIN_HANDLER_ID}..{custom_id.MAX_HANDLER_ID}, surrogates excluded)"
        )
    if not callable(definition.resolved_runner.callback):
        raise InvalidHandlerError(f"{kind} {definition.id} has no callable runner")


def _check_command(command: Command) -> None:
    if not command.name:
        raise InvalidHandlerError("Command name must not be empty")
    runner = command.resolved_runner
    if not callable(runner.callback):
        raise InvalidHandlerError(f"Command {command.name!r} has no callable runner")
    if runner.update:
        raise InvalidHandlerError(
            f"Command {command.name!r} cannot defer with a message update; "
            f"command interactions only support deferred replies"
        )


class Registry:
    """Read-only handler tables keyed by command name, button id and modal id."""

    def __init__(
        self,
        commands: Mapping[str, Command],
        buttons: Mapping[int, Button],
        modals: Mapping[int, Modal]
    ):
        self._commands = commands
        self._buttons = buttons
        self._modals = modals

    @classmethod
    def build(
        cls,
        commands: Iterable[Command] = (),
        buttons: Iterable[Button] = (),
        modals: Iterable[Modal] = ()
    ) -> "Registry":
        """
        Validate handler definitions and build the lookup tables.

        Raises:
            DuplicateHandlerError: Two definitions of one kind share a key
            InvalidHandlerError: A definition has an unusable id, name or runner
        """
        commands = list(commands)
        buttons = list(buttons)
        modals = list(modals)

        for command in commands:
            _check_command(command)
        for button in buttons:
            _check_component_id("Button", button)
        for modal in modals:
            _check_component_id("Modal", modal)

        registry = cls(
            commands=_index("command", lambda c: c.name, commands),
            buttons=_index("button", lambda b: b.id, buttons),
            modals=_index("modal", lambda m: m.id, modals),
        )

        logger.info(
            f"Registry built: {len(commands)} commands, "
            f"{len(buttons)} buttons, {len(modals)} modals"
        )
        return registry

    @property
    def commands(self) -> Mapping[str, Command]:
        return self._commands

    @property
    def buttons(self) -> Mapping[int, Button]:
        return self._buttons

    @property
    def modals(self) -> Mapping[int, Modal]:
        return self._modals

    def lookup_command(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def lookup_button(self, handler_id: int) -> Optional[Button]:
        return self._buttons.get(handler_id)

    def lookup_modal(self, handler_id: int) -> Optional[Modal]:
        return self._modals.get(handler_id)
