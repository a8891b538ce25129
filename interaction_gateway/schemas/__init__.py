from .discord import (
    InteractionType,
    InteractionResponseType,
    CommandType,
    ComponentType,
    OptionType,
    MessageFlags,
    RawInteraction,
    User,
    Member,
    Resolved,
)
from .handlers import Runner, Choice, Argument, File, Command, Button, Modal

__all__ = [
    "InteractionType",
    "InteractionResponseType",
    "CommandType",
    "ComponentType",
    "OptionType",
    "MessageFlags",
    "RawInteraction",
    "User",
    "Member",
    "Resolved",
    "Runner",
    "Choice",
    "Argument",
    "File",
    "Command",
    "Button",
    "Modal",
]
