"""Compact custom_id codec for buttons and modals.

A custom id carries the handler id as its first character (the character
whose code point equals the id) followed by free-form application data::

    encode(7, "extra-data") == "\\u0007extra-data"
    decode("\\u0007extra-data") == CustomId(7, "extra-data")

Valid handler ids are 1..65534, excluding the UTF-16 surrogate block
0xD800..0xDFFF, which cannot be carried in UTF-8 JSON. Id 0 is reserved.
The whole token is limited to the platform's 100 character custom_id limit.
"""

from typing import NamedTuple, Optional

from .exceptions import InvalidCustomIdError

MIN_HANDLER_ID = 1
MAX_HANDLER_ID = 0xFFFE
SURROGATE_RANGE = range(0xD800, 0xE000)
CUSTOM_ID_MAX_LENGTH = 100


class CustomId(NamedTuple):
    handler_id: int
    data: str


def is_valid_handler_id(handler_id: int) -> bool:
    """Check whether an id can be carried as a single custom_id prefix."""
    if isinstance(handler_id, bool) or not isinstance(handler_id, int):
        return False
    return MIN_HANDLER_ID <= handler_id <= MAX_HANDLER_ID and handler_id not in SURROGATE_RANGE


def encode(handler_id: int, data: str = "") -> str:
    """Build the custom_id for a handler id plus application data."""
    if not is_valid_handler_id(handler_id):
        raise InvalidCustomIdError(
            f"Handler id {handler_id!r} is outside {MIN_HANDLER_ID}..{MAX_HANDLER_ID} "
            f"or inside the surrogate block"
        )
    custom_id = chr(handler_id) + data
    if len(custom_id) > CUSTOM_ID_MAX_LENGTH:
        raise InvalidCustomIdError(
            f"custom_id is {len(custom_id)} characters, limit is {CUSTOM_ID_MAX_LENGTH}"
        )
    return custom_id


def decode(raw: Optional[str]) -> Optional[CustomId]:
    """Split a custom_id into handler id and data; None for an empty token."""
    if not raw:
        return None
    return CustomId(ord(raw[0]), raw[1:])
