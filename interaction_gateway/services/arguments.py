"""Payload shaping for command arguments and modal submissions."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core.exceptions import InvalidPayloadError
from ..schemas.discord import SELECT_COMPONENT_TYPES, ComponentType, OptionType
from ..schemas.handlers import Argument

logger = logging.getLogger(__name__)

SUBCOMMAND_TYPES = frozenset({OptionType.SUB_COMMAND, OptionType.SUB_COMMAND_GROUP})

# Snowflake-valued options are passed through as the raw id string
REFERENCE_TYPES = frozenset({
    OptionType.USER,
    OptionType.CHANNEL,
    OptionType.ROLE,
    OptionType.MENTIONABLE,
    OptionType.ATTACHMENT,
})

ModalValue = Union[str, List[str]]


def coerce_option_value(option_type: int, value: Any) -> Any:
    """Convert a wire option value to the Python type its declared type implies."""
    if value is None:
        return None
    try:
        option_type = OptionType(option_type)
    except ValueError:
        return value

    try:
        if option_type == OptionType.BOOLEAN:
            if isinstance(value, str):
                return value.lower() == "true"
            return bool(value)
        if option_type == OptionType.INTEGER:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if option_type == OptionType.NUMBER:
            return float(value)
    except (TypeError, ValueError):
        raise InvalidPayloadError(
            f"option value {value!r} does not match type {option_type.name}"
        )

    if option_type == OptionType.STRING or option_type in REFERENCE_TYPES:
        return str(value)
    return value


def normalize_options(
    options: Optional[List[Dict[str, Any]]],
    arguments: Optional[Mapping[str, Argument]] = None
) -> Dict[str, Any]:
    """
    Build the argument map handed to a command runner.

    Subcommand and subcommand-group options are skipped. When ``arguments``
    declares the command's schema, every declared name is present in the
    result: absent optional arguments map to None, absent required ones raise.

    Args:
        options: ``data.options`` from the command payload
        arguments: Declared argument schema of the command

    Returns:
        Mapping from option name to coerced value

    Raises:
        InvalidPayloadError: A required argument is missing or a value cannot
            be coerced
    """
    result: Dict[str, Any] = {}

    for option in options or []:
        option_type = option.get("type")
        if option_type in SUBCOMMAND_TYPES:
            continue
        name = option.get("name")
        if not name:
            continue

        declared = (arguments or {}).get(name)
        if declared is not None and option_type != declared.type:
            logger.debug(
                f"Option {name} arrived as type {option_type}, declared as {declared.type.name}"
            )
            option_type = declared.type

        result[name] = coerce_option_value(option_type, option.get("value"))

    for name, argument in (arguments or {}).items():
        if name in result:
            continue
        if argument.required:
            raise InvalidPayloadError(f"missing required argument {name!r}")
        result[name] = None

    return result


def _label_value(component: Dict[str, Any]) -> Optional[ModalValue]:
    component_type = component.get("type")
    if component_type == ComponentType.TEXT_INPUT:
        return component.get("value", "")
    if component_type in SELECT_COMPONENT_TYPES:
        return [str(value) for value in component.get("values") or []]
    return None


def flatten_modal_fields(components: Optional[List[Dict[str, Any]]]) -> Dict[str, ModalValue]:
    """
    Flatten a modal submission into ``{custom_id: value}``.

    Text inputs map to their string value, selects to their list of values.
    Labels wrap exactly one component; action rows are the legacy layout and
    hold text inputs directly. Text displays and other structural components
    carry no input and are skipped.
    """
    fields: Dict[str, ModalValue] = {}

    for component in components or []:
        component_type = component.get("type")

        if component_type == ComponentType.LABEL:
            inner = component.get("component") or {}
            value = _label_value(inner)
            if value is not None and inner.get("custom_id"):
                fields[inner["custom_id"]] = value

        elif component_type == ComponentType.ACTION_ROW:
            for child in component.get("components") or []:
                if child.get("type") == ComponentType.TEXT_INPUT and child.get("custom_id"):
                    fields[child["custom_id"]] = child.get("value", "")

    return fields
