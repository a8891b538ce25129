"""Unit tests for argument normalization and modal flattening."""

import pytest

from interaction_gateway.core.exceptions import InvalidPayloadError
from interaction_gateway.schemas.discord import OptionType
from interaction_gateway.schemas.handlers import Argument
from interaction_gateway.services.arguments import flatten_modal_fields, normalize_options


class TestNormalizeOptions:

    def test_coerces_scalar_types(self):
        options = [
            {"name": "text", "type": 3, "value": "hello"},
            {"name": "count", "type": 4, "value": 3},
            {"name": "ratio", "type": 10, "value": 2},
            {"name": "loud", "type": 5, "value": True},
        ]

        arguments = normalize_options(options)

        assert arguments == {"text": "hello", "count": 3, "ratio": 2.0, "loud": True}
        assert isinstance(arguments["ratio"], float)

    def test_reference_types_pass_through_ids(self):
        options = [
            {"name": "who", "type": 6, "value": "111"},
            {"name": "where", "type": 7, "value": "222"},
            {"name": "role", "type": 8, "value": "333"},
            {"name": "any", "type": 9, "value": "444"},
            {"name": "file", "type": 11, "value": "555"},
        ]

        assert normalize_options(options) == {
            "who": "111", "where": "222", "role": "333", "any": "444", "file": "555",
        }

    def test_skips_subcommands(self):
        options = [
            {"name": "admin", "type": 2, "options": [
                {"name": "ban", "type": 1, "options": [{"name": "who", "type": 6, "value": "1"}]},
            ]},
            {"name": "reason", "type": 3, "value": "spam"},
        ]

        assert normalize_options(options) == {"reason": "spam"}

    def test_empty(self):
        assert normalize_options(None) == {}
        assert normalize_options([]) == {}

    def test_declared_optional_absent_is_none(self):
        declared = {
            "text": Argument(type=OptionType.STRING, required=True),
            "count": Argument(type=OptionType.INTEGER),
        }

        arguments = normalize_options([{"name": "text", "type": 3, "value": "x"}], declared)

        assert arguments == {"text": "x", "count": None}

    def test_declared_required_absent_raises(self):
        declared = {"text": Argument(type=OptionType.STRING, required=True)}

        with pytest.raises(InvalidPayloadError):
            normalize_options([], declared)

    def test_declared_type_wins(self):
        declared = {"count": Argument(type=OptionType.INTEGER)}

        assert normalize_options([{"name": "count", "type": 3, "value": "12"}], declared) == {"count": 12}

    def test_uncoercible_value_raises(self):
        with pytest.raises(InvalidPayloadError):
            normalize_options([{"name": "count", "type": 4, "value": "twelve"}])

    def test_fractional_integer_raises(self):
        with pytest.raises(InvalidPayloadError):
            normalize_options([{"name": "count", "type": 4, "value": 1.9}])

    def test_integral_float_integer_is_accepted(self):
        assert normalize_options([{"name": "count", "type": 4, "value": 2.0}]) == {"count": 2}


class TestFlattenModalFields:

    def test_label_text_input(self):
        components = [{"type": 18, "label": "Name", "component": {"type": 4, "custom_id": "name", "value": "Ada"}}]

        assert flatten_modal_fields(components) == {"name": "Ada"}

    def test_label_selects(self):
        components = [
            {"type": 18, "component": {"type": 3, "custom_id": "color", "values": ["red", "blue"]}},
            {"type": 18, "component": {"type": 5, "custom_id": "people", "values": ["1", "2"]}},
            {"type": 18, "component": {"type": 8, "custom_id": "chan", "values": []}},
        ]

        assert flatten_modal_fields(components) == {
            "color": ["red", "blue"],
            "people": ["1", "2"],
            "chan": [],
        }

    def test_skips_text_display_and_unknown_label_children(self):
        components = [
            {"type": 10, "content": "Welcome"},
            {"type": 18, "component": {"type": 19, "custom_id": "upload"}},
            {"type": 18, "component": {"type": 4, "custom_id": "bio", "value": ""}},
        ]

        assert flatten_modal_fields(components) == {"bio": ""}

    def test_legacy_action_rows(self):
        components = [
            {"type": 1, "components": [{"type": 4, "custom_id": "title", "value": "Hi"}]},
            {"type": 1, "components": [{"type": 4, "custom_id": "body", "value": "There"}]},
        ]

        assert flatten_modal_fields(components) == {"title": "Hi", "body": "There"}

    def test_empty(self):
        assert flatten_modal_fields(None) == {}
