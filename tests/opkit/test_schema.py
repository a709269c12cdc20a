"""Tests for argument schemas and payload validation."""

import pytest

from opkit.core.errors import DecodeError
from opkit.core.schema import ArgumentSpec, parse_payload, to_json_schema, validate_arguments

FILE_ARGUMENTS = (
    ArgumentSpec("dir", description="directory", required=True),
    ArgumentSpec("name", description="file name", required=True),
)


class TestArgumentSpec:
    """Test ArgumentSpec construction."""

    def test_defaults(self):
        spec = ArgumentSpec("query")

        assert spec.type == "string"
        assert spec.required is False
        assert spec.enum == ()

    def test_invalid_type_rejected(self):
        """Test that unknown JSON types are rejected at declaration."""
        with pytest.raises(ValueError, match="Invalid argument type"):
            ArgumentSpec("count", type="int")

    def test_enum_list_becomes_tuple(self):
        """Test that enum lists are normalized so specs stay hashable."""
        spec = ArgumentSpec("color", enum=["red", "blue"])

        assert spec.enum == ("red", "blue")
        hash(spec)

    def test_to_property(self):
        spec = ArgumentSpec("color", description="paint", enum=["red"])

        assert spec.to_property() == {"type": "string", "description": "paint", "enum": ["red"]}
        assert "enum" not in ArgumentSpec("x").to_property()


class TestParsePayload:
    """Test parse_payload()."""

    def test_empty_payload_is_empty_object(self):
        assert parse_payload("") == {}
        assert parse_payload("  \n") == {}

    def test_invalid_json(self):
        with pytest.raises(DecodeError, match="error while unmarshaling payload"):
            parse_payload("{not json")

    def test_non_object(self):
        """Test that JSON arrays and scalars are rejected."""
        with pytest.raises(DecodeError, match="expected a JSON object"):
            parse_payload("[1, 2]")


class TestValidateArguments:
    """Test validate_arguments()."""

    def test_valid_payload(self):
        values = validate_arguments('{"dir":"x","name":"y.txt"}', FILE_ARGUMENTS)

        assert values == {"dir": "x", "name": "y.txt"}

    def test_missing_required(self):
        with pytest.raises(DecodeError, match="missing required argument\\(s\\): name"):
            validate_arguments('{"dir":"x"}', FILE_ARGUMENTS)

    def test_unknown_field(self):
        """Test that unknown fields fail instead of being ignored."""
        with pytest.raises(DecodeError, match="unknown argument\\(s\\): extra"):
            validate_arguments('{"dir":"x","name":"y","extra":1}', FILE_ARGUMENTS)

    def test_mistyped_field(self):
        with pytest.raises(DecodeError, match="expected string, got int"):
            validate_arguments('{"dir":1,"name":"y"}', FILE_ARGUMENTS)

    def test_optional_fields_may_be_absent(self):
        arguments = (ArgumentSpec("limit", type="integer"),)

        assert validate_arguments("", arguments) == {}

    @pytest.mark.parametrize("arg_type,raw,expected", [
        ("integer", '"42"', 42),
        ("integer", "7", 7),
        ("number", '"1.5"', 1.5),
        ("number", "3", 3),
        ("boolean", '"true"', True),
        ("boolean", '"False"', False),
        ("boolean", "true", True),
    ])
    def test_coercion(self, arg_type, raw, expected):
        """Test that numeric and boolean strings are coerced."""
        arguments = (ArgumentSpec("value", type=arg_type),)

        assert validate_arguments(f'{{"value": {raw}}}', arguments) == {"value": expected}

    def test_bool_is_not_an_integer(self):
        arguments = (ArgumentSpec("value", type="integer"),)

        with pytest.raises(DecodeError):
            validate_arguments('{"value": true}', arguments)

    def test_enum_enforced(self):
        arguments = (ArgumentSpec("color", enum=["red", "blue"]),)

        assert validate_arguments('{"color":"red"}', arguments) == {"color": "red"}
        with pytest.raises(DecodeError, match="allowed: red, blue"):
            validate_arguments('{"color":"green"}', arguments)


class TestToJsonSchema:
    """Test to_json_schema()."""

    def test_no_arguments(self):
        assert to_json_schema(()) == {}

    def test_schema_shape(self):
        schema = to_json_schema(FILE_ARGUMENTS + (ArgumentSpec("mode"),))

        assert schema["type"] == "object"
        assert list(schema["properties"]) == ["dir", "name", "mode"]
        assert schema["required"] == ["dir", "name"]

    def test_required_omitted_when_empty(self):
        assert "required" not in to_json_schema((ArgumentSpec("mode"),))
