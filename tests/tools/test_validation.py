"""Tests for tunnelchat.tools.validation"""

import pytest

from tunnelchat.errors import ArgumentError
from tunnelchat.tools.validation import merge_defaults, validate_arguments


SCHEMA = {
    "type": "object",
    "properties": {
        "inputPath": {"type": "string"},
        "pages": {"type": "array", "items": {"type": "integer"}},
    },
    "required": ["inputPath"],
}


class TestValidateArguments:

    def test_valid(self):
        validate_arguments("pdf_split", SCHEMA, {"inputPath": "/a.pdf", "pages": [1, 2]})

    def test_missing_required(self):
        with pytest.raises(ArgumentError) as exc_info:
            validate_arguments("pdf_split", SCHEMA, {})
        assert "inputPath" in str(exc_info.value)
        assert exc_info.value.tool_name == "pdf_split"

    def test_nested_path_reported(self):
        with pytest.raises(ArgumentError) as exc_info:
            validate_arguments("pdf_split", SCHEMA, {"inputPath": "/a", "pages": [1, "two"]})
        assert exc_info.value.path == "pages.1"
        assert str(exc_info.value).startswith("invalid arguments for pdf_split: pages.1:")

    def test_extra_properties_allowed(self):
        validate_arguments("pdf_split", SCHEMA, {"inputPath": "/a", "unknown": True})

    def test_non_dict_args_rejected(self):
        with pytest.raises(ArgumentError, match="expected an object, got list"):
            validate_arguments("pdf_split", SCHEMA, [1, 2])

    @pytest.mark.parametrize("schema", [
        {},
        None,
        {"type": "string"},
        "not a schema",
    ])
    def test_non_object_schemas_skipped(self, schema):
        validate_arguments("t", schema, {"anything": 1})

    def test_properties_without_type_enforced(self):
        schema = {"properties": {"n": {"type": "integer"}}, "required": ["n"]}
        with pytest.raises(ArgumentError):
            validate_arguments("t", schema, {})

    def test_invalid_schema_skipped(self, caplog):
        schema = {"type": "object", "properties": {"n": {"type": "not-a-type"}}}
        validate_arguments("t", schema, {"n": 1})
        assert any("invalid schema" in r.message for r in caplog.records)


class TestMergeDefaults:

    def test_defaults_fill_gaps(self):
        assert merge_defaults({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_none_counts_as_missing(self):
        assert merge_defaults({"projectId": "p"}, {"projectId": None}) == {"projectId": "p"}

    def test_none_kept_without_default(self):
        assert merge_defaults({}, {"x": None}) == {"x": None}

    def test_inputs_not_mutated(self):
        defaults = {"a": 1}
        args = {"b": 2}
        merge_defaults(defaults, args)
        assert defaults == {"a": 1}
        assert args == {"b": 2}
