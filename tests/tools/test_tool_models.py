"""Tests for tunnelchat.tools.models"""

import json

from tunnelchat.tools import (
    ErrorKind,
    ExecutedTool,
    ToolCallRequest,
    ToolDescriptor,
    parse_batch,
    serialize_batch,
)


class TestToolDescriptor:

    def test_from_discovery(self):
        descriptor = ToolDescriptor.from_discovery(
            {"name": "fs_read_file", "description": "Read", "inputSchema": {"type": "object"}},
            "filesystem",
        )
        assert descriptor.name == "fs_read_file"
        assert descriptor.parameter_schema == {"type": "object"}
        assert descriptor.service_name == "filesystem"
        assert descriptor.is_local is False

    def test_from_discovery_missing_optional_fields(self):
        descriptor = ToolDescriptor.from_discovery({"name": "ping", "description": None}, "svc")
        assert descriptor.description == ""
        assert descriptor.parameter_schema == {}


class TestExecutedTool:

    def test_exactly_one_of_result_or_error(self):
        ok = ExecutedTool.success("a", {}, "value", duration_ms=4)
        failed = ExecutedTool.failure("a", {}, "boom", ErrorKind.EXECUTION_ERROR)

        assert ok.succeeded and ok.error is None and ok.error_kind is None
        assert not failed.succeeded and failed.result is None
        assert "result" not in failed.to_dict()
        assert "error" not in ok.to_dict()

    def test_success_with_none_result_still_succeeds(self):
        ok = ExecutedTool.success("a", {}, None)
        assert ok.succeeded
        assert ok.to_dict() == {"name": "a", "args": {}, "result": None}


class TestBatchEnvelope:

    def test_serialized_shape(self):
        body = serialize_batch([
            ExecutedTool.success("fs_list", {"path": "/"}, ["a.txt"]),
            ExecutedTool.failure("ghost", {}, "unknown tool: ghost", ErrorKind.UNKNOWN_TOOL),
        ])
        assert json.loads(body) == [
            {"tool": "fs_list", "args": {"path": "/"}, "result": ["a.txt"]},
            {"tool": "ghost", "args": {}, "error": "unknown tool: ghost", "errorKind": "unknown_tool"},
        ]

    def test_non_json_results_stringified(self):
        body = serialize_batch([ExecutedTool.success("t", {}, {1, 2})])
        assert json.loads(body)[0]["result"] == "{1, 2}"

    def test_parse_restores_error_kind(self):
        body = serialize_batch([
            ExecutedTool.failure("slow", {}, "timed out", ErrorKind.TIMEOUT),
        ])
        parsed = parse_batch(body)
        assert parsed[0].name == "slow"
        assert parsed[0].error_kind is ErrorKind.TIMEOUT

    def test_parse_rejects_garbage(self):
        assert parse_batch("not json") == []
        assert parse_batch('{"tool": "x"}') == []
        assert parse_batch(None) == []

    def test_request_to_dict(self):
        assert ToolCallRequest("a", {"x": 1}).to_dict() == {"name": "a", "args": {"x": 1}}
