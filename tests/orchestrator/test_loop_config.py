"""Tests for tunnelchat.orchestrator.loop_config"""

import pytest

from tunnelchat.errors import ConfigError
from tunnelchat.orchestrator import LoopConfig


class TestLoopConfig:

    def test_defaults(self):
        config = LoopConfig()
        assert config.max_iterations == 5
        assert config.model_call_timeout == 60.0
        assert config.tool_call_timeout == 30.0
        assert config.max_tool_result_chars is None
        assert config.terminal_tools == frozenset({
            "apps_script_create_version",
            "apps_script_create_deployment",
            "apps_script_update_deployment",
        })

    def test_from_dict(self):
        config = LoopConfig.from_dict({
            "max_iterations": 8,
            "tool_call_timeout": 10,
            "terminal_tools": ["send_email"],
            "max_tool_result_chars": 4000,
        })
        assert config.max_iterations == 8
        assert config.tool_call_timeout == 10
        assert config.terminal_tools == frozenset({"send_email"})
        assert config.max_tool_result_chars == 4000

    def test_from_dict_empty_terminal_list_disables_policy(self):
        assert LoopConfig.from_dict({"terminal_tools": []}).terminal_tools == frozenset()

    def test_from_none(self):
        assert LoopConfig.from_dict(None) == LoopConfig()

    def test_terminal_tools_coerced_to_frozenset(self):
        assert LoopConfig(terminal_tools=["a", "a"]).terminal_tools == frozenset({"a"})

    def test_rejects_zero_iterations(self):
        with pytest.raises(ConfigError):
            LoopConfig(max_iterations=0)
