"""Orchestration loop configuration.

Centralizes the tunable parameters of the call/decode/dispatch loop.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from ..constants import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MODEL_CALL_TIMEOUT,
    DEFAULT_TERMINAL_TOOLS,
    DEFAULT_TOOL_CALL_TIMEOUT,
)
from ..errors import ConfigError


@dataclass
class LoopConfig:
    """All loop configuration centralized in one place."""

    # Loop control
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    """Model calls allowed per user message."""

    # Timeouts
    model_call_timeout: Optional[float] = DEFAULT_MODEL_CALL_TIMEOUT
    """Seconds to wait for the model collaborator; None disables."""
    tool_call_timeout: Optional[float] = DEFAULT_TOOL_CALL_TIMEOUT
    """Seconds to wait for one tool call; None disables."""

    # Terminal policy
    terminal_tools: FrozenSet[str] = field(default_factory=lambda: DEFAULT_TERMINAL_TOOLS)
    """Tools whose success ends the run immediately."""

    # Context
    max_tool_result_chars: Optional[int] = None
    """Per tool-message character cap; None keeps results whole."""

    # Model selection
    model: Optional[str] = None
    """Model id passed to the collaborator; None uses its default."""

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ConfigError(f"max_iterations must be >= 1, got {self.max_iterations}")
        self.terminal_tools = frozenset(self.terminal_tools)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "LoopConfig":
        """Create from the ``loop`` section of a config file"""
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("'loop' section must be a mapping")
        terminal = data.get("terminal_tools")
        try:
            return cls(
                max_iterations=int(data.get("max_iterations", DEFAULT_MAX_ITERATIONS)),
                model_call_timeout=_optional_float(data.get("model_call_timeout", DEFAULT_MODEL_CALL_TIMEOUT)),
                tool_call_timeout=_optional_float(data.get("tool_call_timeout", DEFAULT_TOOL_CALL_TIMEOUT)),
                terminal_tools=frozenset(terminal) if terminal is not None else DEFAULT_TERMINAL_TOOLS,
                max_tool_result_chars=_optional_int(data.get("max_tool_result_chars")),
                model=data.get("model"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid 'loop' section: {e}") from e


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)
