"""
tunnelchat Orchestrator Models - Data structures for orchestration

This module defines:
- Role: Transcript message roles
- Message: One immutable transcript entry
- Action: A decoded model reply
- StopReason / TurnResult: How a run ended and what it produced
- OrchestrationRun: Ephemeral per-invocation loop state
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..tools.models import ExecutedTool, ToolCallRequest


class Role(str, Enum):
    """Transcript message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class Message:
    """
    One transcript entry.

    Attributes:
        role: Who produced the message
        content: Message text; for ``tool`` messages, a serialized batch
        tool_calls: Executed tools attached to an assistant message
    """
    role: Role
    content: str
    tool_calls: Optional[Tuple[ExecutedTool, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape sent to the model collaborator"""
        data: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            data["toolCalls"] = [t.to_dict() for t in self.tool_calls]
        return data


@dataclass
class Action:
    """
    A decoded model reply.

    ``content`` is always a string and ``tool_calls`` always a list, even
    when the reply could not be parsed at all.
    """
    content: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return not self.tool_calls

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "toolCalls": [c.to_dict() for c in self.tool_calls],
        }


class StopReason(str, Enum):
    """Why a run stopped."""
    FINAL_ANSWER = "final_answer"
    TERMINAL_TOOL = "terminal_tool"
    MAX_ITERATIONS = "max_iterations"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class TurnResult:
    """
    Result of processing one user message.

    Attributes:
        content: Text to show the user
        tool_calls: Every tool executed during the run, in order
        iterations: Model calls made
        stop_reason: How the run ended
        incomplete: True when the iteration cap was hit
        duration_ms: Wall-clock duration of the run
    """
    content: str
    tool_calls: List[ExecutedTool] = field(default_factory=list)
    iterations: int = 0
    stop_reason: StopReason = StopReason.FINAL_ANSWER
    incomplete: bool = False
    duration_ms: int = 0

    @property
    def succeeded_tools(self) -> List[str]:
        return [t.name for t in self.tool_calls if t.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "toolCalls": [t.to_dict() for t in self.tool_calls],
            "iterations": self.iterations,
            "stopReason": self.stop_reason.value,
            "incomplete": self.incomplete,
            "durationMs": self.duration_ms,
        }


@dataclass
class OrchestrationRun:
    """Per-invocation loop state; created and discarded within one process() call."""
    max_iterations: int
    iteration: int = 0
    terminal: bool = False
    executed: List[ExecutedTool] = field(default_factory=list)
    last_content: str = ""

    @property
    def exhausted(self) -> bool:
        return self.iteration >= self.max_iterations
