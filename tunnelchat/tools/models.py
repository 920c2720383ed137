"""
tunnelchat Tool Models - Data structures for model-requested tool calls
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

# Local handler signature: async def handler(args: dict) -> Any
ToolHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class ErrorKind(str, Enum):
    """Why a dispatched tool call did not produce a result."""
    UNKNOWN_TOOL = "unknown_tool"
    ARGUMENT_ERROR = "argument_error"
    EXECUTION_ERROR = "execution_error"
    TIMEOUT = "timeout"


@dataclass
class ToolDescriptor:
    """
    Metadata describing one invocable tool

    Attributes:
        name: Tool name, unique within one turn's registry
        description: What the tool does (shown to the model)
        parameter_schema: JSON Schema for the arguments
        service_name: Owning service; remote calls are routed by it
        handler: In-process handler; None means "call the service remotely"
        defaults: Argument defaults merged under the model's arguments
    """
    name: str
    description: str = ""
    parameter_schema: Dict[str, Any] = field(default_factory=dict)
    service_name: str = ""
    handler: Optional[ToolHandler] = None
    defaults: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_local(self) -> bool:
        return self.handler is not None

    def to_dict(self) -> Dict[str, Any]:
        """Shape sent to the model as one entry of ``availableTools``"""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.parameter_schema,
            "service": self.service_name,
        }

    @classmethod
    def from_discovery(cls, data: Dict[str, Any], service_name: str) -> "ToolDescriptor":
        """Create from a ``GET /tools`` entry ({name, description, inputSchema})"""
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            parameter_schema=data.get("inputSchema") or {},
            service_name=service_name,
        )


@dataclass
class ToolCallRequest:
    """
    A tool call requested by the model

    Attributes:
        name: Tool name
        args: Arguments as given by the model
    """
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": self.args}


@dataclass
class ExecutedTool:
    """
    Outcome of one dispatched tool call

    Exactly one of ``result`` / ``error`` is meaningful: ``error`` is None on
    success. ``error_kind`` is set iff ``error`` is.
    """
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    result: Any = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, name: str, args: Dict[str, Any], result: Any, duration_ms: int = 0) -> "ExecutedTool":
        return cls(name=name, args=args, result=result, duration_ms=duration_ms)

    @classmethod
    def failure(
        cls,
        name: str,
        args: Dict[str, Any],
        error: str,
        kind: ErrorKind,
        duration_ms: int = 0,
    ) -> "ExecutedTool":
        return cls(name=name, args=args, error=error, error_kind=kind, duration_ms=duration_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Transcript shape: {name, args, result} or {name, args, error, errorKind}"""
        data: Dict[str, Any] = {"name": self.name, "args": self.args}
        if self.succeeded:
            data["result"] = self.result
        else:
            data["error"] = self.error
            data["errorKind"] = self.error_kind.value if self.error_kind else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutedTool":
        kind = data.get("errorKind")
        return cls(
            name=data.get("name") or data.get("tool", ""),
            args=data.get("args") or {},
            result=data.get("result"),
            error=data.get("error"),
            error_kind=ErrorKind(kind) if kind else None,
        )


# =============================================================================
# Tool result envelope
# =============================================================================
# The single typed body carried by a ``tool`` message. Serialized once here
# and parsed back once here; nothing else re-parses tool message content.

def serialize_batch(executed: List[ExecutedTool]) -> str:
    """Serialize one batch of executed tools into a ``tool`` message body"""
    envelope = []
    for item in executed:
        entry = item.to_dict()
        entry["tool"] = entry.pop("name")
        envelope.append(entry)
    return json.dumps(envelope, ensure_ascii=False, default=str)


def parse_batch(content: str) -> List[ExecutedTool]:
    """Parse a ``tool`` message body produced by :func:`serialize_batch`"""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        return []
    if not isinstance(data, list):
        return []
    return [ExecutedTool.from_dict(entry) for entry in data if isinstance(entry, dict)]
