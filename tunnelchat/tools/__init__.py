"""
tunnelchat Tools - Tool registry and dispatch for model-requested calls

Provides:
- ToolDescriptor: Metadata for one tool (local handler or remote service)
- ToolRegistry: Per-turn name -> descriptor lookup, first match wins
- ToolDispatcher: Sequential batch execution with per-call error capture
- @local_tool decorator: Build in-process tools from typed async functions

Usage:
    from tunnelchat.tools import ToolRegistry, ToolDispatcher, local_tool

    @local_tool(service="editor")
    async def editor_current_file() -> dict:
        '''Return the file open in the editor'''
        return {"fileName": "Code.gs"}

    registry = ToolRegistry([editor_current_file])
    batch = await ToolDispatcher().execute_batch(requests, registry)
"""

from .models import (
    ErrorKind,
    ToolDescriptor,
    ToolCallRequest,
    ExecutedTool,
    ToolHandler,
    serialize_batch,
    parse_batch,
)
from .registry import ToolRegistry
from .dispatcher import ToolDispatcher, BatchResult
from .decorator import local_tool, build_parameter_schema
from .validation import validate_arguments

__all__ = [
    # Models
    "ErrorKind",
    "ToolDescriptor",
    "ToolCallRequest",
    "ExecutedTool",
    "ToolHandler",
    "serialize_batch",
    "parse_batch",
    # Registry
    "ToolRegistry",
    # Dispatcher
    "ToolDispatcher",
    "BatchResult",
    # Decorator
    "local_tool",
    "build_parameter_schema",
    "validate_arguments",
]
