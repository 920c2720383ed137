"""
tunnelchat errors.

Only ``TransportError`` and ``RunCancelled`` cross the orchestration loop
boundary. ``TunnelError`` and ``ArgumentError`` are raised below the loop and
captured per tool call by the dispatcher.
"""


class TunnelChatError(Exception):
    """Base class for all tunnelchat errors."""


class ConfigError(TunnelChatError):
    """Configuration file is missing, unreadable or invalid."""


class TransportError(TunnelChatError):
    """The model collaborator could not be reached or returned a non-2xx status."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class TunnelError(TunnelChatError):
    """A tool backend call through the tunneling proxy failed."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ArgumentError(TunnelChatError):
    """Tool arguments do not match the tool's parameter schema."""

    def __init__(self, tool_name: str, message: str, path: str = None):
        super().__init__(f"invalid arguments for {tool_name}: {message}")
        self.tool_name = tool_name
        self.path = path


class RunCancelled(TunnelChatError):
    """The orchestration run was cancelled from outside."""
