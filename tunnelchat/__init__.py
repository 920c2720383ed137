"""
tunnelchat - Chat with tools behind a tunneling proxy

A bounded orchestration engine: the model's free-text reply is decoded
into tool calls, the calls run against services reached through the
tunnel, and results are fed back until the model answers.

Quick Start:
    from tunnelchat import TunnelChat

    async with TunnelChat("config.yaml") as app:
        session = app.create_session(services=["filesystem"])
        result = await session.send("List the files on my desktop")
        print(result.content)
"""

from .app import TunnelChat, ChatSession
from .config import AppConfig, TunnelConfig, ServiceConfig, load_config
from .errors import (
    TunnelChatError,
    ConfigError,
    TransportError,
    TunnelError,
    ArgumentError,
    RunCancelled,
)
from .protocols import ModelClientProtocol, ToolBackendProtocol, ToolDiscoveryProtocol
from .orchestrator import (
    Orchestrator,
    LoopConfig,
    ConversationContext,
    ResponseDecoder,
    decode,
    Action,
    Message,
    Role,
    StopReason,
    TurnResult,
    build_system_prompt,
)
from .tools import (
    ToolDescriptor,
    ToolCallRequest,
    ExecutedTool,
    ErrorKind,
    ToolRegistry,
    ToolDispatcher,
    local_tool,
)
from .llm import HttpModelClient, ModelConfig, ModelCatalog
from .tunnel import TunnelClient, ServiceToolProvider, RegistryBuilder

__version__ = "0.1.0"

__all__ = [
    # App
    "TunnelChat",
    "ChatSession",
    "AppConfig",
    "TunnelConfig",
    "ServiceConfig",
    "load_config",
    # Errors
    "TunnelChatError",
    "ConfigError",
    "TransportError",
    "TunnelError",
    "ArgumentError",
    "RunCancelled",
    # Protocols
    "ModelClientProtocol",
    "ToolBackendProtocol",
    "ToolDiscoveryProtocol",
    # Orchestrator
    "Orchestrator",
    "LoopConfig",
    "ConversationContext",
    "ResponseDecoder",
    "decode",
    "Action",
    "Message",
    "Role",
    "StopReason",
    "TurnResult",
    "build_system_prompt",
    # Tools
    "ToolDescriptor",
    "ToolCallRequest",
    "ExecutedTool",
    "ErrorKind",
    "ToolRegistry",
    "ToolDispatcher",
    "local_tool",
    # Clients
    "HttpModelClient",
    "ModelConfig",
    "ModelCatalog",
    "TunnelClient",
    "ServiceToolProvider",
    "RegistryBuilder",
]
