"""
tunnelchat Tunnel - Services behind the tunneling proxy

Provides:
- TunnelClient: Discovery, tool calls and health checks over HTTP
- ServiceToolProvider: One service's tools as ToolDescriptors
- RegistryBuilder: Per-turn registry from local tools and services
"""

from .client import TunnelClient, ServiceInfo, ServerHealth
from .provider import ServiceToolProvider, RegistryBuilder

__all__ = [
    "TunnelClient",
    "ServiceInfo",
    "ServerHealth",
    "ServiceToolProvider",
    "RegistryBuilder",
]
