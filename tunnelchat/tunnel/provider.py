"""
Service Tool Provider - Bridge between tunnel services and a ToolRegistry

Discovered tools become remote ToolDescriptors tagged with their service;
the dispatcher routes them back to the TunnelClient by service name.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from ..protocols import ToolDiscoveryProtocol
from ..tools.models import ToolDescriptor
from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ServiceToolProvider:
    """
    Discovers the tools of one service

    Example:
        provider = ServiceToolProvider(tunnel_client, "filesystem")
        descriptors = await provider.list_descriptors()
    """

    def __init__(
        self,
        client: ToolDiscoveryProtocol,
        service: str,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ):
        """
        Initialize provider

        Args:
            client: Discovery client (usually a TunnelClient)
            service: Service name
            include: Only expose these tool names
            exclude: Never expose these tool names
        """
        self.client = client
        self.service = service
        self.include = set(include) if include is not None else None
        self.exclude = set(exclude or ())

    def _wanted(self, name: str) -> bool:
        if self.include is not None and name not in self.include:
            return False
        return name not in self.exclude

    async def list_descriptors(self) -> List[ToolDescriptor]:
        """
        Fetch the service's tools and convert them

        Raises:
            TunnelError: If discovery fails
        """
        raw_tools = await self.client.list_tools(self.service)

        descriptors = []
        for raw in raw_tools:
            if not isinstance(raw, dict) or not raw.get("name"):
                logger.warning(f"[Provider] Skipping malformed tool from '{self.service}': {str(raw)[:100]}")
                continue
            if self._wanted(raw["name"]):
                descriptors.append(ToolDescriptor.from_discovery(raw, self.service))

        logger.info(f"[Provider] {len(descriptors)} tools from service '{self.service}'")
        return descriptors


class RegistryBuilder:
    """
    Assembles the per-turn ToolRegistry

    Local tools are registered first, then each provider in order, so a
    local tool shadows a remote one with the same name. A service whose
    discovery fails is logged and skipped.

    Example:
        builder = RegistryBuilder(
            providers=[ServiceToolProvider(client, s) for s in ("filesystem", "gmail")],
            local_tools=[editor_current_file],
        )
        registry = await builder.build()
    """

    def __init__(
        self,
        providers: Optional[Sequence[ServiceToolProvider]] = None,
        local_tools: Optional[Sequence[ToolDescriptor]] = None,
    ):
        self.providers = list(providers or [])
        self.local_tools = list(local_tools or [])

    async def build(self) -> ToolRegistry:
        registry = ToolRegistry(self.local_tools)

        for provider in self.providers:
            try:
                descriptors = await provider.list_descriptors()
            except Exception as e:
                logger.warning(f"[Provider] Discovery failed for service '{provider.service}', skipping: {e}")
                continue
            added = registry.register_many(descriptors)
            if added < len(descriptors):
                logger.debug(
                    f"[Provider] {len(descriptors) - added} tools from '{provider.service}' "
                    f"shadowed by earlier registrations"
                )

        logger.info(f"[Provider] Registry built: {registry!r}")
        return registry
