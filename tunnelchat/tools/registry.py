"""
tunnelchat Tool Registry - Per-turn snapshot of callable tools

A registry is assembled once per user turn from every configured backend
and handed to the dispatcher and the prompt renderer. It is never shared
between conversations.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .models import ToolDescriptor

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Name -> ToolDescriptor mapping with first-match-wins semantics

    Several services may expose a tool with the same name. The first one
    registered is kept; later duplicates are ignored, not an error. An
    empty registry is valid.

    Example:
        registry = ToolRegistry()
        registry.register(ToolDescriptor(name="fs_read_file", service_name="filesystem"))
        registry.register_many(gmail_descriptors)

        descriptor = registry.get("fs_read_file")
        catalogue = registry.describe()
    """

    def __init__(self, descriptors: Optional[Iterable[ToolDescriptor]] = None):
        self._tools: Dict[str, ToolDescriptor] = {}
        if descriptors:
            self.register_many(descriptors)

    def register(self, descriptor: ToolDescriptor) -> bool:
        """
        Register a tool

        Returns:
            True if registered, False if a tool with this name already exists
        """
        existing = self._tools.get(descriptor.name)
        if existing is not None:
            logger.debug(
                f"Tool '{descriptor.name}' from '{descriptor.service_name}' shadowed by "
                f"'{existing.service_name}'"
            )
            return False

        self._tools[descriptor.name] = descriptor
        return True

    def register_many(self, descriptors: Iterable[ToolDescriptor]) -> int:
        """Register tools in order. Returns how many were added."""
        return sum(1 for d in descriptors if self.register(d))

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def services(self) -> List[str]:
        """Distinct owning services, in registration order"""
        seen: Dict[str, None] = {}
        for descriptor in self._tools.values():
            seen.setdefault(descriptor.service_name, None)
        return list(seen.keys())

    def describe(self) -> List[Dict]:
        """Catalogue sent to the model as ``availableTools``"""
        return [d.to_dict() for d in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={len(self._tools)}, services={self.services()})"
