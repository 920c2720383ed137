"""
tunnelchat Protocols - Abstract interfaces for the engine's external collaborators

The orchestration engine never talks HTTP itself. It depends on these
protocols so the model provider and the tool backends can be swapped
(or faked in tests) without touching the loop.
"""

from typing import Protocol, List, Dict, Any, Optional, runtime_checkable


@runtime_checkable
class ModelClientProtocol(Protocol):
    """
    Abstract interface for the model collaborator

    Implement this protocol to plug any model endpoint into the loop. The
    client returns the raw reply text; structuring it is the decoder's job.

    Example:
        class MyModelClient:
            async def complete(
                self,
                messages: List[Dict[str, Any]],
                context: Dict[str, Any],
                model: Optional[str] = None
            ) -> str:
                response = await http.post("/api/chat", json={
                    "message": messages,
                    "context": context,
                    "model": model,
                })
                return response.text
    """

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        context: Dict[str, Any],
        model: Optional[str] = None
    ) -> str:
        """
        Send the transcript to the model and return its raw reply

        Args:
            messages: Transcript snapshot, each a dict with 'role' and 'content'
            context: Request context (availableTools, systemInstruction, extras)
            model: Optional model id override

        Returns:
            Raw reply text, expected to approximate {"content", "toolCalls"}

        Raises:
            TransportError: If the model endpoint cannot be reached
        """
        ...


@runtime_checkable
class ToolBackendProtocol(Protocol):
    """
    Abstract interface for remote tool execution

    One backend serves many services; the service name selects the
    endpoint a call is routed to.
    """

    async def call_tool(
        self,
        service: str,
        tool: str,
        arguments: Dict[str, Any]
    ) -> Any:
        """
        Invoke a tool on a remote service

        Args:
            service: Owning service name (e.g. "filesystem", "gmail")
            tool: Tool name
            arguments: Tool arguments

        Returns:
            Tool result (already unwrapped from the transport envelope)

        Raises:
            TunnelError: If the call fails
        """
        ...


@runtime_checkable
class ToolDiscoveryProtocol(Protocol):
    """Abstract interface for listing the tools a service exposes"""

    async def list_tools(self, service: str) -> List[Dict[str, Any]]:
        """Return raw tool descriptors ({name, description, inputSchema})"""
        ...
