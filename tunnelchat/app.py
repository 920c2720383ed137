"""
tunnelchat - Application entry point

Usage:
    from tunnelchat import TunnelChat

    app = TunnelChat("config.yaml")
    session = app.create_session()
    result = await session.send("Convert report.xlsx to PDF")
    print(result.content)
    await app.aclose()
"""

import inspect
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .config import AppConfig, ServiceConfig, load_config
from .errors import ConfigError, TransportError
from .llm.base import ModelCatalog
from .llm.http_client import HttpModelClient
from .orchestrator.audit_logger import AuditLogger
from .orchestrator.context import ConversationContext
from .orchestrator.models import StopReason, TurnResult
from .orchestrator.orchestrator import Orchestrator
from .protocols import ModelClientProtocol
from .tools.dispatcher import PostHook, ToolDispatcher
from .tools.models import ToolDescriptor
from .tunnel.client import ServerHealth, TunnelClient
from .tunnel.provider import RegistryBuilder, ServiceToolProvider

logger = logging.getLogger(__name__)

ExtrasProvider = Callable[[], Union[Optional[Dict[str, Any]], Awaitable[Optional[Dict[str, Any]]]]]


class ChatSession:
    """
    One conversation: its own context, orchestrator and registry builder.

    Sessions never share state; run as many concurrently as needed.
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        registry_builder: RegistryBuilder,
        instruction: Optional[str] = None,
        extras_provider: Optional[ExtrasProvider] = None,
        raise_errors: bool = False,
    ):
        self.orchestrator = orchestrator
        self.registry_builder = registry_builder
        self.instruction = instruction
        self.extras_provider = extras_provider
        self.raise_errors = raise_errors

    @property
    def context(self) -> ConversationContext:
        return self.orchestrator.context

    def history(self) -> List[Dict[str, Any]]:
        return self.context.snapshot()

    def add_post_hook(self, hook: PostHook) -> None:
        self.orchestrator.dispatcher.add_post_hook(hook)

    async def _extras(self) -> Optional[Dict[str, Any]]:
        if self.extras_provider is None:
            return None
        extras = self.extras_provider()
        if inspect.isawaitable(extras):
            extras = await extras
        return extras

    async def send(self, text: str) -> TurnResult:
        """
        Process one user message.

        The registry and editor extras are rebuilt once per call, so tools
        and open-file state are fresh every turn.

        Raises:
            TransportError: Only when ``raise_errors`` is set
            RunCancelled: cancel() was called during the turn
        """
        registry = await self.registry_builder.build()
        extras = await self._extras()

        try:
            return await self.orchestrator.process(
                text,
                registry,
                instruction=self.instruction,
                extras=extras,
            )
        except TransportError as e:
            if self.raise_errors:
                raise
            logger.error(f"[Session] Turn failed: {e}")
            return TurnResult(
                content=f"Error: {e}",
                stop_reason=StopReason.TRANSPORT_ERROR,
            )

    def cancel(self) -> None:
        self.orchestrator.cancel()

    def clear(self) -> None:
        """Forget the conversation."""
        self.context.reset()


class TunnelChat:
    """
    tunnelchat application entry point.

    Sync constructor reads config; HTTP clients are created on first use.

    Args:
        config: YAML path, parsed dict or AppConfig
        model_client: Override the configured model collaborator
        tunnel_client: Override the configured tunnel client

    Example:
        app = TunnelChat("config.yaml")
        session = app.create_session(services=["filesystem"])
        result = await session.send("What files are on my desktop?")
    """

    def __init__(
        self,
        config: Union[str, Path, Dict[str, Any], AppConfig],
        model_client: Optional[ModelClientProtocol] = None,
        tunnel_client: Optional[TunnelClient] = None,
    ):
        self.config = config if isinstance(config, AppConfig) else load_config(config)
        self._model_client = model_client
        self._tunnel_client = tunnel_client
        self._owned_clients: List[Any] = []

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    @property
    def model_client(self) -> ModelClientProtocol:
        if self._model_client is None:
            client = HttpModelClient(self.config.model)
            self._owned_clients.append(client)
            self._model_client = client
        return self._model_client

    @property
    def tunnel_client(self) -> Optional[TunnelClient]:
        if self._tunnel_client is None and self.config.tunnel is not None:
            tunnel = self.config.tunnel
            client = TunnelClient(
                server_key=tunnel.server_key,
                base_url=tunnel.url,
                token=tunnel.token,
                timeout=tunnel.timeout,
            )
            self._owned_clients.append(client)
            self._tunnel_client = client
        return self._tunnel_client

    async def ping(self) -> ServerHealth:
        if self.tunnel_client is None:
            return ServerHealth(online=False, error="No tunnel configured")
        return await self.tunnel_client.ping()

    async def list_models(self) -> ModelCatalog:
        client = self.model_client
        if not isinstance(client, HttpModelClient):
            raise ConfigError("Model listing requires the HTTP model client")
        return await client.list_models()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def _providers(self, services: Sequence[Union[str, ServiceConfig]]) -> List[ServiceToolProvider]:
        if services and self.tunnel_client is None:
            raise ConfigError("Services requested but no 'tunnel' section is configured")

        providers = []
        for service in services:
            cfg = service if isinstance(service, ServiceConfig) else ServiceConfig.from_value(service)
            providers.append(ServiceToolProvider(
                self.tunnel_client, cfg.name, include=cfg.include, exclude=cfg.exclude,
            ))
        return providers

    def create_session(
        self,
        services: Optional[Sequence[Union[str, ServiceConfig]]] = None,
        local_tools: Optional[Sequence[ToolDescriptor]] = None,
        instruction: Optional[str] = None,
        extras_provider: Optional[ExtrasProvider] = None,
        raise_errors: bool = False,
        conversation_id: Optional[str] = None,
    ) -> ChatSession:
        """
        Create an independent conversation.

        Args:
            services: Services to offer; defaults to the configured list
            local_tools: In-process tools, registered ahead of services
            instruction: Extra instruction; defaults to the configured one
            extras_provider: Returns editor context for each turn (sync or async)
            raise_errors: Propagate TransportError instead of an error turn
            conversation_id: Tag for audit log entries
        """
        loop = self.config.loop
        audit = AuditLogger(conversation_id=conversation_id)

        dispatcher = ToolDispatcher(
            backend=self.tunnel_client,
            terminal_tools=loop.terminal_tools,
            timeout=loop.tool_call_timeout,
            audit=audit,
        )
        orchestrator = Orchestrator(
            model_client=self.model_client,
            dispatcher=dispatcher,
            context=ConversationContext(max_tool_result_chars=loop.max_tool_result_chars),
            config=loop,
            audit=audit,
        )
        builder = RegistryBuilder(
            providers=self._providers(self.config.services if services is None else services),
            local_tools=local_tools,
        )
        return ChatSession(
            orchestrator=orchestrator,
            registry_builder=builder,
            instruction=instruction if instruction is not None else self.config.instruction,
            extras_provider=extras_provider,
            raise_errors=raise_errors,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close HTTP clients this app created."""
        for client in self._owned_clients:
            try:
                await client.aclose()
            except Exception as e:
                logger.warning(f"Error during shutdown: {e}")
        self._owned_clients.clear()

    async def __aenter__(self) -> "TunnelChat":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
