"""
tunnelchat Tool Dispatcher - Execute model-requested tool calls

Note:
    Every failure below this layer is captured into the ExecutedTool record.
    Nothing raised by a tool escapes a batch; only cancellation does.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Optional, TYPE_CHECKING

from ..constants import DEFAULT_TERMINAL_TOOLS, DEFAULT_TOOL_CALL_TIMEOUT
from ..errors import ArgumentError
from ..protocols import ToolBackendProtocol
from .models import ErrorKind, ExecutedTool, ToolCallRequest, ToolDescriptor
from .registry import ToolRegistry
from .validation import merge_defaults, validate_arguments

if TYPE_CHECKING:
    from ..orchestrator.audit_logger import AuditLogger

logger = logging.getLogger(__name__)

PostHook = Callable[[ExecutedTool], Awaitable[None]]


@dataclass
class BatchResult:
    """All calls of one model reply, in the order the model requested them."""
    executed: List[ExecutedTool] = field(default_factory=list)
    terminal: bool = False

    def succeeded_names(self) -> List[str]:
        return [t.name for t in self.executed if t.succeeded]


def _reports_failure(result: Any) -> bool:
    """A backend can answer 2xx and still describe a failure in its body."""
    if not isinstance(result, dict):
        return False
    if result.get("error"):
        return True
    content = result.get("content")
    return isinstance(content, dict) and content.get("success") is False


class ToolDispatcher:
    """
    Resolves tool calls against a registry and runs them

    Local descriptors run their in-process handler. Remote descriptors are
    sent to the backend under the descriptor's service name.

    Usage:
        dispatcher = ToolDispatcher(backend=tunnel_client)
        dispatcher.add_post_hook(refresh_open_file)

        batch = await dispatcher.execute_batch(action.tool_calls, registry)
        if batch.terminal:
            ...
    """

    def __init__(
        self,
        backend: Optional[ToolBackendProtocol] = None,
        terminal_tools: Iterable[str] = DEFAULT_TERMINAL_TOOLS,
        timeout: Optional[float] = DEFAULT_TOOL_CALL_TIMEOUT,
        audit: Optional["AuditLogger"] = None,
    ):
        """
        Initialize ToolDispatcher

        Args:
            backend: Remote tool backend; required only for non-local tools
            terminal_tools: Tool names whose success ends the run
            timeout: Per-call timeout in seconds, None to disable
            audit: Optional structured audit logger
        """
        self.backend = backend
        self.terminal_tools: FrozenSet[str] = frozenset(terminal_tools)
        self.timeout = timeout
        self._audit = audit
        self._post_hooks: List[PostHook] = []

    def add_post_hook(self, hook: PostHook) -> None:
        """
        Register an async hook run after every call, success or failure

        Hooks see the final ExecutedTool and may mutate state later
        iterations observe (e.g. refresh the open file after a write).
        """
        self._post_hooks.append(hook)

    def is_terminal(self, executed: ExecutedTool) -> bool:
        return (
            executed.name in self.terminal_tools
            and executed.succeeded
            and not _reports_failure(executed.result)
        )

    async def execute(self, request: ToolCallRequest, registry: ToolRegistry) -> ExecutedTool:
        """
        Execute a single tool call

        Args:
            request: The call requested by the model
            registry: The turn's tool registry

        Returns:
            ExecutedTool with either result or error set
        """
        start = time.monotonic()
        args = request.args if isinstance(request.args, dict) else {}
        descriptor = registry.get(request.name)

        if descriptor is None:
            executed = ExecutedTool.failure(
                request.name, args, f"unknown tool: {request.name}", ErrorKind.UNKNOWN_TOOL,
            )
        else:
            args = merge_defaults(descriptor.defaults, args)
            executed = await self._run(descriptor, request.name, args, start)

        await self._run_post_hooks(executed)

        if executed.succeeded:
            logger.info(f"[Dispatch] tool={executed.name} ok ({executed.duration_ms}ms)")
        else:
            logger.warning(f"[Dispatch] tool={executed.name} {executed.error_kind.value}: {executed.error}")
        if self._audit:
            self._audit.log_tool_execution(
                tool_name=executed.name,
                args_summary={k: str(v)[:100] for k, v in executed.args.items()},
                success=executed.succeeded,
                duration_ms=executed.duration_ms,
                error=executed.error,
            )
        return executed

    async def execute_batch(
        self,
        requests: List[ToolCallRequest],
        registry: ToolRegistry,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> BatchResult:
        """
        Execute calls strictly one after another, in the model's order

        A failed call never stops the calls after it. Later calls may
        depend on side effects of earlier ones, so nothing runs concurrently.

        Args:
            requests: Tool calls from one model reply
            registry: The turn's tool registry
            checkpoint: Called before each call; raises to abort (cancellation)
        """
        batch = BatchResult()
        for request in requests:
            if checkpoint:
                checkpoint()
            executed = await self.execute(request, registry)
            batch.executed.append(executed)
            if self.is_terminal(executed):
                batch.terminal = True
        return batch

    async def _run(
        self,
        descriptor: ToolDescriptor,
        name: str,
        args: Dict[str, Any],
        start: float,
    ) -> ExecutedTool:
        try:
            validate_arguments(name, descriptor.parameter_schema, args)
        except ArgumentError as e:
            return ExecutedTool.failure(name, args, str(e), ErrorKind.ARGUMENT_ERROR, self._elapsed(start))

        try:
            if self.timeout:
                result = await asyncio.wait_for(self._invoke(descriptor, args), timeout=self.timeout)
            else:
                result = await self._invoke(descriptor, args)
        except asyncio.TimeoutError:
            return ExecutedTool.failure(
                name, args,
                f"Tool '{name}' timed out after {self.timeout}s",
                ErrorKind.TIMEOUT,
                self._elapsed(start),
            )
        except Exception as e:
            logger.debug(f"Tool '{name}' raised", exc_info=True)
            return ExecutedTool.failure(name, args, str(e) or type(e).__name__, ErrorKind.EXECUTION_ERROR, self._elapsed(start))

        return ExecutedTool.success(name, args, result, self._elapsed(start))

    async def _invoke(self, descriptor: ToolDescriptor, args: Dict[str, Any]) -> Any:
        if descriptor.is_local:
            return await descriptor.handler(args)
        if self.backend is None:
            raise RuntimeError(f"No backend configured for service '{descriptor.service_name}'")
        return await self.backend.call_tool(descriptor.service_name, descriptor.name, args)

    async def _run_post_hooks(self, executed: ExecutedTool) -> None:
        for hook in self._post_hooks:
            try:
                await hook(executed)
            except Exception as e:
                logger.error(f"Post-execution hook failed for '{executed.name}': {e}", exc_info=True)

    @staticmethod
    def _elapsed(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
