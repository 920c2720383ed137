"""
tunnelchat Orchestrator - The call/decode/dispatch loop for one conversation

One Orchestrator owns one ConversationContext. Each process() call runs a
bounded loop:

    AWAITING_MODEL -> DECODING -> DISPATCHING -> (CONTINUE | DONE)

DONE is reached when the model answers without tool calls, when a terminal
tool succeeds, or when max_iterations model calls have been made.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from ..errors import RunCancelled, TransportError
from ..protocols import ModelClientProtocol
from ..tools.dispatcher import ToolDispatcher
from ..tools.models import serialize_batch
from ..tools.registry import ToolRegistry
from .audit_logger import AuditLogger
from .context import ConversationContext
from .decoder import ResponseDecoder
from .loop_config import LoopConfig
from .models import OrchestrationRun, StopReason, TurnResult
from .prompts import build_system_prompt

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Drives the model/tool loop for a single conversation.

    Nothing here is shared between conversations: create one Orchestrator
    (with its own context) per conversation.

    Usage:
        orchestrator = Orchestrator(model_client=HttpModelClient(ModelConfig(endpoint=url)))
        result = await orchestrator.process("list my files", registry)
        print(result.content)

    Cancellation:
        orchestrator.cancel() from another task stops the in-flight run at
        its next suspension point with RunCancelled.
    """

    def __init__(
        self,
        model_client: ModelClientProtocol,
        dispatcher: Optional[ToolDispatcher] = None,
        context: Optional[ConversationContext] = None,
        config: Optional[LoopConfig] = None,
        decoder: Optional[ResponseDecoder] = None,
        audit: Optional[AuditLogger] = None,
    ):
        """
        Initialize Orchestrator

        Args:
            model_client: Model collaborator returning raw reply text
            dispatcher: Tool dispatcher; built from config when omitted
            context: Conversation transcript; a fresh one when omitted
            config: Loop configuration
            decoder: Reply decoder
            audit: Optional structured audit logger
        """
        self.config = config or LoopConfig()
        self.model_client = model_client
        self.dispatcher = dispatcher or ToolDispatcher(
            terminal_tools=self.config.terminal_tools,
            timeout=self.config.tool_call_timeout,
            audit=audit,
        )
        self.context = context or ConversationContext(
            max_tool_result_chars=self.config.max_tool_result_chars,
        )
        self.decoder = decoder or ResponseDecoder()
        self._audit = audit
        self._cancel_event = asyncio.Event()

    # ==========================================================================
    # Public API
    # ==========================================================================

    def cancel(self) -> None:
        """Request the in-flight run to stop at its next suspension point."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def process(
        self,
        message: str,
        registry: Optional[ToolRegistry] = None,
        system_prompt: Optional[str] = None,
        instruction: Optional[str] = None,
        extras: Optional[Dict[str, Any]] = None,
    ) -> TurnResult:
        """
        Process one user message.

        Args:
            message: User message text
            registry: The turn's tools; an empty registry when omitted
            system_prompt: Prompt placed at the head of the transcript;
                rendered from registry/instruction/extras when omitted
            instruction: Caller instruction sent as systemInstruction
            extras: Editor context forwarded to the model

        Returns:
            TurnResult; ``incomplete`` is set when the iteration cap was hit

        Raises:
            TransportError: The model collaborator failed; the run is aborted
            RunCancelled: cancel() was called during the run
        """
        registry = registry if registry is not None else ToolRegistry()
        self._cancel_event = asyncio.Event()
        start = time.monotonic()

        if system_prompt is None:
            system_prompt = build_system_prompt(registry, instruction, extras)
        self.context.set_system_prompt(system_prompt)
        self.context.append_user(message)

        request_context = self._build_request_context(registry, instruction, extras)
        run = OrchestrationRun(max_iterations=self.config.max_iterations)

        logger.info(f"[Loop] start tools={len(registry)} max_iterations={run.max_iterations}")

        while not run.exhausted:
            run.iteration += 1
            self._checkpoint()

            raw = await self._call_model(run.iteration, request_context)
            action = self.decoder.decode(raw)
            run.last_content = action.content

            # Final answer
            if action.is_final:
                self.context.append_assistant(action.content)
                self._log_iteration(run, [], final_answer=True)
                return self._finish(run, action.content, StopReason.FINAL_ANSWER, start)

            requested = [c.name for c in action.tool_calls]
            logger.info(f"[Loop] iteration={run.iteration} tool_calls={requested}")

            batch = await self.dispatcher.execute_batch(
                action.tool_calls, registry, checkpoint=self._checkpoint,
            )
            run.executed.extend(batch.executed)
            self.context.append_assistant(action.content, batch.executed)
            self.context.append_tool(serialize_batch(batch.executed))
            self._log_iteration(run, requested, final_answer=False, terminal=batch.terminal)
            self._checkpoint()

            if batch.terminal:
                run.terminal = True
                content = action.content or (
                    f"Successfully executed: {', '.join(batch.succeeded_names())}"
                )
                logger.info(f"[Loop] terminal tool executed, stopping at iteration {run.iteration}")
                return self._finish(run, content, StopReason.TERMINAL_TOOL, start)

        logger.warning(
            f"[Loop] max_iterations ({run.max_iterations}) reached, returning last content"
        )
        return self._finish(run, run.last_content, StopReason.MAX_ITERATIONS, start)

    # ==========================================================================
    # Internal
    # ==========================================================================

    def _checkpoint(self) -> None:
        if self._cancel_event.is_set():
            raise RunCancelled("Run cancelled")

    @staticmethod
    def _build_request_context(
        registry: ToolRegistry,
        instruction: Optional[str],
        extras: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        context: Dict[str, Any] = dict(extras or {})
        context["availableTools"] = registry.describe()
        if instruction:
            context["systemInstruction"] = instruction
        return context

    async def _call_model(self, iteration: int, request_context: Dict[str, Any]) -> str:
        """Call the model collaborator; every failure becomes TransportError."""
        messages = self.context.snapshot()
        timeout = self.config.model_call_timeout
        start = time.monotonic()
        error: Optional[str] = None

        try:
            call = self.model_client.complete(messages, request_context, self.config.model)
            if timeout:
                call = asyncio.wait_for(call, timeout=timeout)
            return await self._until_cancelled(call)
        except RunCancelled:
            error = "cancelled"
            raise
        except TransportError as e:
            error = str(e)
            raise
        except asyncio.TimeoutError:
            error = f"Model call timed out after {timeout}s"
            raise TransportError(error)
        except Exception as e:
            error = f"Model call failed: {e}"
            raise TransportError(error) from e
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            if error:
                logger.error(f"[Loop] iteration={iteration} {error}")
            if self._audit:
                self._audit.log_model_call(
                    iteration=iteration,
                    model=self.config.model,
                    message_count=len(messages),
                    duration_ms=duration_ms,
                    success=error is None,
                    error=error,
                )

    async def _until_cancelled(self, awaitable) -> Any:
        """Await *awaitable*, abandoning it as soon as cancel() is called."""
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if not task.done() or task.cancelled():
            raise RunCancelled("Run cancelled")
        return task.result()

    def _log_iteration(
        self,
        run: OrchestrationRun,
        tool_calls: list,
        final_answer: bool,
        terminal: bool = False,
    ) -> None:
        if self._audit:
            self._audit.log_loop_iteration(
                iteration=run.iteration,
                tool_calls=tool_calls,
                final_answer=final_answer,
                terminal=terminal,
            )

    def _finish(
        self,
        run: OrchestrationRun,
        content: str,
        stop_reason: StopReason,
        start: float,
    ) -> TurnResult:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            f"[Loop] done reason={stop_reason.value} iterations={run.iteration} "
            f"tool_calls={len(run.executed)} ({duration_ms}ms)"
        )
        if self._audit:
            self._audit.log_run_end(
                stop_reason=stop_reason.value,
                iterations=run.iteration,
                tool_calls_count=len(run.executed),
                duration_ms=duration_ms,
            )
        return TurnResult(
            content=content,
            tool_calls=list(run.executed),
            iterations=run.iteration,
            stop_reason=stop_reason,
            incomplete=stop_reason is StopReason.MAX_ITERATIONS,
            duration_ms=duration_ms,
        )
