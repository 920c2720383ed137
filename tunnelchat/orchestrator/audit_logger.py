"""
Structured audit logging for orchestration runs.

Produces JSON log entries via Python's standard logging module under
the ``tunnelchat.audit`` logger name.  Each entry includes a timestamp,
event_type, optional conversation_id, and event-specific fields.

Usage::

    audit = AuditLogger(conversation_id="c-42")
    audit.log_model_call(iteration=1, model="gemini-2.0-flash",
                         message_count=3, duration_ms=812, success=True)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_audit_logger = logging.getLogger("tunnelchat.audit")


class AuditLogger:
    """Structured audit logger for key orchestration events."""

    def __init__(self, conversation_id: Optional[str] = None) -> None:
        self._conversation_id = conversation_id

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _emit(self, event_type: str, fields: Dict[str, Any]) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        if self._conversation_id:
            entry["conversation_id"] = self._conversation_id
        entry.update(fields)
        _audit_logger.info(json.dumps(entry, default=str))

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def log_model_call(
        self,
        iteration: int,
        model: Optional[str],
        message_count: int,
        duration_ms: int,
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        """Log one call to the model collaborator."""
        fields: Dict[str, Any] = {
            "iteration": iteration,
            "model": model or "",
            "message_count": message_count,
            "duration_ms": duration_ms,
            "success": success,
        }
        if error is not None:
            fields["error"] = error
        self._emit("model_call", fields)

    def log_tool_execution(
        self,
        tool_name: str,
        args_summary: Dict[str, Any],
        success: bool,
        duration_ms: int,
        error: Optional[str] = None,
    ) -> None:
        """Log a tool execution result."""
        fields: Dict[str, Any] = {
            "tool_name": tool_name,
            "args_summary": args_summary,
            "success": success,
            "duration_ms": duration_ms,
        }
        if error is not None:
            fields["error"] = error
        self._emit("tool_execution", fields)

    def log_loop_iteration(
        self,
        iteration: int,
        tool_calls: List[str],
        final_answer: bool,
        terminal: bool = False,
    ) -> None:
        """Log a loop iteration summary."""
        self._emit("loop_iteration", {
            "iteration": iteration,
            "tool_calls": tool_calls,
            "tool_calls_count": len(tool_calls),
            "final_answer": final_answer,
            "terminal": terminal,
        })

    def log_run_end(
        self,
        stop_reason: str,
        iterations: int,
        tool_calls_count: int,
        duration_ms: int,
    ) -> None:
        """Log how a run ended."""
        self._emit("run_end", {
            "stop_reason": stop_reason,
            "iterations": iterations,
            "tool_calls_count": tool_calls_count,
            "duration_ms": duration_ms,
        })
