"""Conversation context owned by one conversation.

The transcript is append-only apart from the leading system message, which
is replaced at the start of every turn so the model always sees the current
tool catalogue and editor state.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..tools.models import ExecutedTool
from .models import Message, Role

logger = logging.getLogger(__name__)


class ConversationContext:
    """Ordered transcript of system/user/assistant/tool messages.

    Index 0, if present, is always the single system message. Nothing else
    may hold a reference to the internal list; ``snapshot()`` hands out
    fresh dicts.

    Args:
        max_tool_result_chars: Truncate each ``tool`` message body to this
            many characters. None keeps results whole.
    """

    def __init__(self, max_tool_result_chars: Optional[int] = None) -> None:
        self._messages: List[Message] = []
        self.max_tool_result_chars = max_tool_result_chars

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop the whole transcript, system prompt included."""
        self._messages.clear()

    def set_system_prompt(self, text: str) -> None:
        """Replace the leading system message, or insert one."""
        message = Message(role=Role.SYSTEM, content=text)
        if self._messages and self._messages[0].role is Role.SYSTEM:
            self._messages[0] = message
        else:
            self._messages.insert(0, message)

    def append_user(self, text: str) -> None:
        self._messages.append(Message(role=Role.USER, content=text))

    def append_assistant(self, text: str, tool_calls: Optional[Sequence[ExecutedTool]] = None) -> None:
        self._messages.append(Message(
            role=Role.ASSISTANT,
            content=text,
            tool_calls=tuple(copy.deepcopy(list(tool_calls))) if tool_calls else None,
        ))

    def append_tool(self, serialized_results: str) -> None:
        """Append one serialized batch (see ``tools.models.serialize_batch``)."""
        self._messages.append(Message(role=Role.TOOL, content=self._truncate(serialized_results)))

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> List[Dict[str, Any]]:
        """Wire-ready copy of the transcript; never aliases internal state."""
        return copy.deepcopy([m.to_dict() for m in self._messages])

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def system_prompt(self) -> Optional[str]:
        if self._messages and self._messages[0].role is Role.SYSTEM:
            return self._messages[0].content
        return None

    def __len__(self) -> int:
        return len(self._messages)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _truncate(self, text: str) -> str:
        """Cut at a newline boundary when one falls in the second half of the limit."""
        limit = self.max_tool_result_chars
        if not limit or len(text) <= limit:
            return text

        cut = text[:limit]
        newline_pos = cut.rfind("\n")
        if newline_pos > limit // 2:
            cut = cut[: newline_pos + 1]

        logger.debug(f"[Context] Tool result truncated from {len(text)} to {len(cut)} chars")
        return cut + "\n[...truncated]"
