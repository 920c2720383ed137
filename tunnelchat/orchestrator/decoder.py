"""
Response Decoder - turn one raw model reply into an Action.

Model replies are supposed to be a JSON object ``{"content", "toolCalls"}``
but routinely arrive wrapped in prose, with trailing commas, cut off
mid-string or followed by stray braces. Recovery runs as a cascade; each
step is tried only if the previous one produced nothing:

1. First ``{`` to last ``}``, parsed as-is
2. Same text with trailing commas removed
3. ``content`` string and ``toolCalls`` array pulled out by regex and
   reassembled into a minimal object
4. Longest brace-balanced prefix
5. Lenient ``content`` regex on the raw text, else the raw text itself

``decode`` never raises.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..tools.models import ToolCallRequest
from .models import Action

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CONTENT_FIELD = re.compile(r'"content"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_CONTENT_FIELD_OPEN = re.compile(r'"content"\s*:\s*"((?:[^"\\]|\\.)*)', re.DOTALL)
_TOOL_CALLS_START = re.compile(r'"toolCalls"\s*:\s*\[')


# =============================================================================
# Reply schema
# =============================================================================

class ReplyToolCall(BaseModel):
    """One entry of ``toolCalls``; ``arguments`` is accepted for ``args``."""

    model_config = ConfigDict(extra="ignore")

    name: str
    args: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def accept_arguments_alias(cls, data):
        if isinstance(data, dict) and "args" not in data and "arguments" in data:
            data = {**data, "args": data["arguments"]}
        return data

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("tool call without a name")
        return v

    @field_validator("args", mode="before")
    @classmethod
    def coerce_args(cls, v):
        # Some models send arguments as a JSON-encoded string
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                return {}
        return v if isinstance(v, dict) else {}


class ModelReply(BaseModel):
    """The object the model is asked to answer with."""

    model_config = ConfigDict(extra="ignore")

    content: str = ""
    toolCalls: List[Any] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, v):
        if v is None:
            return ""
        if isinstance(v, str):
            return v
        return json.dumps(v, ensure_ascii=False)

    @field_validator("toolCalls", mode="before")
    @classmethod
    def coerce_tool_calls(cls, v):
        return v if isinstance(v, list) else []

    def to_action(self) -> Action:
        calls: List[ToolCallRequest] = []
        for item in self.toolCalls:
            try:
                call = ReplyToolCall.model_validate(item)
            except ValidationError:
                logger.debug(f"[Decoder] Dropping malformed tool call: {str(item)[:200]}")
                continue
            calls.append(ToolCallRequest(name=call.name, args=call.args))
        return Action(content=self.content, tool_calls=calls)


# =============================================================================
# Scanning helpers
# =============================================================================

def _outer_object(text: str) -> Optional[str]:
    """First ``{`` to last ``}``; to the end of the text if never closed."""
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end < start:
        return text[start:]
    return text[start:end + 1]


def _balanced_end(text: str, start: int, open_ch: str, close_ch: str) -> Optional[int]:
    """Index of the bracket closing ``text[start]``, ignoring brackets inside strings."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return None


def _last_balanced_prefix(text: str) -> Optional[str]:
    """Longest prefix of *text* whose braces return to depth zero."""
    depth = 0
    in_string = False
    escaped = False
    last_zero = -1
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                last_zero = i
            elif depth < 0:
                break
    if last_zero == -1:
        return None
    return text[:last_zero + 1]


def _unescape(fragment: str) -> str:
    try:
        return json.loads(f'"{fragment}"', strict=False)
    except json.JSONDecodeError:
        # A reply cut off right after a backslash
        try:
            return json.loads(f'"{fragment.rstrip(chr(92))}"', strict=False)
        except json.JSONDecodeError:
            return fragment


# =============================================================================
# Decoder
# =============================================================================

class ResponseDecoder:
    """
    Pure, stateless decoder for raw model replies.

    Example:
        decoder = ResponseDecoder()
        action = decoder.decode('{"content": "Hi", "toolCalls": []}')
    """

    def decode(self, raw: Any) -> Action:
        """
        Decode a raw reply into an Action

        Args:
            raw: Reply text; non-string input is stringified

        Returns:
            Action whose ``content`` is a str and ``tool_calls`` a list
        """
        if raw is None:
            return Action()
        text = raw if isinstance(raw, str) else str(raw)
        try:
            return self._decode(text)
        except Exception as e:
            logger.warning(f"[Decoder] Unexpected failure, using raw text: {e}")
            return Action(content=text)

    def _decode(self, text: str) -> Action:
        candidate = _outer_object(text)
        if candidate is not None:
            steps = (
                ("direct", lambda: self._parse(candidate)),
                ("trailing_commas", lambda: self._parse(_TRAILING_COMMA.sub(r"\1", candidate))),
                ("field_extraction", lambda: self._reassemble(candidate)),
                ("balanced_prefix", lambda: self._parse_balanced_prefix(candidate)),
            )
            for step, attempt in steps:
                action = attempt()
                if action is not None:
                    if step != "direct":
                        logger.debug(f"[Decoder] Recovered reply via {step}")
                    return action

        match = _CONTENT_FIELD_OPEN.search(text)
        if match:
            logger.debug("[Decoder] Falling back to lenient content extraction")
            return Action(content=_unescape(match.group(1)))

        return Action(content=text)

    @staticmethod
    def _parse(candidate: str) -> Optional[Action]:
        try:
            data = json.loads(candidate, strict=False)
        except (json.JSONDecodeError, RecursionError):
            return None
        return ResponseDecoder._from_object(data)

    @staticmethod
    def _from_object(data: Any) -> Optional[Action]:
        if not isinstance(data, dict) or ("content" not in data and "toolCalls" not in data):
            return None
        try:
            return ModelReply.model_validate(data).to_action()
        except ValidationError:
            return None

    def _reassemble(self, candidate: str) -> Optional[Action]:
        content_match = _CONTENT_FIELD.search(candidate)
        tool_calls = self._extract_tool_calls(candidate)
        if content_match is None and tool_calls is None:
            return None

        content = content_match.group(1) if content_match else ""
        rebuilt = f'{{"content": "{content}", "toolCalls": {tool_calls or "[]"}}}'
        return self._parse(rebuilt) or self._parse(_TRAILING_COMMA.sub(r"\1", rebuilt))

    @staticmethod
    def _extract_tool_calls(candidate: str) -> Optional[str]:
        match = _TOOL_CALLS_START.search(candidate)
        if match is None:
            return None
        start = match.end() - 1
        end = _balanced_end(candidate, start, "[", "]")
        if end is None:
            return None
        return candidate[start:end + 1]

    def _parse_balanced_prefix(self, candidate: str) -> Optional[Action]:
        prefix = _last_balanced_prefix(candidate)
        if prefix is None:
            return None
        return self._parse(prefix) or self._parse(_TRAILING_COMMA.sub(r"\1", prefix))


_default_decoder = ResponseDecoder()


def decode(raw: Any) -> Action:
    """Decode with a shared ResponseDecoder"""
    return _default_decoder.decode(raw)
