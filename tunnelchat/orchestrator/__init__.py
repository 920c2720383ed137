"""
tunnelchat Orchestrator - Bounded model/tool loop for one conversation

Provides:
- Orchestrator: call model -> decode -> dispatch -> continue
- ResponseDecoder: Never-failing recovery of structured replies
- ConversationContext: Transcript with replace-at-head system prompt
- LoopConfig: Iteration cap, timeouts and terminal-tool policy
- build_system_prompt: Prompt sections from the turn's registry
"""

from .models import (
    Role,
    Message,
    Action,
    StopReason,
    TurnResult,
    OrchestrationRun,
)
from .decoder import ResponseDecoder, ModelReply, decode
from .context import ConversationContext
from .loop_config import LoopConfig
from .prompts import build_system_prompt
from .audit_logger import AuditLogger
from .orchestrator import Orchestrator

__all__ = [
    # Core
    "Orchestrator",
    "LoopConfig",
    # Models
    "Role",
    "Message",
    "Action",
    "StopReason",
    "TurnResult",
    "OrchestrationRun",
    # Decoder
    "ResponseDecoder",
    "ModelReply",
    "decode",
    # Context
    "ConversationContext",
    # Prompts
    "build_system_prompt",
    # Audit
    "AuditLogger",
]
