"""
Shared constants for the tunnelchat engine.

Centralizes values needed by the orchestrator, the tunnel client and the
configuration loader to avoid circular imports and duplication.
"""

from typing import FrozenSet, Tuple

# ── Orchestration loop ──

DEFAULT_MAX_ITERATIONS = 5

DEFAULT_MODEL_CALL_TIMEOUT = 60.0
DEFAULT_TOOL_CALL_TIMEOUT = 30.0

# Tool calls whose successful completion ends the loop.
# Versions and deployments are immutable snapshots; re-issuing them creates duplicates.
TOOL_CREATE_VERSION = "apps_script_create_version"
TOOL_CREATE_DEPLOYMENT = "apps_script_create_deployment"
TOOL_UPDATE_DEPLOYMENT = "apps_script_update_deployment"
DEFAULT_TERMINAL_TOOLS: FrozenSet[str] = frozenset({
    TOOL_CREATE_VERSION,
    TOOL_CREATE_DEPLOYMENT,
    TOOL_UPDATE_DEPLOYMENT,
})

# ── Tunneling proxy ──

DEFAULT_TUNNEL_URL = "https://tunneling-service.onrender.com"
PING_TIMEOUT = 3.0

# Marker the filesystem service puts in download responses (base64 payload, never JSON)
DOWNLOAD_MARKER = "File downloaded:"

# ── Model collaborator ──

DEFAULT_MODEL = "gemini-2.0-flash"

# Model ids containing any of these are not chat models
EXCLUDED_MODEL_PATTERNS: Tuple[str, ...] = (
    "aqa",
    "embedding",
    "text-embedding",
    "imagen",
    "learnlm",
    "gemma",
)

# Editor file content is cut to this many characters before it enters the prompt
MAX_FILE_CONTEXT_CHARS = 2000
