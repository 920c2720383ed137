"""
tunnelchat Model Client Base - Common types for the model collaborator

This module provides:
- ModelConfig: Configuration dataclass
- ModelInfo: One listed model
- ModelCatalog: Filtered, sorted model list with the chosen default
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constants import DEFAULT_MODEL, DEFAULT_MODEL_CALL_TIMEOUT, EXCLUDED_MODEL_PATTERNS

_VERSION = re.compile(r"gemini-(\d+\.?\d*)")


@dataclass
class ModelConfig:
    """
    Configuration for the model collaborator.

    Attributes:
        endpoint: URL that accepts ``{message, context, model}`` and lists models on GET
        model: Default model id
        timeout: Request timeout in seconds
        headers: Additional headers sent with every request
    """
    endpoint: str
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_MODEL_CALL_TIMEOUT
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        return cls(
            endpoint=data["endpoint"],
            model=data.get("name") or data.get("model") or DEFAULT_MODEL,
            timeout=float(data.get("timeout", DEFAULT_MODEL_CALL_TIMEOUT)),
            headers=dict(data.get("headers") or {}),
        )


@dataclass
class ModelInfo:
    """A model offered by the endpoint"""
    model_id: str
    display_name: str = ""
    description: str = ""
    input_token_limit: Optional[int] = None
    output_token_limit: Optional[int] = None
    supported_methods: List[str] = field(default_factory=list)

    @property
    def version(self) -> float:
        match = _VERSION.search(self.model_id)
        return float(match.group(1)) if match else 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelInfo":
        """Accepts both ``{name: "models/x"}`` and ``{modelId: "x"}`` entries"""
        model_id = data.get("modelId") or (data.get("name") or "").replace("models/", "", 1)
        return cls(
            model_id=model_id,
            display_name=data.get("displayName") or model_id,
            description=data.get("description") or "",
            input_token_limit=data.get("inputTokenLimit"),
            output_token_limit=data.get("outputTokenLimit"),
            supported_methods=list(data.get("supportedGenerationMethods") or []),
        )


def is_chat_model(model: ModelInfo) -> bool:
    """Gemini models that can generate content, minus special-purpose families."""
    model_id = model.model_id.lower()
    if model.supported_methods and "generateContent" not in model.supported_methods:
        return False
    if any(pattern in model_id for pattern in EXCLUDED_MODEL_PATTERNS):
        return False
    return model_id.startswith("gemini")


@dataclass
class ModelCatalog:
    """Chat models, newest version first, plus the default to preselect"""
    models: List[ModelInfo] = field(default_factory=list)
    default_model: str = DEFAULT_MODEL

    @property
    def model_ids(self) -> List[str]:
        return [m.model_id for m in self.models]

    @classmethod
    def from_models(cls, raw_models: List[Dict[str, Any]], preferred: str = DEFAULT_MODEL) -> "ModelCatalog":
        models = [ModelInfo.from_dict(m) for m in raw_models if isinstance(m, dict)]
        models = [m for m in models if m.model_id and is_chat_model(m)]
        models.sort(key=lambda m: (-m.version, m.model_id))

        ids = [m.model_id for m in models]
        if preferred in ids:
            default = preferred
        elif ids:
            default = ids[0]
        else:
            default = preferred
        return cls(models=models, default_model=default)
