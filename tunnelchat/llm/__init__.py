"""
tunnelchat LLM - Model collaborator client

Provides:
- HttpModelClient: complete() returning raw reply text, list_models()
- ModelConfig, ModelInfo, ModelCatalog
"""

from .base import ModelConfig, ModelInfo, ModelCatalog, is_chat_model
from .http_client import HttpModelClient

__all__ = [
    "HttpModelClient",
    "ModelConfig",
    "ModelInfo",
    "ModelCatalog",
    "is_chat_model",
]
