"""
HTTP Model Client - The model collaborator over HTTP

Posts ``{message, context, model}`` and hands back the reply body as raw
text. The endpoint may answer with the structured JSON object directly or
with free-form text; either way the ResponseDecoder is the only parser.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import TransportError
from .base import ModelCatalog, ModelConfig

logger = logging.getLogger(__name__)


class HttpModelClient:
    """
    Model collaborator client.

    Implements ModelClientProtocol.

    Example:
        client = HttpModelClient(ModelConfig(endpoint="https://chat.example.com/api/gemini"))
        raw = await client.complete(messages, {"availableTools": [...]})
        catalog = await client.list_models()
    """

    def __init__(self, config: ModelConfig, http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize HttpModelClient

        Args:
            config: Endpoint, default model and timeout
            http_client: Pre-built httpx client (tests inject a MockTransport)
        """
        self.config = config
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout, headers=self.config.headers)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        context: Dict[str, Any],
        model: Optional[str] = None,
    ) -> str:
        """
        Send the transcript and return the raw reply body

        Raises:
            TransportError: Network failure or non-2xx status
        """
        selected = model or self.config.model
        payload = {"message": messages, "context": context, "model": selected}

        try:
            response = await self._get_client().post(self.config.endpoint, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(f"Model API timeout after {self.config.timeout}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Model API unreachable: {e}") from e

        if response.is_error:
            logger.error(f"[Model] {selected} returned {response.status_code}: {response.text[:200]}")
            raise TransportError(f"Model API error: {response.status_code}", status_code=response.status_code)

        logger.debug(f"[Model] {selected} replied ({len(response.text)} chars)")
        return response.text

    async def list_models(self) -> ModelCatalog:
        """
        List chat models offered by the endpoint

        Raises:
            TransportError: Network failure, non-2xx status or a non-JSON body
        """
        try:
            response = await self._get_client().get(self.config.endpoint)
        except httpx.HTTPError as e:
            raise TransportError(f"Model API unreachable: {e}") from e

        if response.is_error:
            raise TransportError(f"Model API error: {response.status_code}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Model API returned an invalid model list") from e

        raw_models = data.get("models") if isinstance(data, dict) else None
        catalog = ModelCatalog.from_models(raw_models or [], preferred=self.config.model)
        logger.info(f"[Model] {len(catalog.models)} chat models, default={catalog.default_model}")
        return catalog
