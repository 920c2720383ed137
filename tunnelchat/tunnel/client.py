"""
Tunnel Client - HTTP access to services behind the tunneling proxy

Every service registered on a server key is reachable under
``{base_url}/t/{server_key}/{service}/``. The proxy wraps MCP results as
``{"success": true, "result": {"content": [{"type": "text", "text": ...}]}}``;
call_tool() unwraps that envelope so the dispatcher sees plain results.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..constants import DEFAULT_TUNNEL_URL, DOWNLOAD_MARKER, PING_TIMEOUT
from ..errors import TunnelError

logger = logging.getLogger(__name__)


@dataclass
class ServiceInfo:
    """One service registered behind a server key"""
    name: str
    description: str = ""
    endpoints: Dict[str, str] = field(default_factory=dict)
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceInfo":
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            endpoints=data.get("endpoints") or {},
            status=data.get("status") or "active",
        )


@dataclass
class ServerHealth:
    """Result of a ping; never raised, always returned"""
    online: bool
    error: Optional[str] = None


class TunnelClient:
    """
    Client for the tunneling proxy.

    Implements ToolBackendProtocol and ToolDiscoveryProtocol.

    Example:
        client = TunnelClient(server_key="abc123", token=access_token)
        services = await client.list_services()
        tools = await client.list_tools("filesystem")
        result = await client.call_tool("filesystem", "fs_read_file", {"path": "/notes.txt"})
        await client.aclose()
    """

    def __init__(
        self,
        server_key: str,
        base_url: str = DEFAULT_TUNNEL_URL,
        token: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize TunnelClient

        Args:
            server_key: Key of the server whose services are addressed
            base_url: Tunneling proxy URL
            token: Bearer token
            token_provider: Called before each request for a fresh token;
                takes precedence over ``token``
            timeout: Request timeout in seconds
            http_client: Pre-built httpx client (tests inject a MockTransport)
        """
        self.server_key = server_key
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._token_provider = token_provider
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TunnelClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _url(self, *parts: str) -> str:
        path = "/".join(p.strip("/") for p in parts if p)
        return f"{self.base_url}/t/{self.server_key}/{path}"

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider() if self._token_provider else self._token
        if not token:
            raise TunnelError("Not authenticated")
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            if message:
                return str(message)
        return f"HTTP {response.status_code}"

    async def _get_json(self, url: str) -> Any:
        headers = self._headers()
        try:
            response = await self._get_client().get(url, headers=headers)
        except httpx.HTTPError as e:
            raise TunnelError(f"Request to {url} failed: {e}") from e

        if response.is_error:
            raise TunnelError(self._error_message(response), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise TunnelError(f"Invalid JSON from {url}") from e

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def list_services(self) -> List[ServiceInfo]:
        """List the services registered on this server key"""
        data = await self._get_json(self._url(""))
        if not isinstance(data, dict) or not data.get("success") or not isinstance(data.get("servers"), list):
            raise TunnelError("Invalid response format")

        services = [ServiceInfo.from_dict(s) for s in data["servers"] if isinstance(s, dict) and s.get("name")]
        logger.info(f"[Tunnel] {len(services)} services on server {self.server_key}")
        return services

    async def list_tools(self, service: str) -> List[Dict[str, Any]]:
        """List the raw tool descriptors a service exposes"""
        data = await self._get_json(self._url(service, "tools"))
        if not isinstance(data, list):
            raise TunnelError("Invalid response format - expected array of tools")

        logger.debug(f"[Tunnel] {len(data)} tools from service '{service}'")
        return data

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    async def call_tool(self, service: str, tool: str, arguments: Dict[str, Any]) -> Any:
        """
        Invoke a tool on a service

        Returns:
            The unwrapped result (see unwrap_result)

        Raises:
            TunnelError: Non-2xx status, unreachable proxy or a failure body
        """
        url = self._url(service, "tools", "call")
        headers = self._headers()
        try:
            response = await self._get_client().post(
                url,
                json={"tool": tool, "arguments": arguments},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise TunnelError(f"Tool call {service}/{tool} failed: {e}") from e

        if response.is_error:
            raise TunnelError(self._error_message(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            return {"content": response.text}

        if isinstance(data, dict) and data.get("success") is False and data.get("error"):
            raise TunnelError(str(data["error"]))

        return self.unwrap_result(data)

    @staticmethod
    def unwrap_result(data: Any) -> Any:
        """
        Strip the proxy and MCP envelopes from a tool result.

        ``content[0].text`` is JSON-decoded into ``{"content": parsed}`` or
        kept as ``{"content": text}``. Download responses carry a base64
        payload and are returned untouched.
        """
        mcp = data.get("result", data) if isinstance(data, dict) else data
        if not isinstance(mcp, dict):
            return mcp

        content = mcp.get("content")
        if not (isinstance(content, list) and content and isinstance(content[0], dict)):
            return mcp
        text = content[0].get("text")
        if not isinstance(text, str) or not text:
            return mcp

        if DOWNLOAD_MARKER in text:
            return mcp
        try:
            return {"content": json.loads(text)}
        except json.JSONDecodeError:
            return {"content": text}

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def ping(self) -> ServerHealth:
        """Check the server is reachable; never raises"""
        try:
            headers = self._headers()
        except TunnelError as e:
            return ServerHealth(online=False, error=str(e))

        try:
            response = await self._get_client().get(
                self._url("ping"), headers=headers, timeout=PING_TIMEOUT,
            )
        except httpx.TimeoutException:
            return ServerHealth(online=False, error="Timeout")
        except httpx.HTTPError as e:
            return ServerHealth(online=False, error=str(e) or type(e).__name__)

        if response.is_success:
            return ServerHealth(online=True)
        return ServerHealth(online=False, error=f"HTTP {response.status_code}")
