"""
Async client for the playbook MCP server
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp

from .config import ServiceConfig
from .exceptions import PlaybookClientError, PlaybookNotFoundError

logger = logging.getLogger(__name__)


class PlaybookClient:
    """Client for fetching and rendering playbooks from a running server"""

    def __init__(self, base_url: Optional[str] = None, session: Optional[aiohttp.ClientSession] = None):
        self.base_url = (base_url or ServiceConfig.from_env().server_url).rstrip('/') + '/'
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        """Async context manager entry"""
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    async def _make_request(self, method: str, endpoint: str, data: Dict = None,
                            params: Dict = None, playbook_id: str = None) -> Any:
        """Make a request and unwrap the MCPResponse envelope"""
        if not self.session:
            self.session = aiohttp.ClientSession()
            self._owns_session = True

        url = urljoin(self.base_url, endpoint.lstrip('/'))
        query = {key: value for key, value in (params or {}).items() if value is not None}

        try:
            async with self.session.request(method, url, json=data, params=query or None,
                                            headers={"Accept": "application/json"}) as response:
                if response.status == 404 and playbook_id:
                    raise PlaybookNotFoundError(playbook_id)
                if response.status >= 400:
                    error_text = await response.text()
                    raise PlaybookClientError(
                        f"Playbook server error {response.status}: {error_text}", status=response.status
                    )

                payload = await response.json()

        except aiohttp.ClientError as e:
            logger.error(f"Network error connecting to playbook server: {e}")
            raise PlaybookClientError(f"Failed to connect to playbook server: {e}")

        if not payload.get("success", False):
            raise PlaybookClientError(payload.get("error") or "Request failed", status=response.status)

        return payload.get("data")

    async def health(self) -> Dict[str, Any]:
        return await self._make_request("GET", "/health")

    async def test_connection(self) -> bool:
        """Test connection to the playbook server"""
        try:
            await self.health()
            return True
        except PlaybookClientError as e:
            logger.error(f"Playbook server connection test failed: {e}")
            return False

    async def list_playbooks(self, kind: str = None, sdk: str = None, tag: str = None,
                             tool: str = None) -> List[Dict[str, Any]]:
        data = await self._make_request("GET", "/mcp/playbooks",
                                        params={"kind": kind, "sdk": sdk, "tag": tag, "tool": tool})
        return data["playbooks"]

    async def search_playbooks(self, query: str, kind: str = None, sdk: str = None, tag: str = None,
                               tool: str = None) -> List[Dict[str, Any]]:
        data = await self._make_request("POST", "/mcp/playbooks/search", data={
            "query": query, "kind": kind, "sdk": sdk, "tag": tag, "tool": tool
        })
        return data["playbooks"]

    async def get_playbook(self, playbook_id: str) -> Dict[str, Any]:
        return await self._make_request("GET", f"/mcp/playbooks/{playbook_id}", playbook_id=playbook_id)

    async def render_playbook(self, playbook_id: str, parameters: Dict[str, Any] = None,
                              format: str = "markdown") -> Any:
        """Render a playbook; returns markdown text or a structured dictionary"""
        data = await self._make_request("POST", f"/mcp/playbooks/{playbook_id}/render", data={
            "parameters": parameters or {}, "format": format
        }, playbook_id=playbook_id)
        return data["content"]

    async def lint_playbook(self, playbook_id: str) -> Dict[str, Any]:
        return await self._make_request("GET", f"/mcp/playbooks/{playbook_id}/lint", playbook_id=playbook_id)

    async def get_tools(self, playbook_id: str) -> List[Dict[str, Any]]:
        data = await self._make_request("GET", f"/mcp/playbooks/{playbook_id}/tools", playbook_id=playbook_id)
        return data["tools"]

    async def get_checklist(self, playbook_id: str) -> List[Dict[str, Any]]:
        data = await self._make_request("GET", f"/mcp/playbooks/{playbook_id}/checklist", playbook_id=playbook_id)
        return data["checklist"]
