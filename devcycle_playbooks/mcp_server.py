"""
MCP (Model Context Protocol) Server for exposing playbooks to coding agents
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import ServiceConfig
from .exceptions import PlaybookNotFoundError, PlaybookParameterError
from .registry import PlaybookLinter, PlaybookRegistry, PlaybookRenderer, create_default_registry

logger = logging.getLogger(__name__)

RENDER_FORMATS = ("markdown", "json")


class PlaybookQuery(BaseModel):
    query: str = ""
    kind: Optional[str] = None
    sdk: Optional[str] = None
    tag: Optional[str] = None
    tool: Optional[str] = None


class RenderRequest(BaseModel):
    parameters: Dict[str, Any] = {}
    format: str = "markdown"


class MCPResponse(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __init__(self, **data):
        super().__init__(**data)
        if self.timestamp is None:
            self.timestamp = datetime.utcnow()


class MCPServer:
    """MCP Server for exposing playbooks"""

    def __init__(self, registry: Optional[PlaybookRegistry] = None,
                 config: Optional[ServiceConfig] = None):
        self.config = config or ServiceConfig()
        self.registry = registry if registry is not None else create_default_registry(self.config.extra_dir)
        self.renderer = PlaybookRenderer()
        self.linter = PlaybookLinter()
        self.app = FastAPI(
            title="DevCycle Playbooks MCP Server",
            description="MCP server serving installation and lifecycle playbooks",
            version="1.0.0"
        )
        self.setup_routes()
        self.setup_middleware()

    def setup_middleware(self):
        """Setup CORS and other middleware"""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def setup_routes(self):
        """Setup API routes"""

        @self.app.on_event("startup")
        async def startup_event():
            logger.info(f"MCP Server initialized with {len(self.registry)} playbooks")

        @self.app.on_event("shutdown")
        async def shutdown_event():
            logger.info("MCP Server shutdown")

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint"""
            return MCPResponse(success=True, data={"status": "healthy", "playbooks": len(self.registry)})

        @self.app.get("/mcp/playbooks")
        async def list_playbooks(kind: Optional[str] = Query(None), sdk: Optional[str] = Query(None),
                                 tag: Optional[str] = Query(None),
                                 tool: Optional[str] = Query(None)) -> MCPResponse:
            """List playbooks, optionally filtered"""
            try:
                playbooks = self.registry.filter(kind=kind, sdk=sdk, tag=tag, tool=tool)
                # Log the request for auditing
                self._track_mcp_request("GET", "/mcp/playbooks",
                                        {"kind": kind, "sdk": sdk, "tag": tag, "tool": tool})
                return MCPResponse(success=True, data={"playbooks": [p.summary_dict() for p in playbooks]})

            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            except Exception as e:
                logger.error(f"Failed to list playbooks: {e}")
                return MCPResponse(success=False, error=str(e))

        @self.app.post("/mcp/playbooks/search")
        async def search_playbooks(query: PlaybookQuery) -> MCPResponse:
            """Search playbooks by text and filters"""
            try:
                # Apply filters, then text search within them
                filtered = {p.id for p in self.registry.filter(
                    kind=query.kind, sdk=query.sdk, tag=query.tag, tool=query.tool
                )}
                playbooks = [p for p in self.registry.search(query.query) if p.id in filtered]

                self._track_mcp_request("POST", "/mcp/playbooks/search", query.model_dump())

                return MCPResponse(success=True, data={"playbooks": [p.summary_dict() for p in playbooks]})

            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            except Exception as e:
                logger.error(f"Failed to search playbooks: {e}")
                return MCPResponse(success=False, error=str(e))

        @self.app.get("/mcp/playbooks/{playbook_id}")
        async def get_playbook(playbook_id: str) -> MCPResponse:
            """Get the full structured playbook"""
            playbook = self._get_playbook(playbook_id)
            self._track_mcp_request("GET", f"/mcp/playbooks/{playbook_id}")
            return MCPResponse(success=True, data=playbook.to_dict())

        @self.app.post("/mcp/playbooks/{playbook_id}/render")
        async def render_playbook(playbook_id: str, request: RenderRequest) -> MCPResponse:
            """Render a playbook with parameters"""
            playbook = self._get_playbook(playbook_id)

            # Validate format before rendering
            if request.format not in RENDER_FORMATS:
                raise HTTPException(
                    status_code=400,
                    detail=f"Unknown format '{request.format}', expected one of {', '.join(RENDER_FORMATS)}"
                )

            try:
                # Render content
                if request.format == "json":
                    content = self.renderer.render_structured(playbook, request.parameters)
                else:
                    content = self.renderer.render(playbook, request.parameters)

                self._track_mcp_request("POST", f"/mcp/playbooks/{playbook_id}/render",
                                        {"parameters": sorted(request.parameters), "format": request.format})

                return MCPResponse(success=True, data={
                    "playbook_id": playbook_id,
                    "format": request.format,
                    "content": content
                })

            except PlaybookParameterError as e:
                raise HTTPException(status_code=400, detail=str(e))
            except Exception as e:
                logger.error(f"Failed to render playbook {playbook_id}: {e}")
                return MCPResponse(success=False, error=str(e))

        @self.app.get("/mcp/playbooks/{playbook_id}/lint")
        async def lint_playbook(playbook_id: str) -> MCPResponse:
            """Run documentation-quality checks on a playbook"""
            playbook = self._get_playbook(playbook_id)
            report = self.linter.lint(playbook)
            self._track_mcp_request("GET", f"/mcp/playbooks/{playbook_id}/lint")
            return MCPResponse(success=True, data=report.to_dict())

        @self.app.get("/mcp/playbooks/{playbook_id}/tools")
        async def get_playbook_tools(playbook_id: str) -> MCPResponse:
            """External tools the playbook expects the agent to have"""
            playbook = self._get_playbook(playbook_id)
            tools = [
                {"name": tool.name, "description": tool.description, "mutating": tool.mutating}
                for tool in playbook.all_tools()
            ]
            return MCPResponse(success=True, data={"playbook_id": playbook_id, "tools": tools})

        @self.app.get("/mcp/playbooks/{playbook_id}/checklist")
        async def get_playbook_checklist(playbook_id: str) -> MCPResponse:
            """Safety checklist of a playbook"""
            playbook = self._get_playbook(playbook_id)
            checklist = [{"text": item.text, "blocking": item.blocking} for item in playbook.checklist]
            return MCPResponse(success=True, data={"playbook_id": playbook_id, "checklist": checklist})

        @self.app.get("/mcp/statistics")
        async def get_statistics() -> MCPResponse:
            """Get registry statistics"""
            try:
                return MCPResponse(success=True, data=self.registry.get_statistics())
            except Exception as e:
                logger.error(f"Failed to get statistics: {e}")
                return MCPResponse(success=False, error=str(e))

    def _get_playbook(self, playbook_id: str):
        try:
            return self.registry.get(playbook_id)
        except PlaybookNotFoundError:
            raise HTTPException(status_code=404, detail="Playbook not found")

    def _track_mcp_request(self, method: str, endpoint: str, params: Dict = None):
        """Log MCP request for auditing"""
        logger.info(f"MCP request {method} {endpoint} {params or {}}")

    async def start(self, host: Optional[str] = None, port: Optional[int] = None):
        """Start the MCP server"""
        config = uvicorn.Config(
            app=self.app,
            host=host or self.config.host,
            port=port or self.config.port,
            log_level=self.config.log_level.lower()
        )
        server = uvicorn.Server(config)
        await server.serve()

    async def stop(self):
        """Stop the MCP server"""
        logger.info("MCP Server stopping...")
