"""
DevCycle Playbooks service
Serves installation and lifecycle playbooks to coding agents over HTTP
"""

import logging

import uvicorn

from .config import ServiceConfig
from .mcp_server import MCPServer
from .registry import create_default_registry


def create_app(config: ServiceConfig = None):
    """Build the FastAPI application with the default registry"""
    config = config or ServiceConfig.from_env()
    registry = create_default_registry(config.extra_dir)
    return MCPServer(registry=registry, config=config).app


def run(config: ServiceConfig = None):
    config = config or ServiceConfig.from_env()

    # Configure logging
    logging.basicConfig(level=getattr(logging, config.log_level))
    logger = logging.getLogger(__name__)
    logger.info(f"Starting DevCycle Playbooks on {config.host}:{config.port}")

    uvicorn.run(create_app(config), host=config.host, port=config.port,
                log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
