"""MCP server setup and tool registration for photosets-mcp.

References:
- MCP docs: https://modelcontextprotocol.io/docs
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import mcp.types as mcp_types
from mcp.server import Server
from pydantic import AnyUrl

from photosets_mcp import resources as photoset_resources
from photosets_mcp.adapters.photosets import get_photoset_tool, handle_photoset_tool
from photosets_mcp.health import get_health_tool, handle_health_tool

SERVER_NAME = "photosets_mcp"
logger = logging.getLogger(__name__)


def create_server(version: str) -> Server:
    """Create and return a configured MCP Server instance.

    Args:
        version: The semantic version string for the server.

    Returns:
        A configured `Server` instance with tools and resources registered.
    """

    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[mcp_types.Tool]:
        logger.debug("list_tools called; returning available tools")
        return [
            get_health_tool(),
            get_photoset_tool(),
        ]

    @server.list_resources()
    async def list_resources() -> List[mcp_types.Resource]:
        logger.debug("list_resources called; returning available resources")
        return photoset_resources.list_resources()

    @server.list_resource_templates()
    async def list_resource_templates() -> List[mcp_types.ResourceTemplate]:
        logger.debug("list_resource_templates called; returning resource templates")
        return photoset_resources.list_resource_templates()

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> str:
        logger.debug("read_resource called", extra={"uri": str(uri)})
        return await photoset_resources.read_resource(str(uri))

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any] | None) -> Dict[str, Any]:
        logger.debug("call_tool invoked", extra={"tool": name, "arguments": arguments})
        if name == "flickr_photosets_health":
            result = handle_health_tool(version)
            logger.info("flickr_photosets_health returning ok", extra={"payload": result})
            return result
        if name == "flickr_photoset":
            return handle_photoset_tool(arguments)
        raise ValueError(f"Unknown tool: {name}")

    return server
