"""Health check tool for the photosets-mcp server."""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict

import mcp.types as mcp_types

from photosets_mcp.config import load_settings


def get_health_tool() -> mcp_types.Tool:
    """Get the health check tool definition."""
    return mcp_types.Tool(
        name="flickr_photosets_health",
        title="Photosets MCP Health",
        description="Does check the health status of the photosets-mcp server. Returns server status, current time, version information and whether Flickr credentials are configured. Use this to verify the server is running properly.",
        annotations=mcp_types.ToolAnnotations(
            title="Health",
            readOnlyHint=True,
            idempotentHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        },
        outputSchema={
            "type": "object",
            "properties": {
                "status": {"type": "string", "enum": ["ok"], "description": "Server health status - always 'ok' when server is running"},
                "serverTime": {"type": "string", "format": "date-time", "description": "Current server time in ISO-8601 format"},
                "version": {"type": "string", "description": "Server version number"},
                "configured": {"type": "boolean", "description": "True if a Flickr API key is configured"},
                "canSign": {"type": "boolean", "description": "True if signed (write) calls can be made"},
            },
            "required": ["status", "serverTime", "version", "configured", "canSign"],
            "additionalProperties": False,
        },
    )


def handle_health_tool(version: str) -> Dict[str, Any]:
    """Handle the health check tool call."""
    dt = _dt.datetime.now(_dt.timezone.utc).replace(microsecond=0)
    server_time = dt.isoformat().replace('+00:00', '') + "Z"
    settings = load_settings()
    return {
        "status": "ok",
        "serverTime": server_time,
        "version": version,
        "configured": settings.configured,
        "canSign": settings.can_sign,
    }
