"""Entrypoint for the photosets-mcp MCP server using stdio transport.

Starts a stdio-based MCP server that exposes the Flickr photosets tools and
resources.

References:
- MCP docs: https://modelcontextprotocol.io/docs
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import mcp.server.stdio
from dotenv import load_dotenv
from mcp.server import NotificationOptions
from mcp.server.models import InitializationOptions

from photosets_mcp import __version__
from photosets_mcp.server import SERVER_NAME, create_server
from photosets_mcp.services.photosets_api import reset_api


def _configure_logging() -> None:
    # Log to stderr so we don't interfere with stdio transport
    level_name = os.getenv("PHOTOSETS_MCP_LOG_LEVEL", "DEBUG").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.DEBUG),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def _run_stdio_server() -> None:
    server = create_server(__version__)

    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=SERVER_NAME,
                server_version=__version__,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


async def _run_all() -> None:
    # Load environment variables from .env if present
    load_dotenv()
    _configure_logging()
    try:
        await _run_stdio_server()
    finally:
        reset_api()


def main() -> None:
    asyncio.run(_run_all())


if __name__ == "__main__":
    main()
