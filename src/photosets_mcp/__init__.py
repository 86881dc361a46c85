"""MCP server and client binding for the Flickr photosets API."""

__version__ = "0.1.0"
