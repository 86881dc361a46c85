"""MCP Resources implementation for photosets-mcp.

Provides:
- Static resources:
  - flickr://photosets            (the calling user's photosets as JSON)

- Resource templates:
  - flickr://photoset/{id}        (photoset info)
  - flickr://photoset/{id}/photos (first page of photos in the set)

API calls block on the network, so reads run them via asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Optional, Tuple
from typing import cast
from urllib.parse import unquote

import mcp.types as mcp_types
from pydantic import AnyUrl

from photosets_mcp.errors import FlickrError
from photosets_mcp.services.photosets_api import PhotosetsAPI, get_api

_NOT_CONFIGURED = {"error": "Flickr API key is not configured"}


def _is_configured(api: PhotosetsAPI) -> bool:
    settings = getattr(api.transport, "settings", None)
    return settings is None or settings.configured


def _call(api: PhotosetsAPI, func: Callable[..., Any], *args: Any) -> Tuple[Any, Optional[FlickrError]]:
    # last_error is per thread, so read it in the worker that made the call
    result = func(*args)
    return result, api.last_error


def _failure(exc: Optional[FlickrError]) -> dict[str, Any]:
    return {"error": str(exc) if exc else "Unknown error"}


# ---------------------------------
# Public resource list / templates
# ---------------------------------

def list_resources() -> list[mcp_types.Resource]:
    """Return static resources available."""
    return [
        mcp_types.Resource(
            name="photosets",
            title="My Photosets",
            uri=cast(AnyUrl, "flickr://photosets"),
            description="Photosets of the calling user, in the order configured on Flickr.",
            mimeType="application/json",
            annotations=mcp_types.Annotations(audience=["assistant", "user"], priority=0.8),
        ),
    ]


def list_resource_templates() -> list[mcp_types.ResourceTemplate]:
    """Return resource templates."""
    return [
        mcp_types.ResourceTemplate(
            name="photoset",
            title="Photoset by ID",
            uriTemplate="flickr://photoset/{id}",
            description="Information about a single Flickr photoset.",
            mimeType="application/json",
            annotations=mcp_types.Annotations(audience=["assistant", "user"], priority=0.6),
        ),
        mcp_types.ResourceTemplate(
            name="photoset.photos",
            title="Photos in Photoset",
            uriTemplate="flickr://photoset/{id}/photos",
            description="First page of photos in a Flickr photoset with pagination metadata.",
            mimeType="application/json",
            annotations=mcp_types.Annotations(audience=["assistant", "user"], priority=0.5),
        ),
    ]


# -------------------
# Resource read logic
# -------------------

async def read_resource(uri: str) -> str:
    """Read a resource by URI and return JSON text."""
    if uri == "flickr://photosets":
        return await _read_photosets()
    if uri.startswith("flickr://photoset/"):
        rest = uri[len("flickr://photoset/"):]
        if rest.endswith("/photos"):
            photoset_id = unquote(rest[: -len("/photos")])
            if photoset_id and "/" not in photoset_id:
                return await _read_photoset_photos(photoset_id)
        else:
            photoset_id = unquote(rest)
            if photoset_id and "/" not in photoset_id:
                return await _read_photoset(photoset_id)
    return f"Unsupported resource: {uri}"


async def _read_photosets() -> str:
    api = get_api()
    if not _is_configured(api):
        return json.dumps(_NOT_CONFIGURED, indent=2)
    photosets, error = await asyncio.to_thread(_call, api, api.get_list)
    if photosets is None:
        return json.dumps(_failure(error), indent=2)
    return json.dumps({"photosets": [p.model_dump() for p in photosets]}, indent=2)


async def _read_photoset(photoset_id: str) -> str:
    api = get_api()
    if not _is_configured(api):
        return json.dumps(_NOT_CONFIGURED, indent=2)
    photoset, error = await asyncio.to_thread(_call, api, api.get_info, photoset_id)
    if photoset is None:
        return json.dumps(_failure(error), indent=2)
    return json.dumps({"photoset": photoset.model_dump()}, indent=2)


async def _read_photoset_photos(photoset_id: str) -> str:
    api = get_api()
    if not _is_configured(api):
        return json.dumps(_NOT_CONFIGURED, indent=2)
    photos_list, error = await asyncio.to_thread(_call, api, api.get_photos_params, photoset_id)
    if photos_list is None:
        return json.dumps(_failure(error), indent=2)
    return json.dumps(photos_list.model_dump(exclude={"content", "format"}), indent=2)
