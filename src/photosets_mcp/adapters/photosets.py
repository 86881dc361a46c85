"""Photoset management tool for the photosets-mcp server.

Implements the MCP tool "flickr_photoset", a unified dispatcher over the
``flickr.photosets.*`` calls. Arguments are validated here, before the API
is touched; the API itself reports failures through its return values and
``last_error``, which this module maps to the tool's ``errorCode``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import mcp.types as mcp_types

from photosets_mcp.errors import (
    DocumentError,
    FlickrError,
    RemoteError,
    SigningError,
    TransportError,
    ValidationError,
)
from photosets_mcp.services.params import PhotosListParams
from photosets_mcp.services.photosets_api import SUCCESS, PhotosetsAPI, get_api

logger = logging.getLogger(__name__)

# function -> argument kinds. "required"/"optional" are strings, "lists" are
# required arrays of strings, "ints" are optional integers.
_FUNCTION_ARGS: Dict[str, Dict[str, List[str]]] = {
    "add_photo": {"required": ["photoset_id", "photo_id"]},
    "create": {"required": ["title", "primary_photo_id"], "optional": ["description"]},
    "delete": {"required": ["photoset_id"]},
    "edit_meta": {"required": ["photoset_id", "title"], "optional": ["description"]},
    "edit_photos": {"required": ["photoset_id", "primary_photo_id"], "lists": ["photo_ids"]},
    "get_context": {"required": ["photo_id", "photoset_id"]},
    "get_info": {"required": ["photoset_id"]},
    "get_list": {"optional": ["user_id"]},
    "get_photos": {"required": ["photoset_id"], "ints": ["privacy_filter", "per_page", "page"]},
    "order_sets": {"lists": ["photoset_ids"]},
    "remove_photo": {"required": ["photoset_id", "photo_id"]},
    "remove_photos": {"required": ["photoset_id"], "lists": ["photo_ids"]},
    "reorder_photos": {"required": ["photoset_id"], "lists": ["photo_ids"]},
    "set_primary_photo": {"required": ["photoset_id", "photo_id"]},
}

FUNCTIONS = list(_FUNCTION_ARGS)

_ERROR_CODES = ["VALIDATION", "NOT_CONFIGURED", "TRANSPORT", "REMOTE", "DOCUMENT", "UNKNOWN"]


def _error(message: str, error_code: str, remote_code: Optional[int] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"status": "error", "result": None, "error": message, "errorCode": error_code}
    if remote_code is not None:
        payload["remoteCode"] = remote_code
    return payload


def _ok(result: Dict[str, Any]) -> Dict[str, Any]:
    return {"status": "ok", "result": result, "error": None}


def _error_code(exc: Optional[FlickrError]) -> str:
    if isinstance(exc, SigningError):
        return "NOT_CONFIGURED"
    if isinstance(exc, TransportError):
        return "TRANSPORT"
    if isinstance(exc, RemoteError):
        return "REMOTE"
    if isinstance(exc, DocumentError):
        return "DOCUMENT"
    if isinstance(exc, ValidationError):
        return "VALIDATION"
    return "UNKNOWN"


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) and v for v in value)


def _validate_args(func: str, args: Dict[str, Any]) -> Optional[str]:
    """Validate args for a function. Returns error string or None if ok."""
    kinds = _FUNCTION_ARGS[func]
    for name in kinds.get("required", []):
        value = args.get(name)
        if not (isinstance(value, str) and value.strip()):
            return f"{name} is required for {func}"
    for name in kinds.get("optional", []):
        value = args.get(name)
        if value is not None and not isinstance(value, str):
            return f"{name} must be a string"
    for name in kinds.get("lists", []):
        if not _is_string_list(args.get(name)):
            return f"{name} must be an array of non-empty strings"
    for name in kinds.get("ints", []):
        value = args.get(name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            return f"{name} must be an integer"

    if func == "get_photos":
        extras = args.get("extras")
        if extras is not None and not isinstance(extras, str) and not _is_string_list(extras):
            return "extras must be a string or an array of strings"
    return None


def _check_flickr_configuration(api: PhotosetsAPI) -> Optional[Dict[str, Any]]:
    """Return an error response if no API key is configured, else None."""
    settings = getattr(api.transport, "settings", None)
    if settings is not None and not settings.configured:
        return _error(
            "Flickr API key is not configured. Set FLICKR_API_KEY (and FLICKR_SHARED_SECRET plus a token for write calls).",
            "NOT_CONFIGURED",
        )
    return None


def _dispatch(api: PhotosetsAPI, func: str, args: Dict[str, Any]) -> Tuple[bool, Optional[Dict[str, Any]]]:
    """Run one API function and shape its result for the tool output."""
    if func == "add_photo":
        ok = api.add_photo(args["photoset_id"], args["photo_id"]) == SUCCESS
        return ok, {"added": True}

    if func == "create":
        created = api.create_with_url(args["title"], args["primary_photo_id"], args.get("description"))
        if created is None:
            return False, None
        photoset_id, url = created
        return True, {"created": True, "photoset": {"id": photoset_id, "url": url}}

    if func == "delete":
        ok = api.delete(args["photoset_id"]) == SUCCESS
        return ok, {"removed": True}

    if func == "edit_meta":
        ok = api.edit_meta(args["photoset_id"], args["title"], args.get("description")) == SUCCESS
        return ok, {"updated": True}

    if func == "edit_photos":
        ok = api.edit_photos(args["photoset_id"], args["primary_photo_id"], args["photo_ids"]) == SUCCESS
        return ok, {"updated": True}

    if func == "get_context":
        pair = api.get_context(args["photo_id"], args["photoset_id"])
        if pair is None:
            return False, None
        return True, pair.model_dump()

    if func == "get_info":
        photoset = api.get_info(args["photoset_id"])
        if photoset is None:
            return False, None
        return True, {"photoset": photoset.model_dump()}

    if func == "get_list":
        photosets = api.get_list(args.get("user_id"))
        if photosets is None:
            return False, None
        return True, {"photosets": [p.model_dump() for p in photosets]}

    if func == "get_photos":
        list_params = PhotosListParams(
            extras=args.get("extras"),
            per_page=args.get("per_page"),
            page=args.get("page"),
        )
        photos_list = api.get_photos_params(args["photoset_id"], args.get("privacy_filter"), list_params)
        if photos_list is None:
            return False, None
        return True, photos_list.model_dump(exclude={"content", "format"})

    if func == "order_sets":
        ok = api.order_sets(args["photoset_ids"]) == SUCCESS
        return ok, {"ordered": True}

    if func == "remove_photo":
        ok = api.remove_photo(args["photoset_id"], args["photo_id"]) == SUCCESS
        return ok, {"removed": True}

    if func == "remove_photos":
        ok = api.remove_photos(args["photoset_id"], args["photo_ids"]) == SUCCESS
        return ok, {"removed": True}

    if func == "reorder_photos":
        ok = api.reorder_photos(args["photoset_id"], args["photo_ids"]) == SUCCESS
        return ok, {"reordered": True}

    if func == "set_primary_photo":
        ok = api.set_primary_photo(args["photoset_id"], args["photo_id"]) == SUCCESS
        return ok, {"updated": True}

    raise ValueError(f"Unhandled function: {func}")


# -------------------------
# Unified Photoset Tool API
# -------------------------

def get_photoset_tool() -> mcp_types.Tool:
    """Get the unified photoset tool definition.

    Provides a single entry point for creating, editing, deleting and
    reordering photosets and for reading their photos and neighbours.
    """
    return mcp_types.Tool(
        name="flickr_photoset",
        title="Flickr Photosets",
        description=(
            "Does execute Flickr photoset (album) actions via a unified dispatcher. "
            "Write functions need FLICKR_SHARED_SECRET and a token with write permission. "
            f"Functions: {', '.join(FUNCTIONS)}."
        ),
        annotations=mcp_types.ToolAnnotations(
            title="Photosets",
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=False,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "function": {
                    "type": "string",
                    "enum": FUNCTIONS,
                    "description": "Photoset action to perform",
                },
                "args": {
                    "type": "object",
                    "description": "Arguments for the selected function",
                    "properties": {
                        "photoset_id": {"type": "string", "title": "Photoset ID"},
                        "photo_id": {"type": "string", "title": "Photo ID"},
                        "primary_photo_id": {"type": "string", "title": "Primary Photo ID"},
                        "title": {"type": "string", "title": "Photoset Title"},
                        "description": {"type": "string", "title": "Photoset Description", "description": "May contain limited HTML"},
                        "user_id": {"type": "string", "title": "User NSID", "description": "Defaults to the calling user"},
                        "photo_ids": {
                            "type": "array",
                            "items": {"type": "string"},
                            "title": "Photo IDs",
                            "description": "Ordered photo IDs (edit_photos, remove_photos, reorder_photos)",
                        },
                        "photoset_ids": {
                            "type": "array",
                            "items": {"type": "string"},
                            "title": "Photoset IDs",
                            "description": "Ordered photoset IDs, first shown first (order_sets)",
                        },
                        "extras": {
                            "type": ["string", "array"],
                            "items": {"type": "string"},
                            "title": "Extras",
                            "description": "Extra photo fields, e.g. license, date_upload, date_taken, media",
                        },
                        "privacy_filter": {"type": "integer", "title": "Privacy Filter", "description": "1-5; other values are ignored"},
                        "per_page": {"type": "integer", "title": "Photos Per Page", "description": "Up to 500; non-positive values are ignored"},
                        "page": {"type": "integer", "title": "Page", "description": "Non-positive values are ignored"},
                    },
                    "additionalProperties": False,
                },
            },
            "required": ["function"],
            "additionalProperties": False,
        },
        outputSchema={
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "enum": ["ok", "error"],
                    "description": "Operation status",
                },
                "result": {
                    "type": ["object", "null"],
                    "description": (
                        "Function-specific result payload. get_info: { photoset }. get_list: { photosets: [...] }. "
                        "get_photos: { photos: [...], page, per_page, pages, total }. get_context: { previous, next }. "
                        "create: { created, photoset: { id, url } }. Write functions: { added | removed | updated | ordered | reordered }."
                    ),
                },
                "error": {
                    "type": ["string", "null"],
                    "description": "Error message if any",
                },
                "errorCode": {
                    "type": ["string", "null"],
                    "enum": _ERROR_CODES,
                    "description": "Structured error code (optional)",
                },
                "remoteCode": {
                    "type": ["integer", "null"],
                    "description": "Flickr error code when errorCode is REMOTE",
                },
            },
            "required": ["status", "result", "error"],
            "additionalProperties": False,
        },
    )


def handle_photoset_tool(arguments: Dict[str, Any] | None) -> Dict[str, Any]:
    """Handle the unified photoset tool call.

    Validates the function and its args, checks configuration, runs the
    API call and normalizes the outcome.
    """
    if not arguments or not isinstance(arguments, dict):
        return _error("No arguments provided", "VALIDATION")

    func = arguments.get("function")
    if func not in _FUNCTION_ARGS:
        return _error(f"Invalid function. Expected one of: {', '.join(FUNCTIONS)}", "VALIDATION")

    args = arguments.get("args") or {}
    if not isinstance(args, dict):
        return _error("args must be an object", "VALIDATION")

    err = _validate_args(func, args)
    if err:
        return _error(err, "VALIDATION")

    api = get_api()
    configuration_error = _check_flickr_configuration(api)
    if configuration_error:
        return configuration_error

    ok, result = _dispatch(api, func, args)
    if ok and result is not None:
        logger.info("flickr_photoset %s ok", func, extra={"function": func})
        return _ok(result)

    exc = api.last_error
    logger.info("flickr_photoset %s failed", func, extra={"function": func, "error": str(exc) if exc else None})
    remote_code = exc.code if isinstance(exc, RemoteError) else None
    return _error(str(exc) if exc else "Unknown error", _error_code(exc), remote_code)
