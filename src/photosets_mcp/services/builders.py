"""Build result records from response documents.

Builders copy every value they need out of the document, so the records
they return stay valid after the document is closed. Structural problems
raise `DocumentError`; optional attributes that are simply missing become
``None``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Callable, List, Optional

from photosets_mcp.errors import DocumentError
from photosets_mcp.models import ContextPair, Photo, PhotoContext, Photoset, PhotosList
from photosets_mcp.services.transport import Document
from photosets_mcp.services.xpath import node_eval, xpath_nodes

PHOTOSET_PATH = "/rsp/photoset"
PHOTOSETS_PATH = "/rsp/photosets/photoset"

# Photo attributes mapped onto named fields; anything else lands in extras.
_PHOTO_FIELDS = {
    "id",
    "secret",
    "server",
    "farm",
    "title",
    "owner",
    "ownername",
    "isprimary",
    "ispublic",
    "isfriend",
    "isfamily",
    "media",
}

# Flickr sends id="0" for a missing neighbour.
_NO_CONTEXT_ID = "0"


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _to_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    if value == "1":
        return True
    if value == "0":
        return False
    return None


def build_photoset(node: Optional[ET.Element]) -> Photoset:
    """Build a `Photoset` from one ``<photoset>`` element."""
    if node is None:
        raise DocumentError("No photoset element in response")
    photoset_id = node.get("id")
    if not photoset_id:
        raise DocumentError("Photoset element has no id attribute")

    return Photoset(
        id=photoset_id,
        title=node_eval(node, "title"),
        description=node_eval(node, "description"),
        primary=node.get("primary"),
        owner=node.get("owner"),
        username=node.get("username"),
        secret=node.get("secret"),
        server=node.get("server"),
        farm=node.get("farm"),
        photos_count=_to_int(node.get("photos") or node.get("count_photos")),
        videos_count=_to_int(node.get("videos") or node.get("count_videos")),
        count_views=_to_int(node.get("count_views")),
        date_create=node.get("date_create"),
        date_update=node.get("date_update"),
        url=node.get("url"),
    )


def build_photosets(
    doc: Document,
    path: str = PHOTOSETS_PATH,
    predicate: Optional[Callable[[Photoset], bool]] = None,
) -> List[Photoset]:
    """Build one `Photoset` per element matching ``path``, in document order.

    Args:
        doc: Response document.
        path: Absolute path selecting ``<photoset>`` elements.
        predicate: Optional filter; photosets it rejects are skipped.
    """
    photosets: List[Photoset] = []
    for node in xpath_nodes(doc, path):
        photoset = build_photoset(node)
        if predicate is None or predicate(photoset):
            photosets.append(photoset)
    return photosets


def build_single_photoset(doc: Document, path: str = PHOTOSET_PATH) -> Photoset:
    nodes = xpath_nodes(doc, path)
    if not nodes:
        raise DocumentError(f"No element at {path} in response")
    return build_photoset(nodes[0])


def build_photo(node: ET.Element, owner: Optional[str] = None) -> Photo:
    """Build a `Photo` from one ``<photo>`` element.

    ``owner`` is used when the element itself carries none (photoset
    listings put the owner on the list element).
    """
    photo_id = node.get("id")
    if not photo_id:
        raise DocumentError("Photo element has no id attribute")

    return Photo(
        id=photo_id,
        secret=node.get("secret"),
        server=node.get("server"),
        farm=node.get("farm"),
        title=node.get("title"),
        owner=node.get("owner") or owner,
        ownername=node.get("ownername"),
        is_primary=_to_bool(node.get("isprimary")) or False,
        is_public=_to_bool(node.get("ispublic")),
        is_friend=_to_bool(node.get("isfriend")),
        is_family=_to_bool(node.get("isfamily")),
        media=node.get("media"),
        extras={k: v for k, v in node.attrib.items() if k not in _PHOTO_FIELDS},
    )


def build_photos_list(doc: Document, list_path: str, format: Optional[str] = None) -> PhotosList:
    """Build a paginated `PhotosList` from the list element at ``list_path``.

    An absent list element is an error; a list element without photos is a
    valid empty page.
    """
    nodes = xpath_nodes(doc, list_path)
    if not nodes:
        raise DocumentError(f"No photos list at {list_path} in response")
    node = nodes[0]
    owner = node.get("owner")

    return PhotosList(
        photos=[build_photo(child, owner=owner) for child in node.findall("photo")],
        page=_to_int(node.get("page")),
        per_page=_to_int(node.get("perpage") or node.get("per_page")),
        pages=_to_int(node.get("pages")),
        total=_to_int(node.get("total")),
        photoset_id=node.get("id"),
        owner=owner,
        format=format or "xml",
    )


def build_context(node: Optional[ET.Element], kind: str) -> Optional[PhotoContext]:
    """Build one neighbour, or None when the slot is empty."""
    if node is None:
        return None
    context_id = node.get("id")
    if not context_id or context_id == _NO_CONTEXT_ID:
        return None
    return PhotoContext(
        kind=kind,
        id=context_id,
        secret=node.get("secret"),
        server=node.get("server"),
        farm=node.get("farm"),
        title=node.get("title"),
        url=node.get("url"),
        thumb=node.get("thumb"),
        media=node.get("media"),
    )


def build_contexts(doc: Document) -> ContextPair:
    """Build the previous/next pair of a context response.

    Either neighbour may be missing (first or last photo of a set); that is
    not an error. A document without an ``<rsp>`` root is.
    """
    if not xpath_nodes(doc, "/rsp"):
        raise DocumentError("Context response has no rsp element")

    prev_nodes = xpath_nodes(doc, "/rsp/prevphoto")
    next_nodes = xpath_nodes(doc, "/rsp/nextphoto")
    return ContextPair(
        previous=build_context(prev_nodes[0] if prev_nodes else None, "prev"),
        next=build_context(next_nodes[0] if next_nodes else None, "next"),
    )
