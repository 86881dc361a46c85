"""Path queries over response documents.

Supports the small XPath subset the photosets calls need: absolute element
paths such as ``/rsp/photoset/title``, optionally ending in an attribute
step (``/rsp/photoset/@id``), and the same forms relative to a node.

A missing node or attribute is a normal ``None``. A path that cannot be
evaluated at all raises `DocumentError`.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from photosets_mcp.errors import DocumentError
from photosets_mcp.services.transport import Document


def _parse(path: str, absolute: bool) -> Tuple[List[str], Optional[str]]:
    if not isinstance(path, str) or not path:
        raise DocumentError("Empty path expression")

    expr = path
    if absolute:
        if not expr.startswith("/"):
            raise DocumentError(f"Path expression '{path}' is not absolute")
        expr = expr[1:]
    elif expr.startswith("./"):
        expr = expr[2:]

    steps = expr.split("/") if expr else []
    attr: Optional[str] = None
    if steps and steps[-1].startswith("@"):
        attr = steps.pop()[1:]
        if not attr:
            raise DocumentError(f"Path expression '{path}' has an empty attribute step")

    for step in steps:
        if not step or any(ch in step for ch in "[]()@*"):
            raise DocumentError(f"Unsupported path expression '{path}'")
    if absolute and not steps:
        raise DocumentError(f"Path expression '{path}' names no element")
    return steps, attr


def _string_value(node: ET.Element, attr: Optional[str]) -> Optional[str]:
    if attr is not None:
        return node.get(attr)
    return "".join(node.itertext())


def _find_absolute(root: ET.Element, steps: List[str]) -> List[ET.Element]:
    if steps[0] != root.tag:
        return []
    if len(steps) == 1:
        return [root]
    return root.findall("/".join(steps[1:]))


def xpath_nodes(doc: Document, path: str) -> List[ET.Element]:
    """Return every element matching an absolute path, in document order."""
    steps, attr = _parse(path, absolute=True)
    if attr is not None:
        raise DocumentError(f"Path expression '{path}' selects an attribute, not elements")
    return _find_absolute(doc.root, steps)


def xpath_eval(doc: Document, path: str) -> Optional[str]:
    """Return the string value of the first match of an absolute path."""
    steps, attr = _parse(path, absolute=True)
    nodes = _find_absolute(doc.root, steps)
    if not nodes:
        return None
    return _string_value(nodes[0], attr)


def node_eval(node: ET.Element, path: str) -> Optional[str]:
    """Return the string value of a path relative to ``node``."""
    steps, attr = _parse(path, absolute=False)
    target: Optional[ET.Element] = node
    if steps:
        target = node.find("/".join(steps))
    if target is None:
        return None
    return _string_value(target, attr)
