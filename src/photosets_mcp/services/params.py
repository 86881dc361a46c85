"""Parameter building for a single Flickr API call.

A `CallParams` instance lives for exactly one operation: it is created
(declaring whether the call must be signed), filled with ``add()``,
finalized with ``end()`` and then handed to the transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from photosets_mcp.errors import ValidationError

ID_DELIMITER = ","
PRIVACY_FILTER_MIN = 1
PRIVACY_FILTER_MAX = 5


class CallParams:
    """Ordered ``(name, value)`` parameters for one call.

    Insertion order is kept so that request construction is deterministic.
    A ``None`` value is accepted here; the transport refuses to prepare a
    call that still carries one.
    """

    def __init__(self, signing_required: bool) -> None:
        self.signing_required = signing_required
        self._items: List[Tuple[str, Optional[str]]] = []
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add(self, name: str, value: Optional[str]) -> None:
        if not name:
            raise ValidationError("Parameter name must be a non-empty string")
        if self._finalized:
            raise ValidationError(f"Cannot add parameter '{name}' after parameters were finalized")
        self._items.append((name, value))

    def end(self) -> None:
        self._finalized = True

    def items(self) -> List[Tuple[str, Optional[str]]]:
        return list(self._items)

    def names(self) -> List[str]:
        return [name for name, _ in self._items]

    def get(self, name: str) -> Optional[str]:
        for key, value in self._items:
            if key == name:
                return value
        return None

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)


def join_ids(ids: Iterable[str], delimiter: str = ID_DELIMITER) -> str:
    """Join identifiers into one delimited string.

    An empty sequence gives an empty string. Identifiers must not contain
    the delimiter themselves.
    """
    return delimiter.join(ids)


def privacy_filter_value(privacy_filter: Optional[int]) -> Optional[str]:
    """Return the wire value for a privacy filter, or None when out of range."""
    if privacy_filter is None or isinstance(privacy_filter, bool):
        return None
    if PRIVACY_FILTER_MIN <= privacy_filter <= PRIVACY_FILTER_MAX:
        return str(privacy_filter)
    return None


def _positive_int_value(value: Optional[int]) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if value > 0:
        return str(value)
    return None


@dataclass
class PhotosListParams:
    """Result shaping parameters shared by every photos-list call.

    Attributes:
        format: Response format; None or "xml" parses photo records, any
            other value returns the raw body.
        extras: Extra fields per photo, comma string or sequence of names.
        per_page: Photos per page; None or non-positive means unset.
        page: Page number; None or non-positive means unset.
    """

    format: Optional[str] = None
    extras: Optional[Union[str, Sequence[str]]] = None
    per_page: Optional[int] = None
    page: Optional[int] = None


def append_photos_list_params(params: CallParams, list_params: Optional[PhotosListParams]) -> Optional[str]:
    """Add extras/per_page/page/format to params.

    Returns:
        The non-XML response format requested, or None for XML.
    """
    if list_params is None:
        return None

    extras = list_params.extras
    if extras is not None and not isinstance(extras, str):
        extras = join_ids(extras)
    if extras:
        params.add("extras", extras)

    per_page = _positive_int_value(list_params.per_page)
    if per_page is not None:
        params.add("per_page", per_page)

    page = _positive_int_value(list_params.page)
    if page is not None:
        params.add("page", page)

    fmt = list_params.format
    if fmt and fmt != "xml":
        params.add("format", fmt)
        return fmt
    return None
