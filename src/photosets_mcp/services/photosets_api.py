"""Flickr ``flickr.photosets.*`` API calls.

Each method performs one remote call: check required arguments, build the
parameters, prepare and invoke through the transport, then build the
result from the response document. Failures never raise out of a method:
status calls return ``1`` (``0`` on success) and the others return
``None``.

References:
- https://www.flickr.com/services/api/ (photosets section)
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar, Union, cast

from photosets_mcp.config import load_settings
from photosets_mcp.errors import DocumentError, FlickrError
from photosets_mcp.models import ContextPair, Photo, Photoset, PhotosList
from photosets_mcp.services.builders import (
    PHOTOSET_PATH,
    PHOTOSETS_PATH,
    build_contexts,
    build_photos_list,
    build_photosets,
    build_single_photoset,
)
from photosets_mcp.services.params import (
    CallParams,
    PhotosListParams,
    append_photos_list_params,
    join_ids,
    privacy_filter_value,
)
from photosets_mcp.services.transport import Document, RestTransport
from photosets_mcp.services.xpath import xpath_eval

logger = logging.getLogger(__name__)

SUCCESS = 0
FAILURE = 1

ErrorHandler = Callable[[str, FlickrError], None]
F = TypeVar("F", bound=Callable[..., Any])


def _operation(failure: Any) -> Callable[[F], F]:
    """Turn any `FlickrError` raised by an API method into ``failure``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: "PhotosetsAPI", *args: Any, **kwargs: Any) -> Any:
            self.last_error = None
            try:
                return func(self, *args, **kwargs)
            except FlickrError as exc:
                self._report(func.__name__, exc)
                return failure

        return wrapper  # type: ignore[return-value]

    return decorator


def _missing(*values: Any) -> bool:
    return any(value is None for value in values)


class PhotosetsAPI:
    """Photoset operations over one transport.

    Calls on one instance are serialized; separate instances share no state.
    ``last_error`` is kept per thread, so concurrent callers each see the
    outcome of their own most recent call.
    """

    def __init__(self, transport: Any, error_handler: Optional[ErrorHandler] = None) -> None:
        self.transport = transport
        self.error_handler = error_handler
        self._lock = threading.RLock()
        self._local = threading.local()

    @property
    def last_error(self) -> Optional[FlickrError]:
        """Failure of the calling thread's most recent call, or None if it succeeded."""
        return getattr(self._local, "error", None)

    @last_error.setter
    def last_error(self, exc: Optional[FlickrError]) -> None:
        self._local.error = exc

    # -------------------------
    # Internal helper functions
    # -------------------------

    def _report(self, operation: str, exc: FlickrError) -> None:
        self.last_error = exc
        logger.warning("photosets %s failed: %s", operation, exc)
        if self.error_handler is not None:
            self.error_handler(operation, exc)

    def _invoke(self, method: str, params: CallParams) -> Document:
        params.end()
        with self._lock:
            self.transport.prepare(method, params)
            return self.transport.invoke()

    def _invoke_content(self, method: str, params: CallParams) -> str:
        params.end()
        with self._lock:
            self.transport.prepare(method, params)
            return self.transport.invoke_content()

    def _call_status(self, method: str, params: CallParams) -> int:
        with self._invoke(method, params):
            pass
        return SUCCESS

    # ----------
    # Operations
    # ----------

    @_operation(FAILURE)
    def add_photo(self, photoset_id: Optional[str], photo_id: Optional[str]) -> int:
        """Add a photo to the end of an existing photoset.

        Implements flickr.photosets.addPhoto.
        """
        if _missing(photoset_id, photo_id):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("photo_id", photo_id)
        return self._call_status("flickr.photosets.addPhoto", params)

    @_operation(None)
    def create_with_url(
        self,
        title: Optional[str],
        primary_photo_id: Optional[str],
        description: Optional[str] = None,
    ) -> Optional[Tuple[str, Optional[str]]]:
        """Create a new photoset for the calling user.

        Implements flickr.photosets.create.

        Args:
            title: Title for the photoset.
            primary_photo_id: Photo to represent the set; must belong to the caller.
            description: Optional description, may contain limited HTML.

        Returns:
            ``(photoset_id, photoset_url)`` where the URL may be None, or
            None on failure.
        """
        if _missing(title, primary_photo_id):
            return None
        params = CallParams(signing_required=True)
        params.add("title", title)
        if description is not None:
            params.add("description", description)
        params.add("primary_photo_id", primary_photo_id)

        with self._invoke("flickr.photosets.create", params) as doc:
            photoset_id = xpath_eval(doc, f"{PHOTOSET_PATH}/@id")
            photoset_url = xpath_eval(doc, f"{PHOTOSET_PATH}/@url")
        if not photoset_id:
            raise DocumentError("Create response carries no photoset id")
        return photoset_id, photoset_url

    def create(
        self,
        title: Optional[str],
        primary_photo_id: Optional[str],
        description: Optional[str] = None,
    ) -> Optional[str]:
        """Create a photoset and return its ID (None on failure)."""
        created = self.create_with_url(title, primary_photo_id, description)
        if created is None:
            return None
        return created[0]

    @_operation(FAILURE)
    def delete(self, photoset_id: Optional[str]) -> int:
        """Delete a photoset owned by the calling user.

        Implements flickr.photosets.delete.
        """
        if _missing(photoset_id):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        return self._call_status("flickr.photosets.delete", params)

    @_operation(FAILURE)
    def edit_meta(self, photoset_id: Optional[str], title: Optional[str], description: Optional[str] = None) -> int:
        """Modify the title and description of a photoset.

        Implements flickr.photosets.editMeta.
        """
        if _missing(photoset_id, title):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("title", title)
        if description is not None:
            params.add("description", description)
        return self._call_status("flickr.photosets.editMeta", params)

    @_operation(FAILURE)
    def edit_photos(
        self,
        photoset_id: Optional[str],
        primary_photo_id: Optional[str],
        photo_ids: Optional[Sequence[str]],
    ) -> int:
        """Replace the photos of a photoset.

        The new list is used in the order given and must contain the primary
        photo. Use this to add, remove and re-order photos in one call.

        Implements flickr.photosets.editPhotos.
        """
        if _missing(photoset_id, primary_photo_id, photo_ids):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("primary_photo_id", primary_photo_id)
        params.add("photo_ids", join_ids(cast(Sequence[str], photo_ids)))
        return self._call_status("flickr.photosets.editPhotos", params)

    @_operation(None)
    def get_context(self, photo_id: Optional[str], photoset_id: Optional[str]) -> Optional[ContextPair]:
        """Get the previous and next photos of a photo in a set.

        Implements flickr.photosets.getContext.
        """
        if _missing(photo_id, photoset_id):
            return None
        params = CallParams(signing_required=False)
        params.add("photo_id", photo_id)
        params.add("photoset_id", photoset_id)

        with self._invoke("flickr.photosets.getContext", params) as doc:
            return build_contexts(doc)

    @_operation(None)
    def get_info(self, photoset_id: Optional[str]) -> Optional[Photoset]:
        """Get information about a photoset.

        Implements flickr.photosets.getInfo.
        """
        if _missing(photoset_id):
            return None
        params = CallParams(signing_required=False)
        params.add("photoset_id", photoset_id)

        with self._invoke("flickr.photosets.getInfo", params) as doc:
            return build_single_photoset(doc, PHOTOSET_PATH)

    @_operation(None)
    def get_list(self, user_id: Optional[str] = None) -> Optional[List[Photoset]]:
        """Return the photosets of a user (the calling user when None).

        The order is the one the owner configured on the service.

        Implements flickr.photosets.getList.
        """
        params = CallParams(signing_required=False)
        if user_id is not None:
            params.add("user_id", user_id)

        with self._invoke("flickr.photosets.getList", params) as doc:
            return build_photosets(doc, PHOTOSETS_PATH)

    @_operation(None)
    def get_photos_params(
        self,
        photoset_id: Optional[str],
        privacy_filter: Optional[int] = None,
        list_params: Optional[PhotosListParams] = None,
    ) -> Optional[PhotosList]:
        """Get one page of photos in a set.

        Supported extras include license, date_upload, date_taken,
        owner_name, icon_server, original_format, last_update and media.

        Args:
            photoset_id: Photoset to list.
            privacy_filter: Only photos of this privacy level, 1-5; other
                values are ignored.
            list_params: Extras, paging and response format.
        """
        if _missing(photoset_id):
            return None
        params = CallParams(signing_required=False)
        params.add("photoset_id", photoset_id)
        privacy = privacy_filter_value(privacy_filter)
        if privacy is not None:
            params.add("privacy_filter", privacy)
        content_format = append_photos_list_params(params, list_params)

        if content_format is not None:
            content = self._invoke_content("flickr.photosets.getPhotos", params)
            return PhotosList(format=content_format, content=content, photoset_id=photoset_id)

        with self._invoke("flickr.photosets.getPhotos", params) as doc:
            return build_photos_list(doc, PHOTOSET_PATH)

    def get_photos(
        self,
        photoset_id: Optional[str],
        extras: Optional[Union[str, Sequence[str]]] = None,
        privacy_filter: Optional[int] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Optional[List[Photo]]:
        """Get the photos in a set without the page metadata.

        Implements flickr.photosets.getPhotos; see `get_photos_params`.
        """
        list_params = PhotosListParams(extras=extras, per_page=per_page, page=page)
        photos_list = self.get_photos_params(photoset_id, privacy_filter, list_params)
        if photos_list is None:
            return None
        return photos_list.detach_photos()

    @_operation(FAILURE)
    def order_sets(self, photoset_ids: Optional[Sequence[str]]) -> int:
        """Set the order of the calling user's photosets.

        Sets not in the list go to the end, ordered by their IDs. The call
        changes account state, so it is signed and sent as POST like the
        other write calls, although the service lists it as unsigned.

        Implements flickr.photosets.orderSets.
        """
        if _missing(photoset_ids):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_ids", join_ids(cast(Sequence[str], photoset_ids)))
        return self._call_status("flickr.photosets.orderSets", params)

    @_operation(FAILURE)
    def remove_photo(self, photoset_id: Optional[str], photo_id: Optional[str]) -> int:
        """Remove a photo from a photoset.

        Implements flickr.photosets.removePhoto.
        """
        if _missing(photoset_id, photo_id):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("photo_id", photo_id)
        return self._call_status("flickr.photosets.removePhoto", params)

    @_operation(FAILURE)
    def remove_photos(self, photoset_id: Optional[str], photo_ids: Optional[Sequence[str]]) -> int:
        """Remove several photos from a photoset.

        Implements flickr.photosets.removePhotos.
        """
        if _missing(photoset_id, photo_ids):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("photo_ids", join_ids(cast(Sequence[str], photo_ids)))
        return self._call_status("flickr.photosets.removePhotos", params)

    @_operation(FAILURE)
    def reorder_photos(self, photoset_id: Optional[str], photo_ids: Optional[Sequence[str]]) -> int:
        """Reorder photos within a photoset.

        Photos not in the list keep their original order after the listed ones.
        Signed and sent as POST like the other write calls, although the
        service lists it as unsigned.

        Implements flickr.photosets.reorderPhotos.
        """
        if _missing(photoset_id, photo_ids):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("photo_ids", join_ids(cast(Sequence[str], photo_ids)))
        return self._call_status("flickr.photosets.reorderPhotos", params)

    @_operation(FAILURE)
    def set_primary_photo(self, photoset_id: Optional[str], photo_id: Optional[str]) -> int:
        """Set the primary photo of a photoset.

        Implements flickr.photosets.setPrimaryPhoto.
        """
        if _missing(photoset_id, photo_id):
            return FAILURE
        params = CallParams(signing_required=True)
        params.add("photoset_id", photoset_id)
        params.add("photo_id", photo_id)
        return self._call_status("flickr.photosets.setPrimaryPhoto", params)

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()


_GLOBAL_API: Optional[PhotosetsAPI] = None


def get_api() -> PhotosetsAPI:
    """Return a process-wide API instance configured from the environment."""
    global _GLOBAL_API
    if _GLOBAL_API is None:
        _GLOBAL_API = PhotosetsAPI(RestTransport(load_settings()))
    return _GLOBAL_API


def reset_api() -> None:
    """Close and drop the process-wide API instance."""
    global _GLOBAL_API
    if _GLOBAL_API is not None:
        _GLOBAL_API.close()
    _GLOBAL_API = None
