"""Unit tests for photosets_mcp.services.photosets_api module."""

import threading

import pytest
from unittest.mock import MagicMock

from photosets_mcp.errors import DocumentError, RemoteError, TransportError
from photosets_mcp.models import ContextPair, Photoset, PhotosList
from photosets_mcp.services.params import PhotosListParams
from photosets_mcp.services.photosets_api import FAILURE, SUCCESS, PhotosetsAPI

INFO = """<rsp stat="ok"><photoset id="{id}" owner="12@N01" primary="{primary}" photos="{count}">
<title>Set</title><description>desc</description></photoset></rsp>"""

PHOTOS = """<rsp stat="ok"><photoset id="4" page="1" perpage="2" pages="1" total="2">
<photo id="1" title="a" isprimary="1" /><photo id="2" title="b" isprimary="0" /></photoset></rsp>"""

LIST = """<rsp stat="ok"><photosets><photoset id="5"><title>A</title></photoset>
<photoset id="3"><title>B</title></photoset></photosets></rsp>"""

CONTEXT_LAST = """<rsp stat="ok"><count>2</count><prevphoto id="10" title="p" /><nextphoto id="0" /></rsp>"""

# (method name, args with every required argument given)
STATUS_CALLS = [
    ("add_photo", ("1", "2")),
    ("delete", ("1",)),
    ("edit_meta", ("1", "title")),
    ("edit_photos", ("1", "2", ["2", "3"])),
    ("order_sets", (["1", "2"],)),
    ("remove_photo", ("1", "2")),
    ("remove_photos", ("1", ["2"])),
    ("reorder_photos", ("1", ["2"])),
    ("set_primary_photo", ("1", "2")),
]

OBJECT_CALLS = [
    ("create", ("title", "2")),
    ("create_with_url", ("title", "2")),
    ("get_context", ("2", "1")),
    ("get_info", ("1",)),
    ("get_list", ()),
    ("get_photos_params", ("1",)),
    ("get_photos", ("1",)),
]

RESPONSES = {
    "flickr.photosets.create": '<rsp stat="ok"><photoset id="77" url="https://www.flickr.com/photos/bees/sets/77/" /></rsp>',
    "flickr.photosets.getContext": CONTEXT_LAST,
    "flickr.photosets.getInfo": INFO.format(id="1", primary="2", count=3),
    "flickr.photosets.getList": LIST,
    "flickr.photosets.getPhotos": PHOTOS,
}


def _with_each_required_missing(args):
    for index in range(len(args)):
        yield tuple(None if i == index else value for i, value in enumerate(args))


class TestRequiredArguments:
    """A missing required argument fails without touching the transport."""

    @pytest.mark.parametrize("name,args", STATUS_CALLS)
    def test_status_calls(self, api, stub_transport, name, args):
        for missing_args in _with_each_required_missing(args):
            assert getattr(api, name)(*missing_args) == FAILURE
        assert stub_transport.prepared == []
        assert stub_transport.invocations == 0

    @pytest.mark.parametrize("name,args", [c for c in OBJECT_CALLS if c[1]])
    def test_object_calls(self, api, stub_transport, name, args):
        for missing_args in _with_each_required_missing(args):
            assert getattr(api, name)(*missing_args) is None
        assert stub_transport.prepared == []
        assert stub_transport.invocations == 0


class TestFailureContainment:
    """A failing invocation turns every call into its failure sentinel."""

    @pytest.mark.parametrize("name,args", STATUS_CALLS)
    def test_status_calls_return_failure(self, api, stub_transport, name, args):
        stub_transport.fail = True
        assert getattr(api, name)(*args) == FAILURE
        assert stub_transport.invocations == 1
        assert isinstance(api.last_error, TransportError)

    @pytest.mark.parametrize("name,args", OBJECT_CALLS)
    def test_object_calls_return_none(self, api, stub_transport, name, args):
        stub_transport.fail = True
        assert getattr(api, name)(*args) is None
        assert stub_transport.invocations == 1

    def test_remote_error_is_reported(self, stub_transport):
        handler = MagicMock()
        api = PhotosetsAPI(stub_transport, error_handler=handler)
        stub_transport.responses["flickr.photosets.getInfo"] = '<rsp stat="fail"><err code="1" msg="Photoset not found" /></rsp>'
        assert api.get_info("404") is None
        assert isinstance(api.last_error, RemoteError)
        assert api.last_error.code == 1
        handler.assert_called_once()
        assert handler.call_args.args[0] == "get_info"

    def test_partial_result_is_discarded(self, api, stub_transport):
        """A list with one broken record yields None, not a partial list."""
        stub_transport.responses["flickr.photosets.getList"] = (
            '<rsp stat="ok"><photosets><photoset id="1" /><photoset /></photosets></rsp>'
        )
        assert api.get_list() is None
        assert isinstance(api.last_error, DocumentError)
        assert stub_transport.open_documents == 0

    def test_create_without_id_fails(self, api, stub_transport):
        stub_transport.responses["flickr.photosets.create"] = '<rsp stat="ok"><photoset url="u" /></rsp>'
        assert api.create("t", "1") is None
        assert isinstance(api.last_error, DocumentError)


class TestSuccessfulCalls:
    """Wire method names, parameters and results of each call."""

    @pytest.fixture(autouse=True)
    def _responses(self, stub_transport):
        stub_transport.responses.update(RESPONSES)

    def test_add_photo(self, api, stub_transport):
        assert api.add_photo("1", "2") == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.addPhoto"
        assert stub_transport.last_params == {"photoset_id": "1", "photo_id": "2"}
        assert stub_transport.prepared[-1][1].signing_required is True

    def test_create_with_description(self, api, stub_transport):
        assert api.create("Trip", "2", "Holiday") == "77"
        assert stub_transport.last_method == "flickr.photosets.create"
        assert stub_transport.prepared[-1][1].items() == [
            ("title", "Trip"),
            ("description", "Holiday"),
            ("primary_photo_id", "2"),
        ]

    def test_create_without_description_omits_it(self, api, stub_transport):
        photoset_id, url = api.create_with_url("Trip", "2")
        assert photoset_id == "77"
        assert url == "https://www.flickr.com/photos/bees/sets/77/"
        assert "description" not in stub_transport.last_params

    def test_delete(self, api, stub_transport):
        assert api.delete("1") == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.delete"
        assert stub_transport.last_params == {"photoset_id": "1"}

    def test_edit_meta(self, api, stub_transport):
        assert api.edit_meta("1", "New") == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.editMeta"
        assert stub_transport.last_params == {"photoset_id": "1", "title": "New"}
        assert api.edit_meta("1", "New", "d") == SUCCESS
        assert stub_transport.last_params["description"] == "d"

    def test_edit_photos(self, api, stub_transport):
        assert api.edit_photos("1", "2", ["2", "3", "4"]) == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.editPhotos"
        assert stub_transport.last_params == {"photoset_id": "1", "primary_photo_id": "2", "photo_ids": "2,3,4"}

    def test_get_context(self, api, stub_transport):
        pair = api.get_context("11", "1")
        assert isinstance(pair, ContextPair)
        assert stub_transport.last_method == "flickr.photosets.getContext"
        assert stub_transport.last_params == {"photo_id": "11", "photoset_id": "1"}
        assert stub_transport.prepared[-1][1].signing_required is False
        assert pair.previous.id == "10"
        assert pair.next is None
        assert api.last_error is None

    def test_get_context_slots_in_order(self, api, stub_transport):
        stub_transport.responses["flickr.photosets.getContext"] = (
            '<rsp stat="ok"><prevphoto id="10" /><nextphoto id="12" /></rsp>'
        )
        previous, next_photo = api.get_context("11", "1").as_list()
        assert (previous.kind, previous.id) == ("prev", "10")
        assert (next_photo.kind, next_photo.id) == ("next", "12")

    def test_get_context_singleton_is_not_a_failure(self, api, stub_transport):
        stub_transport.responses["flickr.photosets.getContext"] = (
            '<rsp stat="ok"><count>1</count><prevphoto id="0" /><nextphoto id="0" /></rsp>'
        )
        pair = api.get_context("11", "1")
        assert pair is not None
        assert pair.as_list() == [None, None]
        assert api.last_error is None

    def test_get_info(self, api, stub_transport):
        photoset = api.get_info("1")
        assert isinstance(photoset, Photoset)
        assert stub_transport.last_method == "flickr.photosets.getInfo"
        assert photoset.photos_count == 3
        assert photoset.owner == "12@N01"

    def test_get_list_default_user(self, api, stub_transport):
        photosets = api.get_list()
        assert [p.id for p in photosets] == ["5", "3"]
        assert stub_transport.last_method == "flickr.photosets.getList"
        assert stub_transport.last_params == {}

    def test_get_list_for_user(self, api, stub_transport):
        api.get_list("12@N01")
        assert stub_transport.last_params == {"user_id": "12@N01"}

    def test_get_photos_params(self, api, stub_transport):
        photos_list = api.get_photos_params(
            "4", privacy_filter=3, list_params=PhotosListParams(extras=["license"], per_page=2, page=1)
        )
        assert isinstance(photos_list, PhotosList)
        assert stub_transport.last_method == "flickr.photosets.getPhotos"
        assert stub_transport.last_params == {
            "photoset_id": "4",
            "privacy_filter": "3",
            "extras": "license",
            "per_page": "2",
            "page": "1",
        }
        assert photos_list.total == 2
        assert [p.id for p in photos_list.photos] == ["1", "2"]

    def test_get_photos_unset_paging_is_omitted(self, api, stub_transport):
        api.get_photos("4", privacy_filter=9, per_page=-1, page=-1)
        assert stub_transport.last_params == {"photoset_id": "4"}

    def test_get_photos_returns_detached_photos(self, api, stub_transport):
        photos = api.get_photos("4", extras="media")
        assert [p.id for p in photos] == ["1", "2"]
        assert photos[0].is_primary is True
        assert stub_transport.last_params["extras"] == "media"

    def test_get_photos_raw_format(self, api, stub_transport):
        stub_transport.content = "jsonFlickrApi({})"
        photos_list = api.get_photos_params("4", list_params=PhotosListParams(format="json"))
        assert photos_list.format == "json"
        assert photos_list.content == "jsonFlickrApi({})"
        assert photos_list.photos == []
        assert stub_transport.last_params["format"] == "json"

    def test_order_sets(self, api, stub_transport):
        assert api.order_sets(["3", "1", "2"]) == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.orderSets"
        assert stub_transport.last_params == {"photoset_ids": "3,1,2"}
        assert stub_transport.prepared[-1][1].signing_required is True

    def test_order_sets_empty_list(self, api, stub_transport):
        assert api.order_sets([]) == SUCCESS
        assert stub_transport.last_params == {"photoset_ids": ""}

    def test_remove_photo(self, api, stub_transport):
        assert api.remove_photo("1", "2") == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.removePhoto"
        assert stub_transport.last_params == {"photoset_id": "1", "photo_id": "2"}

    def test_remove_photos(self, api, stub_transport):
        assert api.remove_photos("1", ["2", "3"]) == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.removePhotos"
        assert stub_transport.last_params == {"photoset_id": "1", "photo_ids": "2,3"}

    def test_reorder_photos(self, api, stub_transport):
        assert api.reorder_photos("1", ["3", "2"]) == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.reorderPhotos"
        assert stub_transport.last_params == {"photoset_id": "1", "photo_ids": "3,2"}
        assert stub_transport.prepared[-1][1].signing_required is True

    def test_set_primary_photo(self, api, stub_transport):
        assert api.set_primary_photo("1", "2") == SUCCESS
        assert stub_transport.last_method == "flickr.photosets.setPrimaryPhoto"
        assert stub_transport.last_params == {"photoset_id": "1", "photo_id": "2"}

    def test_each_call_invokes_once(self, api, stub_transport):
        for name, args in STATUS_CALLS + OBJECT_CALLS:
            before = stub_transport.invocations
            getattr(api, name)(*args)
            assert stub_transport.invocations == before + 1, name


class TestRoundTrip:
    """edit_photos followed by get_info against a stateful stub."""

    def test_photo_count_matches_list_sent(self, api, stub_transport):
        state = {"photo_ids": [], "primary": None}

        def edit_photos(params):
            state["photo_ids"] = params.get("photo_ids").split(",")
            state["primary"] = params.get("primary_photo_id")
            return '<rsp stat="ok" />'

        def get_info(params):
            return INFO.format(id=params.get("photoset_id"), primary=state["primary"], count=len(state["photo_ids"]))

        stub_transport.responses["flickr.photosets.editPhotos"] = edit_photos
        stub_transport.responses["flickr.photosets.getInfo"] = get_info

        assert api.edit_photos("1", "20", ["20", "21", "22", "23"]) == SUCCESS
        photoset = api.get_info("1")
        assert photoset.photos_count == 4
        assert photoset.primary == "20"


class TestDocumentRelease:
    """Every response document is released, on success and on failure."""

    @pytest.fixture(autouse=True)
    def _responses(self, stub_transport):
        stub_transport.responses.update(RESPONSES)

    def test_no_documents_left_open(self, api, stub_transport):
        calls = STATUS_CALLS + OBJECT_CALLS
        for i in range(10_000):
            name, args = calls[i % len(calls)]
            getattr(api, name)(*args)
        assert stub_transport.invocations == 10_000
        assert stub_transport.open_documents == 0

    def test_no_documents_left_open_on_remote_failure(self, api, stub_transport):
        stub_transport.responses["flickr.photosets.getInfo"] = '<rsp stat="fail"><err code="1" msg="Photoset not found" /></rsp>'
        for _ in range(10_000):
            assert api.get_info("1") is None
        assert stub_transport.open_documents == 0

    def test_released_when_building_fails(self, api, stub_transport):
        stub_transport.responses["flickr.photosets.getInfo"] = '<rsp stat="ok" />'
        stub_transport.responses["flickr.photosets.getPhotos"] = '<rsp stat="ok" />'
        assert api.get_info("1") is None
        assert api.get_photos("1") is None
        assert stub_transport.open_documents == 0

    def test_results_are_independent(self, api):
        first = api.get_info("1")
        second = api.get_info("1")
        assert first == second
        assert first is not second


class TestErrorIsolation:
    """Failure details belong to the caller that made the call."""

    def test_errors_are_per_thread(self, api, stub_transport):
        def failing_info(params):
            photoset_id = params.get("photoset_id")
            return f'<rsp stat="fail"><err code="{photoset_id}" msg="set {photoset_id}" /></rsp>'

        stub_transport.responses["flickr.photosets.getInfo"] = failing_info
        first_failed = threading.Event()
        second_failed = threading.Event()
        seen = {}

        def worker():
            seen["result"] = api.get_info("1")
            first_failed.set()
            second_failed.wait(timeout=5)
            seen["error"] = api.last_error

        thread = threading.Thread(target=worker)
        thread.start()
        assert first_failed.wait(timeout=5)
        assert api.get_info("2") is None
        second_failed.set()
        thread.join(timeout=5)

        assert seen["result"] is None
        assert seen["error"].code == 1
        assert api.last_error.code == 2

    def test_success_clears_previous_error(self, api, stub_transport):
        stub_transport.fail = True
        assert api.delete("1") == FAILURE
        stub_transport.fail = False
        assert api.delete("1") == SUCCESS
        assert api.last_error is None

    def test_separate_instances_share_no_state(self, stub_transport):
        failing_transport = type(stub_transport)(fail=True)
        working = PhotosetsAPI(stub_transport)
        failing = PhotosetsAPI(failing_transport)

        assert failing.delete("1") == FAILURE
        assert working.delete("1") == SUCCESS
        assert isinstance(failing.last_error, TransportError)
        assert working.last_error is None
        assert stub_transport.invocations == 1
        assert failing_transport.invocations == 1
