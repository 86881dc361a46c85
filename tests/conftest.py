"""pytest configuration file."""

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

# Add src directory to Python path so we can import photosets_mcp modules
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from photosets_mcp.errors import TransportError  # noqa: E402
from photosets_mcp.services.params import CallParams  # noqa: E402
from photosets_mcp.services.photosets_api import PhotosetsAPI  # noqa: E402
from photosets_mcp.services.transport import Document, parse_response  # noqa: E402

OK_RSP = '<rsp stat="ok"></rsp>'

Response = Union[str, Callable[[CallParams], str]]


class StubTransport:
    """Transport double serving canned XML per API method.

    Records every prepared call, counts invocations and tracks how many
    response documents are still open.
    """

    def __init__(self, responses: Optional[Dict[str, Response]] = None, fail: bool = False) -> None:
        self.responses: Dict[str, Response] = dict(responses or {})
        self.fail = fail
        self.content = ""
        self.prepared: List[Tuple[str, CallParams]] = []
        self.invocations = 0
        self.open_documents = 0
        self._pending: Optional[Tuple[str, CallParams]] = None

    def prepare(self, method: str, params: CallParams) -> None:
        self.prepared.append((method, params))
        self._pending = (method, params)

    def _take(self) -> Tuple[str, CallParams]:
        self.invocations += 1
        pending = self._pending
        self._pending = None
        assert pending is not None, "invoke without prepare"
        if self.fail:
            raise TransportError("forced transport failure")
        return pending

    def invoke(self) -> Document:
        method, params = self._take()
        response = self.responses.get(method, OK_RSP)
        body = response(params) if callable(response) else response
        doc = parse_response(body.encode("utf-8"), on_close=self._closed)
        self.open_documents += 1
        return doc

    def invoke_content(self) -> str:
        self._take()
        return self.content

    def _closed(self, doc: Document) -> None:
        self.open_documents -= 1

    @property
    def last_method(self) -> Optional[str]:
        return self.prepared[-1][0] if self.prepared else None

    @property
    def last_params(self) -> Dict[str, Optional[str]]:
        return dict(self.prepared[-1][1].items()) if self.prepared else {}


@pytest.fixture
def stub_transport():
    return StubTransport()


@pytest.fixture
def api(stub_transport):
    return PhotosetsAPI(stub_transport)
