"""HTTP transport for the Flickr REST endpoint.

The transport is the only place that talks to the network. A call is made
in two steps: ``prepare()`` validates and buffers one request (including
signing), ``invoke()`` sends it exactly once and returns the parsed
response `Document`. Retries, rate limiting and caching are not done here
or anywhere else in this package.

References:
- Flickr API request/response formats: https://www.flickr.com/services/api/
- OAuth 1.0a signing: https://www.flickr.com/services/api/auth.oauth.html
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, cast
from urllib.parse import quote

import httpx

from photosets_mcp import __version__
from photosets_mcp.config import Settings
from photosets_mcp.errors import (
    DocumentError,
    RemoteError,
    SigningError,
    TransportError,
    ValidationError,
)
from photosets_mcp.services.params import CallParams

logger = logging.getLogger(__name__)

USER_AGENT = f"photosets-mcp/{__version__}"

Field = Tuple[str, str]


class Document:
    """Parsed ``<rsp>`` response, valid until closed.

    Use as a context manager so the tree is released on every exit path.
    """

    def __init__(self, root: ET.Element, on_close: Optional[Callable[["Document"], None]] = None) -> None:
        self._root: Optional[ET.Element] = root
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._root is None

    @property
    def root(self) -> ET.Element:
        if self._root is None:
            raise DocumentError("Response document was already released")
        return self._root

    def close(self) -> None:
        if self._root is None:
            return
        self._root = None
        if self._on_close is not None:
            self._on_close(self)

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def parse_response(body: bytes, on_close: Optional[Callable[[Document], None]] = None) -> Document:
    """Parse a REST response body into a `Document`.

    Raises:
        DocumentError: Body is not XML or the root is not ``<rsp>``.
        RemoteError: The service reported ``stat="fail"``.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise DocumentError(f"Failed to parse response document: {exc}")

    if root.tag != "rsp":
        raise DocumentError(f"Unexpected response root element <{root.tag}>")

    stat = root.get("stat")
    if stat != "ok":
        err = root.find("err")
        if err is None:
            raise RemoteError(f"Service returned stat={stat!r} without an error element")
        code: Optional[int]
        try:
            code = int(err.get("code", ""))
        except ValueError:
            code = None
        raise RemoteError(err.get("msg") or "Unknown service error", code=code)

    return Document(root, on_close=on_close)


def _encode(value: str) -> str:
    return quote(value, safe="~-._")


def legacy_signature(shared_secret: str, fields: List[Field]) -> str:
    """MD5 ``api_sig`` over the secret and the name-sorted parameters."""
    payload = shared_secret + "".join(name + value for name, value in sorted(fields))
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def oauth_signature(
    http_method: str,
    url: str,
    fields: List[Field],
    consumer_secret: str,
    token_secret: str,
) -> str:
    """HMAC-SHA1 OAuth 1.0a signature for a request."""
    normalized = "&".join(
        f"{name}={value}" for name, value in sorted((_encode(n), _encode(v)) for n, v in fields)
    )
    base_string = "&".join([http_method.upper(), _encode(url), _encode(normalized)])
    key = f"{_encode(consumer_secret)}&{_encode(token_secret)}"
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    http_method: str
    fields: List[Field]


class RestTransport:
    """Synchronous transport over ``httpx``.

    Holds at most one prepared request; it is not safe to share one
    instance between concurrent callers.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None) -> None:
        self.settings = settings
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=settings.timeout_sec,
            headers={"User-Agent": USER_AGENT},
        )
        self._pending: Optional[PreparedRequest] = None

    @property
    def pending(self) -> Optional[PreparedRequest]:
        return self._pending

    def prepare(self, method: str, params: CallParams) -> None:
        """Validate params and buffer one signed request for ``method``.

        Raises:
            ValidationError: Empty method, unfinished params or a None value.
            SigningError: Missing API key, or signing needed without credentials.
        """
        self._pending = None

        if not method or not isinstance(method, str):
            raise ValidationError("No API method name given")
        if not params.finalized:
            raise ValidationError(f"Parameters for {method} were not finalized")
        for name, value in params.items():
            if value is None:
                raise ValidationError(f"Parameter '{name}' has no value for {method}")
        if not self.settings.api_key:
            raise SigningError("No Flickr API key configured")
        if params.signing_required and not self.settings.can_sign:
            raise SigningError(f"{method} must be signed but no shared secret and token are configured")

        http_method = "POST" if params.signing_required else "GET"
        fields: List[Field] = [("method", method)]
        fields.extend((name, value) for name, value in params.items() if value is not None)
        fields = self._sign(http_method, fields)

        self._pending = PreparedRequest(method=method, http_method=http_method, fields=fields)
        logger.debug("prepared %s %s with params %s", http_method, method, params.names())

    def _sign(self, http_method: str, fields: List[Field]) -> List[Field]:
        settings = self.settings
        # prepare() has already refused a call without an API key
        api_key = cast(str, settings.api_key)

        if settings.uses_oauth:
            oauth_fields: List[Field] = [
                ("oauth_consumer_key", api_key),
                ("oauth_nonce", uuid.uuid4().hex),
                ("oauth_signature_method", "HMAC-SHA1"),
                ("oauth_timestamp", str(int(time.time()))),
                ("oauth_token", settings.oauth_token or ""),
                ("oauth_version", "1.0"),
            ]
            signed = fields + oauth_fields
            signature = oauth_signature(
                http_method,
                settings.rest_endpoint,
                signed,
                settings.shared_secret or "",
                settings.oauth_token_secret or "",
            )
            return signed + [("oauth_signature", signature)]

        signed = fields + [("api_key", api_key)]
        if settings.shared_secret and settings.auth_token:
            signed.append(("auth_token", settings.auth_token))
            signed.append(("api_sig", legacy_signature(settings.shared_secret, signed)))
        return signed

    def _send(self) -> httpx.Response:
        request = self._pending
        self._pending = None
        if request is None:
            raise ValidationError("No call was prepared")

        url = self.settings.rest_endpoint
        logger.debug("invoking %s", request.method)
        try:
            if request.http_method == "POST":
                response = self._client.post(url, data=dict(request.fields))
            else:
                response = self._client.get(url, params=request.fields)
        except httpx.HTTPError as exc:
            raise TransportError(f"{request.method} request failed: {exc}")

        if not response.is_success:
            raise TransportError(
                f"{request.method} returned HTTP {response.status_code}",
                code=response.status_code,
            )
        return response

    def invoke(self) -> Document:
        """Send the prepared request and parse the XML response."""
        response = self._send()
        return parse_response(response.content)

    def invoke_content(self) -> str:
        """Send the prepared request and return the raw response body."""
        response = self._send()
        return response.text

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
