"""Runtime configuration for the photosets-mcp server.

Values come from the process environment. `main.py` calls ``load_dotenv()``
before anything reads settings, so a local ``.env`` file works as well.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_REST_ENDPOINT = "https://api.flickr.com/services/rest/"
DEFAULT_TIMEOUT_SEC = 30.0


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_timeout(value: Optional[str], default: float = DEFAULT_TIMEOUT_SEC) -> float:
    """Parse a positive timeout in seconds, falling back to default."""
    if value is None:
        return default
    try:
        n = float(value)
    except ValueError:
        return default
    if n <= 0:
        return default
    return n


@dataclass(frozen=True)
class Settings:
    """Flickr API credentials and endpoint settings.

    Attributes:
        api_key: Application API key.
        shared_secret: Application shared secret, used for signing.
        auth_token: Legacy auth token (signed with ``api_sig``).
        oauth_token: OAuth 1.0a access token.
        oauth_token_secret: OAuth 1.0a access token secret.
        rest_endpoint: REST endpoint URL.
        timeout_sec: HTTP timeout in seconds.
    """

    api_key: Optional[str] = None
    shared_secret: Optional[str] = None
    auth_token: Optional[str] = None
    oauth_token: Optional[str] = None
    oauth_token_secret: Optional[str] = None
    rest_endpoint: str = DEFAULT_REST_ENDPOINT
    timeout_sec: float = DEFAULT_TIMEOUT_SEC

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    @property
    def uses_oauth(self) -> bool:
        return bool(self.shared_secret and self.oauth_token and self.oauth_token_secret)

    @property
    def can_sign(self) -> bool:
        return self.uses_oauth or bool(self.shared_secret and self.auth_token)


def load_settings() -> Settings:
    """Build `Settings` from ``FLICKR_*`` environment variables."""
    return Settings(
        api_key=_env("FLICKR_API_KEY"),
        shared_secret=_env("FLICKR_SHARED_SECRET"),
        auth_token=_env("FLICKR_AUTH_TOKEN"),
        oauth_token=_env("FLICKR_OAUTH_TOKEN"),
        oauth_token_secret=_env("FLICKR_OAUTH_TOKEN_SECRET"),
        rest_endpoint=_env("FLICKR_REST_ENDPOINT") or DEFAULT_REST_ENDPOINT,
        timeout_sec=_parse_timeout(_env("FLICKR_TIMEOUT_SEC")),
    )
