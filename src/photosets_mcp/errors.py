"""Exceptions raised inside the photosets call pipeline.

They never cross a `PhotosetsAPI` operation boundary; each operation turns
them into its failure sentinel (``None`` or a non-zero status code).
"""

from __future__ import annotations

from typing import Optional


class FlickrError(Exception):
    """Base class for every failure in the call pipeline.

    Attributes:
        message: Human readable description.
        code: Optional numeric code (remote error code for `RemoteError`).
    """

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.message} (code {self.code})"
        return self.message


class ValidationError(FlickrError):
    """Call was set up incorrectly (bad method name, unfinished or null params)."""


class SigningError(FlickrError):
    """The call must be signed but no credentials are configured."""


class TransportError(FlickrError):
    """Network failure or non-success HTTP status."""


class RemoteError(FlickrError):
    """The service answered with ``<rsp stat="fail">``."""


class DocumentError(FlickrError):
    """Response document is malformed or lacks an expected node."""
