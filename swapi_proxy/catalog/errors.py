"""Exceptions raised while talking to the upstream catalog."""

from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for catalog failures."""


class UpstreamError(CatalogError):
    """The upstream catalog could not serve a request."""


class UpstreamUnavailable(UpstreamError):
    """Transport error or timeout while calling the upstream catalog."""


class UpstreamClientError(UpstreamError):
    """The upstream answered with a non-success status.

    ``status_code`` is the upstream's own status so that direct proxy
    routes can pass it through to the client.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
