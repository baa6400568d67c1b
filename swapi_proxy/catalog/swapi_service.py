"""
Upstream catalog integration.

This module wraps the public Star Wars catalog (``swapi.info`` by
default) behind a small async client. It exposes two calls:

* ``SwapiClient.fetch_category()`` — download a whole resource
  collection in a single request and return it as a list of raw
  records.

* ``SwapiClient.fetch_record()`` — download one record by id. Only the
  detail route uses it, as a fallback when the collection could not be
  cached.

The upstream answers either with a bare JSON array or with an envelope
of the form ``{"results": [...]}``; :func:`normalize_payload` flattens
both into a list. Nothing here retries or caches: retry policy belongs
to the caller and caching lives in ``store.py``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import UpstreamClientError, UpstreamUnavailable
from .schemas import ResourceCategory


logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "swapi-proxy/1.0 (+https://swapi.info)",
    "Accept": "application/json",
}


def normalize_payload(payload: Any) -> List[Dict[str, Any]]:
    """Flatten an upstream response body into a list of raw records.

    Bare arrays are returned as-is, ``{"results": [...]}`` envelopes are
    unwrapped. Anything else yields an empty list. Entries that are not
    JSON objects are dropped.
    """
    if isinstance(payload, dict):
        payload = payload.get("results")
    if not isinstance(payload, list):
        if payload is not None:
            logger.warning("Unexpected upstream payload of type %s", type(payload).__name__)
        return []
    records = [entry for entry in payload if isinstance(entry, dict)]
    if len(records) != len(payload):
        logger.warning("Dropped %d non-object entries from upstream payload", len(payload) - len(records))
    return records


class SwapiClient:
    """Read-only async client for the upstream catalog.

    Parameters
    ----------
    base_url : str
        Root of the catalog API, e.g. ``https://swapi.info/api``.
    timeout : float
        Per-request timeout in seconds.
    http_client : Optional[httpx.AsyncClient]
        Pre-built client, mostly for tests (``httpx.MockTransport``).
        When omitted, one is created and owned by this instance.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout, headers=DEFAULT_HEADERS, follow_redirects=True
        )

    async def _get_json(self, url: str) -> Any:
        """GET ``url`` and return the decoded JSON body.

        Transport failures and timeouts raise ``UpstreamUnavailable``;
        non-2xx answers and undecodable bodies raise
        ``UpstreamClientError``.
        """
        try:
            response = await self._client.get(url, timeout=self.timeout, follow_redirects=True)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(f"Timed out fetching {url}") from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailable(f"Error fetching {url}: {exc}") from exc

        if response.status_code >= 400:
            logger.warning("Upstream request to %s returned status %s", url, response.status_code)
            raise UpstreamClientError(
                f"Upstream returned {response.status_code} for {url}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamClientError(f"Invalid JSON from {url}") from exc

    async def fetch_category(self, category: ResourceCategory) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{ResourceCategory(category).value}/"
        logger.info("Fetching %s from %s", category.value, url)
        return normalize_payload(await self._get_json(url))

    async def fetch_record(self, category: ResourceCategory, record_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/{ResourceCategory(category).value}/{record_id}/"
        data = await self._get_json(url)
        if not isinstance(data, dict):
            raise UpstreamClientError(f"Unexpected payload for {url}")
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
