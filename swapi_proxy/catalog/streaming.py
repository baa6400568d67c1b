"""
Progressive delivery of a category over Server-Sent Events.

The stream sends whatever is cached right away and keeps pushing newly
available records while the category is still loading:

1. If the category is cold, its load is started in the background and
   the stream waits (up to ``wait_timeout``) for the first records.
2. The first ``batch`` event carries up to ``first_batch`` matching
   records at offset 0.
3. If the category was already loaded, the rest goes out in one more
   ``batch`` and the stream ends with ``done``.
4. Otherwise the cache is polled every ``poll_interval``; each tick
   sends only the records added since the previous event, and ``done``
   follows once the load completes.

Records already sent are tracked by count, so the search filter is
re-applied on every tick and must give the same order each time.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from typing_extensions import Literal, Protocol

from .query import filter_records
from .schemas import Record, ResourceCategory
from .store import ResourceLoader


logger = logging.getLogger(__name__)

EventName = Literal["batch", "done"]


class DisconnectAware(Protocol):
    async def is_disconnected(self) -> bool:
        ...


def sse_event(event: EventName, data: Dict[str, Any]) -> Dict[str, str]:
    return {"event": event, "data": json.dumps(data)}


def _batch(items: List[Record], offset: int) -> Dict[str, str]:
    return sse_event("batch", {"items": items, "offset": offset, "done": False})


def _done(total: int) -> Dict[str, str]:
    return sse_event("done", {"total": total, "done": True})


async def stream_category(
    request: DisconnectAware,
    loader: ResourceLoader,
    category: ResourceCategory,
    search: Optional[str] = None,
    wait_timeout: float = 10.0,
    poll_interval: float = 0.5,
    first_batch: int = 10,
) -> AsyncIterator[Dict[str, str]]:
    """Yield ``batch``/``done`` events for ``category``.

    Events are dictionaries understood by ``sse_starlette``'s
    ``EventSourceResponse`` (``event`` name plus JSON-encoded ``data``).
    The generator returns early, without a ``done`` event, once the
    client has disconnected.
    """
    entry = loader.store.entry(category)
    if not entry.loaded:
        loader.trigger(category)

    loop = asyncio.get_running_loop()
    deadline = loop.time() + wait_timeout
    while not entry.items and entry.loading and loop.time() < deadline:
        if await request.is_disconnected():
            logger.info("SSE client left while waiting for %s", category.value)
            return
        await asyncio.sleep(poll_interval)

    matched = filter_records(entry.items, search)
    first = matched[:first_batch]
    yield _batch(first, 0)
    sent = len(first)

    if entry.loaded:
        rest = matched[sent:]
        if rest:
            yield _batch(rest, sent)
            sent += len(rest)
        yield _done(sent)
        return

    while True:
        if await request.is_disconnected():
            logger.info("SSE client disconnected from %s after %d items", category.value, sent)
            return
        await asyncio.sleep(poll_interval)

        matched = filter_records(entry.items, search)
        if len(matched) > sent:
            yield _batch(matched[sent:], sent)
            sent = len(matched)
        if entry.loaded:
            yield _done(len(matched))
            return
        if not entry.loading:
            # Load failed; nothing more will arrive.
            logger.warning("Load of %s failed during stream, closing after %d items", category.value, sent)
            yield _done(sent)
            return
