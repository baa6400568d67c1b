"""
In-memory resource cache and the loader that fills it.

The ``ResourceStore`` keeps one ``CacheEntry`` per category: the full,
enriched collection plus ``loaded``/``loading`` flags. It is created once
per application and handed to the loader and the routes; nothing in
this module is a module-level singleton.

The ``ResourceLoader`` fetches a category from the upstream client,
enriches every record, runs the category's post-processing hooks (the
``films`` collection gets the supplemental sequel films) and publishes
the result exactly once. Concurrent callers asking for the same
category share one in-flight ``asyncio.Task`` instead of issuing their
own upstream request. A failed load leaves the entry cold; the next
caller simply triggers a new attempt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from typing_extensions import Protocol

from .enrichment import enrich
from .errors import UpstreamError
from .films import merge_extra_films
from .schemas import CacheStatusEntry, Record, ResourceCategory


logger = logging.getLogger(__name__)

PostProcessor = Callable[[List[Record]], List[Record]]


def default_post_processors(image_base_url: str) -> Dict[ResourceCategory, Tuple[PostProcessor, ...]]:
    """Transformations applied to a freshly fetched collection before it
    is published, per category."""
    return {
        ResourceCategory.films: (partial(merge_extra_films, image_base_url=image_base_url),),
    }


class CategoryFetcher(Protocol):
    async def fetch_category(self, category: ResourceCategory) -> List[Dict[str, Any]]:
        ...


@dataclass
class CacheEntry:
    """Cached collection for one category.

    ``items`` is replaced as a whole (never mutated in place), so a
    reader holding a reference always sees a consistent snapshot.
    """

    items: Tuple[Record, ...] = ()
    loaded: bool = False
    loading: bool = False


class ResourceStore:
    """Per-category cache entries for the lifetime of the process."""

    def __init__(self, categories: Iterable[ResourceCategory] = ResourceCategory) -> None:
        self._entries: Dict[ResourceCategory, CacheEntry] = {
            ResourceCategory(c): CacheEntry() for c in categories
        }

    def entry(self, category: ResourceCategory) -> CacheEntry:
        return self._entries[ResourceCategory(category)]

    def categories(self) -> List[ResourceCategory]:
        return list(self._entries)

    def begin_load(self, category: ResourceCategory) -> None:
        self.entry(category).loading = True

    def publish(self, category: ResourceCategory, items: Sequence[Record]) -> None:
        """Store the final collection and mark the category loaded."""
        entry = self.entry(category)
        entry.items = tuple(items)
        entry.loaded = True
        entry.loading = False

    def end_load(self, category: ResourceCategory) -> None:
        self.entry(category).loading = False

    def status(self) -> Dict[str, CacheStatusEntry]:
        return {
            category.value: CacheStatusEntry(loaded=entry.loaded, count=len(entry.items))
            for category, entry in self._entries.items()
        }


class ResourceLoader:
    """Fill the ``ResourceStore`` from the upstream catalog.

    Parameters
    ----------
    store : ResourceStore
        Cache to publish into.
    client : CategoryFetcher
        Anything with an async ``fetch_category(category)``; normally a
        ``SwapiClient``.
    image_base_url : str
        Image CDN root used during enrichment.
    post_processors : Optional[Mapping[ResourceCategory, Sequence[PostProcessor]]]
        Hooks run on the enriched collection before publishing.
        Defaults to :func:`default_post_processors` bound to ``image_base_url``.
    """

    def __init__(
        self,
        store: ResourceStore,
        client: CategoryFetcher,
        image_base_url: str,
        post_processors: Optional[Mapping[ResourceCategory, Sequence[PostProcessor]]] = None,
    ) -> None:
        self.store = store
        self.client = client
        self.image_base_url = image_base_url
        self.post_processors = (
            default_post_processors(image_base_url) if post_processors is None else post_processors
        )
        self._tasks: Dict[ResourceCategory, "asyncio.Task[None]"] = {}

    def trigger(self, category: ResourceCategory) -> Optional["asyncio.Task[None]"]:
        """Start loading ``category`` unless it is loaded or already loading.

        Returns the in-flight task, or ``None`` when the category is
        already cached. Must be called from within the event loop.
        """
        category = ResourceCategory(category)
        if self.store.entry(category).loaded:
            return None
        task = self._tasks.get(category)
        if task is None or task.done():
            self.store.begin_load(category)
            task = asyncio.ensure_future(self._load(category))
            self._tasks[category] = task
        return task

    async def ensure_loaded(self, category: ResourceCategory) -> CacheEntry:
        """Wait until ``category`` has been loaded (or the attempt failed).

        Safe to call concurrently: every caller awaits the same task. The
        wait is shielded, so a cancelled caller does not cancel the load.
        """
        task = self.trigger(category)
        if task is not None:
            await asyncio.shield(task)
        return self.store.entry(category)

    async def wait_loaded(self, category: ResourceCategory, timeout: float) -> CacheEntry:
        """Like :meth:`ensure_loaded` but give up waiting after ``timeout``.

        The load itself keeps running in the background.
        """
        task = self.trigger(category)
        if task is not None:
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Still loading %s after %.1fs, serving current cache",
                    ResourceCategory(category).value,
                    timeout,
                )
        return self.store.entry(category)

    async def ensure_all_loaded(
        self, categories: Optional[Iterable[ResourceCategory]] = None
    ) -> None:
        targets = list(categories) if categories is not None else self.store.categories()
        await asyncio.gather(*(self.ensure_loaded(c) for c in targets))

    async def preload_all(self) -> None:
        """Warm every category in parallel; used at application start."""
        started = time.monotonic()
        logger.info("Preloading %d categories", len(self.store.categories()))
        await self.ensure_all_loaded()
        loaded = [c.value for c in self.store.categories() if self.store.entry(c).loaded]
        failed = [c.value for c in self.store.categories() if not self.store.entry(c).loaded]
        logger.info(
            "Preload finished in %.2fs: loaded=%s failed=%s",
            time.monotonic() - started,
            loaded,
            failed,
        )

    async def _load(self, category: ResourceCategory) -> None:
        try:
            raw = await self.client.fetch_category(category)
            records = [enrich(category, item, self.image_base_url) for item in raw]
            for hook in self.post_processors.get(category, ()):
                records = hook(records)
        except UpstreamError as exc:
            logger.error("Failed to load %s: %s", category.value, exc)
        except Exception:
            logger.exception("Unexpected error while loading %s", category.value)
        else:
            self.store.publish(category, records)
            logger.info("Cached %d %s", len(records), category.value)
        finally:
            self.store.end_load(category)
