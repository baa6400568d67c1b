"""
Catalog package for the Star Wars API proxy.

This package contains the upstream client, the record enrichment, the
in-memory resource cache with its loader, the search/pagination engine
and the route definitions that expose all of it under ``/api``. Every
collection is fetched from the upstream at most once per process (when
the fetch succeeds) and served from memory afterwards.
"""

from .router import router as catalog_router  # noqa: F401
