"""
Pydantic schema definitions for the catalog module.

Records coming from the upstream catalog are open-ended, so they are
carried as plain dictionaries. The models here only describe the
envelopes wrapped around them: the SWAPI-compatible paginated list, the
per-category universe dump and the cache introspection payload.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


Record = Dict[str, Any]


class ResourceCategory(str, Enum):
    """The fixed set of resource collections served by the proxy."""

    people = "people"
    planets = "planets"
    starships = "starships"
    vehicles = "vehicles"
    species = "species"
    films = "films"


class PaginatedResources(BaseModel):
    """A page of records in the shape used by the original SWAPI.

    ``count`` is the number of records matching the search (not the
    size of the whole collection). ``next`` and ``previous`` are
    absolute URLs, or ``None`` at either end of the result set.
    """

    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[Record] = Field(default_factory=list)


class UniverseEntry(BaseModel):
    count: int
    results: List[Record] = Field(default_factory=list)


class CacheStatusEntry(BaseModel):
    loaded: bool
    count: int


class HealthStatus(BaseModel):
    status: str = "OK"
    message: str = "Star Wars API is running"
