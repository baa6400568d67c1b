from __future__ import annotations

import asyncio
import os
import socket
from typing import Any, Dict, List, Optional

import pytest

# Keep settings from reading a developer's local .env during tests.
os.environ.setdefault("APP_ENV", "test")

from swapi_proxy.catalog.errors import UpstreamUnavailable  # noqa: E402
from swapi_proxy.catalog.schemas import ResourceCategory  # noqa: E402
from swapi_proxy.config import Settings  # noqa: E402


class NetworkBlockedError(RuntimeError):
    pass


def _blocked(*_args: Any, **_kwargs: Any) -> Any:
    raise NetworkBlockedError(
        "Network access is disabled during tests. "
        "Mark the test with @pytest.mark.integration/@pytest.mark.network or set ALLOW_NETWORK=1."
    )


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest) -> None:
    """Prevent accidental outbound network calls in unit tests."""

    if os.getenv("ALLOW_NETWORK") == "1":
        return

    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("network"):
        return

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket, "getaddrinfo", _blocked)


# ---------------------------------------------------------------------------
# Sample catalog data

NAMED_PEOPLE = [
    "Luke Skywalker",
    "C-3PO",
    "R2-D2",
    "Darth Vader",
    "Leia Organa",
    "Owen Lars",
    "Obi-Wan Kenobi",
    "Yoda",
    "Han Solo",
    "Chewbacca",
]


def make_people(count: int = 25) -> List[Dict[str, Any]]:
    people = []
    for n in range(1, count + 1):
        name = NAMED_PEOPLE[n - 1] if n <= len(NAMED_PEOPLE) else f"Clone Trooper {n}"
        people.append({"name": name, "url": f"https://swapi.info/api/people/{n}"})
    return people


def make_films() -> List[Dict[str, Any]]:
    # Upstream order is release order, not episode order.
    episodes = [(1, 4, "A New Hope"), (2, 5, "The Empire Strikes Back"), (3, 6, "Return of the Jedi"),
                (4, 1, "The Phantom Menace"), (5, 2, "Attack of the Clones"), (6, 3, "Revenge of the Sith")]
    return [
        {"title": title, "episode_id": episode, "url": f"https://swapi.info/api/films/{film_id}"}
        for film_id, episode, title in episodes
    ]


def make_catalog() -> Dict[ResourceCategory, List[Dict[str, Any]]]:
    catalog: Dict[ResourceCategory, List[Dict[str, Any]]] = {
        category: [{"name": f"{category.value} {n}", "url": f"https://swapi.info/api/{category.value}/{n}/"}
                   for n in range(1, 4)]
        for category in ResourceCategory
    }
    catalog[ResourceCategory.people] = make_people()
    catalog[ResourceCategory.films] = make_films()
    return catalog


class FakeSwapi:
    """In-memory stand-in for ``SwapiClient``.

    ``gate`` (when set) blocks every ``fetch_category`` until released;
    ``fail`` lists categories whose fetch raises ``UpstreamUnavailable``.
    """

    def __init__(
        self,
        catalog: Optional[Dict[ResourceCategory, List[Dict[str, Any]]]] = None,
        delay: float = 0.0,
        fail: Optional[set] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else make_catalog()
        self.delay = delay
        self.fail = set(fail or ())
        self.gate = gate
        self.calls: List[ResourceCategory] = []
        self.record_calls: List[tuple] = []
        self.record_error: Optional[Exception] = None
        self.closed = False

    async def fetch_category(self, category: ResourceCategory) -> List[Dict[str, Any]]:
        self.calls.append(category)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if category in self.fail:
            raise UpstreamUnavailable(f"{category.value} is down")
        return [dict(r) for r in self.catalog[category]]

    async def fetch_record(self, category: ResourceCategory, record_id: str) -> Dict[str, Any]:
        self.record_calls.append((category, record_id))
        if self.record_error is not None:
            raise self.record_error
        return {"name": f"Direct {record_id}", "url": f"https://swapi.info/api/{category.value}/{record_id}"}

    async def aclose(self) -> None:
        self.closed = True

    def count(self, category: ResourceCategory) -> int:
        return sum(1 for c in self.calls if c == category)


@pytest.fixture
def fake_swapi() -> FakeSwapi:
    return FakeSwapi()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        preload_on_startup=False,
        list_wait_timeout=1.0,
        stream_wait_timeout=1.0,
        stream_poll_interval=0.01,
    )
