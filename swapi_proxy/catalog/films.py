"""
Supplemental film records.

The upstream catalog stops at episode VI. The three sequel-trilogy
films below fill that gap; they are merged into the ``films`` collection
after it is fetched. Upstream records always win when both sides carry
the same ``id``.
"""

from __future__ import annotations

import math
from typing import Any, List, Sequence

from .enrichment import DEFAULT_IMAGE_BASE_URL, build_image_url
from .schemas import Record, ResourceCategory


def _film(
    film_id: str,
    episode_id: int,
    title: str,
    opening_crawl: str,
    director: str,
    producer: str,
    release_date: str,
) -> Record:
    return {
        "title": title,
        "episode_id": episode_id,
        "opening_crawl": opening_crawl,
        "director": director,
        "producer": producer,
        "release_date": release_date,
        "characters": [],
        "planets": [],
        "starships": [],
        "vehicles": [],
        "species": [],
        "url": f"https://swapi.info/api/films/{film_id}",
        "id": film_id,
        "image": build_image_url(ResourceCategory.films, film_id, DEFAULT_IMAGE_BASE_URL),
    }


EXTRA_FILMS: List[Record] = [
    _film(
        "7",
        7,
        "The Force Awakens",
        "Luke Skywalker has vanished. In his absence, the sinister FIRST ORDER "
        "has risen from the ashes of the Empire. Leia Organa leads a brave "
        "RESISTANCE and searches for her brother, hoping to restore peace to "
        "the galaxy.",
        "J. J. Abrams",
        "Kathleen Kennedy, J. J. Abrams, Bryan Burk",
        "2015-12-18",
    ),
    _film(
        "8",
        8,
        "The Last Jedi",
        "The FIRST ORDER reigns. Having crushed the peaceful Republic, Supreme "
        "Leader Snoke now hunts the scattered Resistance, while Rey seeks out "
        "Luke Skywalker on a remote island in the hope of reviving the Jedi.",
        "Rian Johnson",
        "Kathleen Kennedy, Ram Bergman",
        "2017-12-15",
    ),
    _film(
        "9",
        9,
        "The Rise of Skywalker",
        "The dead speak! A mysterious broadcast claims the return of Emperor "
        "Palpatine. The last members of the Resistance race to find his hidden "
        "throne world before the FIRST ORDER and a new fleet of Sith warships "
        "can crush them for good.",
        "J. J. Abrams",
        "Kathleen Kennedy, J. J. Abrams, Michelle Rejwan",
        "2019-12-20",
    ),
]


def _episode_key(record: Record) -> float:
    value: Any = record.get("episode_id")
    try:
        return float(value)
    except (TypeError, ValueError):
        # Films without a usable episode number sort last.
        return math.inf


def merge_extra_films(
    records: Sequence[Record], image_base_url: str = DEFAULT_IMAGE_BASE_URL
) -> List[Record]:
    """Merge :data:`EXTRA_FILMS` into ``records``.

    All upstream records are kept; an extra film is appended only when
    its ``id`` is not already present. Appended films get their ``image``
    rebuilt on ``image_base_url`` so they share the CDN of the upstream
    records. The result is sorted ascending by ``episode_id`` (stable, so
    ties keep their upstream order).
    """
    merged = list(records)
    seen = {r.get("id") for r in merged}
    for film in EXTRA_FILMS:
        if film["id"] not in seen:
            seen.add(film["id"])
            image = build_image_url(ResourceCategory.films, film["id"], image_base_url)
            merged.append({**film, "image": image})
    merged.sort(key=_episode_key)
    return merged
