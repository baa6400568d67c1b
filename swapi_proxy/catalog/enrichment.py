"""
Record enrichment.

Every record served by the proxy carries two derived fields:

* ``id`` — the last path segment of the record's canonical ``url``
  (``https://swapi.info/api/people/1`` gives ``"1"``), unless the record
  already has one.
* ``image`` — a picture URL on the image CDN built from the category and
  the id, unless the record already has one.

Enrichment never fails and never performs I/O; the image URL is only
constructed, not checked.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .schemas import Record, ResourceCategory


DEFAULT_IMAGE_BASE_URL = (
    "https://cdn.jsdelivr.net/gh/tbone849/star-wars-guide@master/build/assets/img"
)

# Path segment used by the image CDN for each category.
IMAGE_SEGMENTS: Dict[ResourceCategory, str] = {
    ResourceCategory.people: "characters",
    ResourceCategory.planets: "planets",
    ResourceCategory.starships: "starships",
    ResourceCategory.vehicles: "vehicles",
    ResourceCategory.species: "species",
    ResourceCategory.films: "films",
}


def extract_id(url: Any) -> str:
    """Return the last non-empty path segment of ``url``.

    A missing or empty URL yields an empty string rather than an error.
    """
    if not url:
        return ""
    parts = [p for p in str(url).split("/") if p]
    return parts[-1] if parts else ""


def build_image_url(category: ResourceCategory, record_id: str, base_url: str) -> str:
    """Construct the CDN URL of the picture for ``record_id``."""
    segment = IMAGE_SEGMENTS[ResourceCategory(category)]
    return f"{base_url.rstrip('/')}/{segment}/{record_id}.jpg"


def enrich(category: ResourceCategory, raw: Mapping[str, Any], image_base_url: str) -> Record:
    """Return a copy of ``raw`` with ``id`` and ``image`` filled in.

    Parameters
    ----------
    category : ResourceCategory
        The collection the record belongs to; selects the image folder.
    raw : Mapping[str, Any]
        The record as received from the upstream. It is not modified.
    image_base_url : str
        Root of the image CDN.

    Returns
    -------
    Record
        A new dictionary. Existing ``id``/``image`` values are kept.
    """
    record_id = raw.get("id")
    record_id = str(record_id) if record_id not in (None, "") else extract_id(raw.get("url"))
    image = raw.get("image") or build_image_url(category, record_id, image_base_url)
    return {**raw, "id": record_id, "image": image}
