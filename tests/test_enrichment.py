from swapi_proxy.catalog.enrichment import (
    DEFAULT_IMAGE_BASE_URL,
    build_image_url,
    enrich,
    extract_id,
)
from swapi_proxy.catalog.schemas import ResourceCategory

CDN = "https://cdn.example.com/img"


def test_extract_id_takes_last_segment_with_or_without_trailing_slash():
    assert extract_id("https://swapi.info/api/people/1") == "1"
    assert extract_id("https://swapi.info/api/people/13/") == "13"


def test_extract_id_missing_url_is_empty_string():
    assert extract_id(None) == ""
    assert extract_id("") == ""
    assert extract_id("///") == ""


def test_people_images_live_under_characters():
    assert build_image_url(ResourceCategory.people, "1", CDN) == f"{CDN}/characters/1.jpg"
    assert build_image_url(ResourceCategory.planets, "3", CDN + "/") == f"{CDN}/planets/3.jpg"


def test_enrich_derives_id_and_image_without_touching_input():
    raw = {"name": "Yoda", "url": "https://swapi.info/api/people/20"}
    record = enrich(ResourceCategory.people, raw, CDN)

    assert record["id"] == "20"
    assert record["image"] == f"{CDN}/characters/20.jpg"
    assert record["name"] == "Yoda"
    assert "id" not in raw and "image" not in raw


def test_enrich_keeps_existing_id_and_image():
    raw = {"title": "Custom", "id": 42, "image": "https://img/own.png", "url": "https://x/films/1"}
    record = enrich(ResourceCategory.films, raw, CDN)

    assert record["id"] == "42"
    assert record["image"] == "https://img/own.png"


def test_enrich_without_url_gives_empty_id():
    record = enrich(ResourceCategory.species, {"name": "Unknown"}, DEFAULT_IMAGE_BASE_URL)

    assert record["id"] == ""
    assert record["image"].endswith("/species/.jpg")
