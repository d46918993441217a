"""Tests for vision service."""

import asyncio
from datetime import date

import pytest
from pydantic import ValidationError

from calorie_tracker.domain.diary import EntrySource, MealType
from calorie_tracker.services.vision import VisionService, _to_data_url
from tests.conftest import FakeVisionClient


def _service(client: FakeVisionClient) -> VisionService:
    return VisionService(
        client=client,
        model="gpt-5.2",
        reasoning_effort="high",
        store=False,
    )


def test_vision_service_returns_structured_items() -> None:
    client = FakeVisionClient()

    result = asyncio.run(_service(client).extract(b"\xff\xd8\xffimage"))

    rice = result.items[0]
    assert rice.name == "white rice"
    assert rice.kind == "unpackaged"
    assert rice.grams_per_serving == 158
    assert client.calls[0]["image_data_url"].startswith("data:image/jpeg;base64,")


def test_vision_item_converts_to_scan_entry() -> None:
    result = asyncio.run(_service(FakeVisionClient()).extract(b"image"))

    entry = result.items[0].to_variant().to_entry(
        "user-1", date(2024, 5, 1), MealType.DINNER
    )
    half = result.items[0].to_variant(grams=79).to_entry(
        "user-1", date(2024, 5, 1), MealType.DINNER
    )

    assert entry.source == EntrySource.SCAN
    assert entry.amount == 158
    assert entry.kcal == 205
    assert entry.carbs == 44.6
    assert half.kcal == 103


def test_vision_service_rejects_out_of_range_confidence() -> None:
    client = FakeVisionClient(
        payload={
            "items": [
                {
                    "name": "toast",
                    "kind": "unpackaged",
                    "confidence": 1.5,
                    "serving_text": None,
                    "grams_per_serving": 30,
                    "kcal_per_100g": 265,
                }
            ]
        }
    )

    with pytest.raises(ValidationError):
        asyncio.run(_service(client).extract(b"image"))


def test_to_data_url_uses_png_header() -> None:
    data = b"\x89PNG\r\n\x1a\n" + b"rest"
    url = _to_data_url(data)

    assert url.startswith("data:image/png;base64,")


def test_to_data_url_detects_webp() -> None:
    assert _to_data_url(b"RIFF\x00\x00\x00\x00WEBPVP8 ").startswith(
        "data:image/webp;base64,"
    )


def test_to_data_url_defaults_to_jpeg() -> None:
    data = b"unknown"
    url = _to_data_url(data)

    assert url.startswith("data:image/jpeg;base64,")
