"""Food photo analysis using a vision LLM."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from calorie_tracker.domain.vision import VisionExtract

_NUMBER = {"type": "number", "minimum": 0.0}

VISION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "kind": {"type": "string", "enum": ["packaged", "unpackaged"]},
                    "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                    "serving_text": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                    "grams_per_serving": _NUMBER,
                    "kcal_per_100g": _NUMBER,
                    "carbs_per_100g": _NUMBER,
                    "protein_per_100g": _NUMBER,
                    "fat_per_100g": _NUMBER,
                },
                "required": [
                    "name",
                    "kind",
                    "confidence",
                    "serving_text",
                    "grams_per_serving",
                    "kcal_per_100g",
                    "carbs_per_100g",
                    "protein_per_100g",
                    "fat_per_100g",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

VISION_PROMPT = (
    "Identify the foods clearly visible in the image, ignoring tableware and "
    "decoration. For each item return its name, whether it is packaged or "
    "unpackaged, a confidence between 0 and 1, the serving description printed "
    "on the package if any, the grams in one serving (convert liquids at about "
    "1.03 g/ml, estimate unpackaged portions such as a bowl of rice at 150 g), "
    "and kcal, carbs, protein and fat per 100 g consistent with USDA data."
)

_logger = logging.getLogger(__name__)


class VisionClient(Protocol):
    """Interface for LLM vision extraction."""

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured vision extraction data."""


@dataclass
class VisionService:
    """Service that prepares the food photo prompt and validates results."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def extract(self, image_bytes: bytes) -> VisionExtract:
        """Detect foods on a photo with per 100 g nutrition estimates."""
        raw = await self.client.extract(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            image_data_url=_to_data_url(image_bytes),
            schema=VISION_SCHEMA,
            prompt=VISION_PROMPT,
        )
        extract = VisionExtract.model_validate(raw)
        _logger.info("Vision detected %s food items", len(extract.items))
        return extract


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
