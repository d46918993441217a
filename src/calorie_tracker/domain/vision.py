"""Models for food image analysis results."""

from typing import Literal

from pydantic import BaseModel, Field

from calorie_tracker.domain.diary import FromScan


class VisionItem(BaseModel):
    """Single food detected on a photo, with per 100 g estimates."""

    name: str
    kind: Literal["packaged", "unpackaged"]
    confidence: float = Field(ge=0.0, le=1.0)
    serving_text: str | None = None
    grams_per_serving: float = Field(ge=0.0)
    kcal_per_100g: float = Field(ge=0.0)
    carbs_per_100g: float = Field(default=0.0, ge=0.0)
    protein_per_100g: float = Field(default=0.0, ge=0.0)
    fat_per_100g: float = Field(default=0.0, ge=0.0)

    def to_variant(self, grams: float | None = None) -> FromScan:
        """Return a loggable scan variant for this item."""
        return FromScan(
            name=self.name,
            grams=self.grams_per_serving if grams is None else grams,
            kcal_per_100g=self.kcal_per_100g,
            carbs_per_100g=self.carbs_per_100g,
            protein_per_100g=self.protein_per_100g,
            fat_per_100g=self.fat_per_100g,
        )


class VisionExtract(BaseModel):
    """Structured output for food image analysis."""

    items: list[VisionItem]
