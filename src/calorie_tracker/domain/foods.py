"""Food catalog domain models."""

from dataclasses import dataclass
from enum import Enum

GRAMS_PER_OUNCE = 28.35
GRAMS_PER_POUND = 453.592
DEFAULT_CUP_GRAMS = 240.0


class FoodSource(str, Enum):
    """Where a catalog food came from."""

    USDA = "USDA"
    OFF = "OFF"
    FATSECRET = "FATSECRET"
    CUSTOM = "CUSTOM"


POPULAR_SOURCES = frozenset({FoodSource.USDA, FoodSource.OFF})


@dataclass(frozen=True)
class PortionNutrition:
    """Nutrition for a specific portion of a food."""

    grams: float
    kcal: int
    carbs: float
    protein: float
    fat: float
    fiber: float
    sugar: float
    sodium: float


@dataclass(frozen=True)
class Food:
    """Catalog food with nutrients normalized to a 100 gram basis."""

    id: str
    name: str
    source: FoodSource
    kcal_per_100g: float
    carbs_per_100g: float = 0.0
    protein_per_100g: float = 0.0
    fat_per_100g: float = 0.0
    fiber_per_100g: float = 0.0
    sugar_per_100g: float = 0.0
    sodium_per_100g: float = 0.0
    brand: str | None = None
    serving_label: str | None = None
    grams_per_serving: float | None = None
    barcode: str | None = None
    category: str | None = None

    def grams_for(self, amount: float, unit: str) -> float:
        """Convert an amount in a unit label to grams."""
        if unit == "serving" and self.grams_per_serving:
            return amount * self.grams_per_serving
        if unit == "oz":
            return amount * GRAMS_PER_OUNCE
        if unit == "lb":
            return amount * GRAMS_PER_POUND
        if unit == "cup":
            return amount * (self.grams_per_serving or DEFAULT_CUP_GRAMS)
        return amount

    def portion(self, amount: float, unit: str = "g") -> PortionNutrition:
        """Return nutrition for a portion, scaled by grams / 100."""
        grams = self.grams_for(amount, unit)
        factor = grams / 100.0
        return PortionNutrition(
            grams=grams,
            kcal=round(self.kcal_per_100g * factor),
            carbs=round(self.carbs_per_100g * factor, 1),
            protein=round(self.protein_per_100g * factor, 1),
            fat=round(self.fat_per_100g * factor, 1),
            fiber=round(self.fiber_per_100g * factor, 1),
            sugar=round(self.sugar_per_100g * factor, 1),
            sodium=round(self.sodium_per_100g * factor, 1),
        )


@dataclass(frozen=True)
class CustomFoodInput:
    """User-entered food before validation; values are per 100 g."""

    name: str
    kcal_per_100g: float | None
    carbs_per_100g: float | None = None
    protein_per_100g: float | None = None
    fat_per_100g: float | None = None
    grams_per_serving: float | None = None
    serving_label: str | None = None
    brand: str | None = None
    barcode: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class MacroCheck:
    """Comparison of entered calories against 4/4/9 macro calories."""

    matches: bool
    difference: int
    calculated_kcal: int
