"""Food catalog: custom foods, id and barcode lookups, portion math."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from calorie_tracker.domain.diary import CustomEntry
from calorie_tracker.domain.errors import CustomFoodError
from calorie_tracker.domain.foods import (
    CustomFoodInput,
    Food,
    FoodSource,
    MacroCheck,
    PortionNutrition,
)
from calorie_tracker.domain.results import ErrorKind, Result
from calorie_tracker.services.boundary import guard, guard_async
from calorie_tracker.services.search import FoodRepository, NutritionProvider

MAX_NAME_LENGTH = 120
MACRO_MISMATCH_PERCENT = 15

_ID_PREFIXES = {
    "usda": FoodSource.USDA,
    "off": FoodSource.OFF,
    "fatsecret": FoodSource.FATSECRET,
}

_logger = logging.getLogger(__name__)


class BarcodeLookup(Protocol):
    """Provider that can resolve product barcodes."""

    async def lookup_barcode(self, barcode: str) -> Food | None:
        """Return the product for a barcode, if known."""


def portion_nutrition(food: Food, amount: float, unit: str = "g") -> PortionNutrition:
    """Return nutrition for ``amount`` of ``unit`` of a food."""
    return food.portion(amount, unit)


def macro_calorie_check(
    kcal: float, carbs: float | None, protein: float | None, fat: float | None
) -> MacroCheck:
    """Flag entered calories more than 15% away from 4/4/9 macro calories."""
    carbs, protein, fat = carbs or 0.0, protein or 0.0, fat or 0.0
    calculated = carbs * 4 + protein * 4 + fat * 9
    if carbs == 0 and protein == 0 and fat == 0:
        return MacroCheck(matches=True, difference=0, calculated_kcal=0)
    difference = abs(kcal - calculated)
    percent = difference / kcal * 100 if kcal > 0 else 0.0
    return MacroCheck(
        matches=percent <= MACRO_MISMATCH_PERCENT,
        difference=round(difference),
        calculated_kcal=round(calculated),
    )


def validate_custom_food(payload: CustomFoodInput) -> None:
    """Raise CustomFoodError listing every problem with a custom food."""
    errors: list[str] = []
    name = payload.name.strip()
    if not name:
        errors.append("Food name is required")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Food name must be {MAX_NAME_LENGTH} characters or less")
    if payload.kcal_per_100g is None:
        errors.append("Calories are required")
    elif payload.kcal_per_100g < 0:
        errors.append("Calories must be 0 or greater")
    errors.extend(
        _non_negative(
            ("Carbs", payload.carbs_per_100g),
            ("Protein", payload.protein_per_100g),
            ("Fat", payload.fat_per_100g),
            ("Grams per serving", payload.grams_per_serving),
        )
    )
    if errors:
        raise CustomFoodError(errors)


def validate_custom_entry(entry: CustomEntry) -> None:
    """Raise CustomFoodError when a quick-add entry has negative values."""
    errors = []
    if entry.kcal < 0:
        errors.append("Calories must be 0 or greater")
    errors.extend(
        _non_negative(
            ("Carbs", entry.carbs), ("Protein", entry.protein), ("Fat", entry.fat)
        )
    )
    if errors:
        raise CustomFoodError(errors)


def _non_negative(*fields: tuple[str, float | None]) -> list[str]:
    return [
        f"{label} must be 0 or greater"
        for label, value in fields
        if value is not None and value < 0
    ]


@dataclass
class FoodCatalogService:
    """Service for resolving and creating catalog foods."""

    repository: FoodRepository
    providers: list[NutritionProvider] = field(default_factory=list)
    barcode_lookup: BarcodeLookup | None = None

    def create_custom_food(self, payload: CustomFoodInput) -> Food:
        """Validate and store a user-created food."""
        validate_custom_food(payload)
        food = Food(
            id=f"custom_{uuid4().hex[:12]}",
            name=payload.name.strip(),
            source=FoodSource.CUSTOM,
            kcal_per_100g=float(payload.kcal_per_100g or 0.0),
            carbs_per_100g=payload.carbs_per_100g or 0.0,
            protein_per_100g=payload.protein_per_100g or 0.0,
            fat_per_100g=payload.fat_per_100g or 0.0,
            brand=(payload.brand or "").strip() or None,
            serving_label=(payload.serving_label or "").strip() or None,
            grams_per_serving=payload.grams_per_serving,
            barcode=payload.barcode,
            category=payload.category or "Custom",
        )
        return self.repository.create_food(food)

    async def get_food(self, food_id: str) -> Result[Food | None]:
        """Resolve a food id through its provider first, then the local catalog."""
        prefix, _, external_id = food_id.partition("_")
        provider = self._provider_for(prefix)
        remote: Result[Food | None] = Result.success(None)
        if provider is not None and external_id:
            remote = await guard_async(
                lambda: provider.get_food(external_id),
                default=None,
                kind=ErrorKind.NETWORK,
                action=f"get_food:{food_id}",
            )
            if remote.value is not None:
                return remote
        local = guard(
            lambda: self.repository.get_food(food_id),
            default=None,
            kind=ErrorKind.PERSISTENCE,
            action=f"get_food_local:{food_id}",
        )
        if local.value is not None or remote.ok:
            return local
        return remote

    async def lookup_barcode(self, barcode: str) -> Result[Food | None]:
        """Find a product by barcode locally, then via Open Food Facts.

        Products found remotely are saved to the local catalog.
        """
        local = guard(
            lambda: self.repository.find_by_barcode(barcode),
            default=None,
            kind=ErrorKind.PERSISTENCE,
            action=f"find_by_barcode:{barcode}",
        )
        if local.value is not None or self.barcode_lookup is None:
            return local
        remote = await guard_async(
            lambda: self.barcode_lookup.lookup_barcode(barcode),
            default=None,
            kind=ErrorKind.NETWORK,
            action=f"lookup_barcode:{barcode}",
        )
        if remote.value is not None:
            saved = guard(
                lambda: self.repository.create_food(remote.value),
                default=remote.value,
                kind=ErrorKind.PERSISTENCE,
                action=f"save_barcode_food:{barcode}",
            )
            if saved.ok:
                _logger.info("Saved barcode product: barcode=%s", barcode)
        return remote

    def _provider_for(self, prefix: str) -> NutritionProvider | None:
        source = _ID_PREFIXES.get(prefix)
        return next(
            (provider for provider in self.providers if provider.source == source),
            None,
        )
