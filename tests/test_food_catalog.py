"""Tests for portion math, custom food validation and catalog lookups."""

import asyncio

import pytest

from calorie_tracker.domain.diary import CustomEntry
from calorie_tracker.domain.errors import CustomFoodError
from calorie_tracker.domain.foods import CustomFoodInput, FoodSource
from calorie_tracker.domain.results import ErrorKind
from calorie_tracker.services.foods import (
    FoodCatalogService,
    macro_calorie_check,
    portion_nutrition,
    validate_custom_entry,
    validate_custom_food,
)
from tests.conftest import FakeBarcodeLookup, FakeProvider, make_food


@pytest.mark.parametrize(
    ("amount", "unit", "grams"),
    [
        (150, "g", 150),
        (2, "serving", 60),
        (1, "oz", 28.35),
        (1, "lb", 453.592),
        (1, "cup", 30),
    ],
)
def test_portion_converts_units_to_grams(amount: float, unit: str, grams: float) -> None:
    food = make_food("usda_1", "Cereal", kcal=380, grams_per_serving=30)

    assert portion_nutrition(food, amount, unit).grams == pytest.approx(grams)


def test_portion_cup_without_serving_uses_240_grams() -> None:
    food = make_food("usda_2", "Milk", kcal=42, carbs=5, protein=3.4, fat=1)

    portion = portion_nutrition(food, 1, "cup")

    assert portion.grams == 240
    assert portion.kcal == 101
    assert portion.protein == 8.2


def test_portion_serving_without_grams_falls_back_to_amount() -> None:
    food = make_food("usda_3", "Apple", kcal=52)

    assert portion_nutrition(food, 100, "serving").kcal == 52


def test_validate_custom_food_collects_all_errors() -> None:
    payload = CustomFoodInput(
        name="  ", kcal_per_100g=None, carbs_per_100g=-1, fat_per_100g=-2
    )

    with pytest.raises(CustomFoodError) as excinfo:
        validate_custom_food(payload)

    assert excinfo.value.messages == [
        "Food name is required",
        "Calories are required",
        "Carbs must be 0 or greater",
        "Fat must be 0 or greater",
    ]


def test_validate_custom_food_limits_name_length() -> None:
    with pytest.raises(CustomFoodError) as excinfo:
        validate_custom_food(CustomFoodInput(name="x" * 121, kcal_per_100g=10))

    assert excinfo.value.messages == ["Food name must be 120 characters or less"]


def test_validate_custom_entry() -> None:
    validate_custom_entry(CustomEntry(name="Snack", kcal=0))

    with pytest.raises(CustomFoodError):
        validate_custom_entry(CustomEntry(name="Snack", kcal=100, protein=-1))


def test_macro_calorie_check() -> None:
    assert macro_calorie_check(200, 25, 10, 5.5).matches
    mismatch = macro_calorie_check(500, 10, 10, 5)

    assert not mismatch.matches
    assert mismatch.calculated_kcal == 125
    assert mismatch.difference == 375
    assert macro_calorie_check(300, None, None, None).matches


def test_create_custom_food_assigns_id_and_category(food_repository) -> None:
    service = FoodCatalogService(repository=food_repository)

    food = service.create_custom_food(
        CustomFoodInput(name=" Oat Bars ", kcal_per_100g=410, brand=" ")
    )

    assert food.id.startswith("custom_")
    assert food.name == "Oat Bars"
    assert food.source == FoodSource.CUSTOM
    assert food.category == "Custom"
    assert food.brand is None
    assert food_repository.foods[food.id] == food


def test_get_food_prefers_provider_then_local(food_repository) -> None:
    remote = make_food("usda_42", "Banana")
    local = make_food("custom_abc", "Homemade Granola", source=FoodSource.CUSTOM)
    food_repository.foods[local.id] = local
    service = FoodCatalogService(
        repository=food_repository,
        providers=[FakeProvider(name="fdc", source=FoodSource.USDA, foods=[remote])],
    )

    assert asyncio.run(service.get_food("usda_42")).value == remote
    assert asyncio.run(service.get_food("custom_abc")).value == local
    assert asyncio.run(service.get_food("usda_999")).value is None


def test_get_food_reports_provider_failure(food_repository) -> None:
    service = FoodCatalogService(
        repository=food_repository,
        providers=[
            FakeProvider(
                name="fdc", source=FoodSource.USDA, error=ConnectionError("offline")
            )
        ],
    )

    result = asyncio.run(service.get_food("usda_42"))

    assert result.value is None
    assert result.error == ErrorKind.NETWORK


def test_lookup_barcode_checks_local_first(food_repository) -> None:
    local = make_food("off_111", "Cola", source=FoodSource.OFF, barcode="111")
    food_repository.foods[local.id] = local
    lookup = FakeBarcodeLookup()
    service = FoodCatalogService(repository=food_repository, barcode_lookup=lookup)

    assert asyncio.run(service.lookup_barcode("111")).value == local
    assert lookup.calls == []


def test_lookup_barcode_saves_remote_hit(food_repository) -> None:
    remote = make_food("off_222", "Crackers", source=FoodSource.OFF, barcode="222")
    lookup = FakeBarcodeLookup(products={"222": remote})
    service = FoodCatalogService(repository=food_repository, barcode_lookup=lookup)

    result = asyncio.run(service.lookup_barcode("222"))

    assert result.value == remote
    assert food_repository.foods["off_222"] == remote
    assert asyncio.run(service.lookup_barcode("333")).value is None
