"""Diary entry models and the entry-source variants that produce them."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from calorie_tracker.domain.foods import Food
from calorie_tracker.domain.meals import MyMeal


class MealType(str, Enum):
    """Diary section an entry belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class EntrySource(str, Enum):
    """Logging flow that created a diary entry."""

    DATABASE = "database"
    SCAN = "scan"
    MY_MEAL = "my_meal"
    CUSTOM = "custom"


@dataclass(frozen=True)
class NutritionTotals:
    """Summed energy and macros."""

    kcal: float = 0.0
    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0

    def plus(self, kcal: float, carbs: float, protein: float, fat: float) -> "NutritionTotals":
        """Return new totals with the given values added."""
        return NutritionTotals(
            kcal=self.kcal + kcal,
            carbs=self.carbs + carbs,
            protein=self.protein + protein,
            fat=self.fat + fat,
        )


@dataclass(frozen=True)
class DiaryEntry:
    """Logged food item with nutrition snapshotted at creation."""

    user_uid: str
    day: date
    meal_type: MealType
    food_name: str
    amount: float
    unit: str
    source: EntrySource
    kcal: float
    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    food_id: str | None = None
    custom_name: str | None = None
    id: str | None = None

    @property
    def display_name(self) -> str:
        """Return the custom name when set, else the food name."""
        return self.custom_name or self.food_name


@dataclass(frozen=True)
class FromSearch:
    """Food picked from search results with a chosen portion."""

    food: Food
    amount: float
    unit: str = "g"
    custom_name: str | None = None

    def to_entry(self, user_uid: str, day: date, meal_type: MealType) -> DiaryEntry:
        return _from_food(
            self.food,
            self.amount,
            self.unit,
            EntrySource.DATABASE,
            user_uid=user_uid,
            day=day,
            meal_type=meal_type,
            custom_name=self.custom_name,
        )


@dataclass(frozen=True)
class FromBarcode:
    """Food resolved from a scanned barcode."""

    food: Food
    amount: float
    unit: str = "g"

    def to_entry(self, user_uid: str, day: date, meal_type: MealType) -> DiaryEntry:
        return _from_food(
            self.food,
            self.amount,
            self.unit,
            EntrySource.SCAN,
            user_uid=user_uid,
            day=day,
            meal_type=meal_type,
        )


@dataclass(frozen=True)
class FromScan:
    """Item detected on a meal photo, with per 100 g estimates."""

    name: str
    grams: float
    kcal_per_100g: float
    carbs_per_100g: float = 0.0
    protein_per_100g: float = 0.0
    fat_per_100g: float = 0.0

    def to_entry(self, user_uid: str, day: date, meal_type: MealType) -> DiaryEntry:
        factor = self.grams / 100.0
        return DiaryEntry(
            user_uid=user_uid,
            day=day,
            meal_type=meal_type,
            food_name=self.name,
            amount=self.grams,
            unit="g",
            source=EntrySource.SCAN,
            kcal=round(self.kcal_per_100g * factor),
            carbs=round(self.carbs_per_100g * factor, 1),
            protein=round(self.protein_per_100g * factor, 1),
            fat=round(self.fat_per_100g * factor, 1),
        )


@dataclass(frozen=True)
class FromMyMeal:
    """Saved meal quick-added as a single entry."""

    meal: MyMeal
    servings: float = 1.0

    def to_entry(self, user_uid: str, day: date, meal_type: MealType) -> DiaryEntry:
        return DiaryEntry(
            user_uid=user_uid,
            day=day,
            meal_type=meal_type,
            food_name=self.meal.name,
            amount=self.servings,
            unit="serving",
            source=EntrySource.MY_MEAL,
            kcal=round(self.meal.total_kcal * self.servings),
            carbs=round(self.meal.total_carbs * self.servings, 1),
            protein=round(self.meal.total_protein * self.servings, 1),
            fat=round(self.meal.total_fat * self.servings, 1),
            food_id=self.meal.id,
        )


@dataclass(frozen=True)
class CustomEntry:
    """Quick-add entry with nutrition typed in by the user."""

    name: str
    kcal: float
    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    amount: float = 1.0
    unit: str = "serving"

    def to_entry(self, user_uid: str, day: date, meal_type: MealType) -> DiaryEntry:
        return DiaryEntry(
            user_uid=user_uid,
            day=day,
            meal_type=meal_type,
            food_name=self.name,
            amount=self.amount,
            unit=self.unit,
            source=EntrySource.CUSTOM,
            kcal=self.kcal,
            carbs=self.carbs,
            protein=self.protein,
            fat=self.fat,
        )


EntryVariant = FromSearch | FromBarcode | FromScan | FromMyMeal | CustomEntry


def _from_food(  # noqa: PLR0913
    food: Food,
    amount: float,
    unit: str,
    source: EntrySource,
    *,
    user_uid: str,
    day: date,
    meal_type: MealType,
    custom_name: str | None = None,
) -> DiaryEntry:
    portion = food.portion(amount, unit)
    return DiaryEntry(
        user_uid=user_uid,
        day=day,
        meal_type=meal_type,
        food_name=food.name,
        amount=amount,
        unit=unit,
        source=source,
        kcal=portion.kcal,
        carbs=portion.carbs,
        protein=portion.protein,
        fat=portion.fat,
        food_id=food.id,
        custom_name=custom_name,
    )
