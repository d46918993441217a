"""Saved meal ("My Meals") service."""

from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from uuid import uuid4

from calorie_tracker.domain.diary import DiaryEntry, FromMyMeal, MealType
from calorie_tracker.domain.errors import MealValidationError
from calorie_tracker.domain.meals import MyMeal, MyMealItem
from calorie_tracker.domain.results import ErrorKind, Result
from calorie_tracker.services.boundary import guard
from calorie_tracker.services.diary import DiaryService


class MyMealRepository(Protocol):
    """Persistence interface for saved meals and their items."""

    def list_meals(self, uid: str) -> list[MyMeal]:
        """Return a user's meals, newest first, items in sort order."""

    def get_meal(self, uid: str, meal_id: str) -> MyMeal | None:
        """Return one meal with its items."""

    def create_meal(self, meal: MyMeal) -> MyMeal:
        """Store a meal and its items."""

    def delete_meal(self, uid: str, meal_id: str) -> None:
        """Delete a meal and its items; missing ids are ignored."""


@dataclass
class MyMealService:
    """Service for building, listing and quick-adding saved meals."""

    repository: MyMealRepository
    diary_service: DiaryService

    def create_meal(  # noqa: PLR0913
        self,
        uid: str,
        name: str,
        items: list[MyMealItem],
        photo: str | None = None,
        directions: str | None = None,
        meal_id: str | None = None,
    ) -> MyMeal:
        """Store a meal, totalling its items and numbering them in order."""
        cleaned = name.strip()
        if not cleaned:
            raise MealValidationError(["Please enter a meal name"])
        ordered = [replace(item, sort_order=index) for index, item in enumerate(items)]
        meal = MyMeal(
            id=meal_id or f"meal_{uuid4().hex[:12]}",
            user_uid=uid,
            name=cleaned,
            total_kcal=round(sum(item.kcal for item in ordered), 1),
            total_carbs=round(sum(item.carbs for item in ordered), 1),
            total_protein=round(sum(item.protein for item in ordered), 1),
            total_fat=round(sum(item.fat for item in ordered), 1),
            items=ordered,
            photo=photo,
            directions=(directions or "").strip() or None,
        )
        return self.repository.create_meal(meal)

    def list_meals(self, uid: str) -> Result[list[MyMeal]]:
        """Return saved meals, empty on persistence failure."""
        return guard(
            lambda: self.repository.list_meals(uid),
            default=[],
            kind=ErrorKind.PERSISTENCE,
            action=f"list_meals:{uid}",
        )

    def delete_meal(self, uid: str, meal_id: str) -> None:
        """Delete a meal and its items. Deleting twice is a no-op."""
        self.repository.delete_meal(uid, meal_id)

    def log_meal(
        self,
        uid: str,
        meal_id: str,
        day: date,
        meal_type: MealType,
        servings: float = 1.0,
    ) -> DiaryEntry | None:
        """Add a saved meal to the diary as one entry; None if it is unknown."""
        meal = self.repository.get_meal(uid, meal_id)
        if meal is None:
            return None
        return self.diary_service.log_entry(
            uid, day, meal_type, FromMyMeal(meal=meal, servings=servings)
        )
