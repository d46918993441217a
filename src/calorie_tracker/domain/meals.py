"""Domain models for saved meals."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class MyMealItem:
    """Line item of a saved meal with portion-adjusted nutrition."""

    name: str
    amount: float
    unit: str
    kcal: float
    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    sort_order: int = 0
    food_id: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class MyMeal:
    """Named bundle of food items with aggregated totals."""

    id: str
    user_uid: str
    name: str
    total_kcal: float
    total_carbs: float
    total_protein: float
    total_fat: float
    items: list[MyMealItem] = field(default_factory=list)
    photo: str | None = None
    directions: str | None = None
    source: str = "custom"
    created_at: datetime | None = None
