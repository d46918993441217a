"""Pydantic request models for the REST API."""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from calorie_tracker.domain.diary import MealType
from calorie_tracker.domain.exercise import ExerciseCategory
from calorie_tracker.domain.foods import CustomFoodInput
from calorie_tracker.domain.meals import MyMealItem
from calorie_tracker.domain.profile import ActivityLevel, Profile, Sex, WeeklyGoal


class ProfileSyncRequest(BaseModel):
    """Full profile pushed by the client, e.g. at the end of onboarding."""

    uid: str = Field(min_length=1)
    sex: Sex = Sex.MALE
    date_of_birth: dt.date | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    starting_weight_kg: float | None = None
    goal_weight_kg: float | None = None
    activity_level: ActivityLevel | None = None
    weekly_goal_delta: int = WeeklyGoal.LOSE_0_5.delta
    macro_c: int = 50
    macro_p: int = 20
    macro_f: int = 30

    def to_profile(self) -> Profile:
        return Profile(
            uid=self.uid,
            sex=self.sex,
            date_of_birth=self.date_of_birth,
            age=self.age,
            height_cm=self.height_cm,
            weight_kg=self.weight_kg,
            starting_weight_kg=self.starting_weight_kg,
            goal_weight_kg=self.goal_weight_kg,
            activity_level=self.activity_level,
            weekly_goal=WeeklyGoal.from_delta(self.weekly_goal_delta),
            macro_c=self.macro_c,
            macro_p=self.macro_p,
            macro_f=self.macro_f,
        )


class ProfileEditRequest(BaseModel):
    """Partial profile edit; only fields that are sent are changed."""

    sex: Sex | None = None
    date_of_birth: dt.date | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    goal_weight_kg: float | None = None
    activity_level: ActivityLevel | None = None
    weekly_goal_delta: int | None = None
    macro_c: int | None = None
    macro_p: int | None = None
    macro_f: int | None = None

    def changes(self) -> dict[str, object]:
        """Return the edited fields as profile attribute changes."""
        values = self.model_dump(exclude_unset=True)
        delta = values.pop("weekly_goal_delta", None)
        if delta is not None:
            values["weekly_goal"] = WeeklyGoal.from_delta(delta)
        return values


class CustomFoodRequest(BaseModel):
    """User-created food with per 100 g values."""

    name: str
    kcal_per_100g: float | None = None
    carbs_per_100g: float | None = None
    protein_per_100g: float | None = None
    fat_per_100g: float | None = None
    grams_per_serving: float | None = None
    serving_label: str | None = None
    brand: str | None = None
    barcode: str | None = None
    category: str | None = None

    def to_input(self) -> CustomFoodInput:
        return CustomFoodInput(**self.model_dump())


class DiaryEntryRequest(BaseModel):
    """Diary entry from any of the logging flows.

    ``kind`` selects which fields are read: ``search`` uses ``food_id``,
    ``barcode`` uses ``barcode``, ``scan`` uses ``name``/``grams`` and the per
    100 g values, ``my_meal`` uses ``meal_id``/``servings`` and ``custom``
    uses ``name`` with absolute ``kcal`` and macros.
    """

    uid: str = Field(min_length=1)
    date: dt.date
    meal_type: MealType
    kind: Literal["search", "barcode", "scan", "my_meal", "custom"]
    food_id: str | None = None
    barcode: str | None = None
    meal_id: str | None = None
    amount: float = Field(default=100.0, gt=0)
    unit: str = "g"
    servings: float = Field(default=1.0, gt=0)
    custom_name: str | None = None
    name: str | None = None
    grams: float | None = Field(default=None, gt=0)
    kcal_per_100g: float | None = None
    carbs_per_100g: float = 0.0
    protein_per_100g: float = 0.0
    fat_per_100g: float = 0.0
    kcal: float | None = None
    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0


class ExerciseEntryRequest(BaseModel):
    """Workout to log; ``activity_id`` fills name, category and MET from the catalog."""

    uid: str = Field(min_length=1)
    date: dt.date
    duration_min: int
    activity_id: str | None = None
    category: ExerciseCategory | None = None
    name: str | None = None
    met: float | None = Field(default=None, gt=0)
    time: dt.time | None = None
    distance: float | None = None
    sets: int | None = None
    reps: int | None = None
    weight: float | None = None


class MyMealItemRequest(BaseModel):
    """Line item of a meal being saved."""

    name: str
    amount: float
    unit: str = "g"
    kcal: float
    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    food_id: str | None = None

    def to_item(self) -> MyMealItem:
        return MyMealItem(**self.model_dump())


class MyMealRequest(BaseModel):
    """Saved meal with its items."""

    uid: str = Field(min_length=1)
    name: str
    items: list[MyMealItemRequest] = Field(default_factory=list)
    photo: str | None = None
    directions: str | None = None


class LogMealRequest(BaseModel):
    """Quick-add of a saved meal to the diary."""

    date: dt.date
    meal_type: MealType
    servings: float = Field(default=1.0, gt=0)


class StepsRequest(BaseModel):
    """Pedometer reading pushed by the device."""

    uid: str = Field(min_length=1)
    date: dt.date
    steps: int = Field(ge=0)


class FoodImageRequest(BaseModel):
    """Meal photo encoded as base64."""

    image: str = Field(min_length=1)
