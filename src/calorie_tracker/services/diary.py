"""Daily diary aggregation: totals, exercise, remaining calories."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Protocol

from calorie_tracker.domain.diary import (
    CustomEntry,
    DiaryEntry,
    EntryVariant,
    MealType,
    NutritionTotals,
)
from calorie_tracker.domain.exercise import ExerciseEntry
from calorie_tracker.domain.results import ErrorKind, Result
from calorie_tracker.services.boundary import guard
from calorie_tracker.services.exercise import ExerciseService
from calorie_tracker.services.foods import validate_custom_entry
from calorie_tracker.services.goals import round_half_up
from calorie_tracker.services.profile import ProfileService

MET_WALKING = 3.0
STEPS_PER_HOUR = 6000
NEAR_LIMIT_KCAL = 200


class DiaryRepository(Protocol):
    """Persistence interface for diary entries."""

    def list_entries(self, uid: str, day: date) -> list[DiaryEntry]:
        """Return a user's entries for a day."""

    def create_entry(self, entry: DiaryEntry) -> DiaryEntry:
        """Store an entry and return it with its id."""

    def delete_entry(self, uid: str, entry_id: str) -> None:
        """Delete an entry; missing ids are ignored."""


class StepCounter(Protocol):
    """Source of pedometer step counts."""

    def get_steps(self, uid: str, day: date) -> int:
        """Return the number of steps walked on a day."""


class ProgressState(str, Enum):
    """Colour state of the daily progress ring."""

    NOMINAL = "nominal"
    NEAR_LIMIT = "near_limit"
    OVER = "over"


@dataclass(frozen=True)
class DaySummary:
    """Aggregated view of one diary day."""

    day: date
    calorie_goal: int
    food: NutritionTotals
    meals: dict[MealType, NutritionTotals]
    workout_kcal: float
    steps: int
    step_kcal: int
    exercise_kcal: float
    remaining: float
    progress: float
    state: ProgressState
    errors: list[ErrorKind] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when every collaborator answered."""
        return not self.errors


def daily_totals(
    entries: Iterable[DiaryEntry], for_date: date | None = None
) -> NutritionTotals:
    """Sum entries, optionally only those logged on ``for_date``."""
    totals = NutritionTotals()
    for entry in entries:
        if for_date is not None and entry.day != for_date:
            continue
        totals = totals.plus(entry.kcal, entry.carbs, entry.protein, entry.fat)
    return totals


def meal_breakdown(entries: Iterable[DiaryEntry]) -> dict[MealType, NutritionTotals]:
    """Return totals per diary section, including empty sections."""
    breakdown = {meal_type: NutritionTotals() for meal_type in MealType}
    for entry in entries:
        breakdown[entry.meal_type] = breakdown[entry.meal_type].plus(
            entry.kcal, entry.carbs, entry.protein, entry.fat
        )
    return breakdown


def remaining(goal: float, food_kcal: float, exercise_kcal: float) -> float:
    """Return goal - food + exercise."""
    return goal - food_kcal + exercise_kcal


def step_calories(steps: int, weight_kg: float | None) -> int:
    """Estimate walking calories at 6000 steps per hour and MET 3.0."""
    if not steps or not weight_kg:
        return 0
    return round_half_up(MET_WALKING * weight_kg * (steps / STEPS_PER_HOUR))


def exercise_total(exercises: Iterable[ExerciseEntry], step_kcal: float) -> float:
    """Sum workout calories and the step estimate."""
    return sum(exercise.calories for exercise in exercises) + step_kcal


def progress_ratio(food_kcal: float, goal: float) -> float:
    if goal <= 0:
        return 0.0
    return min(food_kcal / goal, 1.0)


def progress_state(remaining_kcal: float) -> ProgressState:
    if remaining_kcal > NEAR_LIMIT_KCAL:
        return ProgressState.NOMINAL
    if remaining_kcal > 0:
        return ProgressState.NEAR_LIMIT
    return ProgressState.OVER


@dataclass
class DiaryService:
    """Service for logging food and summarising diary days."""

    repository: DiaryRepository
    exercise_service: ExerciseService
    profile_service: ProfileService
    step_counter: StepCounter | None = None

    def list_entries(self, uid: str, day: date) -> Result[list[DiaryEntry]]:
        """Return the day's entries, empty on persistence failure."""
        return guard(
            lambda: self.repository.list_entries(uid, day),
            default=[],
            kind=ErrorKind.PERSISTENCE,
            action=f"list_entries:{uid}:{day.isoformat()}",
        )

    def log_entry(
        self, uid: str, day: date, meal_type: MealType, variant: EntryVariant
    ) -> DiaryEntry:
        """Snapshot a variant's nutrition into a new diary entry."""
        if isinstance(variant, CustomEntry):
            validate_custom_entry(variant)
        return self.repository.create_entry(variant.to_entry(uid, day, meal_type))

    def delete_entry(self, uid: str, entry_id: str) -> None:
        """Delete an entry. Deleting twice is a no-op."""
        self.repository.delete_entry(uid, entry_id)

    def get_day_summary(
        self, uid: str, day: date, steps: int | None = None
    ) -> DaySummary:
        """Aggregate a diary day, degrading failed collaborators to empty data.

        ``steps`` overrides the step counter when the client already knows
        the count.
        """
        profile_result = self.profile_service.load(uid)
        entries_result = self.list_entries(uid, day)
        exercise_result = self.exercise_service.list_exercise(uid, day)
        steps_result = (
            Result.success(steps) if steps is not None else self._steps(uid, day)
        )
        errors = [
            result.error
            for result in (profile_result, entries_result, exercise_result, steps_result)
            if result.error is not None
        ]

        profile = profile_result.value
        goal = profile.calorie_goal or 0
        entries = entries_result.value
        food = daily_totals(entries, for_date=day)
        step_kcal = step_calories(steps_result.value, profile.weight_kg)
        exercise_kcal = exercise_total(exercise_result.value, step_kcal)
        left = remaining(goal, food.kcal, exercise_kcal)
        return DaySummary(
            day=day,
            calorie_goal=goal,
            food=food,
            meals=meal_breakdown(entry for entry in entries if entry.day == day),
            workout_kcal=exercise_kcal - step_kcal,
            steps=steps_result.value,
            step_kcal=step_kcal,
            exercise_kcal=exercise_kcal,
            remaining=left,
            progress=progress_ratio(food.kcal, goal),
            state=progress_state(left),
            errors=errors,
        )

    def _steps(self, uid: str, day: date) -> Result[int]:
        if self.step_counter is None:
            return Result.success(0)
        return guard(
            lambda: self.step_counter.get_steps(uid, day),
            default=0,
            kind=ErrorKind.SENSOR,
            action=f"get_steps:{uid}:{day.isoformat()}",
        )
