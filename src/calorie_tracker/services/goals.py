"""Energy goal calculations (Mifflin-St Jeor BMR, TDEE, daily target)."""

import math
from dataclasses import replace
from datetime import UTC, date, datetime

from calorie_tracker.domain.profile import (
    ActivityLevel,
    Goals,
    Profile,
    Sex,
    WeeklyGoal,
)

MIN_AGE = 13
MAX_AGE = 100
DEFAULT_AGE = 25
DEFAULT_WEIGHT_KG = 70.0
DEFAULT_HEIGHT_CM = 170.0
DEFAULT_ACTIVITY_FACTOR = 1.60
HEIGHT_RANGE_CM = (120.0, 230.0)
WEIGHT_RANGE_KG = (30.0, 300.0)


def compute_age(
    date_of_birth: date | None, today: date, fallback_age: int | None = None
) -> int:
    """Return whole years since birth, clamped to the supported range."""
    if date_of_birth is None:
        age = fallback_age if fallback_age is not None else DEFAULT_AGE
    else:
        age = today.year - date_of_birth.year
        if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
            age -= 1
    return _clamp(age, MIN_AGE, MAX_AGE)


def compute_bmr(sex: Sex, weight_kg: float, height_cm: float, age: int) -> float:
    """Return basal metabolic rate in kcal/day."""
    constant = 5 if sex == Sex.MALE else -161
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + constant


def compute_tdee(bmr: float, activity_level: ActivityLevel | None) -> float:
    """Scale BMR by the activity factor, 1.60 when the level is unknown."""
    factor = activity_level.factor if activity_level else DEFAULT_ACTIVITY_FACTOR
    return bmr * factor


def compute_calorie_goal(tdee: float, weekly_goal: WeeklyGoal) -> int:
    """Return the daily target rounded to the nearest 10 kcal."""
    return round_half_up((tdee + weekly_goal.delta) / 10) * 10


def compute_goals(profile: Profile, today: date | None = None) -> Goals:
    """Derive BMR, TDEE and calorie goal from a profile.

    Missing inputs fall back to defaults and out-of-range height or weight is
    clamped, so this never fails.
    """
    resolved_today = today or datetime.now(tz=UTC).date()
    age = compute_age(profile.date_of_birth, resolved_today, profile.age)
    weight = _clamp(profile.weight_kg or DEFAULT_WEIGHT_KG, *WEIGHT_RANGE_KG)
    height = _clamp(profile.height_cm or DEFAULT_HEIGHT_CM, *HEIGHT_RANGE_CM)
    bmr = compute_bmr(profile.sex, weight, height, age)
    tdee = compute_tdee(bmr, profile.activity_level)
    return Goals(
        bmr=bmr,
        tdee=tdee,
        calorie_goal=compute_calorie_goal(tdee, profile.weekly_goal),
    )


def apply_goals(profile: Profile, today: date | None = None) -> Profile:
    """Return the profile with its cached goal values recomputed."""
    goals = compute_goals(profile, today)
    return replace(
        profile,
        bmr=round_half_up(goals.bmr),
        tdee=round_half_up(goals.tdee),
        calorie_goal=goals.calorie_goal,
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def _clamp(value, low, high):
    return max(low, min(high, value))
