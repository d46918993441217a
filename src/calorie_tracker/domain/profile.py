"""Profile and goal domain models."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Sex(str, Enum):
    """Biological sex used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"


class ActivityLevel(str, Enum):
    """Daily activity level with its TDEE multiplier."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"

    @property
    def factor(self) -> float:
        """Return the TDEE multiplier for this level."""
        return _ACTIVITY_FACTORS[self]


_ACTIVITY_FACTORS = {
    ActivityLevel.SEDENTARY: 1.40,
    ActivityLevel.LIGHTLY_ACTIVE: 1.60,
    ActivityLevel.ACTIVE: 1.80,
    ActivityLevel.VERY_ACTIVE: 2.00,
}


class WeeklyGoal(str, Enum):
    """Weekly weight-change target with its daily kcal delta."""

    LOSE_2 = "lose_2"
    LOSE_1_5 = "lose_1_5"
    LOSE_1 = "lose_1"
    LOSE_0_5 = "lose_0_5"
    MAINTAIN = "maintain"
    GAIN_0_5 = "gain_0_5"
    GAIN_1 = "gain_1"

    @property
    def delta(self) -> int:
        """Return the daily kcal delta (about 500 kcal/day per lb/week)."""
        return _WEEKLY_DELTAS[self]

    @property
    def goal_type(self) -> str:
        """Return lose, maintain or gain."""
        if self.delta < 0:
            return "lose"
        if self.delta > 0:
            return "gain"
        return "maintain"

    @classmethod
    def from_delta(cls, delta: int) -> "WeeklyGoal":
        """Return the goal for a signed daily delta, defaulting to lose 0.5 lb."""
        for goal in cls:
            if goal.delta == delta:
                return goal
        return cls.LOSE_0_5

    @classmethod
    def from_stored(cls, goal_type: str | None, rate_kcal_per_day: int) -> "WeeklyGoal":
        """Rebuild the goal from the persisted goal type and absolute rate."""
        if goal_type is None:
            return cls.LOSE_0_5
        if goal_type == "maintain":
            return cls.MAINTAIN
        sign = 1 if goal_type == "gain" else -1
        return cls.from_delta(sign * abs(rate_kcal_per_day))


_WEEKLY_DELTAS = {
    WeeklyGoal.LOSE_2: -1000,
    WeeklyGoal.LOSE_1_5: -750,
    WeeklyGoal.LOSE_1: -500,
    WeeklyGoal.LOSE_0_5: -250,
    WeeklyGoal.MAINTAIN: 0,
    WeeklyGoal.GAIN_0_5: 250,
    WeeklyGoal.GAIN_1: 500,
}


@dataclass(frozen=True)
class MacroSplit:
    """Macro percentages of the daily calorie goal."""

    carbs: int
    protein: int
    fat: int

    @property
    def total(self) -> int:
        """Return the sum of the three percentages."""
        return self.carbs + self.protein + self.fat


@dataclass(frozen=True)
class Profile:
    """User profile with cached goal values.

    ``bmr``, ``tdee`` and ``calorie_goal`` are derived and must be recomputed
    whenever any other attribute changes.
    """

    uid: str
    sex: Sex = Sex.MALE
    date_of_birth: date | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    starting_weight_kg: float | None = None
    goal_weight_kg: float | None = None
    activity_level: ActivityLevel | None = None
    weekly_goal: WeeklyGoal = WeeklyGoal.LOSE_0_5
    macro_c: int = 50
    macro_p: int = 20
    macro_f: int = 30
    bmr: int | None = None
    tdee: int | None = None
    calorie_goal: int | None = None

    @property
    def macro_split(self) -> MacroSplit:
        """Return the macro percentages as a split."""
        return MacroSplit(carbs=self.macro_c, protein=self.macro_p, fat=self.macro_f)


@dataclass(frozen=True)
class Goals:
    """Derived energy targets for a profile."""

    bmr: float
    tdee: float
    calorie_goal: int
