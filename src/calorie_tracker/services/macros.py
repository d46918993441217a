"""Macro percentage to gram allocation."""

from dataclasses import dataclass, replace
from enum import Enum

from calorie_tracker.domain.errors import MacroSplitError
from calorie_tracker.domain.profile import MacroSplit, Profile
from calorie_tracker.services.goals import compute_goals, round_half_up


class MacroKind(str, Enum):
    """Macronutrient with its energy density."""

    CARBS = "carbs"
    PROTEIN = "protein"
    FAT = "fat"

    @property
    def kcal_per_gram(self) -> int:
        return 9 if self is MacroKind.FAT else 4


MACRO_PRESETS: dict[str, MacroSplit] = {
    "Balanced": MacroSplit(carbs=50, protein=20, fat=30),
    "Lower Carb": MacroSplit(carbs=35, protein=30, fat=35),
    "Higher Protein": MacroSplit(carbs=40, protein=30, fat=30),
}


@dataclass(frozen=True)
class MacroTargets:
    """Gram targets for a calorie goal plus the live-editing warning state."""

    calorie_goal: int
    carbs_g: int
    protein_g: int
    fat_g: int
    percent_total: int

    @property
    def balanced(self) -> bool:
        """Return False when the percentages do not add up to 100."""
        return self.percent_total == 100


def grams_for(percentage: float, kind: MacroKind, daily_calorie_goal: float) -> int:
    """Convert a share of the daily goal into grams of a macro."""
    return round_half_up(daily_calorie_goal * (percentage / 100) / kind.kcal_per_gram)


def macro_targets(profile: Profile) -> MacroTargets:
    """Return gram targets for the profile's goal and macro split."""
    goal = profile.calorie_goal
    if goal is None:
        goal = compute_goals(profile).calorie_goal
    split = profile.macro_split
    return MacroTargets(
        calorie_goal=goal,
        carbs_g=grams_for(split.carbs, MacroKind.CARBS, goal),
        protein_g=grams_for(split.protein, MacroKind.PROTEIN, goal),
        fat_g=grams_for(split.fat, MacroKind.FAT, goal),
        percent_total=split.total,
    )


def balance_macros(split: MacroSplit) -> MacroSplit:
    """Redistribute the gap to 100 across the three macros.

    Carbs and protein each get round(diff / 3) and fat gets the exact
    remainder. If clamping to [0, 100] leaves a gap, it is absorbed by fat,
    then carbs, then protein.
    """
    diff = 100 - split.total
    if diff == 0:
        return split
    adjustment = round_half_up(diff / 3)
    values = {
        "fat": _clamp_percent(split.fat + diff - 2 * adjustment),
        "carbs": _clamp_percent(split.carbs + adjustment),
        "protein": _clamp_percent(split.protein + adjustment),
    }
    residual = 100 - sum(values.values())
    for name in ("fat", "carbs", "protein"):
        if residual == 0:
            break
        updated = _clamp_percent(values[name] + residual)
        residual -= updated - values[name]
        values[name] = updated
    return MacroSplit(**values)


def validate_macro_split(split: MacroSplit) -> None:
    """Raise MacroSplitError unless the split totals exactly 100%."""
    if split.total != 100:
        raise MacroSplitError(
            [f"Macros must add up to 100% (currently {split.total}%)."]
        )


def adjust_macro(split: MacroSplit, kind: MacroKind, delta: int) -> MacroSplit:
    """Step one macro percentage, clamped to [0, 100]."""
    current = getattr(split, kind.value)
    return replace(split, **{kind.value: _clamp_percent(current + delta)})


def _clamp_percent(value: int) -> int:
    return max(0, min(100, value))
