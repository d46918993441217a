"""Exercise domain models."""

import datetime as dt
from dataclasses import dataclass
from datetime import date
from enum import Enum


class ExerciseCategory(str, Enum):
    """Kind of workout."""

    CARDIO = "cardio"
    STRENGTH = "strength"


@dataclass(frozen=True)
class ExerciseActivity:
    """Catalog activity with its MET value."""

    id: str
    name: str
    category: ExerciseCategory
    met: float


@dataclass(frozen=True)
class ExerciseRequest:
    """Workout submitted for logging, before calories are computed."""

    day: date
    category: ExerciseCategory
    name: str
    duration_min: int
    met: float
    time: dt.time | None = None
    distance: float | None = None
    sets: int | None = None
    reps: int | None = None
    weight: float | None = None


@dataclass(frozen=True)
class ExerciseEntry:
    """Logged workout with calories frozen at creation time."""

    user_uid: str
    day: date
    category: ExerciseCategory
    name: str
    duration_min: int
    calories: int
    met: float
    time: dt.time | None = None
    distance: float | None = None
    sets: int | None = None
    reps: int | None = None
    weight: float | None = None
    id: str | None = None
