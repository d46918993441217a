"""Exercise logging with MET-based calorie estimates."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from calorie_tracker.domain.errors import ExerciseDurationError
from calorie_tracker.domain.exercise import (
    ExerciseActivity,
    ExerciseCategory,
    ExerciseEntry,
    ExerciseRequest,
)
from calorie_tracker.domain.results import ErrorKind, Result
from calorie_tracker.services.boundary import guard
from calorie_tracker.services.goals import DEFAULT_WEIGHT_KG, round_half_up
from calorie_tracker.services.profile import ProfileService

MIN_DURATION_MIN = 5
MAX_DURATION_MIN = 300

_CARDIO = ExerciseCategory.CARDIO
_STRENGTH = ExerciseCategory.STRENGTH

_ACTIVITIES = [
    ExerciseActivity("walking_2mph", "Walking (2 mph)", _CARDIO, 2.3),
    ExerciseActivity("walking_3mph", "Walking (3 mph)", _CARDIO, 3.3),
    ExerciseActivity("walking_4mph", "Walking (4 mph)", _CARDIO, 4.3),
    ExerciseActivity("running_5mph", "Running (5 mph)", _CARDIO, 8.3),
    ExerciseActivity("running_6mph", "Running (6 mph)", _CARDIO, 9.8),
    ExerciseActivity("running_7mph", "Running (7 mph)", _CARDIO, 11.0),
    ExerciseActivity("running_8mph", "Running (8 mph)", _CARDIO, 11.8),
    ExerciseActivity("cycling_light", "Cycling (light)", _CARDIO, 5.8),
    ExerciseActivity("cycling_moderate", "Cycling (moderate)", _CARDIO, 7.5),
    ExerciseActivity("cycling_vigorous", "Cycling (vigorous)", _CARDIO, 12.0),
    ExerciseActivity("swimming_leisure", "Swimming (leisure)", _CARDIO, 6.0),
    ExerciseActivity("swimming_laps", "Swimming (laps)", _CARDIO, 8.3),
    ExerciseActivity("elliptical", "Elliptical", _CARDIO, 5.0),
    ExerciseActivity("rowing_moderate", "Rowing (moderate)", _CARDIO, 7.0),
    ExerciseActivity("stair_machine", "Stair Machine", _CARDIO, 8.8),
    ExerciseActivity("jump_rope", "Jump Rope", _CARDIO, 10.0),
    ExerciseActivity("hiking", "Hiking", _CARDIO, 6.0),
    ExerciseActivity("dancing", "Dancing", _CARDIO, 4.8),
    ExerciseActivity("tennis", "Tennis", _CARDIO, 8.0),
    ExerciseActivity("basketball", "Basketball", _CARDIO, 8.0),
    ExerciseActivity("soccer", "Soccer", _CARDIO, 7.0),
    ExerciseActivity("barbell_squat", "Barbell Squat", _STRENGTH, 6.0),
    ExerciseActivity("bench_press", "Bench Press", _STRENGTH, 6.0),
    ExerciseActivity("deadlift", "Deadlift", _STRENGTH, 6.0),
    ExerciseActivity("overhead_press", "Overhead Press", _STRENGTH, 6.0),
    ExerciseActivity("barbell_row", "Barbell Row", _STRENGTH, 6.0),
    ExerciseActivity("pull_ups", "Pull-ups", _STRENGTH, 8.0),
    ExerciseActivity("push_ups", "Push-ups", _STRENGTH, 8.0),
    ExerciseActivity("dumbbell_curl", "Dumbbell Curl", _STRENGTH, 3.5),
    ExerciseActivity("leg_press", "Leg Press", _STRENGTH, 5.0),
    ExerciseActivity("lat_pulldown", "Lat Pulldown", _STRENGTH, 5.0),
    ExerciseActivity("shoulder_press", "Shoulder Press", _STRENGTH, 6.0),
    ExerciseActivity("tricep_dips", "Tricep Dips", _STRENGTH, 4.0),
    ExerciseActivity("lunges", "Lunges", _STRENGTH, 4.0),
    ExerciseActivity("leg_extension", "Leg Extension", _STRENGTH, 5.0),
    ExerciseActivity("leg_curl", "Leg Curl", _STRENGTH, 5.0),
    ExerciseActivity("calf_raises", "Calf Raises", _STRENGTH, 4.0),
    ExerciseActivity("planks", "Planks", _STRENGTH, 4.0),
    ExerciseActivity("burpees", "Burpees", _STRENGTH, 8.0),
    ExerciseActivity("mountain_climbers", "Mountain Climbers", _STRENGTH, 8.0),
]

MET_CATALOG: dict[str, ExerciseActivity] = {
    activity.id: activity for activity in _ACTIVITIES
}


class ExerciseRepository(Protocol):
    """Persistence interface for exercise entries."""

    def list_exercise(self, uid: str, day: date) -> list[ExerciseEntry]:
        """Return a user's workouts for a day."""

    def create_exercise(self, entry: ExerciseEntry) -> ExerciseEntry:
        """Store a workout and return it with its id."""

    def delete_exercise(self, uid: str, entry_id: str) -> None:
        """Delete a workout; missing ids are ignored."""


def exercise_calories(met: float, weight_kg: float | None, duration_min: float) -> int:
    """Return MET x kg x hours rounded half up; weight defaults to 70 kg."""
    weight = weight_kg or DEFAULT_WEIGHT_KG
    return round_half_up(met * weight * (duration_min / 60))


def validate_duration(duration_min: int) -> None:
    """Raise ExerciseDurationError unless 5 <= duration <= 300 minutes."""
    if not MIN_DURATION_MIN <= duration_min <= MAX_DURATION_MIN:
        raise ExerciseDurationError(
            [
                f"Duration must be between {MIN_DURATION_MIN} and "
                f"{MAX_DURATION_MIN} minutes"
            ]
        )


def find_activity(activity_id: str) -> ExerciseActivity | None:
    """Return a catalog activity by id."""
    return MET_CATALOG.get(activity_id)


@dataclass
class ExerciseService:
    """Service for logging and listing workouts."""

    repository: ExerciseRepository
    profile_service: ProfileService

    def log_exercise(self, uid: str, request: ExerciseRequest) -> ExerciseEntry:
        """Validate and store a workout with calories frozen at today's weight."""
        validate_duration(request.duration_min)
        weight_kg = self.profile_service.load(uid).value.weight_kg
        entry = ExerciseEntry(
            user_uid=uid,
            day=request.day,
            category=request.category,
            name=request.name,
            duration_min=request.duration_min,
            calories=exercise_calories(request.met, weight_kg, request.duration_min),
            met=request.met,
            time=request.time,
            distance=request.distance,
            sets=request.sets,
            reps=request.reps,
            weight=request.weight,
        )
        return self.repository.create_exercise(entry)

    def delete_exercise(self, uid: str, entry_id: str) -> None:
        """Delete a workout. Deleting twice is a no-op."""
        self.repository.delete_exercise(uid, entry_id)

    def list_exercise(self, uid: str, day: date) -> Result[list[ExerciseEntry]]:
        """Return the day's workouts, empty on persistence failure."""
        return guard(
            lambda: self.repository.list_exercise(uid, day),
            default=[],
            kind=ErrorKind.PERSISTENCE,
            action=f"list_exercise:{uid}:{day.isoformat()}",
        )
