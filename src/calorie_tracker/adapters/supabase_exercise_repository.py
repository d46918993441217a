"""Supabase repository for exercise entries."""

from dataclasses import dataclass
from datetime import date, time

from supabase import Client

from calorie_tracker.domain.exercise import ExerciseCategory, ExerciseEntry
from calorie_tracker.services.exercise import ExerciseRepository


@dataclass
class SupabaseExerciseRepository(ExerciseRepository):
    """Supabase implementation for the ``exercise_entries`` table."""

    client: Client

    def list_exercise(self, uid: str, day: date) -> list[ExerciseEntry]:
        """Return a user's workouts for a day."""
        response = (
            self.client.table("exercise_entries")
            .select("*")
            .eq("user_uid", uid)
            .eq("date", day.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_exercise(row) for row in response.data or []]

    def create_exercise(self, entry: ExerciseEntry) -> ExerciseEntry:
        """Insert a workout and return it with the generated id."""
        response = (
            self.client.table("exercise_entries")
            .insert(
                {
                    "user_uid": entry.user_uid,
                    "date": entry.day.isoformat(),
                    "time": entry.time.isoformat() if entry.time else None,
                    "category": entry.category.value,
                    "name": entry.name,
                    "duration_min": entry.duration_min,
                    "calories": entry.calories,
                    "met": entry.met,
                    "distance": entry.distance,
                    "sets": entry.sets,
                    "reps": entry.reps,
                    "weight": entry.weight,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create exercise entry")
        return _parse_exercise(response.data[0])

    def delete_exercise(self, uid: str, entry_id: str) -> None:
        """Delete a workout owned by the user."""
        self.client.table("exercise_entries").delete().eq("id", entry_id).eq(
            "user_uid", uid
        ).execute()


def _parse_exercise(row: dict[str, object]) -> ExerciseEntry:
    time_raw = row.get("time")
    return ExerciseEntry(
        id=str(row["id"]),
        user_uid=str(row["user_uid"]),
        day=date.fromisoformat(str(row["date"])[:10]),
        time=time.fromisoformat(str(time_raw)) if time_raw else None,
        category=ExerciseCategory(row.get("category") or ExerciseCategory.CARDIO.value),
        name=str(row.get("name", "")),
        duration_min=int(row.get("duration_min") or 0),
        calories=int(row.get("calories") or 0),
        met=float(row.get("met") or 0.0),
        distance=row.get("distance"),
        sets=row.get("sets"),
        reps=row.get("reps"),
        weight=row.get("weight"),
    )
