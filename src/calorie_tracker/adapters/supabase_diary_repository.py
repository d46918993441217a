"""Supabase repository for diary entries."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from calorie_tracker.domain.diary import DiaryEntry, EntrySource, MealType
from calorie_tracker.services.diary import DiaryRepository


@dataclass
class SupabaseDiaryRepository(DiaryRepository):
    """Supabase implementation for the ``diary_entries`` table."""

    client: Client

    def list_entries(self, uid: str, day: date) -> list[DiaryEntry]:
        """Return a user's entries for a day in logging order."""
        response = (
            self.client.table("diary_entries")
            .select("*")
            .eq("user_uid", uid)
            .eq("date", day.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def create_entry(self, entry: DiaryEntry) -> DiaryEntry:
        """Insert an entry and return it with the generated id."""
        response = (
            self.client.table("diary_entries")
            .insert(
                {
                    "user_uid": entry.user_uid,
                    "date": entry.day.isoformat(),
                    "meal_type": entry.meal_type.value,
                    "food_id": entry.food_id,
                    "food_name": entry.food_name,
                    "custom_name": entry.custom_name,
                    "amount": entry.amount,
                    "unit": entry.unit,
                    "source": entry.source.value,
                    "kcal": entry.kcal,
                    "carbs": entry.carbs,
                    "protein": entry.protein,
                    "fat": entry.fat,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create diary entry")
        return _parse_entry(response.data[0])

    def delete_entry(self, uid: str, entry_id: str) -> None:
        """Delete an entry owned by the user."""
        self.client.table("diary_entries").delete().eq("id", entry_id).eq(
            "user_uid", uid
        ).execute()


def _parse_entry(row: dict[str, object]) -> DiaryEntry:
    return DiaryEntry(
        id=str(row["id"]),
        user_uid=str(row["user_uid"]),
        day=date.fromisoformat(str(row["date"])[:10]),
        meal_type=MealType(row["meal_type"]),
        food_name=str(row.get("food_name", "")),
        amount=float(row.get("amount") or 0.0),
        unit=str(row.get("unit") or "g"),
        source=EntrySource(row.get("source") or EntrySource.DATABASE.value),
        kcal=float(row.get("kcal") or 0.0),
        carbs=float(row.get("carbs") or 0.0),
        protein=float(row.get("protein") or 0.0),
        fat=float(row.get("fat") or 0.0),
        food_id=row.get("food_id"),
        custom_name=row.get("custom_name"),
    )
