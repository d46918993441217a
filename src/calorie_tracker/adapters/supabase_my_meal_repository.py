"""Supabase repository for saved meals."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from calorie_tracker.domain.meals import MyMeal, MyMealItem
from calorie_tracker.services.meals import MyMealRepository

_MEAL_COLUMNS = (
    "id, user_uid, name, photo, total_kcal, total_carbs, total_protein, "
    "total_fat, directions, source, created_at, "
    "my_meal_items(id, food_id, name, amount, unit, calories, carbs, protein, "
    "fat, sort_order)"
)


@dataclass
class SupabaseMyMealRepository(MyMealRepository):
    """Supabase implementation for ``my_meals`` and ``my_meal_items``."""

    client: Client

    def list_meals(self, uid: str) -> list[MyMeal]:
        """Return a user's meals, newest first."""
        response = (
            self.client.table("my_meals")
            .select(_MEAL_COLUMNS)
            .eq("user_uid", uid)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def get_meal(self, uid: str, meal_id: str) -> MyMeal | None:
        """Return one meal with its items, if present."""
        response = (
            self.client.table("my_meals")
            .select(_MEAL_COLUMNS)
            .eq("user_uid", uid)
            .eq("id", meal_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def create_meal(self, meal: MyMeal) -> MyMeal:
        """Insert the meal row, then its items."""
        response = (
            self.client.table("my_meals")
            .insert(
                {
                    "id": meal.id,
                    "user_uid": meal.user_uid,
                    "name": meal.name,
                    "photo": meal.photo,
                    "total_kcal": meal.total_kcal,
                    "total_carbs": meal.total_carbs,
                    "total_protein": meal.total_protein,
                    "total_fat": meal.total_fat,
                    "directions": meal.directions,
                    "source": meal.source,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        items_payload = [
            {
                "meal_id": meal.id,
                "food_id": item.food_id,
                "name": item.name,
                "amount": item.amount,
                "unit": item.unit,
                "calories": item.kcal,
                "carbs": item.carbs,
                "protein": item.protein,
                "fat": item.fat,
                "sort_order": item.sort_order,
            }
            for item in meal.items
        ]
        if items_payload:
            self.client.table("my_meal_items").insert(items_payload).execute()
        return _parse_meal({**response.data[0], "my_meal_items": items_payload})

    def delete_meal(self, uid: str, meal_id: str) -> None:
        """Delete a meal; items go with it via ON DELETE CASCADE."""
        self.client.table("my_meals").delete().eq("id", meal_id).eq(
            "user_uid", uid
        ).execute()


def _parse_meal(row: dict[str, object]) -> MyMeal:
    created_raw = row.get("created_at")
    items = sorted(
        (_parse_item(item) for item in row.get("my_meal_items") or []),
        key=lambda item: item.sort_order,
    )
    return MyMeal(
        id=str(row["id"]),
        user_uid=str(row["user_uid"]),
        name=str(row.get("name", "")),
        total_kcal=float(row.get("total_kcal") or 0.0),
        total_carbs=float(row.get("total_carbs") or 0.0),
        total_protein=float(row.get("total_protein") or 0.0),
        total_fat=float(row.get("total_fat") or 0.0),
        items=items,
        photo=row.get("photo"),
        directions=row.get("directions"),
        source=str(row.get("source") or "custom"),
        created_at=(
            datetime.fromisoformat(created_raw)
            if isinstance(created_raw, str) and created_raw
            else None
        ),
    )


def _parse_item(row: dict[str, object]) -> MyMealItem:
    return MyMealItem(
        id=str(row["id"]) if row.get("id") else None,
        food_id=row.get("food_id"),
        name=str(row.get("name", "")),
        amount=float(row.get("amount") or 0.0),
        unit=str(row.get("unit") or "g"),
        kcal=float(row.get("calories") or 0.0),
        carbs=float(row.get("carbs") or 0.0),
        protein=float(row.get("protein") or 0.0),
        fat=float(row.get("fat") or 0.0),
        sort_order=int(row.get("sort_order") or 0),
    )
