"""Supabase implementation of the local food catalog."""

import re
from dataclasses import asdict, dataclass

from supabase import Client

from calorie_tracker.domain.foods import Food, FoodSource
from calorie_tracker.services.search import FoodRepository

# Characters with meaning inside a PostgREST or() filter.
_FILTER_UNSAFE = re.compile(r"[,()*%\\]")


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase-backed repository for the ``foods`` table."""

    client: Client
    scan_factor: int = 3

    def search_local(self, query: str, limit: int) -> list[Food]:
        """Return foods matching name, brand or barcode.

        Fetches more rows than needed since the caller re-ranks them.
        """
        term = _FILTER_UNSAFE.sub(" ", query).strip()
        if not term:
            return []
        pattern = f"%{term}%"
        response = (
            self.client.table("foods")
            .select("*")
            .or_(f"name.ilike.{pattern},brand.ilike.{pattern},barcode.eq.{term}")
            .order("name")
            .limit(limit * self.scan_factor)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def list_popular(self, sources: frozenset[FoodSource], limit: int) -> list[Food]:
        """Return foods from the given sources ordered by name."""
        response = (
            self.client.table("foods")
            .select("*")
            .in_("source", sorted(source.value for source in sources))
            .order("name")
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def get_food(self, food_id: str) -> Food | None:
        """Return a food by id, if present."""
        response = (
            self.client.table("foods").select("*").eq("id", food_id).limit(1).execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def find_by_barcode(self, barcode: str) -> Food | None:
        """Return the first food with a barcode, if present."""
        response = (
            self.client.table("foods")
            .select("*")
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def create_food(self, food: Food) -> Food:
        """Insert or replace a food row and return it."""
        row = {**asdict(food), "source": food.source.value}
        response = self.client.table("foods").upsert(row).execute()
        if not response.data:
            raise RuntimeError("Failed to create food")
        return _parse_food(response.data[0])


def _parse_food(row: dict[str, object]) -> Food:
    """Parse a foods row into a domain model."""
    grams_per_serving = row.get("grams_per_serving")
    return Food(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        source=FoodSource(str(row.get("source", FoodSource.CUSTOM.value))),
        kcal_per_100g=float(row.get("kcal_per_100g") or 0.0),
        carbs_per_100g=float(row.get("carbs_per_100g") or 0.0),
        protein_per_100g=float(row.get("protein_per_100g") or 0.0),
        fat_per_100g=float(row.get("fat_per_100g") or 0.0),
        fiber_per_100g=float(row.get("fiber_per_100g") or 0.0),
        sugar_per_100g=float(row.get("sugar_per_100g") or 0.0),
        sodium_per_100g=float(row.get("sodium_per_100g") or 0.0),
        brand=row.get("brand"),
        serving_label=row.get("serving_label"),
        grams_per_serving=float(grams_per_serving) if grams_per_serving else None,
        barcode=row.get("barcode"),
        category=row.get("category"),
    )
