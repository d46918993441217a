"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import date, time

from calorie_tracker.adapters.supabase_diary_repository import SupabaseDiaryRepository
from calorie_tracker.adapters.supabase_exercise_repository import (
    SupabaseExerciseRepository,
)
from calorie_tracker.adapters.supabase_food_repository import SupabaseFoodRepository
from calorie_tracker.adapters.supabase_my_meal_repository import (
    SupabaseMyMealRepository,
)
from calorie_tracker.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from calorie_tracker.domain.diary import DiaryEntry, EntrySource, MealType
from calorie_tracker.domain.exercise import ExerciseCategory, ExerciseEntry
from calorie_tracker.domain.foods import FoodSource
from calorie_tracker.domain.meals import MyMeal, MyMealItem
from calorie_tracker.domain.profile import WeeklyGoal
from tests.conftest import make_food, make_profile


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "upsert": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_order: tuple[str, bool] | None = None
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def upsert(self, payload, **_kwargs) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def or_(self, filters: str) -> "FakeTable":
        self.last_filters.append(("or", filters))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = (column, desc)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_supabase_food_repository_search_escapes_filter() -> None:
    client = FakeSupabaseClient()
    foods = client.table("foods")
    foods.queue(
        "select",
        [{"id": "custom_1", "name": "Oat Bar", "source": "custom", "kcal_per_100g": 410}],
    )

    results = SupabaseFoodRepository(client).search_local("oat, (bar)", 5)

    assert [food.id for food in results] == ["custom_1"]
    assert results[0].source == FoodSource.CUSTOM
    assert foods.last_filters == [
        ("or", "name.ilike.%oat   bar%,brand.ilike.%oat   bar%,barcode.eq.oat   bar")
    ]


def test_supabase_food_repository_blank_search_skips_query() -> None:
    client = FakeSupabaseClient()

    assert SupabaseFoodRepository(client).search_local("%%", 5) == []
    assert client.tables == {}


def test_supabase_food_repository_create_and_lookup() -> None:
    client = FakeSupabaseClient()
    foods = client.table("foods")
    food = make_food("off_1", "Cola", source=FoodSource.OFF, barcode="111")
    row = {
        "id": "off_1",
        "name": "Cola",
        "source": "off",
        "kcal_per_100g": 100,
        "grams_per_serving": None,
        "barcode": "111",
    }
    foods.queue("upsert", [row])
    foods.queue("select", [row])
    foods.queue("select", [])

    repository = SupabaseFoodRepository(client)
    created = repository.create_food(food)
    found = repository.find_by_barcode("111")
    missing = repository.get_food("off_2")

    assert foods.last_payload["source"] == "off"
    assert created.id == "off_1"
    assert found is not None and found.barcode == "111"
    assert missing is None


def test_supabase_food_repository_list_popular_filters_sources() -> None:
    client = FakeSupabaseClient()
    foods = client.table("foods")

    SupabaseFoodRepository(client).list_popular(
        frozenset({FoodSource.USDA, FoodSource.OFF}), 10
    )

    assert foods.last_filters == [("source", ["off", "usda"])]
    assert foods.last_order == ("name", False)


def test_supabase_profile_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    users = client.table("users")
    repository = SupabaseProfileRepository(client)

    repository.save_profile(make_profile(weekly_goal=WeeklyGoal.LOSE_1))
    payload = users.last_payload
    users.queue("select", [payload])
    loaded = repository.get_profile("user-1")

    assert payload["goal_type"] == "lose"
    assert payload["rate_kcal_per_day"] == 500
    assert loaded is not None
    assert loaded.weekly_goal == WeeklyGoal.LOSE_1
    assert loaded.weight_kg == 80.0
    assert loaded.macro_split.total == 100


def test_supabase_profile_repository_missing_profile() -> None:
    assert SupabaseProfileRepository(FakeSupabaseClient()).get_profile("nobody") is None


def test_supabase_diary_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("diary_entries")
    row = {
        "id": "entry-1",
        "user_uid": "user-1",
        "date": "2024-05-01",
        "meal_type": "lunch",
        "food_name": "Apple",
        "amount": 150,
        "unit": "g",
        "source": "database",
        "kcal": 78,
        "carbs": 20.7,
        "protein": 0.5,
        "fat": 0.3,
        "food_id": "usda_1",
    }
    table.queue("insert", [row])
    table.queue("select", [row])
    repository = SupabaseDiaryRepository(client)

    created = repository.create_entry(
        DiaryEntry(
            user_uid="user-1",
            day=date(2024, 5, 1),
            meal_type=MealType.LUNCH,
            food_name="Apple",
            amount=150,
            unit="g",
            source=EntrySource.DATABASE,
            kcal=78,
            carbs=20.7,
            protein=0.5,
            fat=0.3,
            food_id="usda_1",
        )
    )
    listed = repository.list_entries("user-1", date(2024, 5, 1))
    repository.delete_entry("user-1", "entry-1")

    assert "id" not in table.last_payload
    assert created.id == "entry-1"
    assert listed[0].meal_type == MealType.LUNCH
    assert table.last_filters[-2:] == [("id", "entry-1"), ("user_uid", "user-1")]


def test_supabase_exercise_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("exercise_entries")
    table.queue(
        "insert",
        [
            {
                "id": "ex-1",
                "user_uid": "user-1",
                "date": "2024-05-01",
                "time": "07:30:00",
                "category": "strength",
                "name": "Bench press",
                "duration_min": 30,
                "calories": 210,
                "met": 6.0,
                "sets": 3,
                "reps": 10,
                "weight": 60,
            }
        ],
    )

    created = SupabaseExerciseRepository(client).create_exercise(
        ExerciseEntry(
            user_uid="user-1",
            day=date(2024, 5, 1),
            time=time(7, 30),
            category=ExerciseCategory.STRENGTH,
            name="Bench press",
            duration_min=30,
            calories=210,
            met=6.0,
            sets=3,
            reps=10,
            weight=60,
        )
    )

    assert table.last_payload["time"] == "07:30:00"
    assert created.id == "ex-1"
    assert created.time == time(7, 30)
    assert created.category == ExerciseCategory.STRENGTH


def test_supabase_my_meal_repository_creates_meal_and_items() -> None:
    client = FakeSupabaseClient()
    meals = client.table("my_meals")
    items = client.table("my_meal_items")
    meals.queue(
        "insert",
        [
            {
                "id": "meal_1",
                "user_uid": "user-1",
                "name": "Bowl",
                "total_kcal": 300,
                "total_carbs": 40,
                "total_protein": 10,
                "total_fat": 8,
                "created_at": "2024-05-01T08:00:00+00:00",
            }
        ],
    )
    meal = MyMeal(
        id="meal_1",
        user_uid="user-1",
        name="Bowl",
        total_kcal=300,
        total_carbs=40,
        total_protein=10,
        total_fat=8,
        items=[
            MyMealItem("Oats", 50, "g", kcal=190, carbs=33, protein=7, fat=3),
            MyMealItem("Milk", 1, "cup", kcal=110, carbs=7, protein=3, fat=5, sort_order=1),
        ],
    )

    created = SupabaseMyMealRepository(client).create_meal(meal)

    assert [row["calories"] for row in items.last_payload] == [190, 110]
    assert {row["meal_id"] for row in items.last_payload} == {"meal_1"}
    assert [item.name for item in created.items] == ["Oats", "Milk"]
    assert created.created_at is not None


def test_supabase_my_meal_repository_lists_items_in_sort_order() -> None:
    client = FakeSupabaseClient()
    meals = client.table("my_meals")
    meals.queue(
        "select",
        [
            {
                "id": "meal_1",
                "user_uid": "user-1",
                "name": "Bowl",
                "my_meal_items": [
                    {"id": "b", "name": "Milk", "calories": 110, "sort_order": 1},
                    {"id": "a", "name": "Oats", "calories": 190, "sort_order": 0},
                ],
            }
        ],
    )
    repository = SupabaseMyMealRepository(client)

    listed = repository.list_meals("user-1")
    repository.delete_meal("user-1", "meal_1")

    assert [item.name for item in listed[0].items] == ["Oats", "Milk"]
    assert listed[0].items[1].kcal == 110
    assert meals.last_order == ("created_at", True)
    assert "my_meal_items" not in client.tables
