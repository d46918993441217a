"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import date
from uuid import uuid4

import pytest

from calorie_tracker.adapters.reported_steps import ReportedStepCounter
from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.diary import DiaryEntry
from calorie_tracker.domain.exercise import ExerciseEntry
from calorie_tracker.domain.foods import Food, FoodSource
from calorie_tracker.domain.meals import MyMeal
from calorie_tracker.domain.profile import ActivityLevel, Profile, Sex, WeeklyGoal
from calorie_tracker.services.diary import DiaryRepository, DiaryService
from calorie_tracker.services.exercise import ExerciseRepository, ExerciseService
from calorie_tracker.services.foods import FoodCatalogService
from calorie_tracker.services.meals import MyMealRepository, MyMealService
from calorie_tracker.services.profile import ProfileRepository, ProfileService
from calorie_tracker.services.search import FoodRepository, FoodSearchService
from calorie_tracker.services.vision import VisionClient, VisionService


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[str, Profile] = field(default_factory=dict)
    saved: list[Profile] = field(default_factory=list)
    fail_reads: bool = False
    fail_saves: bool = False

    def get_profile(self, uid: str) -> Profile | None:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return self.profiles.get(uid)

    def save_profile(self, profile: Profile) -> None:
        if self.fail_saves:
            raise ConnectionError("database unavailable")
        self.saved.append(profile)
        self.profiles[profile.uid] = profile


@dataclass
class InMemoryDiaryRepository(DiaryRepository):
    """In-memory diary repository for tests."""

    entries: list[DiaryEntry] = field(default_factory=list)
    fail_reads: bool = False

    def list_entries(self, uid: str, day: date) -> list[DiaryEntry]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return [
            entry for entry in self.entries if entry.user_uid == uid and entry.day == day
        ]

    def create_entry(self, entry: DiaryEntry) -> DiaryEntry:
        stored = replace(entry, id=str(uuid4()))
        self.entries.append(stored)
        return stored

    def delete_entry(self, uid: str, entry_id: str) -> None:
        self.entries = [
            entry
            for entry in self.entries
            if not (entry.id == entry_id and entry.user_uid == uid)
        ]


@dataclass
class InMemoryExerciseRepository(ExerciseRepository):
    """In-memory exercise repository for tests."""

    entries: list[ExerciseEntry] = field(default_factory=list)
    fail_reads: bool = False

    def list_exercise(self, uid: str, day: date) -> list[ExerciseEntry]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return [
            entry for entry in self.entries if entry.user_uid == uid and entry.day == day
        ]

    def create_exercise(self, entry: ExerciseEntry) -> ExerciseEntry:
        stored = replace(entry, id=str(uuid4()))
        self.entries.append(stored)
        return stored

    def delete_exercise(self, uid: str, entry_id: str) -> None:
        self.entries = [
            entry
            for entry in self.entries
            if not (entry.id == entry_id and entry.user_uid == uid)
        ]


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """In-memory food catalog for tests."""

    foods: dict[str, Food] = field(default_factory=dict)
    fail_reads: bool = False

    def search_local(self, query: str, limit: int) -> list[Food]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        term = query.lower()
        return [
            food
            for food in self.foods.values()
            if term in food.name.lower()
            or term in (food.brand or "").lower()
            or food.barcode == query
        ][: limit * 3]

    def list_popular(self, sources: frozenset[FoodSource], limit: int) -> list[Food]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return [food for food in self.foods.values() if food.source in sources][:limit]

    def get_food(self, food_id: str) -> Food | None:
        return self.foods.get(food_id)

    def find_by_barcode(self, barcode: str) -> Food | None:
        return next(
            (food for food in self.foods.values() if food.barcode == barcode), None
        )

    def create_food(self, food: Food) -> Food:
        self.foods[food.id] = food
        return food


@dataclass
class InMemoryMyMealRepository(MyMealRepository):
    """In-memory saved meal repository for tests."""

    meals: dict[str, MyMeal] = field(default_factory=dict)

    def list_meals(self, uid: str) -> list[MyMeal]:
        return [meal for meal in self.meals.values() if meal.user_uid == uid]

    def get_meal(self, uid: str, meal_id: str) -> MyMeal | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_uid != uid:
            return None
        return meal

    def create_meal(self, meal: MyMeal) -> MyMeal:
        self.meals[meal.id] = meal
        return meal

    def delete_meal(self, uid: str, meal_id: str) -> None:
        meal = self.meals.get(meal_id)
        if meal is not None and meal.user_uid == uid:
            del self.meals[meal_id]


@dataclass
class FakeProvider:
    """Nutrition provider returning canned foods."""

    name: str
    source: FoodSource
    foods: list[Food] = field(default_factory=list)
    error: Exception | None = None
    delay_seconds: float = 0.0
    queries: list[tuple[str, int]] = field(default_factory=list)

    async def search(self, query: str, limit: int) -> list[Food]:
        self.queries.append((query, limit))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.foods[:limit]

    async def get_food(self, external_id: str) -> Food | None:
        if self.error is not None:
            raise self.error
        return next(
            (food for food in self.foods if food.id.partition("_")[2] == external_id),
            None,
        )


@dataclass
class FakeBarcodeLookup:
    """Remote barcode lookup with canned products."""

    products: dict[str, Food] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def lookup_barcode(self, barcode: str) -> Food | None:
        self.calls.append(barcode)
        return self.products.get(barcode)


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "items": [
                {
                    "name": "white rice",
                    "kind": "unpackaged",
                    "confidence": 0.8,
                    "serving_text": "1 cup",
                    "grams_per_serving": 158,
                    "kcal_per_100g": 130,
                    "carbs_per_100g": 28.2,
                    "protein_per_100g": 2.7,
                    "fat_per_100g": 0.3,
                }
            ]
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append({"model": model, "image_data_url": image_data_url})
        return self.payload


def make_food(  # noqa: PLR0913
    food_id: str,
    name: str,
    source: FoodSource = FoodSource.USDA,
    kcal: float = 100.0,
    carbs: float = 10.0,
    protein: float = 5.0,
    fat: float = 2.0,
    brand: str | None = None,
    grams_per_serving: float | None = None,
    barcode: str | None = None,
) -> Food:
    return Food(
        id=food_id,
        name=name,
        source=source,
        kcal_per_100g=kcal,
        carbs_per_100g=carbs,
        protein_per_100g=protein,
        fat_per_100g=fat,
        brand=brand,
        grams_per_serving=grams_per_serving,
        barcode=barcode,
    )


def make_profile(uid: str = "user-1", **overrides: object) -> Profile:
    values: dict[str, object] = {
        "uid": uid,
        "sex": Sex.MALE,
        "age": 30,
        "height_cm": 180.0,
        "weight_kg": 80.0,
        "activity_level": ActivityLevel.ACTIVE,
        "weekly_goal": WeeklyGoal.MAINTAIN,
    }
    values.update(overrides)
    return Profile(**values)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
        fdc_api_key="fdc-key",
        search_debounce_seconds=0,
        profile_save_debounce_seconds=0,
    )


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def diary_repository() -> InMemoryDiaryRepository:
    return InMemoryDiaryRepository()


@pytest.fixture
def exercise_repository() -> InMemoryExerciseRepository:
    return InMemoryExerciseRepository()


@pytest.fixture
def food_repository() -> InMemoryFoodRepository:
    return InMemoryFoodRepository()


@pytest.fixture
def my_meal_repository() -> InMemoryMyMealRepository:
    return InMemoryMyMealRepository()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(
        name="fdc",
        source=FoodSource.USDA,
        foods=[make_food("usda_1", "Apple, raw", kcal=52, carbs=13.8, protein=0.3)],
    )


@pytest.fixture
def barcode_lookup() -> FakeBarcodeLookup:
    return FakeBarcodeLookup()


@pytest.fixture
def profile_service(profile_repository: InMemoryProfileRepository) -> ProfileService:
    return ProfileService(profile_repository, save_debounce_seconds=0)


@pytest.fixture
def exercise_service(
    exercise_repository: InMemoryExerciseRepository, profile_service: ProfileService
) -> ExerciseService:
    return ExerciseService(exercise_repository, profile_service)


@pytest.fixture
def step_counter() -> ReportedStepCounter:
    return ReportedStepCounter()


@pytest.fixture
def diary_service(
    diary_repository: InMemoryDiaryRepository,
    exercise_service: ExerciseService,
    profile_service: ProfileService,
    step_counter: ReportedStepCounter,
) -> DiaryService:
    return DiaryService(
        repository=diary_repository,
        exercise_service=exercise_service,
        profile_service=profile_service,
        step_counter=step_counter,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    profile_service: ProfileService,
    exercise_service: ExerciseService,
    diary_service: DiaryService,
    food_repository: InMemoryFoodRepository,
    my_meal_repository: InMemoryMyMealRepository,
    provider: FakeProvider,
    barcode_lookup: FakeBarcodeLookup,
    step_counter: ReportedStepCounter,
) -> AppContainer:
    vision_service = VisionService(
        client=FakeVisionClient(),
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        profile_service=profile_service,
        exercise_service=exercise_service,
        diary_service=diary_service,
        food_search_service=FoodSearchService(
            repository=food_repository, providers=[provider]
        ),
        food_catalog_service=FoodCatalogService(
            repository=food_repository,
            providers=[provider],
            barcode_lookup=barcode_lookup,
        ),
        my_meal_service=MyMealService(my_meal_repository, diary_service),
        vision_service=vision_service,
        step_counter=step_counter,
        close_resources=close_resources,
    )
