"""Dependency container wiring for the application."""

from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from supabase import create_client

from calorie_tracker.adapters.fatsecret_client import HttpxFatSecretClient
from calorie_tracker.adapters.fdc_client import HttpxFdcClient
from calorie_tracker.adapters.off_client import HttpxOffClient
from calorie_tracker.adapters.openai_vision_client import OpenAIVisionClient
from calorie_tracker.adapters.reported_steps import ReportedStepCounter
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
from calorie_tracker.config import Settings, parse_search_sources
from calorie_tracker.services.cache import InMemoryCache
from calorie_tracker.services.diary import DiaryService
from calorie_tracker.services.exercise import ExerciseService
from calorie_tracker.services.foods import FoodCatalogService
from calorie_tracker.services.meals import MyMealService
from calorie_tracker.services.profile import ProfileService
from calorie_tracker.services.providers import (
    FatSecretProvider,
    FdcProvider,
    OpenFoodFactsProvider,
)
from calorie_tracker.services.search import (
    FoodSearchService,
    NutritionProvider,
    SearchSession,
)
from calorie_tracker.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    profile_service: ProfileService
    exercise_service: ExerciseService
    diary_service: DiaryService
    food_search_service: FoodSearchService
    food_catalog_service: FoodCatalogService
    my_meal_service: MyMealService
    vision_service: VisionService
    step_counter: ReportedStepCounter
    close_resources: Callable[[], Awaitable[None]]
    max_search_sessions: int = 512
    search_sessions: OrderedDict[str, SearchSession] = field(
        default_factory=OrderedDict
    )

    def search_session(self, key: str) -> SearchSession:
        """Return the search-as-you-type session for a client key.

        Sessions are kept in LRU order; the least recently used one is dropped
        once ``max_search_sessions`` is exceeded.
        """
        session = self.search_sessions.get(key)
        if session is None:
            session = SearchSession(
                self.food_search_service,
                debounce_seconds=self.settings.search_debounce_seconds,
            )
            self.search_sessions[key] = session
        self.search_sessions.move_to_end(key)
        while len(self.search_sessions) > self.max_search_sessions:
            self.search_sessions.popitem(last=False)
        return session


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    profile_repository = SupabaseProfileRepository(supabase_client)
    diary_repository = SupabaseDiaryRepository(supabase_client)
    exercise_repository = SupabaseExerciseRepository(supabase_client)
    food_repository = SupabaseFoodRepository(supabase_client)
    my_meal_repository = SupabaseMyMealRepository(supabase_client)

    cache = InMemoryCache()
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    off_client = HttpxOffClient.create(resolved_settings.off_base_url)
    off_provider = OpenFoodFactsProvider(client=off_client, cache=cache)
    providers: list[NutritionProvider] = [
        FdcProvider(client=fdc_client, cache=cache),
        off_provider,
    ]
    fatsecret_client: HttpxFatSecretClient | None = None
    if resolved_settings.fatsecret_enabled:
        fatsecret_client = HttpxFatSecretClient.create(
            client_id=resolved_settings.fatsecret_client_id or "",
            client_secret=resolved_settings.fatsecret_client_secret or "",
        )
        providers.append(FatSecretProvider(client=fatsecret_client, cache=cache))
    enabled = parse_search_sources(resolved_settings.search_providers)
    search_providers = [
        provider for provider in providers if enabled is None or provider.name in enabled
    ]

    profile_service = ProfileService(
        profile_repository,
        save_debounce_seconds=resolved_settings.profile_save_debounce_seconds,
    )
    exercise_service = ExerciseService(exercise_repository, profile_service)
    step_counter = ReportedStepCounter()
    diary_service = DiaryService(
        repository=diary_repository,
        exercise_service=exercise_service,
        profile_service=profile_service,
        step_counter=step_counter,
    )
    food_search_service = FoodSearchService(
        repository=food_repository,
        providers=search_providers,
        min_external_results=resolved_settings.search_min_external_results,
        default_limit=resolved_settings.search_default_limit,
    )
    food_catalog_service = FoodCatalogService(
        repository=food_repository,
        providers=providers,
        barcode_lookup=off_provider,
    )
    my_meal_service = MyMealService(my_meal_repository, diary_service)
    openai_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
    vision_service = VisionService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )

    async def close_resources() -> None:
        await fdc_client.close()
        await off_client.close()
        if fatsecret_client is not None:
            await fatsecret_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        profile_service=profile_service,
        exercise_service=exercise_service,
        diary_service=diary_service,
        food_search_service=food_search_service,
        food_catalog_service=food_catalog_service,
        my_meal_service=my_meal_service,
        vision_service=vision_service,
        step_counter=step_counter,
        close_resources=close_resources,
    )
