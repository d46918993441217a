"""Tests for food search ranking, merging and stale response handling."""

import asyncio

from calorie_tracker.domain.foods import FoodSource
from calorie_tracker.domain.results import ErrorKind
from calorie_tracker.services.search import (
    FoodSearchService,
    SearchSession,
    local_rank_key,
    merge_results,
    normalize_name,
    relevance_score,
)
from tests.conftest import FakeProvider, make_food


def test_relevance_score_tiers() -> None:
    assert relevance_score("Apple", "apple") == 100
    assert relevance_score("Apple Pie", "apple") == 80
    assert relevance_score("Green Apple", "apple") == 60
    assert relevance_score("Chicken, breast, roasted", "roasted chicken breast") == 40
    assert relevance_score("Beef stew", "chicken soup") == 0


def test_local_rank_key_orders_exact_prefix_brand_other() -> None:
    foods = [
        make_food("custom_4", "Crisps"),
        make_food("custom_3", "Crunchy Bar", brand="Oat Co"),
        make_food("custom_2", "Oat Milk"),
        make_food("custom_1", "oat"),
    ]

    ranked = sorted(foods, key=lambda food: local_rank_key(food, "Oat"))

    assert [food.id for food in ranked] == ["custom_1", "custom_2", "custom_3", "custom_4"]


def test_merge_results_prefers_local_on_name_collision() -> None:
    external = [make_food("usda_1", "Apple"), make_food("usda_2", "Apple Juice")]
    local = [make_food("custom_1", " apple ", source=FoodSource.CUSTOM)]

    merged = merge_results(external, local, limit=10)

    assert [food.id for food in merged] == ["custom_1", "usda_2"]
    assert len({normalize_name(food.name) for food in merged}) == len(merged)


def test_merge_results_truncates() -> None:
    external = [make_food(f"usda_{index}", f"Food {index}") for index in range(5)]

    assert len(merge_results(external, [], limit=3)) == 3


def test_search_supplements_with_local_matches(food_repository) -> None:
    food_repository.foods = {
        "custom_1": make_food("custom_1", "apple", source=FoodSource.CUSTOM),
        "custom_2": make_food("custom_2", "Apple Crumble", source=FoodSource.CUSTOM),
    }
    provider = FakeProvider(
        name="fdc", source=FoodSource.USDA, foods=[make_food("usda_1", "Apple")]
    )
    service = FoodSearchService(repository=food_repository, providers=[provider])

    result = asyncio.run(service.search("apple", 20))

    assert result.ok
    assert [food.id for food in result.value] == ["custom_1", "custom_2"]


def test_search_skips_local_when_external_is_enough(food_repository) -> None:
    food_repository.fail_reads = True
    provider = FakeProvider(
        name="fdc",
        source=FoodSource.USDA,
        foods=[make_food(f"usda_{index}", f"Rice {index}") for index in range(12)],
    )
    service = FoodSearchService(repository=food_repository, providers=[provider])

    result = asyncio.run(service.search("rice", 20))

    assert result.ok
    assert len(result.value) == 12


def test_search_splits_limit_and_ranks_across_providers(food_repository) -> None:
    fdc = FakeProvider(
        name="fdc",
        source=FoodSource.USDA,
        foods=[make_food("usda_1", "Greek Yogurt Plain"), make_food("usda_2", "Yogurt")],
    )
    off = FakeProvider(
        name="off",
        source=FoodSource.OFF,
        foods=[make_food("off_1", "Yogurt Drink", source=FoodSource.OFF)],
    )
    service = FoodSearchService(
        repository=food_repository, providers=[fdc, off], min_external_results=0
    )

    result = asyncio.run(service.search("yogurt", 5))

    assert fdc.queries == [("yogurt", 3)]
    assert off.queries == [("yogurt", 3)]
    assert [food.id for food in result.value] == ["usda_2", "off_1", "usda_1"]


def test_search_degrades_when_provider_fails(food_repository) -> None:
    food_repository.foods = {"custom_1": make_food("custom_1", "Pasta")}
    provider = FakeProvider(
        name="fdc", source=FoodSource.USDA, error=ConnectionError("offline")
    )
    service = FoodSearchService(repository=food_repository, providers=[provider])

    result = asyncio.run(service.search("pasta"))

    assert [food.id for food in result.value] == ["custom_1"]
    assert result.error == ErrorKind.NETWORK
    assert "search:fdc" in (result.detail or "")


def test_empty_query_returns_popular_foods_by_name(food_repository) -> None:
    food_repository.foods = {
        "usda_1": make_food("usda_1", "Zucchini"),
        "off_1": make_food("off_1", "almond butter", source=FoodSource.OFF),
        "custom_1": make_food("custom_1", "Aardvark Stew", source=FoodSource.CUSTOM),
    }
    provider = FakeProvider(name="fdc", source=FoodSource.USDA)
    service = FoodSearchService(repository=food_repository, providers=[provider])

    result = asyncio.run(service.search("   "))

    assert [food.id for food in result.value] == ["off_1", "usda_1"]
    assert provider.queries == []


def test_search_session_drops_stale_response(food_repository) -> None:
    slow = FakeProvider(
        name="fdc",
        source=FoodSource.USDA,
        foods=[make_food("usda_1", "Apple")],
        delay_seconds=0.05,
    )
    session = SearchSession(
        FoodSearchService(repository=food_repository, providers=[slow])
    )

    async def scenario():
        first = asyncio.create_task(session.submit("app"))
        await asyncio.sleep(0)
        slow.delay_seconds = 0
        second = await session.submit("apple")
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is None
    assert second is not None
    assert session.latest_query == "apple"
    assert [food.id for food in session.latest] == ["usda_1"]


def test_search_session_debounce_skips_superseded_query(food_repository) -> None:
    provider = FakeProvider(name="fdc", source=FoodSource.USDA)
    session = SearchSession(
        FoodSearchService(repository=food_repository, providers=[provider]),
        debounce_seconds=0.05,
    )

    async def scenario():
        first = asyncio.create_task(session.submit("b"))
        await asyncio.sleep(0)
        second = await session.submit("banana")
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is None
    assert second is not None
    assert provider.queries == [("banana", 20)]


def test_search_non_positive_limit_uses_default(food_repository) -> None:
    provider = FakeProvider(
        name="fdc",
        source=FoodSource.USDA,
        foods=[make_food(f"usda_{index}", f"Apple {index}") for index in range(5)],
    )
    service = FoodSearchService(
        repository=food_repository, providers=[provider], default_limit=3
    )

    result = asyncio.run(service.search("apple", -2))

    assert provider.queries == [("apple", 3)]
    assert len(result.value) == 3
