"""Food search aggregation across the local catalog and external providers."""

import asyncio
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from calorie_tracker.domain.foods import POPULAR_SOURCES, Food, FoodSource
from calorie_tracker.domain.results import ErrorKind, Result
from calorie_tracker.services.boundary import guard, guard_async

_logger = logging.getLogger(__name__)


class NutritionProvider(Protocol):
    """External nutrition database returning foods on a 100 g basis."""

    name: str
    source: FoodSource

    async def search(self, query: str, limit: int) -> list[Food]:
        """Return foods matching a query, best match first."""

    async def get_food(self, external_id: str) -> Food | None:
        """Return a single food by the provider's own id."""


class FoodRepository(Protocol):
    """Persistence interface for the local food catalog."""

    def search_local(self, query: str, limit: int) -> list[Food]:
        """Return foods whose name or brand contains the query, or whose barcode equals it."""

    def list_popular(self, sources: frozenset[FoodSource], limit: int) -> list[Food]:
        """Return foods from the given sources ordered by name."""

    def get_food(self, food_id: str) -> Food | None:
        """Return a food by id."""

    def find_by_barcode(self, barcode: str) -> Food | None:
        """Return a food by barcode."""

    def create_food(self, food: Food) -> Food:
        """Store a new food."""


def normalize_name(name: str) -> str:
    """Return the case-insensitive dedup key for a food name."""
    return name.strip().casefold()


def relevance_score(name: str, query: str) -> float:
    """Score how well a food name matches a query, from 0 to 100."""
    name_key = normalize_name(name)
    query_key = normalize_name(query)
    if name_key == query_key:
        return 100.0
    if name_key.startswith(query_key):
        return 80.0
    if query_key in name_key:
        return 60.0
    query_words = query_key.split()
    if not query_words:
        return 0.0
    name_words = name_key.split()
    matches = sum(
        1 for word in query_words if any(word in candidate for candidate in name_words)
    )
    return matches / len(query_words) * 40


def local_rank_key(food: Food, query: str) -> tuple[int, str]:
    """Order local matches: exact name, name prefix, brand match, then the rest."""
    query_key = normalize_name(query)
    name_key = normalize_name(food.name)
    if name_key == query_key:
        tier = 1
    elif name_key.startswith(query_key):
        tier = 2
    elif query_key in normalize_name(food.brand or ""):
        tier = 3
    else:
        tier = 4
    return tier, name_key


def merge_results(
    external: Iterable[Food], local: Iterable[Food], limit: int
) -> list[Food]:
    """Concatenate external then local foods, one per normalized name.

    When an external food collides with a local one, the local food takes
    the external food's position.
    """
    local_foods = list(local)
    local_by_name: dict[str, Food] = {}
    for food in local_foods:
        local_by_name.setdefault(normalize_name(food.name), food)
    merged: list[Food] = []
    seen: set[str] = set()
    for food in [*external, *local_foods]:
        key = normalize_name(food.name)
        if key in seen:
            continue
        seen.add(key)
        merged.append(local_by_name.get(key, food))
    return merged[:limit]


@dataclass
class FoodSearchService:
    """Search that prefers external providers and falls back to local foods."""

    repository: FoodRepository
    providers: list[NutritionProvider] = field(default_factory=list)
    min_external_results: int = 10
    default_limit: int = 20

    async def search(self, query: str, limit: int | None = None) -> Result[list[Food]]:
        """Return ranked, de-duplicated foods for a query.

        Provider and repository failures never raise: the result degrades to
        whatever could be fetched and records the first failure kind. A missing
        or non-positive limit falls back to ``default_limit``.
        """
        resolved_limit = limit if limit and limit > 0 else self.default_limit
        cleaned = query.strip()
        if not cleaned:
            return self._popular(resolved_limit)

        external, failures = await self._search_external(cleaned, resolved_limit)
        local: list[Food] = []
        if len(external) < self.min_external_results:
            local_result = self._search_local(cleaned, resolved_limit)
            local = local_result.value
            if not local_result.ok:
                failures.append(local_result)
        foods = merge_results(external, local, resolved_limit)
        if not failures:
            return Result.success(foods)
        return Result.failure(
            failures[0].error or ErrorKind.UNKNOWN,
            foods,
            detail="; ".join(failure.detail or "" for failure in failures),
        )

    async def _search_external(
        self, query: str, limit: int
    ) -> tuple[list[Food], list[Result[list[Food]]]]:
        if not self.providers:
            return [], []
        per_provider = (
            math.ceil(limit / len(self.providers)) if len(self.providers) > 1 else limit
        )
        outcomes = await asyncio.gather(
            *(
                guard_async(
                    lambda provider=provider: provider.search(query, per_provider),
                    default=[],
                    kind=ErrorKind.NETWORK,
                    action=f"search:{provider.name}",
                )
                for provider in self.providers
            )
        )
        foods = [food for outcome in outcomes for food in outcome.value]
        if len(self.providers) > 1:
            foods.sort(key=lambda food: relevance_score(food.name, query), reverse=True)
        failures = [outcome for outcome in outcomes if not outcome.ok]
        return foods, failures

    def _search_local(self, query: str, limit: int) -> Result[list[Food]]:
        result = guard(
            lambda: self.repository.search_local(query, limit),
            default=[],
            kind=ErrorKind.PERSISTENCE,
            action="search_local",
        )
        ranked = sorted(result.value, key=lambda food: local_rank_key(food, query))
        return Result(value=ranked[:limit], error=result.error, detail=result.detail)

    def _popular(self, limit: int) -> Result[list[Food]]:
        result = guard(
            lambda: self.repository.list_popular(POPULAR_SOURCES, limit),
            default=[],
            kind=ErrorKind.PERSISTENCE,
            action="list_popular",
        )
        foods = sorted(
            (food for food in result.value if food.source in POPULAR_SOURCES),
            key=lambda food: normalize_name(food.name),
        )
        return Result(value=foods[:limit], error=result.error, detail=result.detail)


@dataclass
class SearchSession:
    """Search-as-you-type state for one client.

    Each submitted query takes a new generation number. A response is only
    kept if no newer query was submitted while it was in flight, so a slow
    response can never overwrite fresher results.
    """

    service: FoodSearchService
    debounce_seconds: float = 0.0
    generation: int = 0
    latest: list[Food] = field(default_factory=list)
    latest_query: str | None = None

    async def submit(
        self, query: str, limit: int | None = None
    ) -> Result[list[Food]] | None:
        """Run a search and return its result, or None if it went stale."""
        self.generation += 1
        generation = self.generation
        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
            if generation != self.generation:
                return None
        result = await self.service.search(query, limit)
        if generation != self.generation:
            _logger.info("Dropping stale search response: query=%s", query)
            return None
        self.latest = result.value
        self.latest_query = query
        return result
