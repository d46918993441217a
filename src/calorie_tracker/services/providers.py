"""Nutrition providers backed by USDA FDC, Open Food Facts and FatSecret."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from calorie_tracker.adapters.fatsecret_client import FatSecretClient
from calorie_tracker.adapters.fdc_client import FdcClient
from calorie_tracker.adapters.off_client import OffClient
from calorie_tracker.domain.foods import Food, FoodSource
from calorie_tracker.services.boundary import status_code_from_exception
from calorie_tracker.services.cache import Cache, cache_key

_NUTRIENT_IDS = {
    "kcal": (1008, 2047, 2048),
    "protein": (1003,),
    "fat": (1004,),
    "carbs": (1005,),
    "fiber": (1079,),
    "sugar": (2000, 1063),
    "sodium": (1093,),
}

_SERVING_GRAMS = {
    "cup": 240.0,
    "tbsp": 15.0,
    "tsp": 5.0,
    "oz": 28.35,
    "slice": 25.0,
    "piece": 100.0,
    "medium": 150.0,
    "large": 200.0,
    "small": 75.0,
}

_AMOUNT_UNIT = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")
_GRAMS = re.compile(r"(\d+(?:\.\d+)?)\s*g\b")
_DESCRIPTION_BASIS = re.compile(r"^\s*Per\s+(.+?)\s+-", re.IGNORECASE)
_DESCRIPTION_VALUES = {
    "kcal": re.compile(r"Calories:\s*(\d+(?:\.\d+)?)kcal", re.IGNORECASE),
    "carbs": re.compile(r"Carbs:\s*(\d+(?:\.\d+)?)g", re.IGNORECASE),
    "protein": re.compile(r"Protein:\s*(\d+(?:\.\d+)?)g", re.IGNORECASE),
    "fat": re.compile(r"Fat:\s*(\d+(?:\.\d+)?)g", re.IGNORECASE),
}

_logger = logging.getLogger(__name__)


def parse_serving_size(serving: str | None) -> float | None:
    """Estimate grams in a free-text serving such as "1 cup" or "30 g"."""
    if not serving:
        return None
    text = serving.lower()
    match = _AMOUNT_UNIT.search(text)
    if match and match.group(2) in _SERVING_GRAMS:
        return float(match.group(1)) * _SERVING_GRAMS[match.group(2)]
    match = _GRAMS.search(text)
    if match:
        return float(match.group(1))
    return None


def parse_food_description(description: str | None) -> dict[str, float]:
    """Extract kcal and macros from a FatSecret ``food_description`` string.

    Example: "Per 100g - Calories: 89kcal | Fat: 0.33g | Carbs: 22.84g |
    Protein: 1.09g". Missing values are 0.
    """
    values = {key: 0.0 for key in _DESCRIPTION_VALUES}
    if not description:
        return values
    for key, pattern in _DESCRIPTION_VALUES.items():
        match = pattern.search(description)
        if match:
            values[key] = float(match.group(1))
    return values


async def _call_with_retry(
    func: Callable[[], Awaitable[dict[str, object]]],
    *,
    action: str,
    retry_attempts: int,
    retry_delay_seconds: float,
) -> dict[str, object]:
    """Call an async function with a short retry.

    Only id and barcode lookups retry; searches pass ``retry_attempts=0``.
    """
    attempt = 0
    while True:
        try:
            return await func()
        except httpx.HTTPError as exc:
            attempt += 1
            _logger.warning(
                "Provider %s failed (attempt %s/%s, status=%s): %s",
                action,
                attempt,
                retry_attempts + 1,
                status_code_from_exception(exc),
                exc,
            )
            if attempt > retry_attempts:
                raise
            await asyncio.sleep(retry_delay_seconds)


@dataclass
class FdcProvider:
    """USDA FoodData Central provider."""

    client: FdcClient
    cache: Cache
    name: str = "fdc"
    source: FoodSource = FoodSource.USDA
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int) -> list[Food]:
        """Search FDC foods with caching."""
        key = cache_key(self.name, "search", query, limit)
        cached = self.cache.get(key)
        if isinstance(cached, list):
            return cached
        payload = await _call_with_retry(
            lambda: self.client.search_foods(query, page_size=limit),
            action=f"{self.name}:search",
            retry_attempts=0,
            retry_delay_seconds=0,
        )
        foods = [_fdc_food(item) for item in payload.get("foods", [])]
        self.cache.set(key, foods, ttl_seconds=self.search_ttl_seconds)
        return foods

    async def get_food(self, external_id: str) -> Food | None:
        """Fetch an FDC food by id; unknown ids return None."""
        if not external_id.isdigit():
            return None
        key = cache_key(self.name, "food", external_id)
        cached = self.cache.get(key)
        if isinstance(cached, Food):
            return cached
        try:
            payload = await _call_with_retry(
                lambda: self.client.get_food(int(external_id)),
                action=f"{self.name}:get_food:{external_id}",
                retry_attempts=self.retry_attempts,
                retry_delay_seconds=self.retry_delay_seconds,
            )
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == httpx.codes.NOT_FOUND:
                return None
            raise
        food = _fdc_food(payload)
        self.cache.set(key, food, ttl_seconds=self.food_ttl_seconds)
        return food


@dataclass
class OpenFoodFactsProvider:
    """Open Food Facts provider, also used for barcode lookups."""

    client: OffClient
    cache: Cache
    name: str = "off"
    source: FoodSource = FoodSource.OFF
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int) -> list[Food]:
        """Search products, skipping ones without a name or kcal value."""
        key = cache_key(self.name, "search", query, limit)
        cached = self.cache.get(key)
        if isinstance(cached, list):
            return cached
        payload = await _call_with_retry(
            lambda: self.client.search_products(query, page_size=limit),
            action=f"{self.name}:search",
            retry_attempts=0,
            retry_delay_seconds=0,
        )
        foods = [
            _off_food(product)
            for product in payload.get("products") or []
            if product.get("product_name")
            and (product.get("nutriments") or {}).get("energy-kcal_100g")
        ]
        self.cache.set(key, foods, ttl_seconds=self.search_ttl_seconds)
        return foods

    async def get_food(self, external_id: str) -> Food | None:
        """Return a product by barcode."""
        return await self.lookup_barcode(external_id)

    async def lookup_barcode(self, barcode: str) -> Food | None:
        """Return a product by barcode, or None when OFF does not know it."""
        key = cache_key(self.name, "barcode", barcode)
        cached = self.cache.get(key)
        if isinstance(cached, Food):
            return cached
        payload = await _call_with_retry(
            lambda: self.client.get_product(barcode),
            action=f"{self.name}:barcode:{barcode}",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        if payload.get("status") != 1 or not payload.get("product"):
            return None
        product = dict(payload["product"])
        product.setdefault("code", barcode)
        food = _off_food(product)
        self.cache.set(key, food, ttl_seconds=self.food_ttl_seconds)
        return food


@dataclass
class FatSecretProvider:
    """FatSecret provider parsing the per-serving description strings."""

    client: FatSecretClient
    cache: Cache
    name: str = "fatsecret"
    source: FoodSource = FoodSource.FATSECRET
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int) -> list[Food]:
        """Search foods; a single hit may come back as an object, not a list."""
        key = cache_key(self.name, "search", query, limit)
        cached = self.cache.get(key)
        if isinstance(cached, list):
            return cached
        payload = await _call_with_retry(
            lambda: self.client.search_foods(query, max_results=limit),
            action=f"{self.name}:search",
            retry_attempts=0,
            retry_delay_seconds=0,
        )
        raw = (payload.get("foods") or {}).get("food") or []
        items = raw if isinstance(raw, list) else [raw]
        foods = [_fatsecret_food(item) for item in items]
        self.cache.set(key, foods, ttl_seconds=self.search_ttl_seconds)
        return foods

    async def get_food(self, external_id: str) -> Food | None:
        """Fetch a food and normalize its first gram-based serving."""
        key = cache_key(self.name, "food", external_id)
        cached = self.cache.get(key)
        if isinstance(cached, Food):
            return cached
        payload = await _call_with_retry(
            lambda: self.client.get_food(external_id),
            action=f"{self.name}:get_food:{external_id}",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        item = payload.get("food")
        if not item:
            return None
        food = _fatsecret_detail(item)
        self.cache.set(key, food, ttl_seconds=self.food_ttl_seconds)
        return food


def _fdc_food(payload: dict[str, object]) -> Food:
    nutrients = _extract_nutrients(payload.get("foodNutrients") or [])
    serving_size = payload.get("servingSize")
    serving_unit = str(payload.get("servingSizeUnit") or "").lower()
    grams_per_serving = (
        float(serving_size) if serving_size and serving_unit in {"g", "grm"} else None
    )
    serving_label = payload.get("householdServingFullText") or (
        f"{serving_size} {serving_unit}".strip() if serving_size else None
    )
    category = payload.get("foodCategory")
    if isinstance(category, dict):
        category = category.get("description")
    return Food(
        id=f"usda_{payload['fdcId']}",
        name=str(payload.get("description", "")),
        source=FoodSource.USDA,
        kcal_per_100g=nutrients["kcal"],
        carbs_per_100g=nutrients["carbs"],
        protein_per_100g=nutrients["protein"],
        fat_per_100g=nutrients["fat"],
        fiber_per_100g=nutrients["fiber"],
        sugar_per_100g=nutrients["sugar"],
        sodium_per_100g=round(nutrients["sodium"] / 1000, 3),
        brand=payload.get("brandName") or payload.get("brandOwner"),
        serving_label=serving_label,
        grams_per_serving=grams_per_serving,
        barcode=payload.get("gtinUpc"),
        category=category or "Whole Foods",
    )


def _extract_nutrients(food_nutrients: list[dict[str, object]]) -> dict[str, float]:
    """Pick per 100 g values from FDC nutrients; sodium stays in mg."""
    by_id: dict[int, float] = {}
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        amount = nutrient.get("amount", nutrient.get("value"))
        if nutrient_id is not None and amount is not None:
            by_id.setdefault(int(nutrient_id), float(amount))
    values: dict[str, float] = {}
    for name, ids in _NUTRIENT_IDS.items():
        values[name] = next((by_id[i] for i in ids if i in by_id), 0.0)
    return values


def _off_food(product: dict[str, object]) -> Food:
    nutriments = product.get("nutriments") or {}
    kcal = _number(nutriments.get("energy-kcal_100g"))
    if kcal is None:
        energy_kj = _number(nutriments.get("energy_100g"))
        kcal = energy_kj / 4.184 if energy_kj is not None else 0.0
    brand = str(product.get("brands") or "").split(",")[0].strip() or None
    serving = product.get("serving_size") or None
    code = str(product.get("code", ""))
    return Food(
        id=f"off_{code}",
        name=str(product.get("product_name") or "Unknown"),
        source=FoodSource.OFF,
        kcal_per_100g=round(kcal, 1),
        carbs_per_100g=_number(nutriments.get("carbohydrates_100g")) or 0.0,
        protein_per_100g=_number(nutriments.get("proteins_100g")) or 0.0,
        fat_per_100g=_number(nutriments.get("fat_100g")) or 0.0,
        fiber_per_100g=_number(nutriments.get("fiber_100g")) or 0.0,
        sugar_per_100g=_number(nutriments.get("sugars_100g")) or 0.0,
        sodium_per_100g=_number(nutriments.get("sodium_100g")) or 0.0,
        brand=brand,
        serving_label=serving,
        grams_per_serving=parse_serving_size(serving),
        barcode=code or None,
        category="Packaged Foods",
    )


def _fatsecret_food(item: dict[str, object]) -> Food:
    """Convert a search hit, rescaling gram-based descriptions to 100 g.

    Descriptions on a non-gram basis ("Per 1 medium") are rescaled through
    the serving-size table when possible and kept as-is otherwise.
    """
    description = str(item.get("food_description") or "")
    values = parse_food_description(description)
    basis_match = _DESCRIPTION_BASIS.search(description)
    basis = basis_match.group(1) if basis_match else None
    basis_grams = parse_serving_size(basis)
    if basis_grams:
        factor = 100.0 / basis_grams
        values = {key: round(value * factor, 2) for key, value in values.items()}
    return Food(
        id=f"fatsecret_{item.get('food_id')}",
        name=str(item.get("food_name", "")),
        source=FoodSource.FATSECRET,
        kcal_per_100g=values["kcal"],
        carbs_per_100g=values["carbs"],
        protein_per_100g=values["protein"],
        fat_per_100g=values["fat"],
        brand=item.get("brand_name") or None,
        serving_label=(
            None if basis is None or _GRAMS.fullmatch(basis.strip().lower()) else basis
        ),
        grams_per_serving=basis_grams,
        category=item.get("food_type") or "Generic",
    )


def _fatsecret_detail(item: dict[str, object]) -> Food:
    servings = (item.get("servings") or {}).get("serving") or []
    if isinstance(servings, dict):
        servings = [servings]
    serving = next(
        (
            candidate
            for candidate in servings
            if str(candidate.get("metric_serving_unit")) == "g"
            and (_number(candidate.get("metric_serving_amount")) or 0) > 0
        ),
        None,
    )
    if serving is None:
        return _fatsecret_food(item)
    grams = _number(serving.get("metric_serving_amount")) or 100.0
    factor = 100.0 / grams

    def per_100g(field_name: str) -> float:
        return round((_number(serving.get(field_name)) or 0.0) * factor, 2)

    return Food(
        id=f"fatsecret_{item.get('food_id')}",
        name=str(item.get("food_name", "")),
        source=FoodSource.FATSECRET,
        kcal_per_100g=per_100g("calories"),
        carbs_per_100g=per_100g("carbohydrate"),
        protein_per_100g=per_100g("protein"),
        fat_per_100g=per_100g("fat"),
        fiber_per_100g=per_100g("fiber"),
        sugar_per_100g=per_100g("sugar"),
        sodium_per_100g=round(per_100g("sodium") / 1000, 3),
        brand=item.get("brand_name") or None,
        serving_label=serving.get("serving_description"),
        grams_per_serving=grams,
        category=item.get("food_type") or "Generic",
    )


def _number(value: object) -> float | None:
    try:
        return float(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None
