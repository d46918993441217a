"""USDA FoodData Central API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

# Branded is last so generic foods lead when FDC ties on score.
SEARCH_DATA_TYPES = ("Foundation", "SR Legacy", "Survey (FNDDS)", "Branded")


class FdcClient(Protocol):
    """Interface for FoodData Central lookups returning raw JSON."""

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Search foods by free text."""

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch one food by FDC id."""


@dataclass
class HttpxFdcClient(FdcClient):
    """FDC client over a shared ``httpx.AsyncClient``."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    data_types: tuple[str, ...] = SEARCH_DATA_TYPES
    timeout_seconds: float = 15

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxFdcClient":
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Run ``GET /foods/search`` restricted to the configured data types."""
        return await self._get(
            "/foods/search",
            query=query,
            pageSize=page_size,
            dataType=",".join(self.data_types),
        )

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch one food; an unknown id surfaces as HTTPStatusError 404."""
        return await self._get(f"/food/{fdc_id}")

    async def close(self) -> None:
        await self.http_client.aclose()

    async def _get(self, path: str, **params: object) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params={"api_key": self.api_key, **params},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()
