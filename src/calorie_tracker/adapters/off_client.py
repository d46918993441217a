"""Open Food Facts API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

SEARCH_FIELDS = "code,product_name,brands,nutriments,serving_size"
USER_AGENT = "calorie-tracker/0.1"


class OffClient(Protocol):
    """Interface for Open Food Facts API interactions."""

    async def search_products(self, query: str, page_size: int = 20) -> dict[str, object]:
        """Search products by free text and return raw API data."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""


@dataclass
class HttpxOffClient(OffClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 8

    @classmethod
    def create(cls, base_url: str) -> "HttpxOffClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": USER_AGENT}),
        )

    async def search_products(self, query: str, page_size: int = 20) -> dict[str, object]:
        """Search products using the legacy full-text search endpoint."""
        response = await self.http_client.get(
            f"{self.base_url}/cgi/search.pl",
            params={
                "search_terms": query,
                "search_simple": 1,
                "action": "process",
                "json": 1,
                "page_size": page_size,
                "fields": SEARCH_FIELDS,
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product; unknown barcodes come back with ``status`` 0."""
        response = await self.http_client.get(
            f"{self.base_url}/api/v2/product/{barcode}.json",
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return {"status": 0, "code": barcode}
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
