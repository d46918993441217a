"""FatSecret Platform API client (OAuth 2.0 client credentials)."""

import time
from dataclasses import dataclass
from typing import Protocol

import httpx

TOKEN_URL = "https://oauth.fatsecret.com/connect/token"
API_URL = "https://platform.fatsecret.com/rest/server.api"
MAX_RESULTS = 50


class FatSecretClient(Protocol):
    """Interface for FatSecret API interactions."""

    async def search_foods(self, query: str, max_results: int = 20) -> dict[str, object]:
        """Search foods by expression and return raw API data."""

    async def get_food(self, food_id: str) -> dict[str, object]:
        """Fetch a food with its servings and return raw API data."""


@dataclass
class HttpxFatSecretClient(FatSecretClient):
    """HTTPX-backed FatSecret client with a cached access token."""

    client_id: str
    client_secret: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15
    _access_token: str | None = None
    _expires_at: float = 0.0

    @classmethod
    def create(cls, client_id: str, client_secret: str) -> "HttpxFatSecretClient":
        """Create a client with a managed httpx session."""
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            http_client=httpx.AsyncClient(),
        )

    async def search_foods(self, query: str, max_results: int = 20) -> dict[str, object]:
        """Search foods; FatSecret caps a page at 50 results."""
        return await self._call(
            "foods.search",
            search_expression=query,
            max_results=min(max_results, MAX_RESULTS),
        )

    async def get_food(self, food_id: str) -> dict[str, object]:
        """Fetch a food by FatSecret id."""
        return await self._call("food.get.v2", food_id=food_id)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _call(self, method: str, **params: object) -> dict[str, object]:
        token = await self._token()
        response = await self.http_client.get(
            API_URL,
            params={"method": method, "format": "json", **params},
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        if "error" in payload:
            raise RuntimeError(f"FatSecret {method} failed: {payload['error']}")
        return payload

    async def _token(self) -> str:
        if self._access_token and time.monotonic() < self._expires_at:
            return self._access_token
        response = await self.http_client.post(
            TOKEN_URL,
            data={"grant_type": "client_credentials", "scope": "basic"},
            auth=(self.client_id, self.client_secret),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        self._access_token = str(payload["access_token"])
        # refresh a minute early
        self._expires_at = time.monotonic() + float(payload.get("expires_in", 0)) - 60
        return self._access_token
