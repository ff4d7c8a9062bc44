"""Open Food Facts barcode lookup client."""

from dataclasses import dataclass

import httpx

from calorie_tracker.services.products import ProductLookupClient

_NOT_FOUND = 404


@dataclass
class HttpxOpenFoodFactsClient(ProductLookupClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, user_agent: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": user_agent}),
        )

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode; unknown barcodes report status 0."""
        url = f"{self.base_url}/api/v2/product/{barcode}.json"
        response = await self.http_client.get(url, timeout=15)
        if response.status_code == _NOT_FOUND:
            return {"status": 0, "code": barcode}
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
