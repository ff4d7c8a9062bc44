"""Product lookup and the duplicate-barcode save flow."""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from calorie_tracker.domain.errors import MissingReferenceBasisError
from calorie_tracker.domain.nutrients import NUTRIENT_CATALOG, NutrientRecord
from calorie_tracker.domain.products import (
    DuplicateBarcode,
    DuplicateResolution,
    Product,
    ProductSaveResult,
)
from calorie_tracker.services.cache import Cache

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

# Open Food Facts nutriment names, reported in grams per 100 g.
_OFF_NUTRIENT_KEYS: dict[str, str] = {
    "vitaminA": "vitamin-a",
    "vitaminC": "vitamin-c",
    "vitaminD": "vitamin-d",
    "vitaminE": "vitamin-e",
    "vitaminK": "vitamin-k",
    "vitaminB1": "vitamin-b1",
    "vitaminB2": "vitamin-b2",
    "vitaminB3": "vitamin-pp",
    "vitaminB5": "pantothenic-acid",
    "vitaminB6": "vitamin-b6",
    "vitaminB7": "biotin",
    "vitaminB12": "vitamin-b12",
    "folate": "vitamin-b9",
    "calcium": "calcium",
    "iron": "iron",
    "zinc": "zinc",
    "magnesium": "magnesium",
    "potassium": "potassium",
    "phosphorus": "phosphorus",
    "selenium": "selenium",
    "copper": "copper",
    "manganese": "manganese",
    "chromium": "chromium",
    "molybdenum": "molybdenum",
    "iodine": "iodine",
    "chloride": "chloride",
}

_GRAM_FACTORS = {"mg": 1_000.0, "mcg": 1_000_000.0}


class ProductRepository(Protocol):
    """Persistence interface for products."""

    def create_product(self, product: Product) -> Product:
        """Insert a product and return it."""

    def update_product(self, product: Product) -> Product:
        """Replace a stored product's fields and return it."""

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id, if present."""

    def get_products(self, product_ids: list[UUID]) -> list[Product]:
        """Return the products that still exist for the given ids."""

    def find_by_barcode(self, user_id: UUID, barcode: str) -> Product | None:
        """Return the user's product with this barcode, if any."""

    def list_products(self, user_id: UUID, custom_only: bool = False) -> list[Product]:
        """Return a user's products, newest first."""

    def delete_product(self, product_id: UUID) -> None:
        """Delete a product without touching entries that reference it."""


class ProductLookupClient(Protocol):
    """Interface for a remote barcode database."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Return the raw lookup payload for a barcode."""


@dataclass
class ProductService:
    """Service for product lookups and saves."""

    repository: ProductRepository
    lookup_client: ProductLookupClient
    cache: Cache
    lookup_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def lookup_barcode(self, user_id: UUID, barcode: str) -> Product | None:
        """Find a product by barcode locally, then remotely.

        Remote hits are returned as unsaved drafts.
        """
        local = self.repository.find_by_barcode(user_id, barcode)
        if local is not None:
            return local

        cache_key = f"off:product:{barcode}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, Product):
            return replace(cached, user_id=user_id)

        payload = await self._call_with_retry(
            lambda: self.lookup_client.get_product(barcode),
            action=f"lookup:{barcode}",
        )
        draft = product_from_lookup(payload, barcode)
        if draft is None:
            _logger.info("Barcode not found: %s", barcode)
            return None
        self.cache.set(cache_key, draft, ttl_seconds=self.lookup_ttl_seconds)
        return replace(draft, user_id=user_id)

    def save_product(
        self,
        product: Product,
        resolution: DuplicateResolution | None = None,
    ) -> ProductSaveResult:
        """Save a product, surfacing barcode collisions for a decision."""
        existing = None
        if product.barcode and product.user_id is not None:
            existing = self.repository.find_by_barcode(
                product.user_id, product.barcode
            )
        if existing is None or resolution == DuplicateResolution.SAVE_AS_NEW:
            created = self.repository.create_product(product)
            return ProductSaveResult(product=created, created=True)

        if resolution is None:
            return ProductSaveResult(
                product=None,
                duplicate=DuplicateBarcode(
                    barcode=existing.barcode or "",
                    existing=existing,
                    candidate=product,
                ),
            )
        if resolution == DuplicateResolution.USE_EXISTING:
            return ProductSaveResult(product=existing)

        updated = replace(
            product,
            id=existing.id,
            user_id=existing.user_id,
            date_added=existing.date_added,
            image_data=product.image_data or existing.image_data,
        )
        saved = self.repository.update_product(updated)
        _logger.info("Updated product %s from duplicate barcode", existing.id)
        return ProductSaveResult(product=saved)

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a stored product."""
        return self.repository.get_product(product_id)

    def list_products(self, user_id: UUID, custom_only: bool = False) -> list[Product]:
        """Return the user's products."""
        return self.repository.list_products(user_id, custom_only=custom_only)

    def delete_product(self, user_id: UUID, product_id: UUID) -> bool:
        """Delete one of the user's products; logged entries keep their snapshots."""
        product = self.repository.get_product(product_id)
        if product is None or product.user_id != user_id:
            return False
        self.repository.delete_product(product_id)
        return True

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Product %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def product_from_lookup(payload: dict[str, object], barcode: str) -> Product | None:
    """Convert an Open Food Facts payload into a per-100 g product draft."""
    if payload.get("status") != 1:
        return None
    raw_product = payload.get("product")
    if not isinstance(raw_product, dict):
        return None
    nutriments = raw_product.get("nutriments") or {}
    calories = _number(nutriments.get("energy-kcal_100g"))
    if calories is None:
        return None
    sodium_g = _number(nutriments.get("sodium_100g"))
    try:
        return Product(
            name=str(raw_product.get("product_name") or barcode),
            brand=_first_brand(raw_product.get("brands")),
            barcode=barcode,
            calories=calories,
            protein=_number(nutriments.get("proteins_100g")) or 0.0,
            carbohydrates=_number(nutriments.get("carbohydrates_100g")) or 0.0,
            fat=_number(nutriments.get("fat_100g")) or 0.0,
            saturated_fat=_number(nutriments.get("saturated-fat_100g")),
            fibre=_number(nutriments.get("fiber_100g")),
            sugar=_number(nutriments.get("sugars_100g")),
            sodium=sodium_g * 1_000.0 if sodium_g is not None else None,
            cholesterol=_milligrams(nutriments.get("cholesterol_100g")),
            nutrients=_lookup_nutrients(nutriments),
        )
    except MissingReferenceBasisError:
        return None


def _lookup_nutrients(nutriments: dict[str, object]) -> NutrientRecord:
    values: dict[str, float] = {}
    for definition in NUTRIENT_CATALOG:
        off_key = _OFF_NUTRIENT_KEYS[definition.id]
        grams = _number(nutriments.get(f"{off_key}_100g"))
        if grams is None:
            continue
        values[definition.id] = grams * _GRAM_FACTORS[definition.unit]
    return NutrientRecord(values).rounded()


def _milligrams(value: object) -> float | None:
    grams = _number(value)
    if grams is None:
        return None
    return grams * 1_000.0


def _first_brand(value: object) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.split(",")[0].strip()


def _number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
