"""Supabase repository for products."""

import base64
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.domain.products import Product, ReferenceUnit
from calorie_tracker.services.products import ProductRepository

_OPTIONAL_FIELDS = (
    "saturated_fat",
    "fibre",
    "sugar",
    "natural_sugar",
    "added_sugar",
    "sodium",
    "cholesterol",
    "portion_size",
    "portions_per_package",
)


@dataclass
class SupabaseProductRepository(ProductRepository):
    """Supabase-backed product repository."""

    client: Client

    def create_product(self, product: Product) -> Product:
        """Insert a product and return it."""
        response = self.client.table("products").insert(_to_row(product)).execute()
        if not response.data:
            raise RuntimeError("Failed to create product")
        return _parse_product(response.data[0])

    def update_product(self, product: Product) -> Product:
        """Replace a stored product's fields and return it."""
        row = _to_row(product)
        row.pop("id")
        response = (
            self.client.table("products")
            .update(row)
            .eq("id", str(product.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update product")
        return _parse_product(response.data[0])

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id, if present."""
        response = (
            self.client.table("products")
            .select("*")
            .eq("id", str(product_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def get_products(self, product_ids: list[UUID]) -> list[Product]:
        """Return the products that still exist for the given ids."""
        response = (
            self.client.table("products")
            .select("*")
            .in_("id", [str(product_id) for product_id in product_ids])
            .execute()
        )
        return [_parse_product(row) for row in response.data or []]

    def find_by_barcode(self, user_id: UUID, barcode: str) -> Product | None:
        """Return the user's product with this barcode, if any."""
        response = (
            self.client.table("products")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def list_products(self, user_id: UUID, custom_only: bool = False) -> list[Product]:
        """Return a user's products, newest first."""
        query = self.client.table("products").select("*").eq("user_id", str(user_id))
        if custom_only:
            query = query.eq("is_custom", True)
        response = query.order("date_added", desc=True).execute()
        return [_parse_product(row) for row in response.data or []]

    def delete_product(self, product_id: UUID) -> None:
        """Delete a product row; entries keep their own values."""
        self.client.table("products").delete().eq("id", str(product_id)).execute()


def _to_row(product: Product) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(product.id),
        "user_id": str(product.user_id) if product.user_id else None,
        "name": product.name,
        "brand": product.brand,
        "barcode": product.barcode,
        "reference_amount": product.reference_amount,
        "reference_unit": str(product.reference_unit),
        "calories": product.calories,
        "protein": product.protein,
        "carbohydrates": product.carbohydrates,
        "fat": product.fat,
        "nutrients": product.nutrients.to_dict(),
        "image_data": (
            base64.b64encode(product.image_data).decode("ascii")
            if product.image_data
            else None
        ),
        "is_custom": product.is_custom,
        "date_added": product.date_added.isoformat(),
    }
    for name in _OPTIONAL_FIELDS:
        row[name] = getattr(product, name)
    return row


def _parse_product(row: dict[str, object]) -> Product:
    """Parse a product row into a domain model."""
    image_raw = row.get("image_data")
    user_raw = row.get("user_id")
    date_raw = row.get("date_added")
    optional = {
        name: float(row[name]) for name in _OPTIONAL_FIELDS if row.get(name) is not None
    }
    extra: dict[str, object] = {}
    if isinstance(date_raw, str) and date_raw:
        extra["date_added"] = datetime.fromisoformat(date_raw)
    return Product(
        id=UUID(str(row["id"])),
        user_id=UUID(str(user_raw)) if user_raw else None,
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        barcode=row.get("barcode"),
        reference_amount=float(row.get("reference_amount") or 100.0),
        reference_unit=ReferenceUnit(row.get("reference_unit") or "g"),
        calories=float(row.get("calories", 0.0)),
        protein=float(row.get("protein", 0.0)),
        carbohydrates=float(row.get("carbohydrates", 0.0)),
        fat=float(row.get("fat", 0.0)),
        nutrients=NutrientRecord(row.get("nutrients") or {}),
        image_data=base64.b64decode(image_raw) if isinstance(image_raw, str) else None,
        is_custom=bool(row.get("is_custom", False)),
        **optional,
        **extra,
    )
