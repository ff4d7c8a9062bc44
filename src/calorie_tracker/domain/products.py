"""Domain models for reusable food products."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from calorie_tracker.domain.errors import MissingReferenceBasisError
from calorie_tracker.domain.nutrients import NutrientRecord


class ReferenceUnit(StrEnum):
    """Unit of a product's reference basis."""

    GRAM = "g"
    MILLILITER = "ml"
    PIECE = "piece"


@dataclass(frozen=True)
class Product:
    """A food reference whose macros are per ``reference_amount``.

    ``nutrients`` are always per 100 reference units.
    """

    name: str
    calories: float
    protein: float
    carbohydrates: float
    fat: float
    reference_amount: float = 100.0
    reference_unit: ReferenceUnit = ReferenceUnit.GRAM
    id: UUID = field(default_factory=uuid4)
    user_id: UUID | None = None
    brand: str | None = None
    barcode: str | None = None
    saturated_fat: float | None = None
    fibre: float | None = None
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    sodium: float | None = None
    cholesterol: float | None = None
    portion_size: float | None = None
    portions_per_package: float | None = None
    nutrients: NutrientRecord = field(default_factory=NutrientRecord)
    image_data: bytes | None = None
    is_custom: bool = False
    date_added: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def __post_init__(self) -> None:
        if not self.reference_amount > 0:
            raise MissingReferenceBasisError(
                f"Product {self.name!r} needs a positive reference amount, "
                f"got {self.reference_amount!r}."
            )

    @property
    def total_sugar(self) -> float | None:
        """Total sugar per reference amount, when known."""
        if self.sugar is not None:
            return self.sugar
        if self.natural_sugar is None and self.added_sugar is None:
            return None
        return (self.natural_sugar or 0.0) + (self.added_sugar or 0.0)


@dataclass(frozen=True)
class DuplicateBarcode:
    """A save attempt collided with an existing product's barcode."""

    barcode: str
    existing: Product
    candidate: Product


class DuplicateResolution(StrEnum):
    """Caller decision for a duplicate barcode."""

    USE_EXISTING = "use_existing"
    UPDATE_EXISTING = "update_existing"
    SAVE_AS_NEW = "save_as_new"


@dataclass(frozen=True)
class ProductSaveResult:
    """Outcome of saving a product.

    ``product`` is None only when ``duplicate`` needs a decision.
    """

    product: Product | None
    duplicate: DuplicateBarcode | None = None
    created: bool = False
