"""Domain models for logged food entries."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from calorie_tracker.domain.nutrients import NutrientRecord

# Numeric fields that hold as-consumed values and rescale with the amount.
SCALED_FIELDS: tuple[str, ...] = (
    "calories",
    "protein",
    "carbohydrates",
    "fat",
    "sugar",
    "natural_sugar",
    "added_sugar",
    "fibre",
    "sodium",
)


@dataclass
class FoodEntry:
    """One instance of consumption with frozen as-consumed values."""

    amount: float
    unit: str
    calories: float
    protein: float | None = None
    carbohydrates: float | None = None
    fat: float | None = None
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    nutrients: NutrientRecord = field(default_factory=NutrientRecord)
    id: UUID = field(default_factory=uuid4)
    daily_log_id: UUID | None = None
    product_id: UUID | None = None
    product_name: str | None = None
    custom_food_name: str | None = None
    ai_generated: bool = False
    ai_prompt: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def display_name(self) -> str:
        """Name captured at logging time."""
        return self.product_name or self.custom_food_name or "Unknown food"

    @property
    def total_sugar(self) -> float | None:
        """Total sugar, falling back to natural plus added."""
        if self.sugar is not None:
            return self.sugar
        if self.natural_sugar is None and self.added_sugar is None:
            return None
        return (self.natural_sugar or 0.0) + (self.added_sugar or 0.0)
