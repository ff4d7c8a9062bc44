"""Pydantic request and response models for the HTTP API."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from calorie_tracker.domain.activity import ActivitySnapshot, ExerciseMode
from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.estimation import FoodEstimate
from calorie_tracker.domain.logs import DaySummary, LimitStatus
from calorie_tracker.domain.products import DuplicateResolution, Product, ReferenceUnit
from calorie_tracker.domain.settings import BodyProfile, Sex
from calorie_tracker.domain.supplements import DosageForm, Supplement, SupplementEntry


class ActivityPayload(BaseModel):
    """Today's activity figures reported by the device."""

    steps: int = 0
    active_calories: int = 0
    workout_calories: int = 0
    total_calories: int = 0
    exercise_minutes: int = 0
    authorized: bool = False

    def to_snapshot(self) -> ActivitySnapshot:
        return ActivitySnapshot(**self.model_dump())


class ProductPayload(BaseModel):
    """Product macros per reference amount; nutrients per 100 units."""

    name: str
    calories: float
    protein: float = 0.0
    carbohydrates: float = 0.0
    fat: float = 0.0
    reference_amount: float = Field(default=100.0, gt=0)
    reference_unit: ReferenceUnit = ReferenceUnit.GRAM
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
    nutrients: dict[str, float | None] = Field(default_factory=dict)
    is_custom: bool = True


class SaveProductRequest(BaseModel):
    """Product save with an optional duplicate-barcode decision."""

    product: ProductPayload
    resolution: DuplicateResolution | None = None


class LabelRequest(BaseModel):
    """Base64-encoded nutrition label photo."""

    image_base64: str
    barcode: str | None = None


class ProductEntryRequest(BaseModel):
    """Log an amount or a number of portions of a stored product.

    ``portions`` takes precedence and uses the product's portion size.
    """

    product_id: UUID
    amount: float | None = None
    portions: float | None = None
    unit: str | None = None


class EstimateEntryRequest(BaseModel):
    """Log a food description, optionally with a confirmed estimate."""

    description: str
    estimate: FoodEstimate | None = None


class ManualEntryRequest(BaseModel):
    """Manually entered as-consumed values."""

    name: str
    amount: float
    unit: str = "g"
    calories: float
    protein: float | None = None
    carbohydrates: float | None = None
    fat: float | None = None
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None


class AdjustRequest(BaseModel):
    """Step an entry's amount."""

    delta: float


class SetAmountRequest(BaseModel):
    """Set an entry's absolute amount."""

    amount: float


class TargetsRequest(BaseModel):
    """New calorie and macro targets."""

    calories: float = Field(gt=0)
    protein: float = Field(gt=0)
    carbohydrates: float = Field(gt=0)
    fat: float = Field(gt=0)


class BaseLimitsRequest(BaseModel):
    """Base sugar and sodium limits before exercise bonuses."""

    sugar_limit_g: float = Field(gt=0)
    sodium_limit_mg: float = Field(gt=0)


class LimitsRequest(BaseModel):
    """Inputs for an exercise-adjusted limit."""

    base_limit: float
    mode: ExerciseMode | None = None
    activity: ActivityPayload = Field(default_factory=ActivityPayload)
    factor: float = 1.0
    manual_earned_calories: float = 0.0


class EntryView(BaseModel):
    """Serialized food entry."""

    id: UUID
    daily_log_id: UUID | None
    product_id: UUID | None
    name: str
    amount: float
    unit: str
    calories: float
    protein: float | None
    carbohydrates: float | None
    fat: float | None
    sugar: float | None
    natural_sugar: float | None
    added_sugar: float | None
    fibre: float | None
    sodium: float | None
    nutrients: dict[str, float]
    ai_generated: bool
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: FoodEntry) -> "EntryView":
        return cls(
            id=entry.id,
            daily_log_id=entry.daily_log_id,
            product_id=entry.product_id,
            name=entry.display_name,
            amount=entry.amount,
            unit=entry.unit,
            calories=entry.calories,
            protein=entry.protein,
            carbohydrates=entry.carbohydrates,
            fat=entry.fat,
            sugar=entry.sugar,
            natural_sugar=entry.natural_sugar,
            added_sugar=entry.added_sugar,
            fibre=entry.fibre,
            sodium=entry.sodium,
            nutrients=entry.nutrients.to_dict(),
            ai_generated=entry.ai_generated,
            timestamp=entry.timestamp,
        )


def product_to_dict(product: Product) -> dict[str, object]:
    """Serialize a product for JSON responses."""
    return {
        "id": str(product.id),
        "name": product.name,
        "brand": product.brand,
        "barcode": product.barcode,
        "reference_amount": product.reference_amount,
        "reference_unit": str(product.reference_unit),
        "calories": product.calories,
        "protein": product.protein,
        "carbohydrates": product.carbohydrates,
        "fat": product.fat,
        "saturated_fat": product.saturated_fat,
        "fibre": product.fibre,
        "sugar": product.sugar,
        "natural_sugar": product.natural_sugar,
        "added_sugar": product.added_sugar,
        "sodium": product.sodium,
        "cholesterol": product.cholesterol,
        "portion_size": product.portion_size,
        "portions_per_package": product.portions_per_package,
        "nutrients": product.nutrients.to_dict(),
        "is_custom": product.is_custom,
        "date_added": product.date_added.isoformat(),
    }


def limit_to_dict(status: LimitStatus) -> dict[str, object]:
    """Serialize a limit status."""
    return {
        "total": status.total,
        "base_limit": status.base_limit,
        "bonus": status.bonus,
        "limit": status.limit,
        "over_limit": status.over_limit,
    }


def summary_to_dict(
    summary: DaySummary, net_calorie_target: float
) -> dict[str, object]:
    """Serialize a day summary for the dashboard."""
    return {
        "day": summary.day.isoformat(),
        "targets": {
            "calories": summary.targets.calories,
            "protein": summary.targets.protein,
            "carbohydrates": summary.targets.carbohydrates,
            "fat": summary.targets.fat,
        },
        "net_calorie_target": net_calorie_target,
        "totals": {
            "calories": summary.calories,
            "protein": summary.protein,
            "carbohydrates": summary.carbohydrates,
            "fat": summary.fat,
            "fibre": summary.fibre,
            "sodium": summary.sodium,
            "sugar": summary.sugar,
            "natural_sugar": summary.natural_sugar,
            "added_sugar": summary.added_sugar,
        },
        "calories_remaining": summary.calories_remaining,
        "progress": {
            "calories": summary.calorie_progress,
            "protein": summary.protein_progress,
            "carbohydrates": summary.carbohydrate_progress,
            "fat": summary.fat_progress,
        },
        "salt_grams": summary.salt_grams,
        "sugar": limit_to_dict(summary.sugar_status),
        "sodium": limit_to_dict(summary.sodium_status),
        "micronutrient_source": summary.micronutrient_source,
        "micronutrients": [
            {
                "id": str(reading.definition.id),
                "name": reading.definition.name,
                "unit": reading.definition.unit,
                "value": reading.definition.round(reading.value),
                "formatted": reading.formatted,
                "target": reading.definition.target,
                "progress": reading.progress,
                "over_upper_limit": reading.over_upper_limit,
            }
            for reading in summary.micronutrients
        ],
        "entry_count": summary.entry_count,
    }


class ExerciseRequest(BaseModel):
    """Exercise mode and manual earned calories.

    An explicit null clears the manual figure; omitting it keeps the stored one.
    """

    mode: str | None = None
    manual_earned_calories: float | None = None


class TimezoneRequest(BaseModel):
    """IANA timezone name."""

    timezone: str


class RecommendedTargetsRequest(BaseModel):
    """Body profile used to recommend calorie and macro targets."""

    sex: Sex
    height_cm: float = Field(gt=0)
    weight_kg: float = Field(gt=0)
    date_of_birth: date

    def to_profile(self) -> BodyProfile:
        return BodyProfile(**self.model_dump())


class SupplementPayload(BaseModel):
    """Supplement with nutrients per serving."""

    name: str
    brand: str | None = None
    dosage_form: DosageForm = DosageForm.TABLET
    serving_size: float = Field(default=1.0, gt=0)
    serving_unit: str = "tablet"
    notes: str | None = None
    nutrients: dict[str, float | None] = Field(default_factory=dict)


class SupplementEntryRequest(BaseModel):
    """Log a dose; the amount defaults to one serving."""

    supplement_id: UUID
    amount: float | None = None


def supplement_to_dict(supplement: Supplement) -> dict[str, object]:
    """Serialize a supplement for JSON responses."""
    return {
        "id": str(supplement.id),
        "name": supplement.name,
        "brand": supplement.brand,
        "dosage_form": str(supplement.dosage_form),
        "serving_size": supplement.serving_size,
        "serving_unit": supplement.serving_unit,
        "notes": supplement.notes,
        "nutrients": supplement.nutrients.to_dict(),
        "date_added": supplement.date_added.isoformat(),
    }


def supplement_entry_to_dict(entry: SupplementEntry) -> dict[str, object]:
    """Serialize a logged dose."""
    return {
        "id": str(entry.id),
        "daily_log_id": str(entry.daily_log_id) if entry.daily_log_id else None,
        "supplement_id": str(entry.supplement_id) if entry.supplement_id else None,
        "name": entry.display_name,
        "amount": entry.amount,
        "unit": entry.unit,
        "nutrients": entry.nutrients.to_dict(),
        "timestamp": entry.timestamp.isoformat(),
    }
