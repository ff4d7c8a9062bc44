"""Map AI estimation results onto products, entries and overrides."""

import logging
from collections.abc import Mapping
from uuid import UUID

from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.errors import (
    MissingReferenceBasisError,
    UnknownNutrientError,
)
from calorie_tracker.domain.estimation import (
    FoodEstimate,
    LabelParse,
    MicronutrientAnalysis,
)
from calorie_tracker.domain.nutrients import NutrientRecord, parse_nutrient_id
from calorie_tracker.domain.products import Product, ReferenceUnit
from calorie_tracker.services.scaling import NUTRIENT_BASIS_AMOUNT

_logger = logging.getLogger(__name__)

_ESTIMATE_FIELDS = (
    "protein",
    "carbohydrates",
    "fat",
    "sugar",
    "natural_sugar",
    "added_sugar",
    "fibre",
    "sodium",
)

_LABEL_FIELDS = (
    "saturated_fat",
    "fibre",
    "sugar",
    "sodium",
    "cholesterol",
)


def nutrient_record(
    values: Mapping[str, float | None], factor: float = 1.0
) -> NutrientRecord:
    """Build a rounded record from present values, dropping unknown ids.

    Every value is multiplied by factor before rounding.
    """
    known: dict[str, float] = {}
    for key, amount in values.items():
        if amount is None:
            continue
        try:
            nutrient_id = parse_nutrient_id(key)
        except UnknownNutrientError:
            _logger.warning("Ignoring unknown nutrient id from AI payload: %s", key)
            continue
        known[nutrient_id] = float(amount) * factor
    return NutrientRecord(known).rounded()


def entry_fields(estimate: FoodEstimate) -> dict[str, object]:
    """Return FoodEntry keyword arguments for the fields the AI reported."""
    fields: dict[str, object] = {
        "amount": estimate.amount,
        "unit": estimate.unit,
        "calories": estimate.calories,
        "custom_food_name": estimate.food_name,
    }
    for name in _ESTIMATE_FIELDS:
        value = getattr(estimate, name)
        if value is not None:
            fields[name] = value
    fields["nutrients"] = nutrient_record(estimate.nutrients)
    return fields


def entry_from_estimate(estimate: FoodEstimate, prompt: str | None) -> FoodEntry:
    """Create an AI-generated entry from an as-consumed estimate."""
    return FoodEntry(
        **entry_fields(estimate),
        ai_generated=True,
        ai_prompt=prompt,
    )


def product_from_label(
    label: LabelParse,
    *,
    user_id: UUID | None = None,
    barcode: str | None = None,
    fallback_name: str = "Scanned product",
) -> Product:
    """Create a custom product draft from a parsed nutrition label.

    Macros stay per serving while label micronutrients are converted to the
    per-100 basis products use.
    """
    reference_amount = label.serving_size or 100.0
    if reference_amount <= 0:
        raise MissingReferenceBasisError(
            f"Label serving size must be positive, got {label.serving_size!r}."
        )
    optional = {
        name: getattr(label, name)
        for name in _LABEL_FIELDS
        if getattr(label, name) is not None
    }
    return Product(
        name=label.product_name or fallback_name,
        brand=label.brand,
        barcode=barcode,
        calories=label.calories,
        protein=label.protein or 0.0,
        carbohydrates=label.carbohydrates or 0.0,
        fat=label.fat or 0.0,
        reference_amount=reference_amount,
        reference_unit=_reference_unit(label.serving_size_unit),
        nutrients=nutrient_record(
            label.nutrients, factor=NUTRIENT_BASIS_AMOUNT / reference_amount
        ),
        user_id=user_id,
        is_custom=True,
        **optional,
    )


def override_from_analysis(
    analysis: MicronutrientAnalysis,
) -> tuple[NutrientRecord, float | None]:
    """Return the micronutrient override record and sodium figure."""
    return nutrient_record(analysis.nutrients), analysis.sodium


def _reference_unit(raw: str | None) -> ReferenceUnit:
    if raw is None:
        return ReferenceUnit.GRAM
    cleaned = raw.strip().lower()
    if cleaned in {"ml", "milliliter", "millilitre"}:
        return ReferenceUnit.MILLILITER
    if cleaned in {"g", "gram", "grams", ""}:
        return ReferenceUnit.GRAM
    return ReferenceUnit.PIECE
