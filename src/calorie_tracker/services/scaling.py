"""Reference-basis scaling and consumed-gram inference."""

import logging
from enum import StrEnum

from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.products import Product

_logger = logging.getLogger(__name__)

MASS_UNITS = frozenset({"g", "ml"})

# Product micronutrients are stored per 100 reference units.
NUTRIENT_BASIS_AMOUNT = 100.0


class GramInference(StrEnum):
    """How consumed grams are derived when summing product micronutrients."""

    CALORIE_RATIO = "calorie_ratio"
    ENTRY_AMOUNT = "entry_amount"


def scale(value: float, reference_amount: float, consumed_amount: float) -> float:
    """Convert a per-reference value to the consumed amount."""
    if reference_amount <= 0:
        return 0.0
    return value / reference_amount * consumed_amount


def scale_optional(
    value: float | None, reference_amount: float, consumed_amount: float
) -> float | None:
    """Scale a value, keeping unknown values unknown."""
    if value is None:
        return None
    return scale(value, reference_amount, consumed_amount)


def infer_consumed_grams(entry_calories: float, product: Product) -> float:
    """Infer the consumed reference quantity from the calorie ratio.

    Returns 0 when the product has no calories to compare against.
    """
    if product.calories <= 0:
        _logger.debug(
            "Skipping gram inference for zero-calorie product %s", product.id
        )
        return 0.0
    return entry_calories / product.calories * product.reference_amount


def consumed_grams(
    entry: FoodEntry,
    product: Product,
    inference: GramInference = GramInference.CALORIE_RATIO,
) -> float:
    """Return the consumed quantity used for micronutrient summation."""
    if inference == GramInference.ENTRY_AMOUNT and entry.unit in MASS_UNITS:
        return entry.amount
    return infer_consumed_grams(entry.calories, product)
