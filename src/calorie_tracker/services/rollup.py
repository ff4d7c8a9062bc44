"""Daily roll-up of entries into totals, progress and micronutrients."""

from collections.abc import Iterable, Mapping
from uuid import UUID

from calorie_tracker.domain.activity import AdjustedLimit
from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.logs import (
    DailyLog,
    DailyTotals,
    DaySummary,
    LimitStatus,
    MicronutrientReading,
)
from calorie_tracker.domain.nutrients import NUTRIENT_CATALOG, NutrientId
from calorie_tracker.domain.products import Product
from calorie_tracker.services.limits import salt_grams
from calorie_tracker.services.scaling import (
    NUTRIENT_BASIS_AMOUNT,
    GramInference,
    consumed_grams,
    scale,
)

SOURCE_AI_OVERRIDE = "ai_override"
SOURCE_ENTRIES = "entries"


def compute_totals(entries: Iterable[FoodEntry]) -> DailyTotals:
    """Sum as-consumed values, counting unknown values as zero."""
    calories = protein = carbohydrates = fat = 0.0
    fibre = sodium = sugar = natural_sugar = added_sugar = 0.0
    for entry in entries:
        calories += entry.calories
        protein += entry.protein or 0.0
        carbohydrates += entry.carbohydrates or 0.0
        fat += entry.fat or 0.0
        fibre += entry.fibre or 0.0
        sodium += entry.sodium or 0.0
        sugar += entry.total_sugar or 0.0
        natural_sugar += entry.natural_sugar or 0.0
        added_sugar += entry.added_sugar or 0.0
    return DailyTotals(
        calories=calories,
        protein=protein,
        carbohydrates=carbohydrates,
        fat=fat,
        fibre=fibre,
        sodium=sodium,
        sugar=sugar,
        natural_sugar=natural_sugar,
        added_sugar=added_sugar,
    )


def progress(total: float, target: float) -> float:
    """Fill ratio for an ascending goal, capped at 1.0."""
    if target <= 0:
        return 0.0
    return min(total / target, 1.0)


def is_over_limit(total: float, limit: float) -> bool:
    """Return True only when total strictly exceeds the limit."""
    return total > limit


def summed_micronutrient(
    entries: Iterable[FoodEntry],
    nutrient_id: NutrientId,
    products: Mapping[UUID, Product],
    inference: GramInference = GramInference.CALORIE_RATIO,
) -> float:
    """Sum a nutrient over entries with a resolvable product.

    Product micronutrients are per 100 reference units, independent of the
    product's macro reference amount.
    """
    total = 0.0
    for entry in entries:
        if entry.product_id is None:
            continue
        product = products.get(entry.product_id)
        if product is None:
            continue
        value = product.nutrients.value(nutrient_id)
        if value is None:
            continue
        grams = consumed_grams(entry, product, inference)
        total += scale(value, NUTRIENT_BASIS_AMOUNT, grams)
    return total


def micronutrient_value(
    log: DailyLog,
    nutrient_id: NutrientId,
    products: Mapping[UUID, Product],
    inference: GramInference = GramInference.CALORIE_RATIO,
) -> float:
    """Return the day's value, preferring the AI override when present."""
    if log.has_ai_analysis:
        return log.ai_micronutrients.value(nutrient_id) or 0.0
    return summed_micronutrient(log.entries, nutrient_id, products, inference)


def micronutrient_readings(
    log: DailyLog,
    products: Mapping[UUID, Product],
    inference: GramInference = GramInference.CALORIE_RATIO,
) -> list[MicronutrientReading]:
    """Dashboard rows for every catalog nutrient."""
    readings = []
    for definition in NUTRIENT_CATALOG:
        value = micronutrient_value(log, definition.id, products, inference)
        readings.append(
            MicronutrientReading(
                definition=definition,
                value=value,
                progress=progress(value, definition.target),
                over_upper_limit=(
                    definition.upper_limit is not None
                    and value > definition.upper_limit
                ),
            )
        )
    return readings


def limit_status(total: float, adjusted: AdjustedLimit) -> LimitStatus:
    """Compare a total against an exercise-adjusted limit."""
    return LimitStatus(
        total=total,
        base_limit=adjusted.limit - adjusted.bonus,
        bonus=adjusted.bonus,
        limit=adjusted.limit,
        over_limit=is_over_limit(total, adjusted.limit),
    )


def summarize(
    log: DailyLog,
    products: Mapping[UUID, Product],
    *,
    sugar_limit: AdjustedLimit,
    sodium_limit: AdjustedLimit,
    inference: GramInference = GramInference.CALORIE_RATIO,
) -> DaySummary:
    """Build the full day view from a log and its resolved products."""
    totals = compute_totals(log.entries)
    targets = log.targets
    return DaySummary(
        day=log.day,
        targets=targets,
        calories=totals.calories,
        protein=totals.protein,
        carbohydrates=totals.carbohydrates,
        fat=totals.fat,
        fibre=totals.fibre,
        sodium=totals.sodium,
        sugar=totals.sugar,
        natural_sugar=totals.natural_sugar,
        added_sugar=totals.added_sugar,
        calories_remaining=targets.calories - totals.calories,
        calorie_progress=progress(totals.calories, targets.calories),
        protein_progress=progress(totals.protein, targets.protein),
        carbohydrate_progress=progress(totals.carbohydrates, targets.carbohydrates),
        fat_progress=progress(totals.fat, targets.fat),
        salt_grams=salt_grams(totals.sodium),
        sugar_status=limit_status(totals.added_sugar, sugar_limit),
        sodium_status=limit_status(totals.sodium, sodium_limit),
        micronutrients=micronutrient_readings(log, products, inference),
        micronutrient_source=(
            SOURCE_AI_OVERRIDE if log.has_ai_analysis else SOURCE_ENTRIES
        ),
        entry_count=len(log.entries),
    )


def food_descriptions(entries: Iterable[FoodEntry]) -> list[str]:
    """Describe entries for a whole-day micronutrient analysis request."""
    return [
        f"{entry.amount:g}{entry.unit} {entry.display_name}"
        for entry in sorted(entries, key=lambda item: item.timestamp)
    ]
