"""Tests for the daily roll-up."""

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from calorie_tracker.domain.activity import AdjustedLimit
from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.logs import DailyLog, DailyTargets
from calorie_tracker.domain.nutrients import NutrientId, NutrientRecord
from calorie_tracker.domain.products import Product, ReferenceUnit
from calorie_tracker.services.entries import create_from_product
from calorie_tracker.services.rollup import (
    SOURCE_AI_OVERRIDE,
    SOURCE_ENTRIES,
    compute_totals,
    food_descriptions,
    is_over_limit,
    micronutrient_value,
    progress,
    summarize,
    summed_micronutrient,
)
from calorie_tracker.services.scaling import GramInference

DAY = date(2024, 3, 1)


def _orange() -> Product:
    return Product(
        name="Orange",
        calories=47,
        protein=0.9,
        carbohydrates=12,
        fat=0.1,
        natural_sugar=9.0,
        nutrients=NutrientRecord({"vitaminC": 53.2, "potassium": 181.0}),
    )


def _bread() -> Product:
    return Product(
        name="Bread",
        calories=265,
        protein=9,
        carbohydrates=49,
        fat=3.2,
        added_sugar=5.0,
        sodium=491,
        nutrients=NutrientRecord({"iron": 3.6}),
    )


def test_totals_treat_absent_as_zero() -> None:
    entries = [
        FoodEntry(amount=1, unit="piece", calories=100, protein=5),
        FoodEntry(amount=1, unit="piece", calories=50, sodium=120),
    ]

    totals = compute_totals(entries)

    assert totals.calories == 150
    assert totals.protein == 5
    assert totals.sodium == 120
    assert totals.fat == 0


def test_totals_sugar_falls_back_to_natural_plus_added() -> None:
    entries = [
        FoodEntry(amount=1, unit="piece", calories=1, natural_sugar=3, added_sugar=2),
        FoodEntry(amount=1, unit="piece", calories=1, sugar=4, added_sugar=1),
    ]

    totals = compute_totals(entries)

    assert totals.sugar == 9
    assert totals.natural_sugar == 3
    assert totals.added_sugar == 3


def test_totals_are_order_independent() -> None:
    entries = [
        create_from_product(_orange(), 131),
        create_from_product(_bread(), 38),
        FoodEntry(amount=1, unit="cup", calories=45.5, protein=0.25),
    ]

    forward = compute_totals(entries)
    backward = compute_totals(list(reversed(entries)))

    assert forward.calories == pytest.approx(backward.calories)
    assert forward.protein == pytest.approx(backward.protein)
    assert forward.sodium == pytest.approx(backward.sodium)


def test_progress_caps_at_one_and_handles_zero_target() -> None:
    assert progress(1000, 2000) == 0.5
    assert progress(2500, 2000) == 1.0
    assert progress(100, 0) == 0.0


def test_over_limit_is_strict() -> None:
    assert is_over_limit(25, 25) is False
    assert is_over_limit(25.01, 25) is True


def test_summed_micronutrient_ignores_absent_values() -> None:
    orange = _orange()
    bread = _bread()
    products = {orange.id: orange, bread.id: bread}
    entries = [create_from_product(orange, 100), create_from_product(bread, 100)]

    vitamin_c = summed_micronutrient(entries, NutrientId.VITAMIN_C, products)
    zinc = summed_micronutrient(entries, NutrientId.ZINC, products)

    assert vitamin_c == pytest.approx(53.2)
    assert zinc == 0.0


def test_summed_micronutrient_skips_entries_without_product() -> None:
    orange = _orange()
    manual = FoodEntry(
        amount=1,
        unit="piece",
        calories=80,
        nutrients=NutrientRecord({"vitaminC": 40.0}),
    )
    deleted = create_from_product(_orange(), 100)

    total = summed_micronutrient(
        [manual, deleted], NutrientId.VITAMIN_C, {orange.id: orange}
    )

    assert total == 0.0


def test_piece_product_inferred_grams() -> None:
    apple = Product(
        name="Apple",
        calories=95,
        protein=0.5,
        carbohydrates=25,
        fat=0.3,
        reference_unit=ReferenceUnit.PIECE,
        nutrients=NutrientRecord({"vitaminC": 8.4}),
    )
    entry = FoodEntry(amount=1, unit="piece", calories=95, product_id=apple.id)

    total = summed_micronutrient([entry], NutrientId.VITAMIN_C, {apple.id: apple})

    assert total == pytest.approx(8.4)


def test_calorie_ratio_inference_drifts_from_rounded_amount() -> None:
    orange = _orange()
    entry = FoodEntry(amount=200, unit="g", calories=90, product_id=orange.id)
    products = {orange.id: orange}

    ratio = summed_micronutrient(
        [entry], NutrientId.VITAMIN_C, products, GramInference.CALORIE_RATIO
    )
    amount = summed_micronutrient(
        [entry], NutrientId.VITAMIN_C, products, GramInference.ENTRY_AMOUNT
    )

    assert ratio == pytest.approx(53.2 * (90 / 47))
    assert amount == pytest.approx(53.2 * 2)


def test_micronutrients_use_per_100_basis_for_small_reference() -> None:
    bar = Product(
        name="Protein bar",
        calories=200,
        protein=20,
        carbohydrates=20,
        fat=7,
        reference_amount=50,
        nutrients=NutrientRecord({"vitaminC": 10.0}),
    )
    entry = create_from_product(bar, 50)

    total = summed_micronutrient([entry], NutrientId.VITAMIN_C, {bar.id: bar})

    assert entry.calories == pytest.approx(200)
    assert entry.nutrients["vitaminC"] == pytest.approx(5.0)
    assert total == pytest.approx(5.0)


def test_ai_override_takes_precedence_and_reset_reverts() -> None:
    orange = _orange()
    products = {orange.id: orange}
    log = DailyLog(day=DAY, entries=[create_from_product(orange, 100)])
    log.ai_micronutrients = NutrientRecord({"vitaminC": 120.0})
    log.analysis_date = datetime(2024, 3, 1, 20, tzinfo=UTC)

    before = micronutrient_value(log, NutrientId.VITAMIN_C, products)
    changed = Product(
        name="Orange",
        calories=47,
        protein=0.9,
        carbohydrates=12,
        fat=0.1,
        id=orange.id,
        nutrients=NutrientRecord({"vitaminC": 1.0}),
    )
    after = micronutrient_value(log, NutrientId.VITAMIN_C, {orange.id: changed})
    missing = micronutrient_value(log, NutrientId.IRON, products)

    assert before == after == 120.0
    assert missing == 0.0

    log.ai_micronutrients = NutrientRecord()
    log.analysis_date = None

    assert micronutrient_value(
        log, NutrientId.VITAMIN_C, {orange.id: changed}
    ) == pytest.approx(1.0)


def test_summarize_builds_dashboard() -> None:
    bread = _bread()
    log = DailyLog(
        day=DAY,
        targets=DailyTargets(calories=2000, protein=50, carbohydrates=250, fat=65),
        entries=[create_from_product(bread, 200)],
    )

    summary = summarize(
        log,
        {bread.id: bread},
        sugar_limit=AdjustedLimit(limit=25, bonus=0),
        sodium_limit=AdjustedLimit(limit=900, bonus=100),
    )

    assert summary.calories == pytest.approx(530)
    assert summary.calories_remaining == pytest.approx(1470)
    assert summary.protein_progress == pytest.approx(18 / 50)
    assert summary.salt_grams == pytest.approx(982 / 400)
    assert summary.sodium_status.over_limit is True
    assert summary.sodium_status.base_limit == 800
    assert summary.sugar_status.total == pytest.approx(10)
    assert summary.sugar_status.over_limit is False
    assert summary.micronutrient_source == SOURCE_ENTRIES
    iron = next(r for r in summary.micronutrients if r.definition.id == "iron")
    assert iron.value == pytest.approx(7.2)
    assert iron.formatted == "7.2 mg"
    assert len(summary.micronutrients) == 26


def test_summarize_reports_override_source() -> None:
    log = DailyLog(
        day=DAY,
        ai_micronutrients=NutrientRecord({"vitaminD": 150.0}),
        analysis_date=datetime(2024, 3, 1, tzinfo=UTC),
    )

    summary = summarize(
        log,
        {},
        sugar_limit=AdjustedLimit(limit=25, bonus=0),
        sodium_limit=AdjustedLimit(limit=2300, bonus=0),
    )

    vitamin_d = next(r for r in summary.micronutrients if r.definition.id == "vitaminD")
    assert summary.micronutrient_source == SOURCE_AI_OVERRIDE
    assert vitamin_d.over_upper_limit is True
    assert vitamin_d.progress == 1.0


def test_food_descriptions_are_time_ordered() -> None:
    later = FoodEntry(
        amount=2,
        unit="piece",
        calories=140,
        custom_food_name="Eggs",
        timestamp=datetime(2024, 3, 1, 9, tzinfo=UTC),
    )
    earlier = FoodEntry(
        amount=250,
        unit="ml",
        calories=120,
        product_name="Milk",
        product_id=uuid4(),
        timestamp=datetime(2024, 3, 1, 7, tzinfo=UTC),
    )

    assert food_descriptions([later, earlier]) == ["250ml Milk", "2piece Eggs"]
