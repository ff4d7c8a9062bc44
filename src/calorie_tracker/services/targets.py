"""Recommended calorie and macro targets from a body profile."""

import math
from datetime import date

from calorie_tracker.domain.logs import DailyTargets
from calorie_tracker.domain.settings import BodyProfile, Sex

SEDENTARY_MULTIPLIER = 1.2
CALORIE_STEP = 50

# Share of calories per macro, and kcal per gram.
PROTEIN_SHARE = 0.30
CARBOHYDRATE_SHARE = 0.40
FAT_SHARE = 0.30
KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBOHYDRATE = 4
KCAL_PER_GRAM_FAT = 9


def basal_metabolic_rate(profile: BodyProfile, age: int) -> float:
    """Mifflin-St Jeor resting energy in kcal per day."""
    base = 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * age
    if profile.sex == Sex.MALE:
        return base + 5
    return base - 161


def recommended_calories(profile: BodyProfile, today: date) -> int | None:
    """Sedentary daily energy need, or None when the profile is incomplete."""
    if profile.height_cm <= 0 or profile.weight_kg <= 0:
        return None
    age = profile.age_on(today)
    if age < 0:
        return None
    return _round_half_up(basal_metabolic_rate(profile, age) * SEDENTARY_MULTIPLIER)


def recommended_macros(calories: float) -> DailyTargets:
    """Split calories 30/40/30 into protein, carbohydrate and fat grams."""
    return DailyTargets(
        calories=calories,
        protein=_round_half_up(calories * PROTEIN_SHARE / KCAL_PER_GRAM_PROTEIN),
        carbohydrates=_round_half_up(
            calories * CARBOHYDRATE_SHARE / KCAL_PER_GRAM_CARBOHYDRATE
        ),
        fat=_round_half_up(calories * FAT_SHARE / KCAL_PER_GRAM_FAT),
    )


def recommended_targets(profile: BodyProfile, today: date) -> DailyTargets | None:
    """Targets with calories rounded to the nearest 50 kcal."""
    calories = recommended_calories(profile, today)
    if calories is None:
        return None
    rounded = _round_half_up(calories / CALORIE_STEP) * CALORIE_STEP
    return recommended_macros(float(rounded))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
