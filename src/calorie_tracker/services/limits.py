"""Exercise-adjusted daily limits and salt conversion."""

from calorie_tracker.domain.activity import (
    ActivitySnapshot,
    AdjustedLimit,
    ExerciseMode,
)

SODIUM_MG_PER_SALT_GRAM = 400.0


def salt_grams(sodium_mg: float) -> float:
    """Convert sodium milligrams to grams of salt."""
    return sodium_mg / SODIUM_MG_PER_SALT_GRAM


def device_exercise_calories(
    mode: ExerciseMode | None, activity: ActivitySnapshot
) -> float:
    """Return the activity figure selected by the mode."""
    if mode is None or not activity.authorized:
        return 0.0
    if mode == ExerciseMode.WORKOUTS_ONLY:
        return float(activity.workout_calories)
    if mode == ExerciseMode.ALL_ACTIVE:
        return float(activity.active_calories)
    return float(activity.total_calories)


def earned_calories(
    mode: ExerciseMode | None,
    activity: ActivitySnapshot,
    manual_earned_calories: float = 0.0,
) -> float:
    """Device-reported plus manually entered exercise calories.

    With no exercise mode selected nothing is earned, so manual calories
    are ignored as well.
    """
    if mode is None:
        return 0.0
    return device_exercise_calories(mode, activity) + manual_earned_calories


def adjusted_limit(
    base_limit: float,
    mode: ExerciseMode | None,
    activity: ActivitySnapshot,
    *,
    factor: float = 1.0,
    manual_earned_calories: float = 0.0,
) -> AdjustedLimit:
    """Add the exercise bonus (earned kcal times factor) to a base limit."""
    bonus = earned_calories(mode, activity, manual_earned_calories) * factor
    return AdjustedLimit(limit=base_limit + bonus, bonus=bonus)


def net_calorie_target(base_target: float, activity: ActivitySnapshot) -> float:
    """Calorie target raised by today's active energy when authorized."""
    if not activity.authorized:
        return base_target
    return base_target + activity.active_calories
