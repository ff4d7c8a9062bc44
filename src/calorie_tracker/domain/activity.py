"""Activity data supplied by the device health collaborator."""

from dataclasses import dataclass
from enum import StrEnum


class ExerciseMode(StrEnum):
    """Which activity figure earns limit bonuses."""

    WORKOUTS_ONLY = "workouts-only"
    ALL_ACTIVE = "all-active"
    TOTAL_BURNED = "total-burned"


@dataclass(frozen=True)
class ActivitySnapshot:
    """Today's activity figures."""

    steps: int = 0
    active_calories: int = 0
    workout_calories: int = 0
    total_calories: int = 0
    exercise_minutes: int = 0
    authorized: bool = False


@dataclass(frozen=True)
class AdjustedLimit:
    """A max limit after the exercise bonus is applied."""

    limit: float
    bonus: float
