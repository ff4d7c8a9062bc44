"""Per-user tracking preferences."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from calorie_tracker.domain.activity import ExerciseMode
from calorie_tracker.domain.logs import DailyTargets


@dataclass(frozen=True)
class UserSettings:
    """Targets, limits and exercise preferences for a user."""

    targets: DailyTargets = field(default_factory=DailyTargets)
    sugar_limit_g: float = 25.0
    sodium_limit_mg: float = 2300.0
    exercise_mode: ExerciseMode | None = None
    manual_earned_calories: float = 0.0
    timezone: str = "UTC"


class Sex(StrEnum):
    """Sex used by the BMR equation."""

    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class BodyProfile:
    """Body measurements used to recommend targets."""

    sex: Sex
    height_cm: float
    weight_kg: float
    date_of_birth: date

    def age_on(self, day: date) -> int:
        """Whole years of age on the given day."""
        had_birthday = (day.month, day.day) >= (
            self.date_of_birth.month,
            self.date_of_birth.day,
        )
        return day.year - self.date_of_birth.year - (0 if had_birthday else 1)
