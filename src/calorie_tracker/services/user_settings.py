"""User settings service."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from calorie_tracker.domain.activity import ExerciseMode
from calorie_tracker.domain.logs import DailyTargets
from calorie_tracker.domain.settings import BodyProfile, UserSettings
from calorie_tracker.services.targets import recommended_targets


class UserSettingsRepository(Protocol):
    """Persistence interface for user settings."""

    def get_settings(self, user_id: UUID) -> UserSettings | None:
        """Return the user's settings if stored."""

    def save_settings(self, user_id: UUID, settings: UserSettings) -> None:
        """Create or replace the user's settings."""


@dataclass
class UserSettingsService:
    """Service for user targets and exercise preferences."""

    repository: UserSettingsRepository
    defaults: UserSettings = UserSettings()

    def get_settings(self, user_id: UUID) -> UserSettings:
        """Return stored settings or the configured defaults."""
        return self.repository.get_settings(user_id) or self.defaults

    def set_targets(self, user_id: UUID, targets: DailyTargets) -> UserSettings:
        """Persist new calorie and macro targets."""
        return self._update(user_id, targets=targets)

    def apply_recommended_targets(
        self, user_id: UUID, profile: BodyProfile, today: date | None = None
    ) -> UserSettings | None:
        """Store targets recommended for the profile.

        Returns None and leaves settings untouched when the profile is
        incomplete.
        """
        if today is None:
            timezone = self.get_settings(user_id).timezone
            today = datetime.now(tz=ZoneInfo(timezone)).date()
        targets = recommended_targets(profile, today)
        if targets is None:
            return None
        return self.set_targets(user_id, targets)

    def set_limits(
        self, user_id: UUID, sugar_limit_g: float, sodium_limit_mg: float
    ) -> UserSettings:
        """Persist base sugar and sodium limits."""
        return self._update(
            user_id, sugar_limit_g=sugar_limit_g, sodium_limit_mg=sodium_limit_mg
        )

    def set_exercise_mode(
        self, user_id: UUID, mode: ExerciseMode | None
    ) -> UserSettings:
        """Select which activity figure earns bonuses, or disable them."""
        return self._update(user_id, exercise_mode=mode)

    def set_manual_earned_calories(
        self, user_id: UUID, calories: float
    ) -> UserSettings:
        """Store a manually entered exercise figure."""
        return self._update(user_id, manual_earned_calories=calories)

    def clear_manual_earned_calories(self, user_id: UUID) -> UserSettings:
        """Reset the manually entered exercise figure."""
        return self._update(user_id, manual_earned_calories=0.0)

    def set_timezone(self, user_id: UUID, timezone: str) -> UserSettings:
        """Persist a user's timezone."""
        return self._update(user_id, timezone=timezone)

    def _update(self, user_id: UUID, **changes: object) -> UserSettings:
        updated = replace(self.get_settings(user_id), **changes)
        self.repository.save_settings(user_id, updated)
        return updated
