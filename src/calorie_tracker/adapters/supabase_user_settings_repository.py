"""Supabase repository for user settings."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.activity import ExerciseMode
from calorie_tracker.domain.logs import DailyTargets
from calorie_tracker.domain.settings import UserSettings
from calorie_tracker.services.user_settings import UserSettingsRepository


@dataclass
class SupabaseUserSettingsRepository(UserSettingsRepository):
    """Supabase implementation for user settings."""

    client: Client

    def get_settings(self, user_id: UUID) -> UserSettings | None:
        """Return the stored settings for a user."""
        response = (
            self.client.table("user_settings")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_settings(response.data[0])

    def save_settings(self, user_id: UUID, settings: UserSettings) -> None:
        """Create or replace the user's settings."""
        self.client.table("user_settings").upsert(
            {
                "user_id": str(user_id),
                "calorie_target": settings.targets.calories,
                "protein_target": settings.targets.protein,
                "carb_target": settings.targets.carbohydrates,
                "fat_target": settings.targets.fat,
                "sugar_limit_g": settings.sugar_limit_g,
                "sodium_limit_mg": settings.sodium_limit_mg,
                "exercise_mode": (
                    str(settings.exercise_mode) if settings.exercise_mode else None
                ),
                "manual_earned_calories": settings.manual_earned_calories,
                "timezone": settings.timezone,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()


def _parse_settings(row: dict[str, object]) -> UserSettings:
    """Parse a settings row into a domain model."""
    defaults = UserSettings()
    mode_raw = row.get("exercise_mode")
    return UserSettings(
        targets=DailyTargets(
            calories=float(row.get("calorie_target") or defaults.targets.calories),
            protein=float(row.get("protein_target") or defaults.targets.protein),
            carbohydrates=float(
                row.get("carb_target") or defaults.targets.carbohydrates
            ),
            fat=float(row.get("fat_target") or defaults.targets.fat),
        ),
        sugar_limit_g=float(row.get("sugar_limit_g") or defaults.sugar_limit_g),
        sodium_limit_mg=float(row.get("sodium_limit_mg") or defaults.sodium_limit_mg),
        exercise_mode=ExerciseMode(mode_raw) if mode_raw else None,
        manual_earned_calories=float(row.get("manual_earned_calories") or 0.0),
        timezone=str(row.get("timezone") or defaults.timezone),
    )
