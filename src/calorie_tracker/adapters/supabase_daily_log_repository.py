"""Supabase repository for daily logs and food entries."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.entries import SCALED_FIELDS, FoodEntry
from calorie_tracker.domain.logs import DailyLog, DailyTargets
from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.services.days import DailyLogRepository


@dataclass
class SupabaseDailyLogRepository(DailyLogRepository):
    """Supabase-backed repository for daily logs and their entries."""

    client: Client

    def get_log(self, user_id: UUID, day: date) -> DailyLog | None:
        """Return the user's log for a date, without entries."""
        response = (
            self.client.table("daily_logs")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("day", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_log(response.data[0])

    def get_log_by_id(self, log_id: UUID) -> DailyLog | None:
        """Return a log by id, without entries."""
        response = (
            self.client.table("daily_logs")
            .select("*")
            .eq("id", str(log_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_log(response.data[0])

    def create_log(self, log: DailyLog) -> DailyLog:
        """Insert a log and return it."""
        response = (
            self.client.table("daily_logs")
            .insert(
                {
                    "id": str(log.id),
                    "user_id": str(log.user_id) if log.user_id else None,
                    "day": log.day.isoformat(),
                    **_target_columns(log.targets),
                    "ai_micronutrients": log.ai_micronutrients.to_dict(),
                    "ai_sodium": log.ai_sodium,
                    "analysis_date": (
                        log.analysis_date.isoformat() if log.analysis_date else None
                    ),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create daily log")
        return _parse_log(response.data[0])

    def update_targets(self, log_id: UUID, targets: DailyTargets) -> None:
        """Overwrite a log's snapshotted targets."""
        self.client.table("daily_logs").update(_target_columns(targets)).eq(
            "id", str(log_id)
        ).execute()

    def update_ai_analysis(
        self,
        log_id: UUID,
        nutrients: NutrientRecord,
        sodium: float | None,
        analysis_date: datetime | None,
    ) -> None:
        """Write or clear the whole-day AI override."""
        self.client.table("daily_logs").update(
            {
                "ai_micronutrients": nutrients.to_dict(),
                "ai_sodium": sodium,
                "analysis_date": analysis_date.isoformat() if analysis_date else None,
            }
        ).eq("id", str(log_id)).execute()

    def list_recent_logs(self, user_id: UUID, limit: int) -> list[DailyLog]:
        """Return the user's most recent logs, newest first."""
        response = (
            self.client.table("daily_logs")
            .select("*")
            .eq("user_id", str(user_id))
            .order("day", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_log(row) for row in response.data or []]

    def create_entry(self, entry: FoodEntry) -> None:
        """Insert an entry attached to a log."""
        response = self.client.table("food_entries").insert(_entry_row(entry)).execute()
        if not response.data:
            raise RuntimeError("Failed to create food entry")

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id, if present."""
        response = (
            self.client.table("food_entries")
            .select("*")
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def update_entry(self, entry: FoodEntry) -> None:
        """Persist an entry's amount and scaled values."""
        payload: dict[str, object] = {
            "amount": entry.amount,
            "nutrients": entry.nutrients.to_dict(),
        }
        for name in SCALED_FIELDS:
            payload[name] = getattr(entry, name)
        self.client.table("food_entries").update(payload).eq(
            "id", str(entry.id)
        ).execute()

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete a single entry."""
        self.client.table("food_entries").delete().eq("id", str(entry_id)).execute()

    def list_entries(self, log_id: UUID) -> list[FoodEntry]:
        """Return all entries of a log."""
        response = (
            self.client.table("food_entries")
            .select("*")
            .eq("daily_log_id", str(log_id))
            .order("timestamp")
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]


def _target_columns(targets: DailyTargets) -> dict[str, float]:
    return {
        "calorie_target": targets.calories,
        "protein_target": targets.protein,
        "carb_target": targets.carbohydrates,
        "fat_target": targets.fat,
    }


def _entry_row(entry: FoodEntry) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(entry.id),
        "daily_log_id": str(entry.daily_log_id) if entry.daily_log_id else None,
        "product_id": str(entry.product_id) if entry.product_id else None,
        "product_name": entry.product_name,
        "custom_food_name": entry.custom_food_name,
        "amount": entry.amount,
        "unit": entry.unit,
        "nutrients": entry.nutrients.to_dict(),
        "ai_generated": entry.ai_generated,
        "ai_prompt": entry.ai_prompt,
        "timestamp": entry.timestamp.isoformat(),
    }
    for name in SCALED_FIELDS:
        row[name] = getattr(entry, name)
    return row


def _optional_uuid(value: object) -> UUID | None:
    if not value:
        return None
    return UUID(str(value))


def _parse_log(row: dict[str, object]) -> DailyLog:
    """Parse a daily log row into a domain model."""
    analysis_raw = row.get("analysis_date")
    defaults = DailyTargets()
    ai_sodium = row.get("ai_sodium")
    return DailyLog(
        id=UUID(str(row["id"])),
        user_id=_optional_uuid(row.get("user_id")),
        day=date.fromisoformat(str(row["day"])),
        targets=DailyTargets(
            calories=float(row.get("calorie_target") or defaults.calories),
            protein=float(row.get("protein_target") or defaults.protein),
            carbohydrates=float(row.get("carb_target") or defaults.carbohydrates),
            fat=float(row.get("fat_target") or defaults.fat),
        ),
        ai_micronutrients=NutrientRecord(row.get("ai_micronutrients") or {}),
        ai_sodium=float(ai_sodium) if ai_sodium is not None else None,
        analysis_date=(
            datetime.fromisoformat(analysis_raw)
            if isinstance(analysis_raw, str) and analysis_raw
            else None
        ),
    )


def _parse_entry(row: dict[str, object]) -> FoodEntry:
    """Parse a food entry row into a domain model."""
    scaled = {
        name: float(row[name])
        for name in SCALED_FIELDS
        if name != "calories" and row.get(name) is not None
    }
    return FoodEntry(
        id=UUID(str(row["id"])),
        daily_log_id=_optional_uuid(row.get("daily_log_id")),
        product_id=_optional_uuid(row.get("product_id")),
        product_name=row.get("product_name"),
        custom_food_name=row.get("custom_food_name"),
        amount=float(row["amount"]),
        unit=str(row.get("unit", "g")),
        calories=float(row.get("calories") or 0.0),
        nutrients=NutrientRecord(row.get("nutrients") or {}),
        ai_generated=bool(row.get("ai_generated", False)),
        ai_prompt=row.get("ai_prompt"),
        timestamp=datetime.fromisoformat(str(row["timestamp"])),
        **scaled,
    )
