"""Supabase repository for supplements and logged doses."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.domain.supplements import DosageForm, Supplement, SupplementEntry
from calorie_tracker.services.supplements import SupplementRepository


@dataclass
class SupabaseSupplementRepository(SupplementRepository):
    """Supabase-backed repository for supplements and their doses."""

    client: Client

    def create_supplement(self, supplement: Supplement) -> Supplement:
        """Insert a supplement and return it."""
        response = (
            self.client.table("supplements")
            .insert(
                {
                    "id": str(supplement.id),
                    "user_id": str(supplement.user_id) if supplement.user_id else None,
                    "name": supplement.name,
                    "brand": supplement.brand,
                    "dosage_form": str(supplement.dosage_form),
                    "serving_size": supplement.serving_size,
                    "serving_unit": supplement.serving_unit,
                    "notes": supplement.notes,
                    "nutrients": supplement.nutrients.to_dict(),
                    "date_added": supplement.date_added.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create supplement")
        return _parse_supplement(response.data[0])

    def get_supplement(self, supplement_id: UUID) -> Supplement | None:
        """Return a supplement by id, if present."""
        response = (
            self.client.table("supplements")
            .select("*")
            .eq("id", str(supplement_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_supplement(response.data[0])

    def list_supplements(self, user_id: UUID) -> list[Supplement]:
        """Return a user's supplements ordered by name."""
        response = (
            self.client.table("supplements")
            .select("*")
            .eq("user_id", str(user_id))
            .order("name")
            .execute()
        )
        return [_parse_supplement(row) for row in response.data or []]

    def delete_supplement(self, supplement_id: UUID) -> None:
        """Delete a supplement row; doses keep their own values."""
        self.client.table("supplements").delete().eq(
            "id", str(supplement_id)
        ).execute()

    def create_supplement_entry(self, entry: SupplementEntry) -> None:
        """Insert a dose attached to a log."""
        response = (
            self.client.table("supplement_entries")
            .insert(
                {
                    "id": str(entry.id),
                    "daily_log_id": (
                        str(entry.daily_log_id) if entry.daily_log_id else None
                    ),
                    "supplement_id": (
                        str(entry.supplement_id) if entry.supplement_id else None
                    ),
                    "supplement_name": entry.supplement_name,
                    "amount": entry.amount,
                    "unit": entry.unit,
                    "nutrients": entry.nutrients.to_dict(),
                    "timestamp": entry.timestamp.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create supplement entry")

    def get_supplement_entry(self, entry_id: UUID) -> SupplementEntry | None:
        """Return a dose by id, if present."""
        response = (
            self.client.table("supplement_entries")
            .select("*")
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def delete_supplement_entry(self, entry_id: UUID) -> None:
        """Delete a single dose."""
        self.client.table("supplement_entries").delete().eq(
            "id", str(entry_id)
        ).execute()

    def list_supplement_entries(self, log_id: UUID) -> list[SupplementEntry]:
        """Return all doses of a log."""
        response = (
            self.client.table("supplement_entries")
            .select("*")
            .eq("daily_log_id", str(log_id))
            .order("timestamp")
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]


def _optional_uuid(value: object) -> UUID | None:
    if not value:
        return None
    return UUID(str(value))


def _parse_supplement(row: dict[str, object]) -> Supplement:
    """Parse a supplement row into a domain model."""
    date_raw = row.get("date_added")
    extra: dict[str, object] = {}
    if isinstance(date_raw, str) and date_raw:
        extra["date_added"] = datetime.fromisoformat(date_raw)
    return Supplement(
        id=UUID(str(row["id"])),
        user_id=_optional_uuid(row.get("user_id")),
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        dosage_form=DosageForm(row.get("dosage_form") or "tablet"),
        serving_size=float(row.get("serving_size") or 1.0),
        serving_unit=str(row.get("serving_unit") or "tablet"),
        notes=row.get("notes"),
        nutrients=NutrientRecord(row.get("nutrients") or {}),
        **extra,
    )


def _parse_entry(row: dict[str, object]) -> SupplementEntry:
    """Parse a supplement entry row into a domain model."""
    return SupplementEntry(
        id=UUID(str(row["id"])),
        daily_log_id=_optional_uuid(row.get("daily_log_id")),
        supplement_id=_optional_uuid(row.get("supplement_id")),
        supplement_name=row.get("supplement_name"),
        amount=float(row.get("amount") or 1.0),
        unit=str(row.get("unit") or "tablet"),
        nutrients=NutrientRecord(row.get("nutrients") or {}),
        timestamp=datetime.fromisoformat(str(row["timestamp"])),
    )
