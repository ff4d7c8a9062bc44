"""Supabase repository for AI call logs."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.estimation import AICallRecord
from calorie_tracker.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed AI log repository."""

    client: Client

    def create_ai_log(self, user_id: UUID | None, record: AICallRecord) -> None:
        """Create an AI log row."""
        self.client.table("ai_logs").insert(
            {
                "user_id": str(user_id) if user_id else None,
                **record.model_dump(),
            }
        ).execute()

    def list_ai_logs(self, limit: int) -> list[dict[str, object]]:
        """Return the most recent AI log rows."""
        response = (
            self.client.table("ai_logs")
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return list(response.data or [])
