"""Audit log for AI requests."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from calorie_tracker.domain.estimation import AICallRecord


class AuditRepository(Protocol):
    """Persistence interface for AI call records."""

    def create_ai_log(self, user_id: UUID | None, record: AICallRecord) -> None:
        """Create an AI log row."""

    def list_ai_logs(self, limit: int) -> list[dict[str, object]]:
        """Return the most recent AI log rows."""


@dataclass
class AuditService:
    """Service for recording AI requests and their outcome."""

    repository: AuditRepository

    def record_ai_call(  # noqa: PLR0913
        self,
        user_id: UUID | None,
        request_type: str,
        provider: str,
        input_text: str,
        output_text: str,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        """Persist an AI call record."""
        self.repository.create_ai_log(
            user_id,
            AICallRecord(
                request_type=request_type,
                provider=provider,
                input=input_text,
                output=output_text,
                success=success,
                error_message=error_message,
            ),
        )

    def list_recent(self, limit: int = 50) -> list[dict[str, object]]:
        """Return recent AI log rows for diagnostics."""
        return self.repository.list_ai_logs(limit)
