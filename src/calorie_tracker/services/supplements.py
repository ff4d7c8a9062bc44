"""Supplement catalog and per-day dose logging.

Doses are kept apart from food entries and never count towards the
dashboard's micronutrient totals.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from calorie_tracker.domain.errors import InvalidAmountError
from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.domain.supplements import (
    Supplement,
    SupplementDay,
    SupplementEntry,
)
from calorie_tracker.services.days import DailyLogService

_logger = logging.getLogger(__name__)


class SupplementRepository(Protocol):
    """Persistence interface for supplements and logged doses."""

    def create_supplement(self, supplement: Supplement) -> Supplement:
        """Insert a supplement and return it."""

    def get_supplement(self, supplement_id: UUID) -> Supplement | None:
        """Return a supplement by id, if present."""

    def list_supplements(self, user_id: UUID) -> list[Supplement]:
        """Return a user's supplements ordered by name."""

    def delete_supplement(self, supplement_id: UUID) -> None:
        """Delete a supplement without touching logged doses."""

    def create_supplement_entry(self, entry: SupplementEntry) -> None:
        """Insert a dose attached to a log."""

    def get_supplement_entry(self, entry_id: UUID) -> SupplementEntry | None:
        """Return a dose by id, if present."""

    def delete_supplement_entry(self, entry_id: UUID) -> None:
        """Delete a single dose."""

    def list_supplement_entries(self, log_id: UUID) -> list[SupplementEntry]:
        """Return all doses of a log."""


def create_supplement_entry(
    supplement: Supplement, amount: float | None = None
) -> SupplementEntry:
    """Build a dose whose nutrients are scaled from the serving size."""
    taken = supplement.serving_size if amount is None else amount
    return SupplementEntry(
        amount=taken,
        unit=supplement.serving_unit,
        nutrients=supplement.nutrients.scaled(taken / supplement.serving_size),
        supplement_name=supplement.name,
        supplement_id=supplement.id,
    )


def supplement_totals(entries: list[SupplementEntry]) -> NutrientRecord:
    """Sum dose nutrients into one record."""
    totals: dict[str, float] = {}
    for entry in entries:
        for key, value in entry.nutrients.items():
            totals[key] = totals.get(key, 0.0) + value
    return NutrientRecord(totals)


@dataclass
class SupplementService:
    """Application service for supplements and their doses."""

    repository: SupplementRepository
    daily_log_service: DailyLogService

    def save_supplement(self, supplement: Supplement) -> Supplement:
        return self.repository.create_supplement(supplement)

    def list_supplements(self, user_id: UUID) -> list[Supplement]:
        return self.repository.list_supplements(user_id)

    def delete_supplement(self, user_id: UUID, supplement_id: UUID) -> bool:
        """Delete one of the user's supplements; logged doses are kept."""
        supplement = self.repository.get_supplement(supplement_id)
        if supplement is None or supplement.user_id != user_id:
            return False
        self.repository.delete_supplement(supplement_id)
        return True

    def log_supplement(
        self,
        user_id: UUID,
        day: date,
        supplement_id: UUID,
        amount: float | None = None,
    ) -> SupplementEntry | None:
        """Log a dose, one serving by default, onto the user's day."""
        if amount is not None and (not math.isfinite(amount) or amount <= 0):
            raise InvalidAmountError(amount)
        supplement = self.repository.get_supplement(supplement_id)
        if supplement is None or supplement.user_id != user_id:
            return None
        entry = create_supplement_entry(supplement, amount)
        log = self.daily_log_service.get_or_create(user_id, day)
        entry.daily_log_id = log.id
        self.repository.create_supplement_entry(entry)
        _logger.info("Logged supplement %s on log %s", supplement_id, log.id)
        return entry

    def day(self, user_id: UUID, day: date) -> SupplementDay:
        """Return the day's doses in time order with their totals."""
        log = self.daily_log_service.get_or_create(user_id, day)
        entries = sorted(
            self.repository.list_supplement_entries(log.id),
            key=lambda entry: entry.timestamp,
        )
        return SupplementDay(entries=entries, totals=supplement_totals(entries))

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> bool:
        """Delete one of the user's doses."""
        entry = self.repository.get_supplement_entry(entry_id)
        if entry is None or entry.daily_log_id is None:
            return False
        log = self.daily_log_service.repository.get_log_by_id(entry.daily_log_id)
        if log is None or log.user_id != user_id:
            return False
        self.repository.delete_supplement_entry(entry_id)
        return True
