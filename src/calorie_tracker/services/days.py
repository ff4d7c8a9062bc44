"""Daily log access, summaries and whole-day micronutrient analysis."""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from calorie_tracker.domain.activity import ActivitySnapshot
from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.logs import DailyLog, DailyTargets, DaySummary, HistoryDay
from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.domain.products import Product
from calorie_tracker.services.estimation import EstimationService
from calorie_tracker.services.limits import adjusted_limit
from calorie_tracker.services.mapping import override_from_analysis
from calorie_tracker.services.products import ProductRepository
from calorie_tracker.services.rollup import compute_totals, food_descriptions, summarize
from calorie_tracker.services.scaling import GramInference
from calorie_tracker.services.user_settings import UserSettingsService

_logger = logging.getLogger(__name__)


class DailyLogRepository(Protocol):
    """Persistence interface for daily logs and their entries."""

    def get_log(self, user_id: UUID, day: date) -> DailyLog | None:
        """Return the user's log for a date, without entries."""

    def get_log_by_id(self, log_id: UUID) -> DailyLog | None:
        """Return a log by id, without entries."""

    def create_log(self, log: DailyLog) -> DailyLog:
        """Insert a log and return it."""

    def update_targets(self, log_id: UUID, targets: DailyTargets) -> None:
        """Overwrite a log's snapshotted targets."""

    def update_ai_analysis(
        self,
        log_id: UUID,
        nutrients: NutrientRecord,
        sodium: float | None,
        analysis_date: datetime | None,
    ) -> None:
        """Write or clear the whole-day AI override."""

    def list_recent_logs(self, user_id: UUID, limit: int) -> list[DailyLog]:
        """Return the user's most recent logs, newest first."""

    def create_entry(self, entry: FoodEntry) -> None:
        """Insert an entry attached to a log."""

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id, if present."""

    def update_entry(self, entry: FoodEntry) -> None:
        """Persist an entry's amount and scaled values."""

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete a single entry."""

    def list_entries(self, log_id: UUID) -> list[FoodEntry]:
        """Return all entries of a log."""


@dataclass
class DailyLogService:
    """Application service for daily logs."""

    repository: DailyLogRepository
    product_repository: ProductRepository
    settings_service: UserSettingsService
    estimation_service: EstimationService
    gram_inference: GramInference = GramInference.CALORIE_RATIO
    sugar_bonus_factor: float = 0.05
    sodium_bonus_factor: float = 1.0

    def get_or_create(self, user_id: UUID, day: date) -> DailyLog:
        """Return the log for a date, creating it lazily.

        Logs dated today or later pick up the user's current targets.
        Older logs keep the targets they were created with.
        """
        settings = self.settings_service.get_settings(user_id)
        log = self.repository.get_log(user_id, day)
        if log is None:
            log = self.repository.create_log(
                DailyLog(day=day, targets=settings.targets, user_id=user_id)
            )
            _logger.info("Created daily log %s for %s", log.id, day)
            return log
        if day >= _today(settings.timezone) and log.targets != settings.targets:
            self.repository.update_targets(log.id, settings.targets)
            log.targets = settings.targets
        log.entries = self.repository.list_entries(log.id)
        return log

    def summary(
        self,
        user_id: UUID,
        day: date,
        activity: ActivitySnapshot | None = None,
    ) -> DaySummary:
        """Roll up a day against exercise-adjusted limits."""
        activity = activity or ActivitySnapshot()
        settings = self.settings_service.get_settings(user_id)
        log = self.get_or_create(user_id, day)
        sugar_limit = adjusted_limit(
            settings.sugar_limit_g,
            settings.exercise_mode,
            activity,
            factor=self.sugar_bonus_factor,
            manual_earned_calories=settings.manual_earned_calories,
        )
        sodium_limit = adjusted_limit(
            settings.sodium_limit_mg,
            settings.exercise_mode,
            activity,
            factor=self.sodium_bonus_factor,
            manual_earned_calories=settings.manual_earned_calories,
        )
        return summarize(
            log,
            self._products_for(log.entries),
            sugar_limit=sugar_limit,
            sodium_limit=sodium_limit,
            inference=self.gram_inference,
        )

    async def analyze_micronutrients(self, user_id: UUID, day: date) -> DailyLog:
        """Ask the AI for whole-day totals and store them as the override."""
        log = self.get_or_create(user_id, day)
        if not log.entries:
            _logger.info("Skipping micronutrient analysis for empty log %s", log.id)
            return log
        analysis = await self.estimation_service.analyze_micronutrients(
            food_descriptions(log.entries), user_id=user_id
        )
        nutrients, sodium = override_from_analysis(analysis)
        analysis_date = datetime.now(tz=UTC)
        self.repository.update_ai_analysis(log.id, nutrients, sodium, analysis_date)
        log.ai_micronutrients = nutrients
        log.ai_sodium = sodium
        log.analysis_date = analysis_date
        return log

    def reset_micronutrients(self, user_id: UUID, day: date) -> DailyLog:
        """Clear the AI override so totals come from entries again."""
        log = self.get_or_create(user_id, day)
        self.repository.update_ai_analysis(log.id, NutrientRecord(), None, None)
        log.ai_micronutrients = NutrientRecord()
        log.ai_sodium = None
        log.analysis_date = None
        return log

    def history(self, user_id: UUID, limit: int = 30) -> list[HistoryDay]:
        """Return recent days with their totals."""
        days = []
        for log in self.repository.list_recent_logs(user_id, limit):
            entries = self.repository.list_entries(log.id)
            days.append(
                HistoryDay(
                    day=log.day,
                    targets=log.targets,
                    totals=compute_totals(entries),
                    entry_count=len(entries),
                )
            )
        return days

    def _products_for(self, entries: list[FoodEntry]) -> dict[UUID, Product]:
        product_ids = list(
            {entry.product_id for entry in entries if entry.product_id is not None}
        )
        if not product_ids:
            return {}
        products = self.product_repository.get_products(product_ids)
        return {product.id: product for product in products}


def _today(timezone_name: str) -> date:
    return datetime.now(tz=ZoneInfo(timezone_name)).date()
