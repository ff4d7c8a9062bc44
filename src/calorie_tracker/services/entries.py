"""Food entry construction, proportional re-scaling and logging."""

import logging
import math
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from calorie_tracker.domain.entries import SCALED_FIELDS, FoodEntry
from calorie_tracker.domain.errors import (
    InvalidAmountError,
    MissingReferenceBasisError,
)
from calorie_tracker.domain.estimation import FoodEstimate
from calorie_tracker.domain.logs import AIFoodTemplate
from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.domain.products import Product
from calorie_tracker.services.days import DailyLogRepository, DailyLogService
from calorie_tracker.services.mapping import entry_from_estimate
from calorie_tracker.services.products import ProductRepository
from calorie_tracker.services.scaling import (
    MASS_UNITS,
    NUTRIENT_BASIS_AMOUNT,
    scale,
    scale_optional,
)
from calorie_tracker.services.templates import TemplateService

_logger = logging.getLogger(__name__)

MIN_AMOUNT = 1.0
MAX_MASS_AMOUNT = 5000.0
MAX_DISCRETE_AMOUNT = 100.0


def max_amount(unit: str) -> float:
    """Upper bound for step adjustments in the given unit."""
    if unit in MASS_UNITS:
        return MAX_MASS_AMOUNT
    return MAX_DISCRETE_AMOUNT


def portion_amount(product: Product, portions: float) -> float:
    """Amount in the product's reference unit for a number of portions."""
    if product.portion_size is None or product.portion_size <= 0:
        raise MissingReferenceBasisError(
            f"Product {product.name!r} has no portion size to log portions of."
        )
    return product.portion_size * portions


def create_from_product(
    product: Product, consumed_amount: float, unit: str | None = None
) -> FoodEntry:
    """Build an entry whose values are scaled from the product's basis."""
    reference = product.reference_amount
    return FoodEntry(
        amount=consumed_amount,
        unit=unit or str(product.reference_unit),
        calories=scale(product.calories, reference, consumed_amount),
        protein=scale(product.protein, reference, consumed_amount),
        carbohydrates=scale(product.carbohydrates, reference, consumed_amount),
        fat=scale(product.fat, reference, consumed_amount),
        sugar=scale_optional(product.sugar, reference, consumed_amount),
        natural_sugar=scale_optional(
            product.natural_sugar, reference, consumed_amount
        ),
        added_sugar=scale_optional(product.added_sugar, reference, consumed_amount),
        fibre=scale_optional(product.fibre, reference, consumed_amount),
        sodium=scale_optional(product.sodium, reference, consumed_amount),
        nutrients=product.nutrients.scaled(consumed_amount / NUTRIENT_BASIS_AMOUNT),
        product_id=product.id,
        product_name=product.name,
    )


def create_from_estimate(estimate: FoodEstimate, prompt: str | None) -> FoodEntry:
    """Build an entry from an AI estimate that is already as-consumed."""
    return entry_from_estimate(estimate, prompt)


def create_from_template(template: AIFoodTemplate) -> FoodEntry:
    """Build an AI-generated entry from a cached template."""
    return FoodEntry(
        amount=template.amount,
        unit=template.unit,
        calories=template.calories,
        protein=template.protein,
        carbohydrates=template.carbohydrates,
        fat=template.fat,
        sugar=template.sugar,
        natural_sugar=template.natural_sugar,
        added_sugar=template.added_sugar,
        fibre=template.fibre,
        sodium=template.sodium,
        nutrients=template.nutrients,
        custom_food_name=template.name,
        ai_generated=True,
        ai_prompt=template.ai_prompt,
    )


def adjust_amount(entry: FoodEntry, delta: float) -> FoodEntry:
    """Step the amount by delta within unit bounds and re-scale values.

    Raises InvalidAmountError and leaves the entry untouched when delta is
    not a finite number.
    """
    if not isinstance(delta, int | float) or not math.isfinite(delta):
        raise InvalidAmountError(delta)
    new_amount = min(max(entry.amount + delta, MIN_AMOUNT), max_amount(entry.unit))
    _rescale(entry, new_amount)
    return entry


def set_amount(entry: FoodEntry, new_amount: float) -> FoodEntry:
    """Re-scale an entry to an explicit amount.

    Raises InvalidAmountError and leaves the entry untouched when the
    amount is not a positive finite number.
    """
    if not isinstance(new_amount, int | float) or not math.isfinite(new_amount):
        raise InvalidAmountError(new_amount)
    if new_amount <= 0:
        raise InvalidAmountError(new_amount)
    _rescale(entry, float(new_amount))
    return entry


def _rescale(entry: FoodEntry, new_amount: float) -> None:
    if new_amount == entry.amount:
        return
    current = entry.amount
    for name in SCALED_FIELDS:
        value = getattr(entry, name)
        if value is None:
            continue
        setattr(entry, name, _per_unit(value, current) * new_amount)
    entry.nutrients = NutrientRecord(
        {
            key: _per_unit(value, current) * new_amount
            for key, value in entry.nutrients.items()
        }
    )
    entry.amount = new_amount


def _per_unit(value: float, amount: float) -> float:
    if amount <= 0:
        return 0.0
    return value / amount


@dataclass
class FoodEntryService:
    """Application service that logs and edits entries on daily logs.

    Products and templates owned by another user, and entries on another
    user's logs, are treated as missing.
    """

    daily_log_service: DailyLogService
    repository: DailyLogRepository
    product_repository: ProductRepository
    template_service: TemplateService

    def log_product(
        self,
        user_id: UUID,
        day: date,
        product_id: UUID,
        amount: float,
        unit: str | None = None,
    ) -> FoodEntry | None:
        """Log a consumed amount of a stored product."""
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmountError(amount)
        product = self._visible_product(user_id, product_id)
        if product is None:
            return None
        entry = create_from_product(product, amount, unit)
        return self._attach(user_id, day, entry)

    def log_portions(
        self, user_id: UUID, day: date, product_id: UUID, portions: float
    ) -> FoodEntry | None:
        """Log a number of the product's portions."""
        if not math.isfinite(portions) or portions <= 0:
            raise InvalidAmountError(portions)
        product = self._visible_product(user_id, product_id)
        if product is None:
            return None
        entry = create_from_product(product, portion_amount(product, portions))
        return self._attach(user_id, day, entry)

    def log_estimate(
        self, user_id: UUID, day: date, estimate: FoodEstimate, prompt: str | None
    ) -> FoodEntry:
        """Log a confirmed AI estimate and remember it as a template."""
        entry = create_from_estimate(estimate, prompt)
        saved = self._attach(user_id, day, entry)
        self.template_service.remember(user_id, saved)
        return saved

    def log_template(
        self, user_id: UUID, day: date, template_id: UUID
    ) -> FoodEntry | None:
        """Log an entry from one of the user's cached AI templates."""
        template = self.template_service.get(template_id)
        if template is None or template.user_id != user_id:
            return None
        self.template_service.record_use(template)
        return self._attach(user_id, day, create_from_template(template))

    def log_manual(self, user_id: UUID, day: date, entry: FoodEntry) -> FoodEntry:
        """Log a manually entered, already as-consumed entry."""
        if not math.isfinite(entry.amount) or entry.amount <= 0:
            raise InvalidAmountError(entry.amount)
        return self._attach(user_id, day, entry)

    def adjust(self, user_id: UUID, entry_id: UUID, delta: float) -> FoodEntry | None:
        """Step an entry's amount and persist the re-scaled values."""
        entry = self._owned_entry(user_id, entry_id)
        if entry is None:
            return None
        adjust_amount(entry, delta)
        self.repository.update_entry(entry)
        return entry

    def set_amount(
        self, user_id: UUID, entry_id: UUID, amount: float
    ) -> FoodEntry | None:
        """Set an entry's amount, ignoring invalid input."""
        entry = self._owned_entry(user_id, entry_id)
        if entry is None:
            return None
        try:
            set_amount(entry, amount)
        except InvalidAmountError:
            _logger.warning("Ignoring invalid amount %r for entry %s", amount, entry_id)
            raise
        self.repository.update_entry(entry)
        return entry

    def delete(self, user_id: UUID, entry_id: UUID) -> bool:
        """Delete a single entry."""
        if self._owned_entry(user_id, entry_id) is None:
            return False
        self.repository.delete_entry(entry_id)
        return True

    def _visible_product(self, user_id: UUID, product_id: UUID) -> Product | None:
        product = self.product_repository.get_product(product_id)
        if product is None:
            return None
        if product.user_id is not None and product.user_id != user_id:
            _logger.info("Product %s is not visible to user %s", product_id, user_id)
            return None
        return product

    def _owned_entry(self, user_id: UUID, entry_id: UUID) -> FoodEntry | None:
        entry = self.repository.get_entry(entry_id)
        if entry is None or entry.daily_log_id is None:
            return None
        log = self.repository.get_log_by_id(entry.daily_log_id)
        if log is None or log.user_id != user_id:
            _logger.info("Entry %s is not owned by user %s", entry_id, user_id)
            return None
        return entry

    def _attach(self, user_id: UUID, day: date, entry: FoodEntry) -> FoodEntry:
        log = self.daily_log_service.get_or_create(user_id, day)
        entry.daily_log_id = log.id
        self.repository.create_entry(entry)
        return entry
