"""Cached AI food templates."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.logs import AIFoodTemplate, normalize_food_name


class TemplateRepository(Protocol):
    """Persistence interface for AI food templates."""

    def create_template(self, template: AIFoodTemplate) -> AIFoodTemplate:
        """Insert a template and return it."""

    def update_template(self, template: AIFoodTemplate) -> AIFoodTemplate:
        """Replace a stored template and return it."""

    def get_template(self, template_id: UUID) -> AIFoodTemplate | None:
        """Return a template by id, if present."""

    def find_by_name(
        self, user_id: UUID, normalized_name: str
    ) -> AIFoodTemplate | None:
        """Return the user's template with this normalized name, if any."""

    def list_templates(self, user_id: UUID, limit: int) -> list[AIFoodTemplate]:
        """Return a user's templates, most recently used first."""


@dataclass
class TemplateService:
    """Application service for reusable AI estimates."""

    repository: TemplateRepository

    def get(self, template_id: UUID) -> AIFoodTemplate | None:
        """Return a template by id."""
        return self.repository.get_template(template_id)

    def find(self, user_id: UUID, name: str) -> AIFoodTemplate | None:
        """Find a template by case-insensitive name."""
        return self.repository.find_by_name(user_id, normalize_food_name(name))

    def recent(self, user_id: UUID, limit: int = 20) -> list[AIFoodTemplate]:
        """Return the user's most recently used templates."""
        return self.repository.list_templates(user_id, limit)

    def remember(self, user_id: UUID, entry: FoodEntry) -> AIFoodTemplate:
        """Create or refresh the template for an AI-generated entry."""
        fields = _template_fields(entry)
        existing = self.find(user_id, str(fields["name"]))
        now = datetime.now(tz=UTC)
        if existing is None:
            return self.repository.create_template(
                AIFoodTemplate(**fields, user_id=user_id, last_used=now)
            )
        refreshed = replace(
            existing,
            **fields,
            last_used=now,
            use_count=existing.use_count + 1,
        )
        return self.repository.update_template(refreshed)

    def record_use(self, template: AIFoodTemplate) -> AIFoodTemplate:
        """Bump usage counters for a template."""
        used = replace(
            template,
            use_count=template.use_count + 1,
            last_used=datetime.now(tz=UTC),
        )
        return self.repository.update_template(used)


def _template_fields(entry: FoodEntry) -> dict[str, object]:
    return {
        "name": entry.display_name,
        "amount": entry.amount,
        "unit": entry.unit,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbohydrates": entry.carbohydrates,
        "fat": entry.fat,
        "sugar": entry.sugar,
        "natural_sugar": entry.natural_sugar,
        "added_sugar": entry.added_sugar,
        "fibre": entry.fibre,
        "sodium": entry.sodium,
        "nutrients": entry.nutrients,
        "ai_prompt": entry.ai_prompt,
    }
