"""Supabase repository for AI food templates."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.logs import AIFoodTemplate, normalize_food_name
from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.services.templates import TemplateRepository

_OPTIONAL_FIELDS = (
    "protein",
    "carbohydrates",
    "fat",
    "sugar",
    "natural_sugar",
    "added_sugar",
    "fibre",
    "sodium",
)


@dataclass
class SupabaseTemplateRepository(TemplateRepository):
    """Supabase-backed template repository."""

    client: Client

    def create_template(self, template: AIFoodTemplate) -> AIFoodTemplate:
        """Insert a template and return it."""
        response = (
            self.client.table("ai_food_templates").insert(_to_row(template)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create template")
        return _parse_template(response.data[0])

    def update_template(self, template: AIFoodTemplate) -> AIFoodTemplate:
        """Replace a stored template and return it."""
        row = _to_row(template)
        row.pop("id")
        response = (
            self.client.table("ai_food_templates")
            .update(row)
            .eq("id", str(template.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update template")
        return _parse_template(response.data[0])

    def get_template(self, template_id: UUID) -> AIFoodTemplate | None:
        """Return a template by id, if present."""
        response = (
            self.client.table("ai_food_templates")
            .select("*")
            .eq("id", str(template_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_template(response.data[0])

    def find_by_name(
        self, user_id: UUID, normalized_name: str
    ) -> AIFoodTemplate | None:
        """Return the user's template with this normalized name, if any."""
        response = (
            self.client.table("ai_food_templates")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("normalized_name", normalized_name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_template(response.data[0])

    def list_templates(self, user_id: UUID, limit: int) -> list[AIFoodTemplate]:
        """Return a user's templates, most recently used first."""
        response = (
            self.client.table("ai_food_templates")
            .select("*")
            .eq("user_id", str(user_id))
            .order("last_used", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_template(row) for row in response.data or []]


def _to_row(template: AIFoodTemplate) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(template.id),
        "user_id": str(template.user_id) if template.user_id else None,
        "name": template.name,
        "normalized_name": normalize_food_name(template.name),
        "amount": template.amount,
        "unit": template.unit,
        "calories": template.calories,
        "nutrients": template.nutrients.to_dict(),
        "ai_prompt": template.ai_prompt,
        "date_created": template.date_created.isoformat(),
        "last_used": template.last_used.isoformat(),
        "use_count": template.use_count,
    }
    for name in _OPTIONAL_FIELDS:
        row[name] = getattr(template, name)
    return row


def _parse_template(row: dict[str, object]) -> AIFoodTemplate:
    """Parse a template row into a domain model."""
    user_raw = row.get("user_id")
    optional = {
        name: float(row[name]) for name in _OPTIONAL_FIELDS if row.get(name) is not None
    }
    return AIFoodTemplate(
        id=UUID(str(row["id"])),
        user_id=UUID(str(user_raw)) if user_raw else None,
        name=str(row.get("name", "")),
        amount=float(row.get("amount", 1.0)),
        unit=str(row.get("unit", "piece")),
        calories=float(row.get("calories", 0.0)),
        nutrients=NutrientRecord(row.get("nutrients") or {}),
        ai_prompt=row.get("ai_prompt"),
        date_created=datetime.fromisoformat(str(row["date_created"])),
        last_used=datetime.fromisoformat(str(row["last_used"])),
        use_count=int(row.get("use_count", 1)),
        **optional,
    )
