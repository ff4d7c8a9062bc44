"""Structured results returned by the AI estimation collaborator."""

from pydantic import BaseModel, Field


class FoodEstimate(BaseModel):
    """As-consumed estimate for a free-text food description."""

    food_name: str
    amount: float
    unit: str
    calories: float
    weight_in_grams: float | None = None
    protein: float | None = None
    carbohydrates: float | None = None
    fat: float | None = None
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    nutrients: dict[str, float | None] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)
    notes: str | None = None


class LabelParse(BaseModel):
    """Values read off a photographed nutrition label."""

    product_name: str | None = None
    brand: str | None = None
    serving_size: float | None = None
    serving_size_unit: str | None = None
    calories: float
    protein: float | None = None
    carbohydrates: float | None = None
    fat: float | None = None
    saturated_fat: float | None = None
    fibre: float | None = None
    sugar: float | None = None
    sodium: float | None = None
    cholesterol: float | None = None
    nutrients: dict[str, float | None] = Field(default_factory=dict)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class MicronutrientAnalysis(BaseModel):
    """Whole-day vitamin and mineral totals."""

    nutrients: dict[str, float | None] = Field(default_factory=dict)
    sodium: float | None = None
    sources: dict[str, str | None] = Field(default_factory=dict)


class AICallRecord(BaseModel):
    """Audit row for a single AI request."""

    request_type: str
    provider: str
    input: str
    output: str
    success: bool
    error_message: str | None = None
