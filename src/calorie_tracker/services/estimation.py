"""AI estimation service with structured outputs and auditing."""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar
from uuid import UUID

from pydantic import BaseModel

from calorie_tracker.domain.errors import EstimationError
from calorie_tracker.domain.estimation import (
    FoodEstimate,
    LabelParse,
    MicronutrientAnalysis,
)
from calorie_tracker.domain.nutrients import NUTRIENT_CATALOG
from calorie_tracker.services.audit import AuditService

_logger = logging.getLogger(__name__)

REQUEST_FOOD_ESTIMATE = "food_estimate"
REQUEST_NUTRITION_LABEL = "nutrition_label"
REQUEST_VITAMIN_ANALYSIS = "vitamin_analysis"

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_NULLABLE_NUMBER: dict[str, object] = {"anyOf": [{"type": "number"}, {"type": "null"}]}
_NULLABLE_STRING: dict[str, object] = {"anyOf": [{"type": "string"}, {"type": "null"}]}


def _strict_object(properties: dict[str, object]) -> dict[str, object]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


def _catalog_object(value_schema: dict[str, object]) -> dict[str, object]:
    return _strict_object(
        {definition.id.value: value_schema for definition in NUTRIENT_CATALOG}
    )


FOOD_ESTIMATE_SCHEMA: dict[str, object] = _strict_object(
    {
        "food_name": {"type": "string"},
        "amount": {"type": "number"},
        "unit": {"type": "string"},
        "weight_in_grams": _NULLABLE_NUMBER,
        "calories": {"type": "number"},
        "protein": _NULLABLE_NUMBER,
        "carbohydrates": _NULLABLE_NUMBER,
        "fat": _NULLABLE_NUMBER,
        "sugar": _NULLABLE_NUMBER,
        "natural_sugar": _NULLABLE_NUMBER,
        "added_sugar": _NULLABLE_NUMBER,
        "fibre": _NULLABLE_NUMBER,
        "sodium": _NULLABLE_NUMBER,
        "nutrients": _catalog_object(_NULLABLE_NUMBER),
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "notes": _NULLABLE_STRING,
    }
)

LABEL_PARSE_SCHEMA: dict[str, object] = _strict_object(
    {
        "product_name": _NULLABLE_STRING,
        "brand": _NULLABLE_STRING,
        "serving_size": _NULLABLE_NUMBER,
        "serving_size_unit": _NULLABLE_STRING,
        "calories": {"type": "number"},
        "protein": _NULLABLE_NUMBER,
        "carbohydrates": _NULLABLE_NUMBER,
        "fat": _NULLABLE_NUMBER,
        "saturated_fat": _NULLABLE_NUMBER,
        "fibre": _NULLABLE_NUMBER,
        "sugar": _NULLABLE_NUMBER,
        "sodium": _NULLABLE_NUMBER,
        "cholesterol": _NULLABLE_NUMBER,
        "nutrients": _catalog_object(_NULLABLE_NUMBER),
        "confidence": _NULLABLE_NUMBER,
    }
)

MICRONUTRIENT_ANALYSIS_SCHEMA: dict[str, object] = _strict_object(
    {
        "nutrients": _catalog_object(_NULLABLE_NUMBER),
        "sodium": _NULLABLE_NUMBER,
        "sources": _catalog_object(_NULLABLE_STRING),
    }
)


def _unit_hints() -> str:
    return ", ".join(
        f"{definition.id} ({definition.unit})" for definition in NUTRIENT_CATALOG
    )


class EstimationClient(Protocol):
    """Interface for an LLM returning structured JSON text."""

    provider: str

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> str:
        """Return the raw JSON text produced by the model."""


@dataclass
class EstimationService:
    """Service that prompts the AI provider and validates its results.

    Calls are never retried. Each call is written to the AI audit log,
    and failures are re-raised as EstimationError.
    """

    client: EstimationClient
    model: str
    temperature: float
    audit_service: AuditService

    async def estimate_food(
        self, description: str, user_id: UUID | None = None
    ) -> FoodEstimate:
        """Estimate as-consumed nutrition for a free-text description."""
        prompt = (
            "You are a nutrition estimation assistant. The user describes food "
            "they ate in natural language. Estimate the complete nutritional "
            "content for the amount described using average values. Report "
            "macros in grams and sodium in mg. Report vitamins and minerals "
            f"in these units: {_unit_hints()}. Use null for anything you "
            "cannot estimate.\n\n"
            f"Food: {description}"
        )
        return await self._run(
            REQUEST_FOOD_ESTIMATE,
            user_id=user_id,
            input_text=description,
            prompt=prompt,
            schema_name="food_estimate",
            schema=FOOD_ESTIMATE_SCHEMA,
            result_type=FoodEstimate,
        )

    async def parse_label(
        self, image_bytes: bytes, user_id: UUID | None = None
    ) -> LabelParse:
        """Read per-serving values off a nutrition label photo."""
        prompt = (
            "Read this nutrition label. Return the values for one serving "
            "exactly as printed, with the serving size and its unit. Report "
            "macros in grams, sodium and cholesterol in mg, and vitamins and "
            f"minerals in these units: {_unit_hints()}. Use null for values "
            "that are not on the label."
        )
        return await self._run(
            REQUEST_NUTRITION_LABEL,
            user_id=user_id,
            input_text=f"[image {len(image_bytes)} bytes]",
            prompt=prompt,
            schema_name="nutrition_label",
            schema=LABEL_PARSE_SCHEMA,
            result_type=LabelParse,
            image_data_url=_to_data_url(image_bytes),
        )

    async def analyze_micronutrients(
        self, foods: list[str], user_id: UUID | None = None
    ) -> MicronutrientAnalysis:
        """Estimate whole-day vitamin and mineral totals for a food list."""
        food_list = "\n- ".join(foods)
        prompt = (
            "You are a nutrition expert. Estimate the TOTAL vitamins and "
            "minerals consumed from these foods eaten today:\n"
            f"- {food_list}\n\n"
            f"Use these units: {_unit_hints()}. Report sodium in mg. For each "
            "nutrient, list the foods it mainly came from, or null."
        )
        return await self._run(
            REQUEST_VITAMIN_ANALYSIS,
            user_id=user_id,
            input_text="\n".join(foods),
            prompt=prompt,
            schema_name="micronutrient_analysis",
            schema=MICRONUTRIENT_ANALYSIS_SCHEMA,
            result_type=MicronutrientAnalysis,
        )

    async def _run(  # noqa: PLR0913
        self,
        request_type: str,
        *,
        user_id: UUID | None,
        input_text: str,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        result_type: type[_ModelT],
        image_data_url: str | None = None,
    ) -> _ModelT:
        output_text = ""
        try:
            output_text = await self.client.complete(
                model=self.model,
                temperature=self.temperature,
                prompt=prompt,
                schema_name=schema_name,
                schema=schema,
                image_data_url=image_data_url,
            )
            result = result_type.model_validate(json.loads(output_text))
        except Exception as exc:
            _logger.exception("AI %s request failed", request_type)
            self.audit_service.record_ai_call(
                user_id,
                request_type,
                self.client.provider,
                input_text,
                output_text,
                success=False,
                error_message=str(exc),
            )
            raise EstimationError(request_type, str(exc)) from exc
        self.audit_service.record_ai_call(
            user_id,
            request_type,
            self.client.provider,
            input_text,
            output_text,
            success=True,
        )
        return result


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
