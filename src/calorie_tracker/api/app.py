"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Annotated
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from calorie_tracker.api.admin import router as admin_router
from calorie_tracker.api.schemas import (
    ActivityPayload,
    AdjustRequest,
    BaseLimitsRequest,
    EntryView,
    EstimateEntryRequest,
    ExerciseRequest,
    LabelRequest,
    LimitsRequest,
    ManualEntryRequest,
    ProductEntryRequest,
    ProductPayload,
    RecommendedTargetsRequest,
    SaveProductRequest,
    SetAmountRequest,
    SupplementEntryRequest,
    SupplementPayload,
    TargetsRequest,
    TimezoneRequest,
    product_to_dict,
    summary_to_dict,
    supplement_entry_to_dict,
    supplement_to_dict,
)
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.config import parse_exercise_mode
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.errors import (
    EstimationError,
    InvalidAmountError,
    MissingReferenceBasisError,
    UnknownNutrientError,
)
from calorie_tracker.domain.logs import DailyTargets
from calorie_tracker.domain.nutrients import NutrientRecord
from calorie_tracker.domain.products import Product, ProductSaveResult
from calorie_tracker.domain.settings import UserSettings
from calorie_tracker.domain.supplements import Supplement
from calorie_tracker.services.limits import adjusted_limit, net_calorie_target
from calorie_tracker.services.mapping import product_from_label

UserId = Annotated[UUID, Header(alias="X-User-Id")]


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/products/barcode/{barcode}")
    async def lookup_barcode(
        barcode: str, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Find a product by barcode locally, then in Open Food Facts."""
        state_container: AppContainer = request.app.state.container
        try:
            product = await state_container.product_service.lookup_barcode(
                user_id, barcode
            )
        except Exception as exc:
            logger.exception("Barcode lookup failed", extra={"barcode": barcode})
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=_error_detail(
                    state_container, exc, "Product lookup is unavailable."
                ),
            ) from exc
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found."
            )
        return {"product": product_to_dict(product)}

    @app.get("/products")
    async def list_products(
        user_id: UserId, request: Request, custom_only: bool = False
    ) -> dict[str, object]:
        """Return the user's saved products."""
        state_container: AppContainer = request.app.state.container
        products = state_container.product_service.list_products(
            user_id, custom_only=custom_only
        )
        return {"products": [product_to_dict(product) for product in products]}

    @app.post("/products")
    async def save_product(
        payload: SaveProductRequest, user_id: UserId, request: Request
    ) -> JSONResponse:
        """Save a product, reporting barcode collisions for a decision."""
        state_container: AppContainer = request.app.state.container
        product = _product_from_payload(payload.product, user_id)
        result = state_container.product_service.save_product(
            product, payload.resolution
        )
        return _save_result_response(result)

    @app.delete("/products/{product_id}")
    async def delete_product(
        product_id: UUID, user_id: UserId, request: Request
    ) -> dict[str, str]:
        """Delete one of the user's products; logged entries are kept."""
        state_container: AppContainer = request.app.state.container
        if not state_container.product_service.delete_product(user_id, product_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found."
            )
        return {"status": "ok"}

    @app.post("/products/label")
    async def parse_label(
        payload: LabelRequest, user_id: UserId, request: Request
    ) -> JSONResponse:
        """Read a nutrition label photo and save it as a custom product."""
        state_container: AppContainer = request.app.state.container
        try:
            image_bytes = base64.b64decode(payload.image_base64, validate=True)
        except binascii.Error as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Image must be base64 encoded.",
            ) from exc
        try:
            label = await state_container.estimation_service.parse_label(
                image_bytes, user_id=user_id
            )
        except EstimationError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=_error_detail(
                    state_container,
                    exc,
                    "Sorry, I couldn't read that label. Please try a clearer shot.",
                ),
            ) from exc
        try:
            product = product_from_label(
                label, user_id=user_id, barcode=payload.barcode
            )
        except MissingReferenceBasisError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        result = state_container.product_service.save_product(product)
        return _save_result_response(result)

    @app.post("/days/{day}/entries/product")
    async def log_product(
        day: date, payload: ProductEntryRequest, user_id: UserId, request: Request
    ) -> EntryView:
        """Log an amount or a number of portions of a stored product."""
        state_container: AppContainer = request.app.state.container
        service = state_container.entry_service
        if payload.amount is None and payload.portions is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Send an amount or a number of portions.",
            )
        try:
            if payload.portions is not None:
                entry = service.log_portions(
                    user_id, day, payload.product_id, payload.portions
                )
            else:
                entry = service.log_product(
                    user_id, day, payload.product_id, payload.amount, payload.unit
                )
        except InvalidAmountError as exc:
            raise _invalid_amount(exc) from exc
        except MissingReferenceBasisError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found."
            )
        return EntryView.from_entry(entry)

    @app.post("/days/{day}/entries/estimate")
    async def log_estimate(
        day: date, payload: EstimateEntryRequest, user_id: UserId, request: Request
    ) -> EntryView:
        """Log a described food from a template or a fresh AI estimate."""
        state_container: AppContainer = request.app.state.container
        estimate = payload.estimate
        if estimate is None:
            template = state_container.template_service.find(
                user_id, payload.description
            )
            if template is not None:
                entry = state_container.entry_service.log_template(
                    user_id, day, template.id
                )
                if entry is not None:
                    return EntryView.from_entry(entry)
            try:
                estimate = await state_container.estimation_service.estimate_food(
                    payload.description, user_id=user_id
                )
            except EstimationError as exc:
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=_error_detail(
                        state_container,
                        exc,
                        "Sorry, I couldn't estimate that food. Please try again.",
                    ),
                ) from exc
        entry = state_container.entry_service.log_estimate(
            user_id, day, estimate, payload.description
        )
        return EntryView.from_entry(entry)

    @app.post("/days/{day}/entries/manual")
    async def log_manual(
        day: date, payload: ManualEntryRequest, user_id: UserId, request: Request
    ) -> EntryView:
        """Log manually entered as-consumed values."""
        state_container: AppContainer = request.app.state.container
        entry = FoodEntry(
            custom_food_name=payload.name,
            **payload.model_dump(exclude={"name"}),
        )
        try:
            saved = state_container.entry_service.log_manual(user_id, day, entry)
        except InvalidAmountError as exc:
            raise _invalid_amount(exc) from exc
        return EntryView.from_entry(saved)

    @app.post("/days/{day}/entries/template/{template_id}")
    async def log_template(
        day: date, template_id: UUID, user_id: UserId, request: Request
    ) -> EntryView:
        """Log an entry from a cached AI template."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.entry_service.log_template(user_id, day, template_id)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Template not found."
            )
        return EntryView.from_entry(entry)

    @app.get("/templates")
    async def list_templates(
        user_id: UserId, request: Request, limit: int = 20
    ) -> dict[str, object]:
        """Return recently used AI templates."""
        state_container: AppContainer = request.app.state.container
        templates = state_container.template_service.recent(user_id, limit)
        return {
            "templates": [
                {
                    "id": str(template.id),
                    "name": template.name,
                    "amount": template.amount,
                    "unit": template.unit,
                    "calories": template.calories,
                    "use_count": template.use_count,
                    "last_used": template.last_used.isoformat(),
                }
                for template in templates
            ]
        }

    @app.post("/entries/{entry_id}/adjust")
    async def adjust_entry(
        entry_id: UUID, payload: AdjustRequest, user_id: UserId, request: Request
    ) -> EntryView:
        """Step an entry's amount and re-scale its values."""
        state_container: AppContainer = request.app.state.container
        try:
            entry = state_container.entry_service.adjust(
                user_id, entry_id, payload.delta
            )
        except InvalidAmountError as exc:
            raise _invalid_amount(exc) from exc
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found."
            )
        return EntryView.from_entry(entry)

    @app.put("/entries/{entry_id}/amount")
    async def set_entry_amount(
        entry_id: UUID, payload: SetAmountRequest, user_id: UserId, request: Request
    ) -> EntryView:
        """Set an entry's amount and re-scale its values."""
        state_container: AppContainer = request.app.state.container
        try:
            entry = state_container.entry_service.set_amount(
                user_id, entry_id, payload.amount
            )
        except InvalidAmountError as exc:
            raise _invalid_amount(exc) from exc
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found."
            )
        return EntryView.from_entry(entry)

    @app.delete("/entries/{entry_id}")
    async def delete_entry(
        entry_id: UUID, user_id: UserId, request: Request
    ) -> dict[str, str]:
        """Delete a single entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.entry_service.delete(user_id, entry_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found."
            )
        return {"status": "ok"}

    @app.post("/supplements", status_code=status.HTTP_201_CREATED)
    async def save_supplement(
        payload: SupplementPayload, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Save a supplement with per-serving nutrients."""
        state_container: AppContainer = request.app.state.container
        fields = payload.model_dump(exclude={"nutrients"})
        try:
            supplement = Supplement(
                **fields,
                nutrients=NutrientRecord(payload.nutrients),
                user_id=user_id,
            )
        except UnknownNutrientError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        saved = state_container.supplement_service.save_supplement(supplement)
        return {"supplement": supplement_to_dict(saved)}

    @app.get("/supplements")
    async def list_supplements(user_id: UserId, request: Request) -> dict[str, object]:
        """Return the user's supplements."""
        state_container: AppContainer = request.app.state.container
        supplements = state_container.supplement_service.list_supplements(user_id)
        return {"supplements": [supplement_to_dict(item) for item in supplements]}

    @app.delete("/supplements/{supplement_id}")
    async def delete_supplement(
        supplement_id: UUID, user_id: UserId, request: Request
    ) -> dict[str, str]:
        """Delete a supplement; logged doses are kept."""
        state_container: AppContainer = request.app.state.container
        if not state_container.supplement_service.delete_supplement(
            user_id, supplement_id
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Supplement not found."
            )
        return {"status": "ok"}

    @app.post("/days/{day}/supplements")
    async def log_supplement(
        day: date, payload: SupplementEntryRequest, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Log a supplement dose onto a day."""
        state_container: AppContainer = request.app.state.container
        try:
            entry = state_container.supplement_service.log_supplement(
                user_id, day, payload.supplement_id, payload.amount
            )
        except InvalidAmountError as exc:
            raise _invalid_amount(exc) from exc
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Supplement not found."
            )
        return supplement_entry_to_dict(entry)

    @app.get("/days/{day}/supplements")
    async def day_supplements(
        day: date, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Return a day's supplement doses and their nutrient totals."""
        state_container: AppContainer = request.app.state.container
        result = state_container.supplement_service.day(user_id, day)
        return {
            "entries": [supplement_entry_to_dict(entry) for entry in result.entries],
            "totals": result.totals.to_dict(),
        }

    @app.delete("/supplement-entries/{entry_id}")
    async def delete_supplement_entry(
        entry_id: UUID, user_id: UserId, request: Request
    ) -> dict[str, str]:
        """Delete a single supplement dose."""
        state_container: AppContainer = request.app.state.container
        if not state_container.supplement_service.delete_entry(user_id, entry_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Dose not found."
            )
        return {"status": "ok"}

    @app.get("/days/{day}/summary")
    async def day_summary(
        day: date,
        user_id: UserId,
        request: Request,
        activity: Annotated[ActivityPayload, Query()],
    ) -> dict[str, object]:
        """Return the dashboard view for a day."""
        state_container: AppContainer = request.app.state.container
        snapshot = activity.to_snapshot()
        summary = state_container.daily_log_service.summary(user_id, day, snapshot)
        return summary_to_dict(
            summary, net_calorie_target(summary.targets.calories, snapshot)
        )

    @app.get("/days/{day}/entries")
    async def list_entries(
        day: date, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Return a day's entries ordered by time."""
        state_container: AppContainer = request.app.state.container
        log = state_container.daily_log_service.get_or_create(user_id, day)
        return {
            "entries": [
                EntryView.from_entry(entry).model_dump(mode="json")
                for entry in log.sorted_entries()
            ]
        }

    @app.post("/days/{day}/micronutrients/analyze")
    async def analyze_micronutrients(
        day: date, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Replace summed micronutrients with a whole-day AI estimate."""
        state_container: AppContainer = request.app.state.container
        try:
            log = await state_container.daily_log_service.analyze_micronutrients(
                user_id, day
            )
        except EstimationError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=_error_detail(
                    state_container,
                    exc,
                    "Sorry, the vitamin analysis failed. Please try again.",
                ),
            ) from exc
        return {
            "analysis_date": (
                log.analysis_date.isoformat() if log.analysis_date else None
            ),
            "nutrients": log.ai_micronutrients.to_dict(),
            "sodium": log.ai_sodium,
        }

    @app.delete("/days/{day}/micronutrients/override")
    async def reset_micronutrients(
        day: date, user_id: UserId, request: Request
    ) -> dict[str, str]:
        """Clear the whole-day AI override."""
        state_container: AppContainer = request.app.state.container
        state_container.daily_log_service.reset_micronutrients(user_id, day)
        return {"status": "ok"}

    @app.get("/history")
    async def history(
        user_id: UserId, request: Request, limit: int = 30
    ) -> dict[str, object]:
        """Return recent days with totals."""
        state_container: AppContainer = request.app.state.container
        days = state_container.daily_log_service.history(user_id, limit)
        return {
            "days": [
                {
                    "day": item.day.isoformat(),
                    "calorie_target": item.targets.calories,
                    "calories": item.totals.calories,
                    "protein": item.totals.protein,
                    "carbohydrates": item.totals.carbohydrates,
                    "fat": item.totals.fat,
                    "entry_count": item.entry_count,
                }
                for item in days
            ]
        }

    @app.put("/settings/targets")
    async def set_targets(
        payload: TargetsRequest, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Store new targets; today's log resyncs on next access."""
        state_container: AppContainer = request.app.state.container
        settings = state_container.user_settings_service.set_targets(
            user_id, DailyTargets(**payload.model_dump())
        )
        return _settings_to_dict(settings)

    @app.post("/settings/targets/recommended")
    async def set_recommended_targets(
        payload: RecommendedTargetsRequest, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Store Mifflin-St Jeor targets for the given body profile."""
        state_container: AppContainer = request.app.state.container
        settings = state_container.user_settings_service.apply_recommended_targets(
            user_id, payload.to_profile()
        )
        if settings is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Profile is incomplete.",
            )
        return _settings_to_dict(settings)

    @app.put("/settings/limits")
    async def set_limits(
        payload: BaseLimitsRequest, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Store base sugar and sodium limits."""
        state_container: AppContainer = request.app.state.container
        settings = state_container.user_settings_service.set_limits(
            user_id, payload.sugar_limit_g, payload.sodium_limit_mg
        )
        return _settings_to_dict(settings)

    @app.put("/settings/exercise")
    async def set_exercise(
        payload: ExerciseRequest, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Select the exercise mode and manual earned calories."""
        state_container: AppContainer = request.app.state.container
        service = state_container.user_settings_service
        settings = service.set_exercise_mode(user_id, parse_exercise_mode(payload.mode))
        if "manual_earned_calories" not in payload.model_fields_set:
            return _settings_to_dict(settings)
        if payload.manual_earned_calories is None:
            settings = service.clear_manual_earned_calories(user_id)
        else:
            settings = service.set_manual_earned_calories(
                user_id, payload.manual_earned_calories
            )
        return _settings_to_dict(settings)

    @app.put("/settings/timezone")
    async def set_timezone(
        payload: TimezoneRequest, user_id: UserId, request: Request
    ) -> dict[str, object]:
        """Store the timezone that decides which day is today."""
        state_container: AppContainer = request.app.state.container
        if not _is_valid_timezone(payload.timezone):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Please send a valid timezone like America/Los_Angeles.",
            )
        settings = state_container.user_settings_service.set_timezone(
            user_id, payload.timezone
        )
        return _settings_to_dict(settings)

    @app.post("/limits/adjusted")
    async def limits_adjusted(payload: LimitsRequest) -> dict[str, float]:
        """Apply the exercise bonus to a base limit."""
        result = adjusted_limit(
            payload.base_limit,
            payload.mode,
            payload.activity.to_snapshot(),
            factor=payload.factor,
            manual_earned_calories=payload.manual_earned_calories,
        )
        return {"limit": result.limit, "bonus": result.bonus}

    return app


def _product_from_payload(payload: ProductPayload, user_id: UUID) -> Product:
    fields = payload.model_dump(exclude={"nutrients"})
    try:
        nutrients = NutrientRecord(payload.nutrients)
        return Product(**fields, nutrients=nutrients, user_id=user_id)
    except (UnknownNutrientError, MissingReferenceBasisError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc


def _save_result_response(result: ProductSaveResult) -> JSONResponse:
    """Return the saved product, or the duplicate decision point."""
    if result.duplicate is not None:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "duplicate": {
                    "barcode": result.duplicate.barcode,
                    "existing": product_to_dict(result.duplicate.existing),
                },
                "resolutions": ["use_existing", "update_existing", "save_as_new"],
            },
        )
    product = result.product
    return JSONResponse(
        status_code=(
            status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
        ),
        content={"product": product_to_dict(product) if product else None},
    )


def _invalid_amount(exc: InvalidAmountError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
    )


def _error_detail(
    state_container: AppContainer, exc: Exception, fallback: str
) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback


def _settings_to_dict(settings: UserSettings) -> dict[str, object]:
    return {
        "targets": {
            "calories": settings.targets.calories,
            "protein": settings.targets.protein,
            "carbohydrates": settings.targets.carbohydrates,
            "fat": settings.targets.fat,
        },
        "sugar_limit_g": settings.sugar_limit_g,
        "sodium_limit_mg": settings.sodium_limit_mg,
        "exercise_mode": (
            str(settings.exercise_mode) if settings.exercise_mode else None
        ),
        "manual_earned_calories": settings.manual_earned_calories,
        "timezone": settings.timezone,
    }


def _is_valid_timezone(value: str) -> bool:
    try:
        ZoneInfo(value)
    except Exception:
        return False
    return True
