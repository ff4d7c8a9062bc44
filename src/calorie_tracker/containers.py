"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_tracker.adapters.openai_estimation_client import OpenAIEstimationClient
from calorie_tracker.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from calorie_tracker.adapters.supabase_audit_repository import SupabaseAuditRepository
from calorie_tracker.adapters.supabase_daily_log_repository import (
    SupabaseDailyLogRepository,
)
from calorie_tracker.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from calorie_tracker.adapters.supabase_supplement_repository import (
    SupabaseSupplementRepository,
)
from calorie_tracker.adapters.supabase_template_repository import (
    SupabaseTemplateRepository,
)
from calorie_tracker.adapters.supabase_user_settings_repository import (
    SupabaseUserSettingsRepository,
)
from calorie_tracker.config import Settings
from calorie_tracker.services.audit import AuditService
from calorie_tracker.services.cache import InMemoryCache
from calorie_tracker.services.days import DailyLogService
from calorie_tracker.services.entries import FoodEntryService
from calorie_tracker.services.estimation import EstimationService
from calorie_tracker.services.products import ProductService
from calorie_tracker.services.supplements import SupplementService
from calorie_tracker.services.templates import TemplateService
from calorie_tracker.services.user_settings import UserSettingsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    audit_service: AuditService
    estimation_service: EstimationService
    product_service: ProductService
    template_service: TemplateService
    user_settings_service: UserSettingsService
    daily_log_service: DailyLogService
    entry_service: FoodEntryService
    supplement_service: SupplementService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    product_repository = SupabaseProductRepository(supabase_client)
    daily_log_repository = SupabaseDailyLogRepository(supabase_client)
    template_repository = SupabaseTemplateRepository(supabase_client)
    audit_repository = SupabaseAuditRepository(supabase_client)
    user_settings_repository = SupabaseUserSettingsRepository(supabase_client)
    supplement_repository = SupabaseSupplementRepository(supabase_client)

    audit_service = AuditService(audit_repository)
    openai_client = OpenAIEstimationClient.create(resolved_settings.openai_api_key)
    estimation_service = EstimationService(
        client=openai_client,
        model=resolved_settings.openai_model,
        temperature=resolved_settings.openai_temperature,
        audit_service=audit_service,
    )
    lookup_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.openfoodfacts_base_url,
        user_agent=resolved_settings.openfoodfacts_user_agent,
    )
    product_service = ProductService(
        repository=product_repository,
        lookup_client=lookup_client,
        cache=InMemoryCache(),
        lookup_ttl_seconds=resolved_settings.lookup_cache_ttl_seconds,
    )
    template_service = TemplateService(template_repository)
    user_settings_service = UserSettingsService(user_settings_repository)
    daily_log_service = DailyLogService(
        repository=daily_log_repository,
        product_repository=product_repository,
        settings_service=user_settings_service,
        estimation_service=estimation_service,
        gram_inference=resolved_settings.gram_inference,
        sugar_bonus_factor=resolved_settings.sugar_bonus_factor,
        sodium_bonus_factor=resolved_settings.sodium_bonus_factor,
    )
    entry_service = FoodEntryService(
        daily_log_service=daily_log_service,
        repository=daily_log_repository,
        product_repository=product_repository,
        template_service=template_service,
    )
    supplement_service = SupplementService(
        repository=supplement_repository, daily_log_service=daily_log_service
    )

    async def close_resources() -> None:
        await lookup_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        audit_service=audit_service,
        estimation_service=estimation_service,
        product_service=product_service,
        template_service=template_service,
        user_settings_service=user_settings_service,
        daily_log_service=daily_log_service,
        entry_service=entry_service,
        supplement_service=supplement_service,
        close_resources=close_resources,
    )
