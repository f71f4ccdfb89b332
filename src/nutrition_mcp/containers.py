"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_mcp.adapters.jwks_client import HttpxJwksClient
from nutrition_mcp.adapters.supabase_food_repository import SupabaseFoodRepository
from nutrition_mcp.adapters.supabase_meal_log_repository import (
    SupabaseMealLogRepository,
)
from nutrition_mcp.adapters.supabase_metric_repository import (
    SupabaseMetricRepository,
)
from nutrition_mcp.adapters.supabase_template_repository import (
    SupabaseTemplateRepository,
)
from nutrition_mcp.config import Settings
from nutrition_mcp.gateway.catalog import NutritionTools, build_registry
from nutrition_mcp.gateway.dispatcher import ToolDispatcher
from nutrition_mcp.gateway.sessions import SessionGateway, SessionRegistry
from nutrition_mcp.services.auth import JwtTokenVerifier, TokenVerifier
from nutrition_mcp.services.cache import InMemorySigningKeyCache
from nutrition_mcp.services.foods import FoodRepository, FoodService
from nutrition_mcp.services.meals import MealLogRepository, MealLogService
from nutrition_mcp.services.metrics import MetricRepository, MetricService
from nutrition_mcp.services.summaries import SummaryService
from nutrition_mcp.services.templates import MealTemplateService, TemplateRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    token_verifier: TokenVerifier
    food_service: FoodService
    template_service: MealTemplateService
    meal_log_service: MealLogService
    summary_service: SummaryService
    metric_service: MetricService
    gateway: SessionGateway
    close_resources: Callable[[], Awaitable[None]]


def build_services(  # noqa: PLR0913
    settings: Settings,
    token_verifier: TokenVerifier,
    food_repository: FoodRepository,
    template_repository: TemplateRepository,
    meal_log_repository: MealLogRepository,
    metric_repository: MetricRepository,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Wire services, the tool catalog and the gateway over given adapters."""
    food_service = FoodService(food_repository)
    template_service = MealTemplateService(
        repository=template_repository, food_service=food_service
    )
    meal_log_service = MealLogService(
        repository=meal_log_repository,
        food_service=food_service,
        template_service=template_service,
    )
    summary_service = SummaryService(meal_log_repository)
    metric_service = MetricService(metric_repository)
    registry = build_registry(
        NutritionTools(
            foods=food_service,
            templates=template_service,
            meals=meal_log_service,
            summaries=summary_service,
            metrics=metric_service,
        )
    )
    gateway = SessionGateway(
        mode=settings.session_mode,
        registry=SessionRegistry(),
        dispatcher_factory=lambda: ToolDispatcher(registry=registry),
        buffer_size=settings.push_buffer_size,
        keepalive_seconds=settings.push_keepalive_seconds,
    )
    return AppContainer(
        settings=settings,
        token_verifier=token_verifier,
        food_service=food_service,
        template_service=template_service,
        meal_log_service=meal_log_service,
        summary_service=summary_service,
        metric_service=metric_service,
        gateway=gateway,
        close_resources=close_resources,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    jwks_client = HttpxJwksClient.create(resolved_settings.jwks_url)
    token_verifier = JwtTokenVerifier(
        jwks_client=jwks_client,
        cache=InMemorySigningKeyCache(),
        issuer=resolved_settings.issuer,
        audiences=resolved_settings.token_audiences,
        cache_ttl_seconds=resolved_settings.jwks_cache_ttl_seconds,
    )

    async def close_resources() -> None:
        await jwks_client.close()

    return build_services(
        settings=resolved_settings,
        token_verifier=token_verifier,
        food_repository=SupabaseFoodRepository(supabase_client),
        template_repository=SupabaseTemplateRepository(supabase_client),
        meal_log_repository=SupabaseMealLogRepository(supabase_client),
        metric_repository=SupabaseMetricRepository(supabase_client),
        close_resources=close_resources,
    )
