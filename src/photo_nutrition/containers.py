"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from photo_nutrition.adapters.fdc_client import FdcClient, HttpxFdcClient
from photo_nutrition.adapters.openai_chat_client import OpenAIChatClient
from photo_nutrition.config import Settings
from photo_nutrition.services.cache import InMemoryCache
from photo_nutrition.services.estimator import EstimatorService
from photo_nutrition.services.nutrition import NutritionService
from photo_nutrition.services.pipeline import PhotoPipeline
from photo_nutrition.services.rate_limit import ESTIMATE_RATE_LIMIT_MAX, RateLimiter
from photo_nutrition.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_rate_limiter: RateLimiter
    estimate_rate_limiter: RateLimiter
    fdc_client: FdcClient
    pipeline: PhotoPipeline
    close_resources: Callable[[], Awaitable[None]]

    @property
    def estimator_service(self) -> EstimatorService:
        return self.pipeline.estimator_service


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    Missing API keys still produce a container; requests are refused later with a
    configuration error.
    """
    resolved_settings = settings or Settings()
    chat_client = OpenAIChatClient.create(
        api_key=resolved_settings.openrouter_api_key or "",
        base_url=resolved_settings.ai_base_url,
        referer_url=resolved_settings.referer_url,
        app_title=resolved_settings.app_title,
    )
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.usda_api_key or "",
        base_url=resolved_settings.fdc_base_url,
    )
    pipeline = PhotoPipeline(
        vision_service=VisionService(
            client=chat_client, model=resolved_settings.vision_model
        ),
        nutrition_service=NutritionService(
            fdc_client=fdc_client,
            cache=InMemoryCache(),
        ),
        estimator_service=EstimatorService(
            client=chat_client, model=resolved_settings.estimation_model
        ),
        item_timeout_seconds=resolved_settings.item_timeout_seconds,
        check_plausibility=resolved_settings.plausibility_checks,
    )

    async def close_resources() -> None:
        await chat_client.close()
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        photo_rate_limiter=RateLimiter(),
        estimate_rate_limiter=RateLimiter(max_requests=ESTIMATE_RATE_LIMIT_MAX),
        fdc_client=fdc_client,
        pipeline=pipeline,
        close_resources=close_resources,
    )
