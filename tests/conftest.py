"""Shared test fixtures."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from photo_nutrition.adapters.fdc_client import FdcClient
from photo_nutrition.adapters.openai_chat_client import ChatClient
from photo_nutrition.config import Settings
from photo_nutrition.containers import AppContainer
from photo_nutrition.errors import UpstreamServiceError
from photo_nutrition.services.cache import InMemoryCache
from photo_nutrition.services.estimator import EstimatorService
from photo_nutrition.services.nutrients import FDC_NUTRIENT_IDS
from photo_nutrition.services.nutrition import NutritionService
from photo_nutrition.services.pipeline import PhotoPipeline
from photo_nutrition.services.rate_limit import ESTIMATE_RATE_LIMIT_MAX, RateLimiter
from photo_nutrition.services.vision import VisionService

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"fake-jpeg-body"

_FDC_ID_BY_FIELD = {name: nutrient_id for nutrient_id, name in FDC_NUTRIENT_IDS.items()}


@dataclass
class FakeChatClient(ChatClient):
    """Fake chat client that replays canned replies in order.

    A reply may be a string, an exception to raise, or a callable that receives the
    messages and returns either of those.
    """

    replies: list[object] = field(default_factory=list)
    default_reply: object = '{"foods": []}'
    delay_seconds: float = 0
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, object]],
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        reply = self.replies.pop(0) if self.replies else self.default_reply
        if callable(reply):
            reply = reply(messages)
        if isinstance(reply, Exception):
            raise reply
        return str(reply)


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client keyed by lowercase query."""

    foods_by_query: dict[str, list[dict[str, object]]] = field(default_factory=dict)
    errors_by_query: dict[str, Exception] = field(default_factory=dict)
    delays_by_query: dict[str, float] = field(default_factory=dict)
    raw_response: object | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def search_foods(
        self,
        query: str,
        page_size: int = 10,
        data_types: Sequence[str] | None = None,
    ) -> dict[str, object]:
        key = query.strip().lower()
        self.calls.append(
            {
                "query": query,
                "page_size": page_size,
                "data_types": list(data_types) if data_types else None,
            }
        )
        delay = self.delays_by_query.get(key)
        if delay:
            await asyncio.sleep(delay)
        error = self.errors_by_query.get(key)
        if error is not None:
            raise error
        if self.raw_response is not None:
            return self.raw_response  # type: ignore[return-value]
        return {"foods": self.foods_by_query.get(key, [])}


def fdc_food(
    description: str,
    *,
    fdc_id: int = 171077,
    data_type: str = "SR Legacy",
    **per_100g: float,
) -> dict[str, object]:
    """Build a search hit whose nutrients are given per 100 g by field name."""
    return {
        "fdcId": fdc_id,
        "description": description,
        "dataType": data_type,
        "foodNutrients": [
            {"nutrientId": _FDC_ID_BY_FIELD[name], "value": value}
            for name, value in per_100g.items()
        ],
    }


def chicken_breast() -> dict[str, object]:
    return fdc_food(
        "Chicken, broilers or fryers, breast, meat only, cooked, roasted",
        calories=165,
        protein=31,
        fat=3.6,
        carbs=0,
        sodium=74,
        iron=1.04,
    )


def vision_reply(*foods: tuple[str, str]) -> str:
    items = ", ".join(
        f'{{"name": "{name}", "estimatedServing": "{serving}"}}'
        for name, serving in foods
    )
    return f'{{"foods": [{items}]}}'


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openrouter_api_key="openrouter-key",
        usda_api_key="usda-key",
    )


@pytest.fixture
def vision_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def estimator_client() -> FakeChatClient:
    return FakeChatClient(default_reply=UpstreamServiceError("estimator offline"))


@pytest.fixture
def fdc_client() -> FakeFdcClient:
    return FakeFdcClient()


@pytest.fixture
def container(
    settings: Settings,
    vision_client: FakeChatClient,
    estimator_client: FakeChatClient,
    fdc_client: FakeFdcClient,
) -> AppContainer:
    pipeline = PhotoPipeline(
        vision_service=VisionService(
            client=vision_client, model=settings.vision_model
        ),
        nutrition_service=NutritionService(
            fdc_client=fdc_client, cache=InMemoryCache()
        ),
        estimator_service=EstimatorService(
            client=estimator_client, model=settings.estimation_model
        ),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        photo_rate_limiter=RateLimiter(),
        estimate_rate_limiter=RateLimiter(max_requests=ESTIMATE_RATE_LIMIT_MAX),
        fdc_client=fdc_client,
        pipeline=pipeline,
        close_resources=close_resources,
    )
