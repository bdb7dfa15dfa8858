"""FastAPI application factory."""

import asyncio
import base64
import binascii
import logging
import re
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TypeVar

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from photo_nutrition.api.models import (
    EstimateRequest,
    IdentifyPhotoRequest,
    UsdaSearchRequest,
)
from photo_nutrition.app_logging import configure_logging
from photo_nutrition.containers import AppContainer
from photo_nutrition.domain.results import ResolutionBatch
from photo_nutrition.errors import (
    ClientInputError,
    ClientRateLimited,
    PipelineError,
    PipelineTimeout,
    ServerConfigError,
    UnexpectedError,
)
from photo_nutrition.services.rate_limit import RateLimiter

IDENTIFY_PATH = "/identify-food-photo"
ESTIMATE_PATH = "/estimate-nutrition"
USDA_SEARCH_PATH = "/usda-search"

MAX_IMAGE_BASE64_CHARS = 4 * 1024 * 1024
MAX_DESCRIPTION_CHARS = 200
USDA_PAGE_SIZE_DEFAULT = 10
USDA_PAGE_SIZE_MAX = 25

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")

ModelT = TypeVar("ModelT", bound=BaseModel)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        missing = app.state.container.settings.missing_secrets()
        if missing:
            logger.error("Missing required secrets: %s", ", ".join(missing))
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(
        request: Request, exc: PipelineError
    ) -> Response:
        headers = _rate_limit_headers(request)
        if exc.retry_after is not None:
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_payload(), headers=headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405,
                content={"error": "Method not allowed", "code": "METHOD_NOT_ALLOWED"},
                headers=exc.headers,
            )
        return await http_exception_handler(request, exc)

    async def preflight() -> Response:
        """Answer CORS preflight requests before any admission checks."""
        return Response(status_code=200, headers=CORS_HEADERS)

    for path in (IDENTIFY_PATH, ESTIMATE_PATH, USDA_SEARCH_PATH):
        app.add_api_route(path, preflight, methods=["OPTIONS"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post(IDENTIFY_PATH)
    async def identify_food_photo(request: Request) -> Response:
        """Identify foods in a base64 photo and resolve their nutrition."""
        state_container: AppContainer = request.app.state.container
        started = time.perf_counter()
        _admit(request, state_container.photo_rate_limiter)

        body = await _parse_body(request, IdentifyPhotoRequest)
        image_bytes = _decode_image(body.image)
        state_container.settings.require_secrets()
        timeout_seconds = state_container.settings.request_timeout_seconds

        try:
            async with asyncio.timeout(timeout_seconds):
                outcome = await state_container.pipeline.run(image_bytes)
        except TimeoutError as exc:
            logger.warning("Photo request exceeded %ss", timeout_seconds)
            raise PipelineTimeout() from exc
        except PipelineError:
            raise
        except Exception as exc:
            logger.exception("Photo identification failed unexpectedly")
            raise UnexpectedError() from exc

        response_time = _elapsed_ms(started)
        if isinstance(outcome, ResolutionBatch):
            content: dict[str, object] = {
                "foods": [food.to_dict() for food in outcome.foods],
                "totalIdentified": outcome.total_identified,
                "resolvedCount": outcome.resolved_count,
                "mealWarnings": [flag.to_dict() for flag in outcome.meal_flags],
                "responseTime": response_time,
            }
        else:
            content = {
                "foods": [],
                "message": outcome.message,
                "responseTime": response_time,
            }
        return JSONResponse(content=content, headers=_rate_limit_headers(request))

    @app.post(ESTIMATE_PATH)
    async def estimate_nutrition(request: Request) -> Response:
        """Estimate nutrition for a short free-text food description."""
        state_container: AppContainer = request.app.state.container
        started = time.perf_counter()
        _admit(request, state_container.estimate_rate_limiter)

        body = await _parse_body(
            request, EstimateRequest, message="Food description is required"
        )
        description = body.food_description.strip()
        if not description:
            raise ClientInputError(
                "Food description cannot be empty", code="EMPTY_INPUT"
            )
        if len(description) > MAX_DESCRIPTION_CHARS:
            raise ClientInputError(
                f"Food description too long (max {MAX_DESCRIPTION_CHARS} characters)",
                code="INPUT_TOO_LONG",
            )
        state_container.settings.require_secrets()
        timeout_seconds = state_container.settings.request_timeout_seconds

        try:
            async with asyncio.timeout(timeout_seconds):
                profile = await state_container.estimator_service.estimate_or_raise(
                    description
                )
        except TimeoutError as exc:
            raise PipelineTimeout() from exc
        except PipelineError:
            raise
        except Exception as exc:
            logger.exception("Nutrition estimate failed unexpectedly")
            raise UnexpectedError() from exc

        return JSONResponse(
            content={
                "nutrition": profile.to_dict(),
                "responseTime": _elapsed_ms(started),
            },
            headers=_rate_limit_headers(request),
        )

    @app.post(USDA_SEARCH_PATH)
    async def usda_search(request: Request) -> Response:
        """Proxy a search to FoodData Central without exposing the API key."""
        state_container: AppContainer = request.app.state.container
        body = await _parse_body(
            request, UsdaSearchRequest, message="query is required"
        )
        query = body.query.strip()
        if not query:
            raise ClientInputError("query is required")
        if not state_container.settings.usda_api_key:
            raise ServerConfigError()

        page_size = min(body.page_size or USDA_PAGE_SIZE_DEFAULT, USDA_PAGE_SIZE_MAX)
        if page_size <= 0:
            page_size = USDA_PAGE_SIZE_DEFAULT
        try:
            data = await state_container.fdc_client.search_foods(
                query, page_size=page_size, data_types=body.data_types
            )
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.error("USDA search upstream error: status=%s", status_code)
            return JSONResponse(
                status_code=status_code,
                content={"error": "USDA API error", "status": status_code},
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("USDA search failed: %s", exc)
            return JSONResponse(
                status_code=502,
                content={
                    "error": "Failed to reach USDA API",
                    "code": "UPSTREAM_UNAVAILABLE",
                },
            )
        return JSONResponse(content=data)

    return app


def _client_id(request: Request) -> str:
    """Identify the caller by the first forwarded address, else the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _admit(request: Request, limiter: RateLimiter) -> None:
    decision = limiter.admit(_client_id(request))
    request.state.rate_limit_remaining = decision.remaining
    if not decision.allowed:
        raise ClientRateLimited(retry_after=decision.retry_after_seconds)


def _rate_limit_headers(request: Request) -> dict[str, str]:
    remaining = getattr(request.state, "rate_limit_remaining", None)
    if remaining is None:
        return {}
    return {"X-RateLimit-Remaining": str(remaining)}


async def _parse_body(
    request: Request, model: type[ModelT], message: str | None = None
) -> ModelT:
    """Validate a JSON body, reporting any problem as a client input error."""
    try:
        payload = await request.json()
        return model.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        raise ClientInputError(message) from exc


def _decode_image(image: str) -> bytes:
    """Strip an optional data URI header, enforce the size cap, and decode."""
    encoded = _DATA_URI_PREFIX.sub("", image.strip(), count=1)
    if not encoded:
        raise ClientInputError()
    if len(encoded) > MAX_IMAGE_BASE64_CHARS:
        raise ClientInputError("Image too large (max 3MB)", code="IMAGE_TOO_LARGE")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ClientInputError(
            "Image data is not valid base64", code="INVALID_IMAGE"
        ) from exc


def _elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)
