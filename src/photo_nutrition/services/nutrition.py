"""Canonical nutrition lookup against USDA FoodData Central."""

import logging
from dataclasses import dataclass

import httpx

from photo_nutrition.adapters.fdc_client import FdcClient
from photo_nutrition.domain.nutrition import DatabaseMatch, FoodCandidate
from photo_nutrition.services.cache import Cache
from photo_nutrition.services.nutrients import profile_from_fdc

SEARCH_PAGE_SIZE = 3
SEARCH_DATA_TYPES = ("Foundation", "SR Legacy")

_logger = logging.getLogger(__name__)


@dataclass
class NutritionService:
    """Resolve a food name to database nutrients scaled to a serving."""

    fdc_client: FdcClient
    cache: Cache
    search_ttl_seconds: int = 3600

    async def resolve(
        self, food_name: str, serving_grams: float
    ) -> DatabaseMatch | None:
        """Return the top candidate's nutrients for ``serving_grams``.

        The database ranking is trusted as-is: only the first hit is considered, and
        ``None`` means the caller should fall back to an estimate.
        """
        try:
            foods = await self.search(food_name)
        except (httpx.HTTPError, ValueError) as exc:
            _logger.warning(
                "Nutrition search failed: query=%s status=%s error=%s",
                food_name,
                _status_code_from_exception(exc),
                exc,
            )
            return None
        if not foods:
            _logger.info("Nutrition search found nothing: query=%s", food_name)
            return None

        top = foods[0]
        food_nutrients = top.get("foodNutrients")
        if not isinstance(food_nutrients, list) or not food_nutrients:
            _logger.info("Top match has no nutrients: query=%s", food_name)
            return None

        profile = profile_from_fdc(food_nutrients, serving_grams)
        if profile.calories == 0:
            _logger.info("Top match has zero energy: query=%s", food_name)
            return None

        candidates = [
            FoodCandidate(
                fdc_id=food.get("fdcId"),
                description=str(food.get("description") or ""),
                data_type=food.get("dataType"),
                rank=index + 1,
            )
            for index, food in enumerate(foods)
        ]
        label = candidates[0].description or food_name
        return DatabaseMatch(profile=profile, label=label, candidates=candidates)

    async def search(self, query: str) -> list[dict[str, object]]:
        """Search the restricted data types, caching the raw hits per query."""
        cache_key = f"fdc:search:{query.strip().lower()}:{SEARCH_PAGE_SIZE}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self.fdc_client.search_foods(
            query, page_size=SEARCH_PAGE_SIZE, data_types=SEARCH_DATA_TYPES
        )
        if not isinstance(payload, dict):
            _logger.warning(
                "Nutrition search returned %s instead of an object: query=%s",
                type(payload).__name__,
                query,
            )
            payload = {}
        raw_foods = payload.get("foods")
        if not isinstance(raw_foods, list):
            raw_foods = []
        foods = [food for food in raw_foods if isinstance(food, dict)]
        foods = foods[:SEARCH_PAGE_SIZE]
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        return foods


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
