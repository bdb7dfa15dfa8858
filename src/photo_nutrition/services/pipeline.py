"""Photo-to-nutrition orchestration."""

import asyncio
import logging
import re
import secrets
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from photo_nutrition.domain.nutrition import NutrientProfile
from photo_nutrition.domain.plausibility import MealFlag, PlausibilityReport
from photo_nutrition.domain.results import FoodResult, FoodSource, ResolutionBatch
from photo_nutrition.domain.vision import IdentifiedFood, VisionResult
from photo_nutrition.services.estimator import EstimatorService
from photo_nutrition.services.nutrition import NutritionService
from photo_nutrition.services.plausibility import assess_profile, meal_flags
from photo_nutrition.services.servings import grams_for
from photo_nutrition.services.vision import VisionService

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")

_logger = logging.getLogger(__name__)


@dataclass
class PhotoPipeline:
    """Identify foods in a photo and resolve nutrition for each of them."""

    vision_service: VisionService
    nutrition_service: NutritionService
    estimator_service: EstimatorService
    item_timeout_seconds: float | None = None
    check_plausibility: bool = True
    clock: Callable[[], float] = time.perf_counter

    async def run(self, image_bytes: bytes) -> VisionResult | ResolutionBatch:
        """Return the no-food outcome as-is, or the resolved batch."""
        started = self.clock()
        vision = await self.vision_service.identify(image_bytes)
        if not vision.has_foods:
            _logger.info("No food detected: %s", vision.message)
            return vision
        return await self.resolve_foods(
            vision.foods,
            total_identified=vision.total_identified,
            started=started,
        )

    async def resolve_foods(
        self,
        foods: Sequence[IdentifiedFood],
        *,
        total_identified: int | None = None,
        started: float | None = None,
    ) -> ResolutionBatch:
        """Resolve every food concurrently, keeping identification order."""
        started = self.clock() if started is None else started
        results = await asyncio.gather(
            *(self._resolve_isolated(food) for food in foods)
        )
        batch = ResolutionBatch(
            foods=list(results),
            total_identified=max(total_identified or 0, len(foods)),
            elapsed_ms=round((self.clock() - started) * 1000),
            meal_flags=self._meal_flags(results),
        )
        _logger.info(
            "Resolved %s/%s foods in %sms",
            batch.resolved_count,
            len(batch.foods),
            batch.elapsed_ms,
        )
        return batch

    async def resolve_food(self, food: IdentifiedFood) -> FoodResult:
        """Database first, then the estimator, then give up."""
        food_id = _food_id(food.name)
        serving_grams = grams_for(food.estimated_serving)
        match = await self.nutrition_service.resolve(food.name, serving_grams)
        if match is not None:
            return FoodResult(
                id=food_id,
                name=food.name,
                serving=food.estimated_serving,
                nutrition=match.profile,
                source=FoodSource.DATABASE,
                matched_label=match.label,
                candidates=match.candidates,
                plausibility=self._assess(match.profile, food.name),
            )

        estimate = await self.estimator_service.estimate(
            f"{food.estimated_serving} of {food.name}"
        )
        if estimate is not None:
            return FoodResult(
                id=food_id,
                name=food.name,
                serving=food.estimated_serving,
                nutrition=estimate,
                source=FoodSource.ESTIMATED,
                plausibility=self._assess(estimate, food.name),
            )
        return _failed_result(food, food_id)

    def _assess(
        self, profile: NutrientProfile, food_name: str
    ) -> PlausibilityReport | None:
        if not self.check_plausibility:
            return None
        return assess_profile(profile, food_name)

    def _meal_flags(self, results: Sequence[FoodResult]) -> list[MealFlag]:
        if not self.check_plausibility:
            return []
        return meal_flags(
            result.nutrition for result in results if result.nutrition is not None
        )

    async def _resolve_isolated(self, food: IdentifiedFood) -> FoodResult:
        try:
            async with asyncio.timeout(self.item_timeout_seconds):
                return await self.resolve_food(food)
        except TimeoutError:
            _logger.warning(
                "Food resolution exceeded %ss: name=%s",
                self.item_timeout_seconds,
                food.name,
            )
        except Exception:
            _logger.exception("Food resolution crashed: name=%s", food.name)
        return _failed_result(food, _food_id(food.name))


def _failed_result(food: IdentifiedFood, food_id: str) -> FoodResult:
    return FoodResult(
        id=food_id,
        name=food.name,
        serving=food.estimated_serving,
        nutrition=None,
        source=FoodSource.FAILED,
    )


def _food_id(name: str) -> str:
    """Build a client-side key such as ``white_rice_1718000000000_3f2a``."""
    slug = _SLUG_PATTERN.sub("_", name.lower()).strip("_") or "food"
    return f"{slug}_{time.time_ns() // 1_000_000}_{secrets.token_hex(2)}"
