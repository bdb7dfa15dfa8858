"""Text-only nutrition estimation used when the database has no usable match."""

import logging
from dataclasses import dataclass

from photo_nutrition.adapters.openai_chat_client import ChatClient
from photo_nutrition.domain.nutrition import NutrientProfile
from photo_nutrition.errors import PipelineError, UpstreamMalformed
from photo_nutrition.services.json_extract import (
    JsonExtractionError,
    parse_first_json_object,
)
from photo_nutrition.services.nutrients import (
    has_estimate_values,
    profile_from_estimate,
)

ESTIMATION_SYSTEM_PROMPT = (
    "You are a nutrition expert. When given a food description, provide "
    "comprehensive nutritional information.\n"
    "Always respond with a valid JSON object containing:\n"
    "- calories (total kcal), protein (grams), carbs (grams), fat (grams)\n"
    "- fiber (grams), sodium (milligrams), sugar (grams), cholesterol (milligrams)\n"
    "- vitaminA (mcg RAE), vitaminC (mg), vitaminD (mcg), vitaminE (mg), "
    "vitaminK (mcg)\n"
    "- vitaminB1 (mg), vitaminB2 (mg), vitaminB3 (mg), vitaminB6 (mg), "
    "vitaminB12 (mcg)\n"
    "- folate (mcg DFE), calcium (mg), iron (mg), magnesium (mg), zinc (mg), "
    "potassium (mg)\n"
    "Use realistic USDA estimates. Use null for nutrients you cannot estimate. "
    "Format as JSON only."
)

_logger = logging.getLogger(__name__)


@dataclass
class EstimatorService:
    """Ask a text model for a nutrient estimate of a described food."""

    client: ChatClient
    model: str
    temperature: float = 0.2
    max_tokens: int = 500

    async def estimate(self, description: str) -> NutrientProfile | None:
        """Return an estimate, or ``None`` on any failure."""
        try:
            return await self.estimate_or_raise(description)
        except PipelineError as exc:
            _logger.warning(
                "Nutrition estimate failed: description=%s code=%s error=%s",
                description,
                exc.code,
                exc,
            )
            return None

    async def estimate_or_raise(self, description: str) -> NutrientProfile:
        """Return an estimate, raising a pipeline error when none can be made."""
        content = await self.client.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": ESTIMATION_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Nutritional content of: {description}? JSON format.",
                },
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            payload = parse_first_json_object(content)
        except JsonExtractionError as exc:
            raise UpstreamMalformed("Could not parse nutrition data") from exc
        if not has_estimate_values(payload):
            raise UpstreamMalformed("Could not parse nutrition data")
        return profile_from_estimate(payload)
