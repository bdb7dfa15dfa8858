"""Food identification from photos using a vision-capable chat model."""

import asyncio
import base64
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from photo_nutrition.adapters.openai_chat_client import ChatClient
from photo_nutrition.domain.vision import (
    DEFAULT_SERVING_TEXT,
    IdentifiedFood,
    VisionResult,
)
from photo_nutrition.errors import PipelineTimeout, UpstreamServiceError
from photo_nutrition.services.json_extract import (
    JsonExtractionError,
    parse_first_json_object,
)

MAX_IDENTIFIED_FOODS = 8
VISION_TIMEOUT_SECONDS = 22.0
NO_FOOD_MESSAGE = "No food detected in the image. Try taking a clearer photo."

VISION_PROMPT = (
    "You are a food identification expert. Analyze this food photo and identify "
    "every distinct food item visible.\n\n"
    "For each food item, provide:\n"
    '- "name": a clear, common food name suitable for searching a nutrition '
    'database (e.g., "grilled chicken breast", "white rice", "steamed broccoli")\n'
    '- "estimatedServing": the estimated serving size with a unit '
    '(e.g., "6 oz", "1 cup", "150g", "2 slices")\n\n'
    "Respond ONLY with a valid JSON object:\n"
    '{"foods": [{"name": "food name", "estimatedServing": "amount unit"}]}\n\n'
    "If no food is visible in the image, respond with: "
    '{"foods": [], "error": "No food detected in image"}\n'
    f"Be specific with food names. List at most {MAX_IDENTIFIED_FOODS} foods."
)

_logger = logging.getLogger(__name__)


@dataclass
class VisionService:
    """Service that asks the vision model for foods and interprets the reply."""

    client: ChatClient
    model: str
    timeout_seconds: float = VISION_TIMEOUT_SECONDS
    max_foods: int = MAX_IDENTIFIED_FOODS

    async def identify(self, image_bytes: bytes) -> VisionResult:
        """Identify foods in an image.

        Unusable replies become a "no food detected" result; upstream failures and the
        deadline propagate as pipeline errors.
        """
        messages: list[dict[str, object]] = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": VISION_PROMPT},
                    {
                        "type": "image_url",
                        "image_url": {"url": _to_data_url(image_bytes)},
                    },
                ],
            }
        ]
        try:
            async with asyncio.timeout(self.timeout_seconds):
                content = await self.client.complete(
                    model=self.model,
                    messages=messages,
                    temperature=0.2,
                    max_tokens=1500,
                )
        except TimeoutError as exc:
            _logger.warning("Vision call exceeded %ss", self.timeout_seconds)
            raise PipelineTimeout() from exc
        except UpstreamServiceError as exc:
            _logger.error("Vision upstream error: %s", exc)
            raise UpstreamServiceError(
                "AI vision service error", code="VISION_ERROR"
            ) from exc
        return parse_vision_reply(content, max_foods=self.max_foods)


def parse_vision_reply(
    content: str, max_foods: int = MAX_IDENTIFIED_FOODS
) -> VisionResult:
    """Turn raw model text into a bounded list of identified foods."""
    try:
        payload = parse_first_json_object(content)
    except JsonExtractionError:
        _logger.warning("Vision reply had no JSON object")
        return VisionResult(foods=[], message=NO_FOOD_MESSAGE)

    raw_foods = payload.get("foods")
    foods: list[IdentifiedFood] = []
    total_identified = 0
    if isinstance(raw_foods, list):
        total_identified = len(raw_foods)
        for raw in raw_foods[:max_foods]:
            food = _to_identified_food(raw)
            if food is not None:
                foods.append(food)
    if not foods:
        message = payload.get("error")
        if not isinstance(message, str) or not message.strip():
            message = NO_FOOD_MESSAGE
        return VisionResult(foods=[], message=message)
    return VisionResult(foods=foods, total_identified=total_identified)


def _to_identified_food(raw: object) -> IdentifiedFood | None:
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    serving = raw.get("estimatedServing")
    if not isinstance(serving, str) or not serving.strip():
        serving = DEFAULT_SERVING_TEXT
    try:
        return IdentifiedFood(
            name=name.strip() if isinstance(name, str) else name,
            estimated_serving=serving.strip(),
        )
    except ValidationError:
        return None


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
