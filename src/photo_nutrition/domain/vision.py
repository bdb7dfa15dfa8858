"""Models for vision identification results."""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SERVING_TEXT = "1 serving"


class IdentifiedFood(BaseModel):
    """Single food item recognised in a photo."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(min_length=1)
    estimated_serving: str = Field(
        default=DEFAULT_SERVING_TEXT, alias="estimatedServing"
    )


class VisionResult(BaseModel):
    """Outcome of one identification call.

    An empty ``foods`` list always comes with a user-facing ``message`` explaining that
    nothing was detected. ``total_identified`` counts what the model listed before
    truncation and filtering.
    """

    foods: list[IdentifiedFood]
    message: str | None = None
    total_identified: int = 0

    @property
    def has_foods(self) -> bool:
        return bool(self.foods)
