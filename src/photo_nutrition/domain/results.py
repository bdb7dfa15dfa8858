"""Domain models for resolved food results."""

from dataclasses import dataclass, field
from enum import StrEnum

from photo_nutrition.domain.nutrition import FoodCandidate, NutrientProfile
from photo_nutrition.domain.plausibility import MealFlag, PlausibilityReport


class FoodSource(StrEnum):
    """Where the nutrition numbers of a result came from."""

    DATABASE = "database"
    ESTIMATED = "estimated"
    FAILED = "failed"


@dataclass(frozen=True)
class FoodResult:
    """Resolved nutrition for one identified food."""

    id: str
    name: str
    serving: str
    nutrition: NutrientProfile | None
    source: FoodSource
    matched_label: str | None = None
    candidates: list[FoodCandidate] = field(default_factory=list)
    plausibility: PlausibilityReport | None = None

    def __post_init__(self) -> None:
        if (self.nutrition is None) != (self.source is FoodSource.FAILED):
            raise ValueError("nutrition must be absent exactly when source is failed")
        if self.source is FoodSource.DATABASE and not self.matched_label:
            raise ValueError("database results require a matched label")
        if self.nutrition is None and self.plausibility is not None:
            raise ValueError("only results with nutrition carry a plausibility report")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "serving": self.serving,
            "nutrition": self.nutrition.to_dict() if self.nutrition else None,
            "source": self.source.value,
            "matchedLabel": self.matched_label,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "plausibility": (
                self.plausibility.to_dict() if self.plausibility else None
            ),
        }


@dataclass(frozen=True)
class ResolutionBatch:
    """Ordered results for every identified food in a photo."""

    foods: list[FoodResult]
    total_identified: int
    elapsed_ms: int
    meal_flags: list[MealFlag] = field(default_factory=list)

    @property
    def resolved_count(self) -> int:
        """Number of foods that ended up with nutrition data."""
        return sum(1 for food in self.foods if food.nutrition is not None)
