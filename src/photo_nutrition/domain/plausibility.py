"""Domain models for advisory nutrition plausibility checks."""

from dataclasses import dataclass
from enum import StrEnum

from photo_nutrition.domain.nutrition import WIRE_NAMES


class Severity(StrEnum):
    """How far a value sits above what a single serving usually holds."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class NutrientFlag:
    """One nutrient that is unusually high for a single serving."""

    field: str
    value: float
    typical_max: float
    ratio: float
    severity: Severity

    def to_dict(self) -> dict[str, object]:
        return {
            "nutrient": WIRE_NAMES[self.field],
            "value": self.value,
            "typicalMax": self.typical_max,
            "ratio": self.ratio,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class PlausibilityReport:
    """Advisory findings for one nutrient profile.

    ``issues`` are hard realism problems such as macros that do not add up to the
    energy. ``flags`` and ``relationship_issues`` describe outliers that may still be
    real food.
    """

    issues: tuple[str, ...] = ()
    flags: tuple[NutrientFlag, ...] = ()
    relationship_issues: tuple[str, ...] = ()

    @property
    def realistic(self) -> bool:
        return not self.issues

    @property
    def has_outliers(self) -> bool:
        return bool(self.flags or self.relationship_issues)

    def to_dict(self) -> dict[str, object]:
        # Info-level flags are only logged.
        return {
            "realistic": self.realistic,
            "issues": list(self.issues),
            "flaggedNutrients": [
                flag.to_dict()
                for flag in self.flags
                if flag.severity is not Severity.INFO
            ],
            "crossNutrientIssues": list(self.relationship_issues),
        }


@dataclass(frozen=True)
class MealFlag:
    """A nutrient whose total across a meal exceeds the daily reference by far."""

    field: str
    total: float
    daily_reference: float
    percent_of_reference: int

    def to_dict(self) -> dict[str, object]:
        return {
            "nutrient": WIRE_NAMES[self.field],
            "total": self.total,
            "dailyReference": self.daily_reference,
            "percentOfReference": self.percent_of_reference,
        }
