"""Nutrition domain models."""

from dataclasses import dataclass, field, fields

# Canonical field name -> wire name used in JSON payloads.
WIRE_NAMES: dict[str, str] = {
    "calories": "calories",
    "protein": "protein",
    "carbs": "carbs",
    "fat": "fat",
    "fiber": "fiber",
    "sodium": "sodium",
    "sugar": "sugar",
    "cholesterol": "cholesterol",
    "vitamin_a": "vitaminA",
    "vitamin_c": "vitaminC",
    "vitamin_d": "vitaminD",
    "vitamin_e": "vitaminE",
    "vitamin_k": "vitaminK",
    "vitamin_b1": "vitaminB1",
    "vitamin_b2": "vitaminB2",
    "vitamin_b3": "vitaminB3",
    "vitamin_b6": "vitaminB6",
    "vitamin_b12": "vitaminB12",
    "folate": "folate",
    "calcium": "calcium",
    "iron": "iron",
    "magnesium": "magnesium",
    "zinc": "zinc",
    "potassium": "potassium",
}

# Fields a meal log always needs; these default to zero instead of None.
REQUIRED_FIELDS = frozenset({"calories", "protein", "carbs", "fat"})


@dataclass(frozen=True)
class NutrientProfile:
    """Canonical nutrient record for one serving of a food.

    Energy is in kcal; macros, fiber and sugar in grams; sodium, cholesterol and most
    minerals in milligrams; vitamin A, D, K, B12 and folate in micrograms.
    """

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float | None = None
    sodium: float | None = None
    sugar: float | None = None
    cholesterol: float | None = None
    vitamin_a: float | None = None
    vitamin_c: float | None = None
    vitamin_d: float | None = None
    vitamin_e: float | None = None
    vitamin_k: float | None = None
    vitamin_b1: float | None = None
    vitamin_b2: float | None = None
    vitamin_b3: float | None = None
    vitamin_b6: float | None = None
    vitamin_b12: float | None = None
    folate: float | None = None
    calcium: float | None = None
    iron: float | None = None
    magnesium: float | None = None
    zinc: float | None = None
    potassium: float | None = None

    def to_dict(self) -> dict[str, float | None]:
        """Return the profile keyed by wire names."""
        return {
            WIRE_NAMES[item.name]: getattr(self, item.name) for item in fields(self)
        }


@dataclass(frozen=True)
class FoodCandidate:
    """Summary of a ranked search hit from the nutrition database."""

    fdc_id: int | None
    description: str
    data_type: str | None
    rank: int

    def to_dict(self) -> dict[str, object]:
        return {
            "fdcId": self.fdc_id,
            "description": self.description,
            "dataType": self.data_type,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class DatabaseMatch:
    """Scaled nutrients of the top database candidate."""

    profile: NutrientProfile
    label: str
    candidates: list[FoodCandidate] = field(default_factory=list)
