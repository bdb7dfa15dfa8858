"""Conversion of raw nutrient data into canonical nutrient profiles.

Database rows (keyed by FDC nutrient id) and model estimates (keyed by name) both pass
through ``normalize_profile`` so rounding and clamping live in one place.
"""

import math
from collections.abc import Iterable, Mapping

from photo_nutrition.domain.nutrition import (
    REQUIRED_FIELDS,
    WIRE_NAMES,
    NutrientProfile,
)

# Decimal places kept per field.
FIELD_DECIMALS: dict[str, int] = {
    "calories": 0,
    "protein": 1,
    "carbs": 1,
    "fat": 1,
    "fiber": 1,
    "sodium": 0,
    "sugar": 1,
    "cholesterol": 0,
    "vitamin_a": 0,
    "vitamin_c": 1,
    "vitamin_d": 1,
    "vitamin_e": 2,
    "vitamin_k": 1,
    "vitamin_b1": 2,
    "vitamin_b2": 2,
    "vitamin_b3": 1,
    "vitamin_b6": 2,
    "vitamin_b12": 2,
    "folate": 0,
    "calcium": 0,
    "iron": 2,
    "magnesium": 0,
    "zinc": 2,
    "potassium": 0,
}

# FoodData Central nutrient id -> canonical field.
FDC_NUTRIENT_IDS: dict[int, str] = {
    1008: "calories",
    1003: "protein",
    1005: "carbs",
    1004: "fat",
    1079: "fiber",
    1093: "sodium",
    2000: "sugar",
    1253: "cholesterol",
    1106: "vitamin_a",
    1162: "vitamin_c",
    1114: "vitamin_d",
    1109: "vitamin_e",
    1185: "vitamin_k",
    1165: "vitamin_b1",
    1166: "vitamin_b2",
    1167: "vitamin_b3",
    1175: "vitamin_b6",
    1178: "vitamin_b12",
    1177: "folate",
    1087: "calcium",
    1089: "iron",
    1090: "magnesium",
    1095: "zinc",
    1092: "potassium",
}

# Extra spellings models use for a few fields.
_ESTIMATE_ALIASES: dict[str, tuple[str, ...]] = {
    "calories": ("cal",),
    "carbs": ("carbohydrates",),
}


def normalize_profile(raw: Mapping[str, object]) -> NutrientProfile:
    """Round and clamp raw values keyed by canonical field name."""
    values: dict[str, float | None] = {}
    for field, decimals in FIELD_DECIMALS.items():
        value = _clean_number(raw.get(field), decimals)
        if value is None and field in REQUIRED_FIELDS:
            value = 0
        values[field] = value
    return NutrientProfile(**values)


def profile_from_fdc(
    food_nutrients: Iterable[Mapping[str, object]], serving_grams: float
) -> NutrientProfile:
    """Scale per-100 g FDC nutrients to a serving and normalize them."""
    scale = serving_grams / 100
    raw: dict[str, float] = {}
    for nutrient in food_nutrients:
        field = FDC_NUTRIENT_IDS.get(_fdc_nutrient_id(nutrient))
        amount = _to_float(_fdc_amount(nutrient))
        if field is None or amount is None or field in raw:
            continue
        raw[field] = amount * scale
    return normalize_profile(raw)


def profile_from_estimate(payload: Mapping[str, object]) -> NutrientProfile:
    """Normalize a model estimate keyed by wire or canonical field names."""
    raw: dict[str, object] = {}
    for field in WIRE_NAMES:
        raw[field] = next(
            (
                payload[key]
                for key in _estimate_keys(field)
                if payload.get(key) is not None
            ),
            None,
        )
    return normalize_profile(raw)


def has_estimate_values(payload: Mapping[str, object]) -> bool:
    """Whether ``payload`` carries at least one numeric value for a known nutrient."""
    return any(
        _to_float(payload.get(key)) is not None
        for field in WIRE_NAMES
        for key in _estimate_keys(field)
    )


def _estimate_keys(field: str) -> tuple[str, ...]:
    return (WIRE_NAMES[field], field, *_ESTIMATE_ALIASES.get(field, ()))


def _fdc_nutrient_id(nutrient: Mapping[str, object]) -> int | None:
    nutrient_info = nutrient.get("nutrient")
    raw_id = nutrient.get("nutrientId")
    if raw_id is None and isinstance(nutrient_info, Mapping):
        raw_id = nutrient_info.get("id")
    try:
        return int(raw_id)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _fdc_amount(nutrient: Mapping[str, object]) -> object:
    value = nutrient.get("value")
    return value if value is not None else nutrient.get("amount")


def _to_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _clean_number(value: object, decimals: int) -> float | None:
    number = _to_float(value)
    if number is None or number < 0:
        return None
    factor = 10**decimals
    rounded = math.floor(number * factor + 0.5) / factor
    return int(rounded) if decimals == 0 else rounded
