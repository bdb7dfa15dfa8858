"""Advisory plausibility checks for resolved nutrient profiles.

Nothing here changes a value. Database rows and model estimates are reported as
resolved, with realism problems and outliers attached for the client to surface.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import fields

from photo_nutrition.domain.nutrition import WIRE_NAMES, NutrientProfile
from photo_nutrition.domain.plausibility import (
    MealFlag,
    NutrientFlag,
    PlausibilityReport,
    Severity,
)

# Absolute per-serving ceilings; anything above is not a real single serving.
SERVING_LIMITS: dict[str, float] = {
    "calories": 3000,
    "protein": 200,
    "carbs": 500,
    "fat": 250,
    "fiber": 80,
    "sodium": 8000,
    "sugar": 300,
    "cholesterol": 2000,
    "vitamin_a": 15000,
    "vitamin_c": 3000,
    "vitamin_d": 250,
    "vitamin_e": 200,
    "vitamin_k": 1500,
    "vitamin_b1": 15,
    "vitamin_b2": 15,
    "vitamin_b3": 100,
    "vitamin_b6": 25,
    "vitamin_b12": 500,
    "folate": 2000,
    "calcium": 3000,
    "iron": 50,
    "magnesium": 800,
    "zinc": 80,
    "potassium": 5000,
}

# Values a single serving rarely exceeds.
TYPICAL_SERVING_MAX: dict[str, float] = {
    "calories": 1200,
    "protein": 80,
    "carbs": 200,
    "fat": 80,
    "fiber": 30,
    "sodium": 3000,
    "sugar": 100,
    "cholesterol": 800,
    "vitamin_a": 5000,
    "vitamin_c": 500,
    "vitamin_d": 50,
    "vitamin_e": 30,
    "vitamin_k": 600,
    "vitamin_b1": 5,
    "vitamin_b2": 5,
    "vitamin_b3": 40,
    "vitamin_b6": 10,
    "vitamin_b12": 100,
    "folate": 800,
    "calcium": 1500,
    "iron": 25,
    "magnesium": 400,
    "zinc": 30,
    "potassium": 2000,
}

# Adult daily reference intakes, used for whole-meal totals.
DAILY_REFERENCE_INTAKE: dict[str, float] = {
    "calories": 2000,
    "protein": 50,
    "carbs": 275,
    "fat": 78,
    "fiber": 28,
    "sodium": 2300,
    "sugar": 50,
    "cholesterol": 300,
    "vitamin_a": 900,
    "vitamin_c": 90,
    "vitamin_d": 20,
    "vitamin_e": 15,
    "vitamin_k": 120,
    "vitamin_b1": 1.2,
    "vitamin_b2": 1.3,
    "vitamin_b3": 16,
    "vitamin_b6": 1.7,
    "vitamin_b12": 2.4,
    "folate": 400,
    "calcium": 1000,
    "iron": 18,
    "magnesium": 420,
    "zinc": 11,
    "potassium": 4700,
}

MIN_SERVING_CALORIES = 1
CALORIE_CONSISTENCY_TOLERANCE = 0.4
MEAL_REFERENCE_THRESHOLD = 2.0

_logger = logging.getLogger(__name__)


def _exceeds(value: float | None, limit: float) -> bool:
    return value is not None and value > limit


def _below(value: float | None, limit: float) -> bool:
    return value is None or value < limit


_RELATIONSHIPS: tuple[tuple[str, Callable[[NutrientProfile], bool]], ...] = (
    (
        "Protein is high but calories are near zero",
        lambda p: p.protein > 20 and p.calories < 10,
    ),
    (
        "Fat is high but calories are near zero",
        lambda p: p.fat > 10 and p.calories < 10,
    ),
    (
        "Extremely high vitamin A with negligible other fat-soluble vitamins",
        lambda p: _exceeds(p.vitamin_a, 3000)
        and _below(p.vitamin_d, 1)
        and _below(p.vitamin_e, 0.5)
        and _below(p.vitamin_k, 5),
    ),
    (
        "Very high iron with virtually no protein",
        lambda p: _exceeds(p.iron, 15) and p.protein < 2,
    ),
    (
        "Sugar exceeds total carbohydrates",
        lambda p: _exceeds(p.sugar, p.carbs * 1.1),
    ),
    (
        "Fiber exceeds total carbohydrates",
        lambda p: _exceeds(p.fiber, p.carbs * 1.1),
    ),
)


def realism_issues(profile: NutrientProfile) -> list[str]:
    """List hard realism problems of a single-serving profile."""
    issues: list[str] = []
    calories = profile.calories
    if calories < MIN_SERVING_CALORIES:
        issues.append(f"Calories too low ({calories} kcal) for a real food serving")
    elif calories > SERVING_LIMITS["calories"]:
        issues.append(
            f"Calories unrealistically high ({calories} kcal) for a single serving"
        )

    from_macros = profile.protein * 4 + profile.carbs * 4 + profile.fat * 9
    if calories > 0 and from_macros > 0:
        ratio = abs(from_macros - calories) / calories
        if ratio > CALORIE_CONSISTENCY_TOLERANCE:
            issues.append(
                f"Macro-calorie mismatch: macros suggest {round(from_macros)} kcal "
                f"but reported {calories} kcal ({round(ratio * 100)}% off)"
            )

    for field, limit in SERVING_LIMITS.items():
        value = getattr(profile, field)
        if field != "calories" and _exceeds(value, limit):
            issues.append(
                f"{WIRE_NAMES[field]} exceeds maximum ({value} > {limit})"
            )

    if calories > 10 and profile.protein == profile.carbs == profile.fat == 0:
        issues.append("Calories reported but all macros are zero")
    return issues


def classify_outlier(field: str, value: float) -> tuple[Severity | None, float]:
    """Return the severity and ratio to the typical maximum for one value."""
    typical_max = TYPICAL_SERVING_MAX[field]
    ratio = value / typical_max
    if ratio > 5:
        return Severity.CRITICAL, ratio
    if ratio > 3:
        return Severity.WARNING, ratio
    if ratio > 2:
        return Severity.INFO, ratio
    if value > SERVING_LIMITS[field]:
        return Severity.CRITICAL, value / SERVING_LIMITS[field]
    return None, ratio


def nutrient_flags(profile: NutrientProfile) -> list[NutrientFlag]:
    flags = []
    for field, typical_max in TYPICAL_SERVING_MAX.items():
        value = getattr(profile, field)
        if value is None or value <= 0:
            continue
        severity, ratio = classify_outlier(field, value)
        if severity is not None:
            flags.append(
                NutrientFlag(
                    field=field,
                    value=value,
                    typical_max=typical_max,
                    ratio=round(ratio, 1),
                    severity=severity,
                )
            )
    return flags


def relationship_issues(profile: NutrientProfile) -> list[str]:
    return [message for message, check in _RELATIONSHIPS if check(profile)]


def assess_profile(profile: NutrientProfile, food_name: str) -> PlausibilityReport:
    """Run every single-serving check on ``profile``."""
    report = PlausibilityReport(
        issues=tuple(realism_issues(profile)),
        flags=tuple(nutrient_flags(profile)),
        relationship_issues=tuple(relationship_issues(profile)),
    )
    if not report.realistic or report.has_outliers:
        _logger.warning(
            "Implausible nutrition: name=%s issues=%s flagged=%s cross=%s",
            food_name,
            len(report.issues),
            len(report.flags),
            len(report.relationship_issues),
        )
    return report


def meal_flags(profiles: Iterable[NutrientProfile]) -> list[MealFlag]:
    """Flag nutrients whose meal total exceeds twice the daily reference."""
    totals: dict[str, float] = {}
    for profile in profiles:
        for item in fields(profile):
            value = getattr(profile, item.name)
            if value is not None:
                totals[item.name] = totals.get(item.name, 0) + value

    flags = []
    for field, total in totals.items():
        reference = DAILY_REFERENCE_INTAKE[field]
        share = total / reference
        if total > 0 and share > MEAL_REFERENCE_THRESHOLD:
            flags.append(
                MealFlag(
                    field=field,
                    total=round(total, 1),
                    daily_reference=reference,
                    percent_of_reference=round(share * 100),
                )
            )
    if flags:
        _logger.warning(
            "Meal totals exceed %s%% of daily reference: %s",
            round(MEAL_REFERENCE_THRESHOLD * 100),
            ", ".join(flag.field for flag in flags),
        )
    return flags
