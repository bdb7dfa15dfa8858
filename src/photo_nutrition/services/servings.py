"""Serving-size normalization from free text to grams."""

import math
import re

DEFAULT_SERVING_GRAMS = 150

_SERVING_PATTERN = re.compile(r"^([\d.]+)\s*(.*)$")

# Grams per unit. Volumes assume water density.
UNIT_GRAMS: dict[str, float] = {
    "g": 1,
    "gram": 1,
    "grams": 1,
    "oz": 28.35,
    "ounce": 28.35,
    "ounces": 28.35,
    "cup": 240,
    "cups": 240,
    "tbsp": 15,
    "tablespoon": 15,
    "tablespoons": 15,
    "tsp": 5,
    "teaspoon": 5,
    "teaspoons": 5,
    "lb": 453.6,
    "pound": 453.6,
    "pounds": 453.6,
    "kg": 1000,
    "kilogram": 1000,
    "kilograms": 1000,
    "ml": 1,
    "milliliter": 1,
    "milliliters": 1,
    "l": 1000,
    "liter": 1000,
    "liters": 1000,
    "slice": 30,
    "slices": 30,
    "piece": 100,
    "pieces": 100,
    "serving": 150,
    "servings": 150,
    "small": 100,
    "medium": 150,
    "large": 200,
}


def grams_for(serving_text: str | None) -> int:
    """Convert a serving description such as ``"1.5 cups"`` to whole grams.

    Anything without a leading amount or with a unit outside ``UNIT_GRAMS`` falls back
    to ``DEFAULT_SERVING_GRAMS``.
    """
    text = (serving_text or "").lower().strip()
    match = _SERVING_PATTERN.match(text)
    if not match:
        return DEFAULT_SERVING_GRAMS
    try:
        amount = float(match.group(1))
    except ValueError:
        return DEFAULT_SERVING_GRAMS
    factor = UNIT_GRAMS.get(match.group(2).strip())
    if factor is None:
        return DEFAULT_SERVING_GRAMS
    return _round_half_up(amount * factor)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
