"""Tests for nutrient normalization."""

from photo_nutrition.domain.nutrition import WIRE_NAMES, NutrientProfile
from photo_nutrition.services.nutrients import (
    FIELD_DECIMALS,
    has_estimate_values,
    normalize_profile,
    profile_from_estimate,
    profile_from_fdc,
)


def test_normalize_rounds_per_field_precision() -> None:
    profile = normalize_profile(
        {"calories": 165.4, "protein": 31.04, "sodium": 73.6, "iron": 1.046}
    )

    assert profile.calories == 165
    assert profile.protein == 31.0
    assert profile.sodium == 74
    assert profile.iron == 1.05


def test_normalize_defaults_required_fields_to_zero() -> None:
    profile = normalize_profile({})

    assert (profile.calories, profile.protein, profile.carbs, profile.fat) == (
        0,
        0,
        0,
        0,
    )
    assert profile.fiber is None
    assert profile.vitamin_b12 is None


def test_normalize_drops_negative_and_non_numeric_values() -> None:
    profile = normalize_profile(
        {
            "calories": -5,
            "fiber": -1,
            "protein": "abc",
            "sugar": True,
            "zinc": float("nan"),
            "iron": float("inf"),
            "calcium": [12],
        }
    )

    assert profile.calories == 0
    assert profile.protein == 0
    assert profile.fiber is None
    assert profile.sugar is None
    assert profile.zinc is None
    assert profile.iron is None
    assert profile.calcium is None


def test_normalize_accepts_numeric_strings() -> None:
    assert normalize_profile({"fat": "3.6"}).fat == 3.6


def test_every_present_field_is_non_negative() -> None:
    profile = normalize_profile({field: -1 for field in FIELD_DECIMALS})

    for value in profile.to_dict().values():
        assert value is None or value >= 0


def test_profile_from_fdc_scales_to_serving() -> None:
    nutrients = [
        {"nutrientId": 1008, "value": 165},
        {"nutrientId": 1003, "value": 31},
        {"nutrientId": 1004, "value": 3.6},
        {"nutrientId": 1005, "value": 0},
        {"nutrientId": 1093, "value": 74},
    ]

    profile = profile_from_fdc(nutrients, serving_grams=200)

    assert profile.calories == 330
    assert profile.protein == 62.0
    assert profile.fat == 7.2
    assert profile.carbs == 0
    assert profile.sodium == 148


def test_profile_from_fdc_reads_nested_nutrient_and_amount() -> None:
    nutrients = [
        {"nutrient": {"id": 1008}, "amount": 100},
        {"nutrient": {"id": 1162}, "amount": 10},
    ]

    profile = profile_from_fdc(nutrients, serving_grams=50)

    assert profile.calories == 50
    assert profile.vitamin_c == 5.0


def test_profile_from_fdc_ignores_unmapped_and_duplicate_ids() -> None:
    nutrients = [
        {"nutrientId": 1008, "value": 100},
        {"nutrientId": 1008, "value": 999},
        {"nutrientId": 9999, "value": 42},
        {"nutrientId": "not-an-id", "value": 1},
    ]

    profile = profile_from_fdc(nutrients, serving_grams=100)

    assert profile.calories == 100


def test_profile_from_fdc_is_deterministic() -> None:
    nutrients = [
        {"nutrientId": 1008, "value": 130},
        {"nutrientId": 1005, "value": 28.2},
    ]

    first = profile_from_fdc(nutrients, serving_grams=158)
    second = profile_from_fdc(nutrients, serving_grams=158)

    assert first == second
    assert first.calories == 205
    assert first.carbs == 44.6


def test_profile_from_estimate_accepts_wire_snake_and_alias_keys() -> None:
    profile = profile_from_estimate(
        {
            "calories": 200,
            "carbohydrates": 30,
            "protein": None,
            "vitaminA": 12.4,
            "vitamin_b12": 0.456,
        }
    )

    assert profile.calories == 200
    assert profile.carbs == 30.0
    assert profile.protein == 0
    assert profile.vitamin_a == 12
    assert profile.vitamin_b12 == 0.46


def test_has_estimate_values_needs_a_numeric_nutrient() -> None:
    assert has_estimate_values({"cal": "95"})
    assert has_estimate_values({"vitaminB12": 0})
    assert not has_estimate_values({})
    assert not has_estimate_values({"g": 10, "protein": {"g": 10}})
    assert not has_estimate_values({"calories": None, "fat": "n/a"})


def test_profile_to_dict_uses_wire_names() -> None:
    payload = NutrientProfile(calories=10).to_dict()

    assert set(payload) == set(WIRE_NAMES.values())
    assert payload["calories"] == 10
    assert payload["vitaminB12"] is None
