"""
Tests for input validation functions.

Tests cover:
- String validation (required, length)
- Numeric ranges
- ID collections
- Complete data validation (ingredient, recipe, recipe lines)

Validators return (is_valid, errors); services turn failures into ValidationError.
"""

import pytest

from cocktaildb.utils import validators
from cocktaildb.utils.constants import MAX_NAME_LENGTH, MAX_NOTES_LENGTH, MAX_TAG_LENGTH


class TestStringValidation:
    """Test string validation functions."""

    def test_validate_required_string_valid(self):
        assert validators.validate_required_string("Gin", "Name") == (True, "")

    def test_validate_required_string_blank(self):
        for value in (None, "", "   "):
            is_valid, error = validators.validate_required_string(value, "Name")
            assert not is_valid
            assert "required" in error.lower()

    def test_validate_required_string_not_text(self):
        is_valid, error = validators.validate_required_string(12, "Name")
        assert not is_valid
        assert "text" in error.lower()

    def test_validate_string_length(self):
        assert validators.validate_string_length("A" * 10, 10, "Field")[0]
        assert not validators.validate_string_length("A" * 11, 10, "Field")[0]


class TestNumberValidation:
    """Test numeric range validation."""

    def test_in_range(self):
        assert validators.validate_number_range(40, 0, 100, "ABV")[0]
        assert validators.validate_number_range("12.5", 0, 100, "ABV")[0]

    def test_out_of_range(self):
        is_valid, error = validators.validate_number_range(101, 0, 100, "ABV")
        assert not is_valid
        assert "between 0 and 100" in error

    def test_bool_is_not_a_number(self):
        assert not validators.validate_number_range(True, 0, 100, "ABV")[0]

    def test_garbage(self):
        assert not validators.validate_number_range("forty", 0, 100, "ABV")[0]
        assert not validators.validate_number_range(None, 0, 100, "ABV")[0]

    def test_nan_is_not_a_number(self):
        assert not validators.validate_number_range("nan", 0, 100, "ABV")[0]
        assert not validators.validate_number_range(float("nan"), 0, 100, "ABV")[0]


class TestIdCollection:
    """Test ID collection validation."""

    def test_none_allowed(self):
        assert validators.validate_id_collection(None)[0]

    def test_list_and_set_of_ints(self):
        assert validators.validate_id_collection([1, 2])[0]
        assert validators.validate_id_collection({3})[0]

    def test_rejects_strings_and_bools(self):
        assert not validators.validate_id_collection("12")[0]
        assert not validators.validate_id_collection([1, "2"])[0]
        assert not validators.validate_id_collection([True])[0]


class TestIngredientValidation:
    """Test validate_ingredient_data()."""

    def test_valid(self):
        is_valid, errors = validators.validate_ingredient_data(
            {"name": "Gin", "ingredient_type": "spirit", "abv": 40, "in_stock": True}
        )
        assert is_valid
        assert errors == []

    def test_collects_every_error(self):
        is_valid, errors = validators.validate_ingredient_data(
            {
                "name": "X" * (MAX_NAME_LENGTH + 1),
                "ingredient_type": "potion",
                "abv": 120,
                "in_stock": "no",
                "notes": "n" * (MAX_NOTES_LENGTH + 1),
                "alternative_ids": [None],
            }
        )
        assert not is_valid
        assert len(errors) == 6

    def test_type_case_insensitive(self):
        assert validators.validate_ingredient_data({"name": "Gin", "ingredient_type": "Spirit"})[0]

    @pytest.mark.parametrize("abv", [40.5, "40.5", "12.25"])
    def test_fractional_abv_rejected(self, abv):
        is_valid, errors = validators.validate_ingredient_data(
            {"name": "Rum", "ingredient_type": "spirit", "abv": abv}
        )
        assert not is_valid
        assert errors == ["ABV: Must be a whole number"]

    @pytest.mark.parametrize("abv", [40, 40.0, "40", "40.0"])
    def test_whole_abv_accepted(self, abv):
        assert validators.validate_ingredient_data(
            {"name": "Rum", "ingredient_type": "spirit", "abv": abv}
        )[0]


class TestRecipeValidation:
    """Test validate_recipe_data() and validate_recipe_lines()."""

    def test_valid_recipe(self):
        is_valid, errors = validators.validate_recipe_data(
            {
                "name": "Negroni",
                "steps": ["Stir", "Strain"],
                "tags": ["classic"],
                "glassware_type": "rocks",
                "variation_of_id": 3,
            }
        )
        assert is_valid, errors

    def test_invalid_recipe_fields(self):
        is_valid, errors = validators.validate_recipe_data(
            {
                "name": "",
                "steps": "Stir",
                "tags": ["t" * (MAX_TAG_LENGTH + 1)],
                "variation_of_id": "3",
            }
        )
        assert not is_valid
        assert len(errors) == 4

    def test_lines_allow_counts(self):
        lines = [{"ingredient_id": 1, "measure_ml": 45}, {"ingredient_id": 2, "measure_ml": -2}]
        assert validators.validate_recipe_lines(lines) == (True, [])

    def test_lines_reject_zero_and_missing_id(self):
        is_valid, errors = validators.validate_recipe_lines(
            [{"measure_ml": 10}, {"ingredient_id": 1, "measure_ml": 0}, "junk"]
        )
        assert not is_valid
        assert len(errors) == 3

    def test_no_lines(self):
        assert validators.validate_recipe_lines(None) == (True, [])
