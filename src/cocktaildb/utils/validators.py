"""
Input validation functions for the Cocktail Catalog.

This module provides validation functions for service inputs including:
- String validation (required fields, length)
- Numeric validation (ranges)
- Ingredient, recipe and recipe line validation

All validators return (is_valid, error) or (is_valid, errors) tuples; the
service layer turns failures into ValidationError.
"""

import math
from typing import Any, List, Optional, Tuple

from .constants import (
    MAX_ABV,
    MAX_MEASURE_ML,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_SERVING_FIELD_LENGTH,
    MAX_TAG_LENGTH,
    MIN_ABV,
    MIN_MEASURE_ML,
    ERROR_INVALID_INGREDIENT_TYPE,
    ERROR_INVALID_NUMBER,
    ERROR_REQUIRED_FIELD,
    is_valid_ingredient_type,
)


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if not isinstance(value, str):
        return False, f"{field_name}: Must be text"
    return True, ""


def validate_string_length(
    value: str, max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_number_range(
    value: Any, min_value: float, max_value: float, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a number is within a specified range (inclusive).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    try:
        num_value = float(value)
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if math.isnan(num_value):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < min_value or num_value > max_value:
        return False, f"{field_name}: Must be between {min_value:g} and {max_value:g}"
    return True, ""


def validate_id_collection(value: Any, field_name: str = "IDs") -> Tuple[bool, str]:
    """
    Validate a collection of integer IDs (list, set or tuple).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None:
        return True, ""
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        return False, f"{field_name}: Must be a collection of IDs"
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            return False, f"{field_name}: {item!r} is not a valid ID"
    return True, ""


def validate_ingredient_data(data: dict) -> Tuple[bool, List[str]]:
    """
    Validate all fields for an ingredient.

    Args:
        data: Dictionary containing ingredient fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("name"), "Name")
    if not is_valid:
        errors.append(error)
    else:
        is_valid, error = validate_string_length(data["name"], MAX_NAME_LENGTH, "Name")
        if not is_valid:
            errors.append(error)

    ingredient_type = data.get("ingredient_type")
    if ingredient_type is None or not is_valid_ingredient_type(ingredient_type):
        errors.append(f"Type: {ERROR_INVALID_INGREDIENT_TYPE}")

    if data.get("abv") is not None:
        is_valid, error = validate_number_range(data["abv"], MIN_ABV, MAX_ABV, "ABV")
        if not is_valid:
            errors.append(error)
        elif not float(data["abv"]).is_integer():
            errors.append("ABV: Must be a whole number")

    if "in_stock" in data and not isinstance(data["in_stock"], bool):
        errors.append("In Stock: Must be true or false")

    if data.get("notes"):
        is_valid, error = validate_string_length(data["notes"], MAX_NOTES_LENGTH, "Notes")
        if not is_valid:
            errors.append(error)

    for key, label in (("substitute_ids", "Substitutes"), ("alternative_ids", "Alternatives")):
        is_valid, error = validate_id_collection(data.get(key), label)
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors


def validate_recipe_lines(lines: Optional[List[dict]]) -> Tuple[bool, List[str]]:
    """
    Validate recipe ingredient lines.

    Each line needs an integer ``ingredient_id`` and a numeric ``measure_ml``.
    Negative measures are counts and are allowed; zero is not.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []
    for index, line in enumerate(lines or [], start=1):
        label = f"Ingredient line {index}"
        if not isinstance(line, dict):
            errors.append(f"{label}: Must be a mapping")
            continue

        ingredient_id = line.get("ingredient_id")
        if isinstance(ingredient_id, bool) or not isinstance(ingredient_id, int):
            errors.append(f"{label}: ingredient_id is required")

        is_valid, error = validate_number_range(
            line.get("measure_ml"), MIN_MEASURE_ML, MAX_MEASURE_ML, f"{label} measure"
        )
        if not is_valid:
            errors.append(error)
        elif float(line["measure_ml"]) == 0:
            errors.append(f"{label} measure: Must not be zero")

    return len(errors) == 0, errors


def validate_recipe_data(data: dict) -> Tuple[bool, List[str]]:  # noqa: C901
    """
    Validate all fields for a recipe.

    Args:
        data: Dictionary containing recipe fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("name"), "Recipe Name")
    if not is_valid:
        errors.append(error)
    else:
        is_valid, error = validate_string_length(data["name"], MAX_NAME_LENGTH, "Recipe Name")
        if not is_valid:
            errors.append(error)

    if data.get("notes"):
        is_valid, error = validate_string_length(data["notes"], MAX_NOTES_LENGTH, "Notes")
        if not is_valid:
            errors.append(error)

    for key in ("steps", "tags"):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            errors.append(f"{key.capitalize()}: Must be a list of text values")

    for tag in data.get("tags") or []:
        if isinstance(tag, str) and len(tag) > MAX_TAG_LENGTH:
            errors.append(f"Tags: '{tag[:20]}...' exceeds {MAX_TAG_LENGTH} characters")

    for key, label in (("glassware_type", "Glassware"), ("ice_type", "Ice")):
        if data.get(key):
            is_valid, error = validate_string_length(data[key], MAX_SERVING_FIELD_LENGTH, label)
            if not is_valid:
                errors.append(error)

    parent_id = data.get("variation_of_id")
    if parent_id is not None and (isinstance(parent_id, bool) or not isinstance(parent_id, int)):
        errors.append("Variation Of: Must be a recipe ID")

    return len(errors) == 0, errors
