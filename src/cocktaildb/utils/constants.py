"""
Constants for the Cocktail Catalog.

This module defines all system-wide constants including:
- Application metadata
- Ingredient types and relation kinds
- Validation limits
- Database names
- Error messages
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Cocktail Catalog"
APP_VERSION = "0.1.0"

# ============================================================================
# Ingredient Types
# ============================================================================

INGREDIENT_TYPES: List[str] = [
    "spirit",
    "liqueur",
    "wine",
    "beer",
    "juice",
    "soda",
    "syrup",
    "bitters",
    "garnish",
    "other",
]

# Ingredient type used to pick a recipe's base spirit
SPIRIT_TYPE = "spirit"

# ============================================================================
# Recipe Derived Fields
# ============================================================================

# Base spirit when the recipe has lines but no spirit among them
BASE_SPIRIT_NONE = "none"
# Base spirit when the recipe has no lines at all
BASE_SPIRIT_UNKNOWN = "Unknown"

# ============================================================================
# Validation Constants
# ============================================================================

# String length limits
MAX_NAME_LENGTH = 200
MAX_NOTES_LENGTH = 1000
MAX_TAG_LENGTH = 50
MAX_SERVING_FIELD_LENGTH = 50

# Numeric limits
MIN_ABV = 0
MAX_ABV = 100
# Negative measures mean "count of items" (e.g. -2 = two pieces)
MIN_MEASURE_ML = -1000.0
MAX_MEASURE_ML = 10000.0

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "cocktaildb.db"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_INGREDIENT_TYPE = "Invalid ingredient type"
ERROR_INVALID_RELATION_KIND = "Relation kind must be 'substitute' or 'alternative'"
ERROR_SELF_RELATION = "An ingredient cannot be related to itself"


def is_valid_ingredient_type(ingredient_type: str) -> bool:
    """
    Check if an ingredient type is valid.

    Args:
        ingredient_type: The type string (case-insensitive)

    Returns:
        True if the type is one of INGREDIENT_TYPES
    """
    if not isinstance(ingredient_type, str):
        return False
    return ingredient_type.lower() in INGREDIENT_TYPES
