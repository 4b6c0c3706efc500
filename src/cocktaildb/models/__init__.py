"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import AvailabilityTier, IngredientType, RelationKind
from .ingredient import Ingredient, ingredient_alternatives, ingredient_substitutes
from .recipe import Recipe, RecipeIngredient

__all__ = [
    "Base",
    "BaseModel",
    "AvailabilityTier",
    "IngredientType",
    "RelationKind",
    "Ingredient",
    "ingredient_substitutes",
    "ingredient_alternatives",
    "Recipe",
    "RecipeIngredient",
]
