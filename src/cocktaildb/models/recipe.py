"""
Recipe models for cocktail recipes.

This module contains:
- Recipe: Main recipe model with metadata and an optional variation-of parent
- RecipeIngredient: Ordered ingredient lines of a recipe
"""

from typing import List, Set

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model representing a cocktail.

    Attributes:
        name: Recipe name (required)
        steps: Preparation steps in order
        notes: Additional notes or tips
        tags: Free-form tags (e.g., "refreshing", "classic")
        abv: Volume-weighted ABV, derived from the lines
        base_spirit: Name of the largest-volume spirit, derived
        glassware_type: Serving glass (e.g., "highball")
        ice_type: Ice (e.g., "cubed")
        variation_of_id: Recipe this one is a variation of; forms a forest
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    steps = Column(JSON, nullable=False, default=list)
    notes = Column(String(1000), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    abv = Column(Integer, nullable=False, default=0)
    base_spirit = Column(String(50), nullable=False, default="none")

    glassware_type = Column(String(50), nullable=True)
    ice_type = Column(String(50), nullable=True)

    variation_of_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True, index=True
    )

    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
        lazy="selectin",
    )

    variation_of = relationship(
        "Recipe",
        remote_side="Recipe.id",
        back_populates="variations",
        lazy="select",
    )
    variations = relationship(
        "Recipe",
        back_populates="variation_of",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint(
            "variation_of_id IS NULL OR variation_of_id != id",
            name="ck_recipe_variation_not_self",
        ),
    )

    def __repr__(self) -> str:
        return f"Recipe(id={self.id}, name='{self.name}', variation_of_id={self.variation_of_id})"

    @property
    def ingredient_ids(self) -> Set[int]:
        """Distinct ingredient IDs referenced by the recipe's lines."""
        return {line.ingredient_id for line in self.recipe_ingredients}

    @property
    def lines(self) -> List[dict]:
        """Ordered (ingredient_id, measure_ml) lines as dictionaries."""
        return [
            {"ingredient_id": line.ingredient_id, "measure_ml": line.measure_ml}
            for line in self.recipe_ingredients
        ]

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert recipe to dictionary.

        Args:
            include_relationships: If True, include the ingredient lines

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships=False)
        if include_relationships:
            result["ingredients"] = self.lines
        return result


class RecipeIngredient(BaseModel):
    """
    One ingredient line of a recipe.

    ``ingredient_id`` is a plain reference rather than a foreign key: a line
    may outlive the ingredient it names, and availability classification
    treats such a recipe as unmakeable.

    Attributes:
        recipe_id: Foreign key to Recipe
        ingredient_id: Referenced ingredient
        measure_ml: Volume in milliliters; negative values are item counts
        position: Order of the line within the recipe
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(Integer, nullable=False)
    measure_ml = Column(Float, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
    )

    def __repr__(self) -> str:
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, measure_ml={self.measure_ml})"
        )

    @property
    def is_count(self) -> bool:
        """True when the measure is an item count rather than a volume."""
        return self.measure_ml < 0
