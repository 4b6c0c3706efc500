"""
Ingredient model and the two symmetric relation tables.

Substitutes and alternatives are stored as directed rows in their
association tables; the relationship service keeps both directions present
so that each relation reads as an undirected graph.
"""

from typing import Optional, Set

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base, BaseModel
from .enums import IngredientType


ingredient_substitutes = Table(
    "ingredient_substitutes",
    Base.metadata,
    Column(
        "ingredient_id",
        Integer,
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "substitute_id",
        Integer,
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    CheckConstraint("ingredient_id != substitute_id", name="ck_ingredient_substitute_not_self"),
    Index("idx_ingredient_substitutes_substitute", "substitute_id"),
)

ingredient_alternatives = Table(
    "ingredient_alternatives",
    Base.metadata,
    Column(
        "ingredient_id",
        Integer,
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "alternative_id",
        Integer,
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    CheckConstraint("ingredient_id != alternative_id", name="ck_ingredient_alternative_not_self"),
    Index("idx_ingredient_alternatives_alternative", "alternative_id"),
)


class Ingredient(BaseModel):
    """
    Ingredient model.

    Attributes:
        name: Display name (e.g., "Vodka"); not required to be unique
        ingredient_type: IngredientType value (e.g., "spirit")
        abv: Alcohol by volume, whole percent
        in_stock: Whether the bar currently has it
        notes: Free text
        substitutes: Ingredients interchangeable 1:1 with this one
        alternatives: Ingredients usable in its place with a different result
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False, index=True)
    ingredient_type = Column(String(20), nullable=False, default=IngredientType.OTHER.value)
    abv = Column(Integer, nullable=False, default=0)
    in_stock = Column(Boolean, nullable=False, default=False, index=True)
    notes = Column(Text, nullable=True)

    substitutes = relationship(
        "Ingredient",
        secondary=ingredient_substitutes,
        primaryjoin="Ingredient.id == ingredient_substitutes.c.ingredient_id",
        secondaryjoin="Ingredient.id == ingredient_substitutes.c.substitute_id",
        collection_class=set,
        lazy="selectin",
    )
    alternatives = relationship(
        "Ingredient",
        secondary=ingredient_alternatives,
        primaryjoin="Ingredient.id == ingredient_alternatives.c.ingredient_id",
        secondaryjoin="Ingredient.id == ingredient_alternatives.c.alternative_id",
        collection_class=set,
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("abv >= 0 AND abv <= 100", name="ck_ingredient_abv_range"),
    )

    def __repr__(self) -> str:
        return (
            f"Ingredient(id={self.id}, name='{self.name}', "
            f"type='{self.ingredient_type}', in_stock={self.in_stock})"
        )

    @property
    def type_enum(self) -> Optional[IngredientType]:
        """ingredient_type as an IngredientType, or None if unrecognized."""
        try:
            return IngredientType(self.ingredient_type)
        except ValueError:
            return None

    @property
    def substitute_ids(self) -> Set[int]:
        return {peer.id for peer in self.substitutes}

    @property
    def alternative_ids(self) -> Set[int]:
        return {peer.id for peer in self.alternatives}

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert ingredient to dictionary.

        Relation sets are always included as sorted ID lists.
        """
        result = super().to_dict(include_relationships=False)
        result["substitute_ids"] = sorted(self.substitute_ids)
        result["alternative_ids"] = sorted(self.alternative_ids)
        return result
