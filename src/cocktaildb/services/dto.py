"""Data Transfer Objects for the availability resolver.

These are detached, plain-Python snapshots of store data and the results
computed from them. The resolver works only on these types, so it can run
without a session and never sees a half-written record.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..models.enums import AvailabilityTier


@dataclass(frozen=True)
class IngredientNode:
    """Read-only view of one ingredient in the relationship graph.

    Attributes:
        id: Ingredient ID
        name: Display name
        in_stock: Stock flag at snapshot time
        substitute_ids: IDs listed as substitutes
        alternative_ids: IDs listed as alternatives
    """

    id: int
    name: str
    in_stock: bool
    substitute_ids: FrozenSet[int] = frozenset()
    alternative_ids: FrozenSet[int] = frozenset()

    @classmethod
    def from_model(cls, ingredient) -> "IngredientNode":
        """Snapshot an Ingredient model instance."""
        return cls(
            id=ingredient.id,
            name=ingredient.name,
            in_stock=bool(ingredient.in_stock),
            substitute_ids=frozenset(ingredient.substitute_ids),
            alternative_ids=frozenset(ingredient.alternative_ids),
        )


@dataclass(frozen=True)
class RecipeSnapshot:
    """Detached view of a recipe: enough to classify it."""

    id: int
    name: str
    ingredient_ids: FrozenSet[int]

    @classmethod
    def from_model(cls, recipe) -> "RecipeSnapshot":
        return cls(id=recipe.id, name=recipe.name, ingredient_ids=frozenset(recipe.ingredient_ids))


@dataclass
class AvailabilityResult:
    """Recipes partitioned into the three availability tiers.

    Each list keeps the order of the input recipes. A recipe appears in at
    most one list; recipes in none of them are unavailable.
    """

    exact: List = field(default_factory=list)
    with_substitutes: List = field(default_factory=list)
    with_alternatives: List = field(default_factory=list)

    def tier_of(self, recipe) -> AvailabilityTier:
        """Return the tier a recipe was placed in, or UNAVAILABLE."""
        if recipe in self.exact:
            return AvailabilityTier.EXACT
        if recipe in self.with_substitutes:
            return AvailabilityTier.WITH_SUBSTITUTES
        if recipe in self.with_alternatives:
            return AvailabilityTier.WITH_ALTERNATIVES
        return AvailabilityTier.UNAVAILABLE

    def counts(self) -> Dict[str, int]:
        return {
            AvailabilityTier.EXACT.value: len(self.exact),
            AvailabilityTier.WITH_SUBSTITUTES.value: len(self.with_substitutes),
            AvailabilityTier.WITH_ALTERNATIVES.value: len(self.with_alternatives),
        }


@dataclass
class RecipeAvailabilityDetail:
    """Why a recipe landed in its tier.

    Attributes:
        recipe_id: Recipe ID (None when the recipe object has no id)
        tier: Tier the recipe was classified into
        missing_ids: Required ingredient IDs that are out of stock, sorted
        substitutions: Missing ID -> in-stock substitute used to cover it
        alternatives: Missing ID -> in-stock alternative used to cover it
    """

    recipe_id: Optional[int]
    tier: AvailabilityTier
    missing_ids: List[int] = field(default_factory=list)
    substitutions: Dict[int, int] = field(default_factory=dict)
    alternatives: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "recipe_id": self.recipe_id,
            "tier": self.tier.value,
            "missing_ids": list(self.missing_ids),
            "substitutions": dict(self.substitutions),
            "alternatives": dict(self.alternatives),
        }


@dataclass
class IngredientImpact:
    """How many recipes stocking one more ingredient would unlock.

    Counts are recipes that move into the given tier from a worse one.
    """

    ingredient_id: int
    ingredient_name: str
    newly_exact: int = 0
    newly_with_substitutes: int = 0
    newly_with_alternatives: int = 0

    @property
    def total(self) -> int:
        return self.newly_exact + self.newly_with_substitutes + self.newly_with_alternatives

    def to_dict(self) -> dict:
        return {
            "ingredient_id": self.ingredient_id,
            "ingredient_name": self.ingredient_name,
            "newly_exact": self.newly_exact,
            "newly_with_substitutes": self.newly_with_substitutes,
            "newly_with_alternatives": self.newly_with_alternatives,
            "total": self.total,
        }


def snapshot_graph(ingredients: Sequence) -> Dict[int, IngredientNode]:
    """Build an ID -> IngredientNode map from Ingredient models."""
    return {ing.id: IngredientNode.from_model(ing) for ing in ingredients}
