"""
Enumerations shared by models and services.

- IngredientType: Classification of an ingredient (spirit, juice, ...)
- RelationKind: The two symmetric ingredient relations
- AvailabilityTier: Outcome of classifying a recipe against current stock
"""

from enum import Enum


class IngredientType(str, Enum):
    """
    Ingredient classification.

    SPIRIT is significant: a recipe's base spirit is its largest-volume
    SPIRIT line.
    """

    SPIRIT = "spirit"
    LIQUEUR = "liqueur"
    WINE = "wine"
    BEER = "beer"
    JUICE = "juice"
    SODA = "soda"
    SYRUP = "syrup"
    BITTERS = "bitters"
    GARNISH = "garnish"
    OTHER = "other"


class RelationKind(str, Enum):
    """
    Symmetric ingredient relations.

    Values:
        SUBSTITUTE: Interchangeable 1:1 (Prosecco <-> Champagne)
        ALTERNATIVE: Usable, but the drink comes out noticeably different
    """

    SUBSTITUTE = "substitute"
    ALTERNATIVE = "alternative"


class AvailabilityTier(str, Enum):
    """
    Availability classification of a recipe.

    Tiers are ordered: EXACT > WITH_SUBSTITUTES > WITH_ALTERNATIVES.
    UNAVAILABLE recipes belong to none of the three lists.
    """

    EXACT = "exact"
    WITH_SUBSTITUTES = "with_substitutes"
    WITH_ALTERNATIVES = "with_alternatives"
    UNAVAILABLE = "unavailable"
