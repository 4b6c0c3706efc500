"""Services package - Business logic layer for the Cocktail Catalog.

Architecture:
- Services: Stateless functions organized by domain
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- ingredient_service: Ingredient store, stock updates and stock listeners
- recipe_service: Recipe store, derived ABV and base spirit
- relationship_service: Symmetric substitute/alternative graph
- lineage_service: Variation-of forest and cycle prevention
- availability_service: Availability tiers against current stock

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured service logging
- stock_events: Stock listener registry and notification
"""

# Service modules
from . import (
    database,
    stock_events,
    relationship_service,
    lineage_service,
    availability_service,
    ingredient_service,
    recipe_service,
)

from .availability_service import classify, classify_recipe, get_available
from .relationship_service import graph_lock, remove_ingredient, set_relations
from .lineage_service import lineage_lock, validate_variation
from .stock_events import register_stock_listener, unregister_stock_listener

from .dto import (
    AvailabilityResult,
    IngredientImpact,
    IngredientNode,
    RecipeAvailabilityDetail,
    RecipeSnapshot,
)

from .exceptions import (
    ServiceError,
    IngredientNotFound,
    RecipeNotFound,
    UnknownIngredient,
    UnknownParent,
    SelfReferenceError,
    CircularReferenceError,
    ValidationError,
    DatabaseError,
)

__all__ = [
    # Modules
    "database",
    "stock_events",
    "relationship_service",
    "lineage_service",
    "availability_service",
    "ingredient_service",
    "recipe_service",
    # Core operations
    "set_relations",
    "remove_ingredient",
    "graph_lock",
    "classify",
    "classify_recipe",
    "get_available",
    "validate_variation",
    "lineage_lock",
    "register_stock_listener",
    "unregister_stock_listener",
    # DTOs
    "AvailabilityResult",
    "IngredientImpact",
    "IngredientNode",
    "RecipeAvailabilityDetail",
    "RecipeSnapshot",
    # Exceptions
    "ServiceError",
    "IngredientNotFound",
    "RecipeNotFound",
    "UnknownIngredient",
    "UnknownParent",
    "SelfReferenceError",
    "CircularReferenceError",
    "ValidationError",
    "DatabaseError",
]
