"""Service layer exception classes for the Cocktail Catalog.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. Each exception carries an
``http_status_code`` so a transport layer can map it without a lookup table.

Exception Hierarchy:
    ServiceError (base)
    ├── IngredientNotFound
    ├── RecipeNotFound
    ├── UnknownIngredient
    ├── UnknownParent
    ├── SelfReferenceError
    ├── CircularReferenceError
    ├── ValidationError
    └── DatabaseError
"""

from typing import Iterable, List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions inherit from this class.
    """

    http_status_code = 500


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID.

    Example:
        >>> raise IngredientNotFound(12)
        IngredientNotFound: Ingredient with ID 12 not found
    """

    http_status_code = 404

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    http_status_code = 404

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class UnknownIngredient(ServiceError):
    """Raised when a relation peer or recipe line names ingredients that don't exist.

    Args:
        ingredient_ids: The IDs that did not resolve

    Example:
        >>> raise UnknownIngredient([7, 9])
        UnknownIngredient: Unknown ingredient ID(s): 7, 9
    """

    http_status_code = 422

    def __init__(self, ingredient_ids: Iterable[int]):
        self.ingredient_ids: List[int] = sorted(ingredient_ids)
        ids = ", ".join(str(i) for i in self.ingredient_ids)
        super().__init__(f"Unknown ingredient ID(s): {ids}")


class UnknownParent(ServiceError):
    """Raised when a proposed variation parent recipe does not exist."""

    http_status_code = 422

    def __init__(self, parent_id: int):
        self.parent_id = parent_id
        super().__init__(f"Cannot be a variation of recipe {parent_id}: recipe not found")


class SelfReferenceError(ServiceError):
    """Raised when a recipe names itself as the recipe it is a variation of."""

    http_status_code = 422

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe {recipe_id} cannot be a variation of itself")


class CircularReferenceError(ServiceError):
    """Raised when a variation-of assignment would close a lineage cycle.

    Args:
        recipe_id: Recipe being edited
        parent_id: Proposed parent
        chain: Ancestor IDs walked from the parent up to the edited recipe

    Example:
        >>> raise CircularReferenceError(1, 3, [3, 2, 1])
        CircularReferenceError: Recipe 1 cannot be a variation of recipe 3: 3 -> 2 -> 1 would form a cycle
    """

    http_status_code = 409

    def __init__(self, recipe_id: int, parent_id: int, chain: Optional[List[int]] = None):
        self.recipe_id = recipe_id
        self.parent_id = parent_id
        self.chain = list(chain or [])
        path = " -> ".join(str(i) for i in self.chain) if self.chain else str(parent_id)
        super().__init__(
            f"Recipe {recipe_id} cannot be a variation of recipe {parent_id}: "
            f"{path} would form a cycle"
        )


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    http_status_code = 400

    def __init__(self, errors: list):
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    http_status_code = 500

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
