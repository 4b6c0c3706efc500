"""
Recipe service: the recipe store.

This module provides:
- CRUD for recipes and their ordered ingredient lines
- Lineage validation of variation_of_id before any write
- Derived fields (ABV and base spirit) recalculated on every create/update
- Search by name, spirit and tags
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..models.ingredient import Ingredient
from ..models.recipe import Recipe, RecipeIngredient
from ..utils.constants import BASE_SPIRIT_NONE, BASE_SPIRIT_UNKNOWN, SPIRIT_TYPE
from ..utils.validators import validate_recipe_data, validate_recipe_lines
from .database import session_scope
from .exceptions import (
    DatabaseError,
    RecipeNotFound,
    ServiceError,
    UnknownIngredient,
    ValidationError,
)
from .lineage_service import lineage_lock, validate_variation
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

_FIELDS = ("name", "steps", "notes", "tags", "glassware_type", "ice_type", "variation_of_id")


# ============================================================================
# Derived fields
# ============================================================================


def _line_values(line) -> Tuple[int, float]:
    if isinstance(line, Mapping):
        return line["ingredient_id"], float(line["measure_ml"])
    return line.ingredient_id, float(line.measure_ml)


def _volume_lines(lines) -> List[Tuple[int, float]]:
    """(ingredient_id, ml) for lines measured by volume; counts are dropped."""
    values = [_line_values(line) for line in lines or ()]
    return [(ingredient_id, ml) for ingredient_id, ml in values if ml >= 0]


def calculate_abv(lines: Iterable, ingredients: Mapping[int, Any]) -> int:
    """
    Calculate a recipe's volume-weighted ABV.

    Lines with a negative measure are item counts and carry no volume. An
    ingredient missing from ``ingredients`` counts as 0% ABV.

    Args:
        lines: Recipe lines (dicts or RecipeIngredient) with ingredient_id and measure_ml
        ingredients: Ingredient ID -> object with ``abv``

    Returns:
        ABV as a whole percent, truncated; 0 when the total volume is 0

    Example:
        >>> calculate_abv([{"ingredient_id": 1, "measure_ml": 50},
        ...                {"ingredient_id": 2, "measure_ml": 150}], {1: vodka, 2: tonic})
        10
    """
    volume_lines = _volume_lines(lines)
    total_ml = sum(ml for _, ml in volume_lines)
    if total_ml == 0:
        return 0

    weighted = 0.0
    for ingredient_id, ml in volume_lines:
        ingredient = ingredients.get(ingredient_id)
        abv = (getattr(ingredient, "abv", None) or 0) if ingredient is not None else 0
        weighted += abv * ml
    return int(weighted / total_ml)


def determine_base_spirit(lines: Iterable, ingredients: Mapping[int, Any]) -> str:
    """
    Name the spirit with the largest single volume line.

    Returns:
        The spirit's name; "none" when no volume line is a spirit; "Unknown"
        when the recipe has no lines at all. Ties go to the earlier line.
    """
    lines = list(lines or ())
    if not lines:
        return BASE_SPIRIT_UNKNOWN

    best_name = None
    best_ml = None
    for ingredient_id, ml in _volume_lines(lines):
        ingredient = ingredients.get(ingredient_id)
        if ingredient is None or getattr(ingredient, "ingredient_type", None) != SPIRIT_TYPE:
            continue
        if best_ml is None or ml > best_ml:
            best_name, best_ml = ingredient.name, ml
    return best_name if best_name is not None else BASE_SPIRIT_NONE


# ============================================================================
# Helpers
# ============================================================================


def _resolve_line_ingredients(session, lines: List[dict]) -> Dict[int, Ingredient]:
    """Load every ingredient the lines name, or raise UnknownIngredient."""
    ids = {line["ingredient_id"] for line in lines}
    if not ids:
        return {}
    found = {
        ing.id: ing
        for ing in session.query(Ingredient).filter(Ingredient.id.in_(ids)).all()
    }
    missing = ids - set(found)
    if missing:
        log_operation(
            logger,
            operation="resolve_recipe_lines",
            outcome="unknown_ingredients",
            level=logging.WARNING,
            unknown_ids=sorted(missing),
        )
        raise UnknownIngredient(missing)
    return found


def _replace_lines(recipe: Recipe, lines: List[dict]) -> None:
    recipe.recipe_ingredients = [
        RecipeIngredient(
            ingredient_id=line["ingredient_id"],
            measure_ml=float(line["measure_ml"]),
            position=position,
        )
        for position, line in enumerate(lines)
    ]


def _refresh_derived_fields(session, recipe: Recipe) -> None:
    lines = recipe.recipe_ingredients
    ids = {line.ingredient_id for line in lines}
    ingredients = {}
    if ids:
        ingredients = {
            ing.id: ing
            for ing in session.query(Ingredient).filter(Ingredient.id.in_(ids)).all()
        }
    recipe.abv = calculate_abv(lines, ingredients)
    recipe.base_spirit = determine_base_spirit(lines, ingredients)


def _clean_fields(recipe_data: Dict[str, Any]) -> Dict[str, Any]:
    values = {key: recipe_data[key] for key in _FIELDS if key in recipe_data}
    if isinstance(values.get("name"), str):
        values["name"] = values["name"].strip()
    for key in ("steps", "tags"):
        if key in values and values[key] is None:
            values[key] = []
    return values


def _validate(recipe_data: Dict[str, Any], ingredients_data: Optional[List[dict]]) -> None:
    is_valid, errors = validate_recipe_data(recipe_data)
    lines_valid, line_errors = validate_recipe_lines(ingredients_data)
    if not (is_valid and lines_valid):
        raise ValidationError(errors + line_errors)


# ============================================================================
# CRUD
# ============================================================================


def create_recipe(
    recipe_data: Dict[str, Any], ingredients_data: Optional[List[dict]] = None
) -> Recipe:
    """
    Create a new recipe with its ingredient lines.

    Args:
        recipe_data: Dictionary containing:
            - name (str, required)
            - steps, tags (list of str, optional)
            - notes, glassware_type, ice_type (str, optional)
            - variation_of_id (int, optional): Parent recipe
        ingredients_data: Ordered lines, each with ingredient_id and
            measure_ml (negative for item counts)

    Returns:
        Created Recipe with lines, abv and base_spirit populated

    Raises:
        ValidationError: If recipe data or lines are invalid
        UnknownIngredient: If a line names an ingredient that doesn't exist
        UnknownParent: If variation_of_id doesn't exist
        DatabaseError: If database operation fails
    """
    lines = list(ingredients_data or [])
    _validate(recipe_data, lines)
    values = _clean_fields(recipe_data)

    try:
        with lineage_lock():
            with session_scope() as session:
                _resolve_line_ingredients(session, lines)
                validate_variation(None, values.get("variation_of_id"), session=session)

                recipe = Recipe(**values)
                _replace_lines(recipe, lines)
                session.add(recipe)
                session.flush()
                _refresh_derived_fields(session, recipe)
                session.flush()

                log_operation(
                    logger,
                    operation="create_recipe",
                    outcome="success",
                    recipe_id=recipe.id,
                    variation_of_id=recipe.variation_of_id,
                    line_count=len(lines),
                )
                return recipe

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def get_recipe(recipe_id: int, session=None) -> Recipe:
    """
    Retrieve a recipe by ID, lines included.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """

    def _impl(session):
        recipe = session.get(Recipe, recipe_id)
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        return recipe

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def get_all_recipes(session=None) -> List[Recipe]:
    """Retrieve all recipes ordered by name."""

    def _impl(session):
        return session.query(Recipe).order_by(Recipe.name, Recipe.id).all()

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve recipes", e)


def search_recipes(
    name: Optional[str] = None,
    spirit: Optional[str] = None,
    tags: Optional[List[str]] = None,
    session=None,
) -> List[Recipe]:
    """
    Search recipes; every given filter must match.

    Args:
        name: Case-insensitive substring of the recipe name
        spirit: Case-insensitive exact name of an ingredient used in the recipe
        tags: Tags the recipe must all carry (case-insensitive)
        session: Optional SQLAlchemy session

    Returns:
        Matching recipes ordered by name
    """
    wanted_tags = [t.lower() for t in tags or [] if t and t.strip()]

    def _impl(session):
        query = session.query(Recipe)
        if name and name.strip():
            query = query.filter(Recipe.name.ilike(f"%{name.strip()}%"))

        if spirit and spirit.strip():
            spirit_ids = [
                row.id
                for row in session.query(Ingredient.id)
                .filter(func.lower(Ingredient.name) == spirit.strip().lower())
                .all()
            ]
            if not spirit_ids:
                return []
            query = query.filter(
                Recipe.recipe_ingredients.any(RecipeIngredient.ingredient_id.in_(spirit_ids))
            )

        recipes = query.order_by(Recipe.name, Recipe.id).all()
        if wanted_tags:
            recipes = [
                r for r in recipes
                if set(wanted_tags) <= {t.lower() for t in r.tags or []}
            ]
        return recipes

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to search recipes", e)


def update_recipe(
    recipe_id: int,
    recipe_data: Dict[str, Any],
    ingredients_data: Optional[List[dict]] = None,
) -> Recipe:
    """
    Update a recipe (partial update supported).

    When ``ingredients_data`` is given it replaces all lines. A
    ``variation_of_id`` key, even None, is validated and applied; the check
    and the write share one transaction under lineage_lock().

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If the merged data or lines are invalid
        UnknownIngredient: If a line names an ingredient that doesn't exist
        SelfReferenceError / UnknownParent / CircularReferenceError:
            If the new variation_of_id is not allowed
        DatabaseError: If database operation fails
    """
    lines = list(ingredients_data) if ingredients_data is not None else None

    try:
        with lineage_lock():
            with session_scope() as session:
                recipe = session.get(Recipe, recipe_id)
                if recipe is None:
                    raise RecipeNotFound(recipe_id)

                merged = {key: getattr(recipe, key) for key in _FIELDS}
                merged.update(recipe_data)
                _validate(merged, lines)

                if lines is not None:
                    _resolve_line_ingredients(session, lines)
                if "variation_of_id" in recipe_data:
                    validate_variation(recipe_id, recipe_data["variation_of_id"], session=session)

                for key, value in _clean_fields(recipe_data).items():
                    setattr(recipe, key, value)
                if lines is not None:
                    _replace_lines(recipe, lines)
                session.flush()
                _refresh_derived_fields(session, recipe)
                session.flush()

                log_operation(
                    logger,
                    operation="update_recipe",
                    outcome="success",
                    recipe_id=recipe_id,
                    fields=sorted(recipe_data),
                    lines_replaced=lines is not None,
                )
                return recipe

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", e)


def delete_recipe(recipe_id: int) -> bool:
    """
    Delete a recipe and its lines.

    Direct variations of the recipe become roots (variation_of_id = None).

    Returns:
        True if deletion successful

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with lineage_lock():
            with session_scope() as session:
                recipe = session.get(Recipe, recipe_id)
                if recipe is None:
                    raise RecipeNotFound(recipe_id)

                # The ORM nulls variation_of_id on every loaded child
                orphaned = [child.id for child in recipe.variations]
                session.delete(recipe)

                log_operation(
                    logger,
                    operation="delete_recipe",
                    outcome="success",
                    recipe_id=recipe_id,
                    variations_detached=orphaned,
                )
                return True

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)
