"""
Ingredient service: the ingredient store.

This module provides:
- CRUD for ingredients, with substitute/alternative sets routed through
  relationship_service so they stay symmetric
- Stock updates and the in-stock ID set
- A detached relationship-graph snapshot for the availability resolver
- Stock listener registration (see stock_events), notified after a committed
  change of stock or relations

Relation changes made here run under relationship_service.graph_lock() for
the whole transaction, including commit.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from ..models.enums import IngredientType, RelationKind
from ..models.ingredient import Ingredient
from ..models.recipe import RecipeIngredient
from ..utils.validators import validate_ingredient_data
from .database import session_scope
from .dto import IngredientNode, snapshot_graph
from .exceptions import DatabaseError, IngredientNotFound, ServiceError, ValidationError
from .logging_utils import get_service_logger, log_operation
from .stock_events import (  # noqa: F401
    notify_stock_listeners,
    register_stock_listener,
    unregister_stock_listener,
)
from . import relationship_service

logger = get_service_logger(__name__)

_FIELDS = ("name", "ingredient_type", "abv", "in_stock", "notes")


# ============================================================================
# Helpers
# ============================================================================


def _normalized(data: Dict[str, Any]) -> Dict[str, Any]:
    values = {key: data[key] for key in _FIELDS if key in data}
    if isinstance(values.get("name"), str):
        values["name"] = values["name"].strip()
    if isinstance(values.get("ingredient_type"), str):
        values["ingredient_type"] = values["ingredient_type"].lower()
    if values.get("abv") is not None:
        values["abv"] = int(float(values["abv"]))
    return values


def _apply_relations(session, ingredient_id: int, data: Dict[str, Any]) -> bool:
    """Route substitute_ids/alternative_ids through the relationship service."""
    changed = False
    for key, kind in (
        ("substitute_ids", RelationKind.SUBSTITUTE),
        ("alternative_ids", RelationKind.ALTERNATIVE),
    ):
        if data.get(key) is None:
            continue
        summary = relationship_service.set_relations(
            ingredient_id, kind, data[key], session=session
        )
        changed = changed or bool(summary["added"] or summary["removed"])
    return changed


# ============================================================================
# CRUD
# ============================================================================


def create_ingredient(ingredient_data: Dict[str, Any]) -> Ingredient:
    """
    Create a new ingredient.

    Args:
        ingredient_data: Dictionary containing:
            - name (str, required)
            - ingredient_type (str, optional): defaults to "other"
            - abv (int, optional): 0..100
            - in_stock (bool, optional): defaults to False
            - notes (str, optional)
            - substitute_ids / alternative_ids (optional): peer ID collections

    Returns:
        Created Ingredient

    Raises:
        ValidationError: If data is invalid or lists the new ingredient's own ID
        UnknownIngredient: If a listed peer does not exist
        DatabaseError: If database operation fails

    Example:
        >>> vodka = create_ingredient({"name": "Vodka", "ingredient_type": "spirit", "abv": 40})
        >>> create_ingredient({"name": "Vanilla Vodka", "substitute_ids": [vodka.id]})
    """
    data = dict(ingredient_data)
    data.setdefault("ingredient_type", IngredientType.OTHER.value)

    is_valid, errors = validate_ingredient_data(data)
    if not is_valid:
        raise ValidationError(errors)

    values = _normalized(data)
    values.setdefault("abv", 0)
    values.setdefault("in_stock", False)

    try:
        with relationship_service.graph_lock():
            with session_scope() as session:
                ingredient = Ingredient(**values)
                session.add(ingredient)
                session.flush()

                relations_changed = _apply_relations(session, ingredient.id, data)

                log_operation(
                    logger,
                    operation="create_ingredient",
                    outcome="success",
                    ingredient_id=ingredient.id,
                    ingredient_type=ingredient.ingredient_type,
                )

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", e)

    if ingredient.in_stock or relations_changed:
        notify_stock_listeners("ingredient_created", ingredient_id=ingredient.id)
    return ingredient


def get_ingredient(ingredient_id: int, session=None) -> Ingredient:
    """
    Retrieve an ingredient by ID.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
    """

    def _impl(session):
        ingredient = session.get(Ingredient, ingredient_id)
        if ingredient is None:
            raise IngredientNotFound(ingredient_id)
        return ingredient

    if session is not None:
        return _impl(session)
    with session_scope() as session:
        return _impl(session)


def get_ingredients(ingredient_ids, session=None) -> List[Ingredient]:
    """Bulk fetch by ID; IDs that don't resolve are left out. Ordered by ID."""
    ids = set(ingredient_ids or ())

    def _impl(session):
        if not ids:
            return []
        return (
            session.query(Ingredient)
            .filter(Ingredient.id.in_(ids))
            .order_by(Ingredient.id)
            .all()
        )

    if session is not None:
        return _impl(session)
    with session_scope() as session:
        return _impl(session)


def get_all_ingredients(in_stock: Optional[bool] = None, session=None) -> List[Ingredient]:
    """
    Retrieve all ingredients ordered by name.

    Args:
        in_stock: If given, keep only ingredients with this stock flag
        session: Optional SQLAlchemy session
    """

    def _impl(session):
        query = session.query(Ingredient)
        if in_stock is not None:
            query = query.filter(Ingredient.in_stock == in_stock)
        return query.order_by(Ingredient.name, Ingredient.id).all()

    if session is not None:
        return _impl(session)
    with session_scope() as session:
        return _impl(session)


def search_ingredients(
    query: Optional[str] = None, ingredient_type: Optional[str] = None, session=None
) -> List[Ingredient]:
    """
    Search ingredients by name substring (case-insensitive) and type.

    Args:
        query: Text contained in the name; None or blank matches all
        ingredient_type: Exact type to match, e.g. "spirit"
        session: Optional SQLAlchemy session
    """

    def _impl(session):
        q = session.query(Ingredient)
        if query and query.strip():
            q = q.filter(Ingredient.name.ilike(f"%{query.strip()}%"))
        if ingredient_type:
            q = q.filter(Ingredient.ingredient_type == ingredient_type.lower())
        return q.order_by(Ingredient.name, Ingredient.id).all()

    if session is not None:
        return _impl(session)
    with session_scope() as session:
        return _impl(session)


def update_ingredient(ingredient_id: int, ingredient_data: Dict[str, Any]) -> Ingredient:
    """
    Update an ingredient (partial update supported).

    ``substitute_ids`` / ``alternative_ids``, when present, replace the
    corresponding set entirely and are applied through set_relations in the
    same transaction.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        ValidationError: If the merged data is invalid
        UnknownIngredient: If a listed peer does not exist
        DatabaseError: If database operation fails
    """
    if "id" in ingredient_data and ingredient_data["id"] != ingredient_id:
        raise ValidationError(["ID cannot be changed"])

    try:
        with relationship_service.graph_lock():
            with session_scope() as session:
                ingredient = session.get(Ingredient, ingredient_id)
                if ingredient is None:
                    raise IngredientNotFound(ingredient_id)

                merged = {key: getattr(ingredient, key) for key in _FIELDS}
                merged.update(ingredient_data)
                is_valid, errors = validate_ingredient_data(merged)
                if not is_valid:
                    raise ValidationError(errors)

                stock_before = ingredient.in_stock
                for key, value in _normalized(ingredient_data).items():
                    setattr(ingredient, key, value)
                session.flush()

                relations_changed = _apply_relations(session, ingredient_id, ingredient_data)
                stock_changed = ingredient.in_stock != stock_before

                log_operation(
                    logger,
                    operation="update_ingredient",
                    outcome="success",
                    ingredient_id=ingredient_id,
                    fields=sorted(ingredient_data),
                )

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update ingredient {ingredient_id}", e)

    if stock_changed or relations_changed:
        notify_stock_listeners("ingredient_updated", ingredient_id=ingredient_id)
    return ingredient


def set_stock(ingredient_id: int, in_stock: bool) -> Ingredient:
    """
    Mark an ingredient in or out of stock.

    Listeners are notified only when the flag actually changes.

    Raises:
        ValidationError: If in_stock is not a bool
        IngredientNotFound: If ingredient doesn't exist
    """
    if not isinstance(in_stock, bool):
        raise ValidationError(["In Stock: Must be true or false"])

    try:
        with session_scope() as session:
            ingredient = session.get(Ingredient, ingredient_id)
            if ingredient is None:
                raise IngredientNotFound(ingredient_id)
            changed = ingredient.in_stock != in_stock
            ingredient.in_stock = in_stock

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update stock of ingredient {ingredient_id}", e)

    if changed:
        log_operation(
            logger,
            operation="set_stock",
            outcome="success",
            ingredient_id=ingredient_id,
            in_stock=in_stock,
        )
        notify_stock_listeners("stock_changed", ingredient_id=ingredient_id)
    return ingredient


def delete_ingredient(ingredient_id: int) -> bool:
    """
    Delete an ingredient after removing every relation that mentions it.

    Recipe lines that name the ingredient are left in place; those recipes
    become unavailable until the line is edited.

    Returns:
        True if deletion successful

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with relationship_service.graph_lock():
            with session_scope() as session:
                references = relationship_service.remove_ingredient(ingredient_id, session=session)

                ingredient = session.get(Ingredient, ingredient_id)
                recipe_lines = (
                    session.query(RecipeIngredient)
                    .filter(RecipeIngredient.ingredient_id == ingredient_id)
                    .count()
                )
                session.delete(ingredient)

                if recipe_lines:
                    log_operation(
                        logger,
                        operation="delete_ingredient",
                        outcome="recipe_lines_left_dangling",
                        level=logging.WARNING,
                        ingredient_id=ingredient_id,
                        recipe_lines=recipe_lines,
                    )
                log_operation(
                    logger,
                    operation="delete_ingredient",
                    outcome="success",
                    ingredient_id=ingredient_id,
                    references_removed=references,
                )

    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete ingredient {ingredient_id}", e)

    notify_stock_listeners("ingredient_deleted", ingredient_id=ingredient_id)
    return True


# ============================================================================
# Snapshots for the availability resolver
# ============================================================================


def get_in_stock_ids(session=None) -> Set[int]:
    """IDs of every ingredient currently in stock."""

    def _impl(session):
        rows = session.query(Ingredient.id).filter(Ingredient.in_stock.is_(True)).all()
        return {row.id for row in rows}

    if session is not None:
        return _impl(session)
    with session_scope() as session:
        return _impl(session)


def get_relationship_graph(session=None) -> Dict[int, IngredientNode]:
    """Detached ID -> IngredientNode snapshot of every ingredient."""

    def _impl(session):
        return snapshot_graph(session.query(Ingredient).all())

    if session is not None:
        return _impl(session)
    with session_scope() as session:
        return _impl(session)
