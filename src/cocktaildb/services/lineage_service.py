"""
Recipe lineage service for the variation-of forest.

A recipe may name one parent recipe it is a variation of. This service keeps
that pointer structure a forest:

- validate_variation(): reject self-references, unknown parents and cycles
- get_lineage() / get_variations() / get_variation_tree(): navigation
- find_lineage_cycles(): audit for cycles already present in stored data

Validation and the write that follows it must run under lineage_lock() in
one transaction; otherwise two concurrent edits could each pass the walk
and together close a loop.
"""

import logging
import threading
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models.recipe import Recipe
from .database import session_scope
from .exceptions import (
    CircularReferenceError,
    DatabaseError,
    RecipeNotFound,
    SelfReferenceError,
    ServiceError,
    UnknownParent,
)
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

_lineage_lock = threading.RLock()


def lineage_lock() -> threading.RLock:
    """Return the lock that serializes validate-then-persist of variation_of_id."""
    return _lineage_lock


def _parent_of(session, recipe_id: int) -> Optional[int]:
    return (
        session.query(Recipe.variation_of_id).filter(Recipe.id == recipe_id).scalar()
    )


def _exists(session, recipe_id: int) -> bool:
    return session.query(Recipe.id).filter(Recipe.id == recipe_id).first() is not None


def validate_variation(
    recipe_id: Optional[int], proposed_parent_id: Optional[int], session=None
) -> bool:
    """
    Check that recipe_id may become a variation of proposed_parent_id.

    Walks the ancestor chain upward from the proposed parent. Reaching
    recipe_id means the assignment would close a cycle. Reaching a node
    seen earlier in the walk means stored data already holds a cycle that
    does not pass through recipe_id; that is logged and tolerated.

    Args:
        recipe_id: Recipe being edited (None for a recipe not yet stored)
        proposed_parent_id: New parent, or None to make it a root
        session: Optional SQLAlchemy session

    Returns:
        True if the assignment is allowed

    Raises:
        SelfReferenceError: recipe_id equals proposed_parent_id
        UnknownParent: Proposed parent does not exist
        CircularReferenceError: Assignment would create a cycle
        DatabaseError: If database operation fails
    """
    if proposed_parent_id is None:
        return True

    if recipe_id is not None and recipe_id == proposed_parent_id:
        log_operation(
            logger,
            operation="validate_variation",
            outcome="self_reference",
            level=logging.WARNING,
            recipe_id=recipe_id,
        )
        raise SelfReferenceError(recipe_id)

    def _impl(session):
        if not _exists(session, proposed_parent_id):
            log_operation(
                logger,
                operation="validate_variation",
                outcome="unknown_parent",
                level=logging.WARNING,
                recipe_id=recipe_id,
                parent_id=proposed_parent_id,
            )
            raise UnknownParent(proposed_parent_id)

        chain: List[int] = []
        visited = set()
        current = proposed_parent_id
        while current is not None:
            if current == recipe_id:
                chain.append(current)
                log_operation(
                    logger,
                    operation="validate_variation",
                    outcome="circular_reference",
                    level=logging.WARNING,
                    recipe_id=recipe_id,
                    parent_id=proposed_parent_id,
                    chain=chain,
                )
                raise CircularReferenceError(recipe_id, proposed_parent_id, chain)
            if current in visited:
                log_operation(
                    logger,
                    operation="validate_variation",
                    outcome="preexisting_cycle",
                    level=logging.WARNING,
                    recipe_id=recipe_id,
                    parent_id=proposed_parent_id,
                    cycle_at=current,
                )
                break
            visited.add(current)
            chain.append(current)
            current = _parent_of(session, current)

        return True

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(
            f"Failed to validate {recipe_id} as a variation of {proposed_parent_id}", e
        )


def get_lineage(recipe_id: int, session=None) -> List[int]:
    """
    Get a recipe's ancestor IDs, nearest first.

    Stops early if stored data loops back on itself.

    Raises:
        RecipeNotFound: If recipe_id doesn't exist
    """

    def _impl(session):
        if not _exists(session, recipe_id):
            raise RecipeNotFound(recipe_id)

        ancestors: List[int] = []
        seen = {recipe_id}
        current = _parent_of(session, recipe_id)
        while current is not None and current not in seen:
            seen.add(current)
            ancestors.append(current)
            current = _parent_of(session, current)
        return ancestors

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to read lineage of recipe {recipe_id}", e)


def get_variations(recipe_id: int, session=None) -> List[Dict]:
    """
    Get the direct variations of a recipe.

    Args:
        recipe_id: Parent recipe ID
        session: Optional SQLAlchemy session

    Returns:
        List of recipe dictionaries, sorted by name

    Raises:
        RecipeNotFound: If recipe_id doesn't exist
    """

    def _impl(session):
        if not _exists(session, recipe_id):
            raise RecipeNotFound(recipe_id)
        results = (
            session.query(Recipe)
            .filter(Recipe.variation_of_id == recipe_id)
            .order_by(Recipe.name)
            .all()
        )
        return [r.to_dict() for r in results]

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve variations of recipe {recipe_id}", e)


def get_variation_tree(recipe_id: int, session=None) -> Dict:
    """
    Build the nested variation tree rooted at a recipe.

    Returns:
        {"id", "name", "variations": [subtrees...]}; a node already on the
        current path is not expanded again.

    Raises:
        RecipeNotFound: If recipe_id doesn't exist
    """

    def _impl(session):
        root = session.get(Recipe, recipe_id)
        if root is None:
            raise RecipeNotFound(recipe_id)

        rows = session.query(Recipe.id, Recipe.name, Recipe.variation_of_id).all()
        names = {row.id: row.name for row in rows}
        children: Dict[int, List[int]] = {}
        for row in rows:
            if row.variation_of_id is not None:
                children.setdefault(row.variation_of_id, []).append(row.id)

        def build(node_id: int, path: set) -> Dict:
            kids = sorted(children.get(node_id, []), key=lambda i: (names[i], i))
            return {
                "id": node_id,
                "name": names[node_id],
                "variations": [build(k, path | {k}) for k in kids if k not in path],
            }

        return build(recipe_id, {recipe_id})

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to build variation tree for recipe {recipe_id}", e)


def find_lineage_cycles(session=None) -> List[List[int]]:
    """
    Report cycles already present in stored variation_of_id pointers.

    Each cycle is listed once, rotated to start at its smallest ID. Nothing
    is repaired.
    """

    def _impl(session):
        parent = {
            row.id: row.variation_of_id
            for row in session.query(Recipe.id, Recipe.variation_of_id).all()
        }
        cycles: List[List[int]] = []
        done = set()
        for start in sorted(parent):
            path: List[int] = []
            on_path = {}
            current = start
            while current is not None and current in parent and current not in done:
                if current in on_path:
                    cycle = path[on_path[current]:]
                    pivot = cycle.index(min(cycle))
                    cycles.append(cycle[pivot:] + cycle[:pivot])
                    break
                on_path[current] = len(path)
                path.append(current)
                current = parent[current]
            done.update(path)

        if cycles:
            log_operation(
                logger,
                operation="find_lineage_cycles",
                outcome="cycles_found",
                level=logging.WARNING,
                cycle_count=len(cycles),
            )
        return cycles

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to audit recipe lineage", e)
