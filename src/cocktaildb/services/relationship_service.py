"""
Relationship graph service for ingredient substitutes and alternatives.

Each relation kind is an undirected graph over ingredient IDs, stored as
directed rows in an association table with both directions present. This
module is the only code path that mutates those tables, so every write keeps
the two directions in step:

- set_relations(): replace one ingredient's peer set and fix up the peers
- remove_ingredient(): drop every reference to an ingredient before delete

When either call owns its transaction, stock listeners are notified after
the commit if any row changed. With a caller-supplied session, notifying is
left to the caller.

All mutations are serialized by one process-wide re-entrant lock. Callers
that pass their own session must acquire graph_lock() and hold it until
they commit.
"""

import logging
import threading
from typing import Dict, Iterable, List, Set, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError

from ..models.enums import RelationKind
from ..models.ingredient import Ingredient, ingredient_alternatives, ingredient_substitutes
from ..utils.constants import ERROR_INVALID_RELATION_KIND, ERROR_SELF_RELATION
from .database import session_scope
from .exceptions import (
    DatabaseError,
    IngredientNotFound,
    ServiceError,
    UnknownIngredient,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation
from .stock_events import notify_stock_listeners

logger = get_service_logger(__name__)

_graph_lock = threading.RLock()

# kind -> (association table, peer column name, Ingredient collection attribute)
_RELATION_TABLES = {
    RelationKind.SUBSTITUTE: (ingredient_substitutes, "substitute_id", "substitutes"),
    RelationKind.ALTERNATIVE: (ingredient_alternatives, "alternative_id", "alternatives"),
}


def graph_lock() -> threading.RLock:
    """
    Return the lock that serializes relationship mutations.

    Example:
        with graph_lock():
            with session_scope() as session:
                set_relations(1, "substitute", {2}, session=session)
    """
    return _graph_lock


def normalize_kind(kind: Union[RelationKind, str]) -> RelationKind:
    """
    Coerce a relation kind given as enum or string.

    Raises:
        ValidationError: If kind is not substitute or alternative
    """
    if isinstance(kind, RelationKind):
        return kind
    try:
        return RelationKind(str(kind).strip().lower())
    except ValueError:
        raise ValidationError([f"{ERROR_INVALID_RELATION_KIND}, got {kind!r}"])


def _peer_ids_of(session, kind: RelationKind, ingredient_id: int) -> Set[int]:
    """IDs the ingredient lists for this kind, read from the association table."""
    table, peer_column, _ = _RELATION_TABLES[kind]
    rows = session.execute(
        table.select().where(table.c.ingredient_id == ingredient_id)
    ).fetchall()
    return {getattr(row, peer_column) for row in rows}


def _referrer_ids_of(session, kind: RelationKind, ingredient_id: int) -> Set[int]:
    """IDs of every ingredient that lists ingredient_id for this kind."""
    table, peer_column, _ = _RELATION_TABLES[kind]
    rows = session.execute(
        table.select().where(table.c[peer_column] == ingredient_id)
    ).fetchall()
    return {row.ingredient_id for row in rows}


def _load_ingredients(session, ingredient_ids: Iterable[int]) -> Dict[int, Ingredient]:
    ids = set(ingredient_ids)
    if not ids:
        return {}
    found = session.query(Ingredient).filter(Ingredient.id.in_(ids)).all()
    return {ing.id: ing for ing in found}


def set_relations(
    ingredient_id: int,
    kind: Union[RelationKind, str],
    desired_peer_ids: Iterable[int],
    session=None,
) -> Dict[str, Set[int]]:
    """
    Replace an ingredient's substitute or alternative set, keeping it symmetric.

    The diff is computed before anything is written: peers to add are the
    desired IDs not currently listed, peers to remove are those currently
    listed (or still pointing back at the owner) that are not desired. The
    owner is added to every desired peer and removed from every removed
    peer. Calling it again with the same set changes nothing.

    Args:
        ingredient_id: Owner ingredient ID
        kind: RelationKind or "substitute" / "alternative"
        desired_peer_ids: The complete new peer set
        session: Optional SQLAlchemy session (caller must hold graph_lock())

    Returns:
        {"added": set of peer IDs, "removed": set of peer IDs}

    Raises:
        ValidationError: Invalid kind, or the owner listed as its own peer
        IngredientNotFound: Owner does not exist
        UnknownIngredient: One or more desired peers do not exist
        DatabaseError: If database operation fails
    """
    relation_kind = normalize_kind(kind)
    desired = set(desired_peer_ids or ())

    if ingredient_id in desired:
        log_operation(
            logger,
            operation="set_relations",
            outcome="self_relation",
            level=logging.WARNING,
            ingredient_id=ingredient_id,
            kind=relation_kind.value,
        )
        raise ValidationError([ERROR_SELF_RELATION])

    def _impl(session):
        owner = session.get(Ingredient, ingredient_id)
        if owner is None:
            raise IngredientNotFound(ingredient_id)

        peers = _load_ingredients(session, desired)
        missing = desired - set(peers)
        if missing:
            log_operation(
                logger,
                operation="set_relations",
                outcome="unknown_peers",
                level=logging.WARNING,
                ingredient_id=ingredient_id,
                kind=relation_kind.value,
                unknown_ids=sorted(missing),
            )
            raise UnknownIngredient(missing)

        current = _peer_ids_of(session, relation_kind, ingredient_id)
        referrers = _referrer_ids_of(session, relation_kind, ingredient_id)
        to_add = desired - current
        to_remove = (current | referrers) - desired

        _, _, attr = _RELATION_TABLES[relation_kind]
        removed_peers = _load_ingredients(session, to_remove)

        for peer in peers.values():
            getattr(peer, attr).add(owner)
        for peer in removed_peers.values():
            getattr(peer, attr).discard(owner)
        setattr(owner, attr, set(peers.values()))
        session.flush()

        log_operation(
            logger,
            operation="set_relations",
            outcome="success",
            ingredient_id=ingredient_id,
            kind=relation_kind.value,
            added=sorted(to_add),
            removed=sorted(to_remove),
        )
        return {"added": to_add, "removed": to_remove}

    try:
        if session is not None:
            return _impl(session)
        with _graph_lock:
            with session_scope() as session:
                summary = _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to set {relation_kind.value} relations for {ingredient_id}", e)

    if summary["added"] or summary["removed"]:
        notify_stock_listeners(
            "relations_changed", ingredient_id=ingredient_id, kind=relation_kind.value
        )
    return summary


def remove_ingredient(ingredient_id: int, session=None) -> int:
    """
    Remove every relation reference to an ingredient, in both directions.

    Referrers are found by scanning the association tables rather than by
    trusting the ingredient's own lists, so one-sided leftovers are cleaned
    too. Call before deleting the ingredient.

    Args:
        ingredient_id: Ingredient being removed
        session: Optional SQLAlchemy session (caller must hold graph_lock())

    Returns:
        Number of association rows removed across both relation kinds

    Raises:
        IngredientNotFound: If the ingredient does not exist
        DatabaseError: If database operation fails
    """

    def _impl(session):
        owner = session.get(Ingredient, ingredient_id)
        if owner is None:
            raise IngredientNotFound(ingredient_id)

        removed = 0
        for kind, (_, _, attr) in _RELATION_TABLES.items():
            referrers = _load_ingredients(session, _referrer_ids_of(session, kind, ingredient_id))
            for referrer in referrers.values():
                getattr(referrer, attr).discard(owner)
            removed += len(referrers)

            own = getattr(owner, attr)
            removed += len(own)
            own.clear()
        session.flush()

        log_operation(
            logger,
            operation="remove_ingredient",
            outcome="success",
            ingredient_id=ingredient_id,
            references_removed=removed,
        )
        return removed

    try:
        if session is not None:
            return _impl(session)
        with _graph_lock:
            with session_scope() as session:
                removed = _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to remove relations of ingredient {ingredient_id}", e)

    if removed:
        notify_stock_listeners("relations_removed", ingredient_id=ingredient_id)
    return removed


def get_relations(ingredient_id: int, kind: Union[RelationKind, str], session=None) -> Set[int]:
    """
    Get the IDs an ingredient lists for one relation kind.

    Raises:
        ValidationError: Invalid kind
        IngredientNotFound: If the ingredient does not exist
    """
    relation_kind = normalize_kind(kind)

    def _impl(session):
        if session.get(Ingredient, ingredient_id) is None:
            raise IngredientNotFound(ingredient_id)
        return _peer_ids_of(session, relation_kind, ingredient_id)

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to read {relation_kind.value} relations of {ingredient_id}", e)


def find_asymmetric_relations(session=None) -> List[Tuple[str, int, int]]:
    """
    Audit both relation tables for one-sided rows.

    Returns:
        Sorted (kind, a, b) tuples where a lists b but b does not list a;
        empty when the graph is symmetric.
    """

    def _impl(session):
        problems = []
        for kind, (table, peer_column, _) in _RELATION_TABLES.items():
            rows = session.execute(table.select()).fetchall()
            pairs = {(row.ingredient_id, getattr(row, peer_column)) for row in rows}
            for a, b in pairs:
                if (b, a) not in pairs:
                    problems.append((kind.value, a, b))
        problems.sort()
        if problems:
            log_operation(
                logger,
                operation="find_asymmetric_relations",
                outcome="asymmetric",
                level=logging.WARNING,
                count=len(problems),
            )
        return problems

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to audit relation tables", e)
