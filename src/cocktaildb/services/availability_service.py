"""
Availability service: which recipes can be made from what is in stock.

Each recipe lands in at most one tier, checked in priority order:

1. exact: every required ingredient is in stock
2. with_substitutes: every missing ingredient has an in-stock substitute
3. with_alternatives: every missing ingredient has an in-stock alternative

A recipe no tier covers is unavailable. The alternative check does not
depend on the substitute check; a missing ingredient with no substitutes can
still be covered by an alternative.

The classify functions are pure and never raise on malformed data; a recipe
that references an ingredient missing from the graph is unavailable. The
store-backed wrappers at the bottom read one snapshot in one session and
then classify it.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from sqlalchemy.exc import SQLAlchemyError

from ..models.enums import AvailabilityTier
from ..models.ingredient import Ingredient
from ..models.recipe import Recipe
from .database import session_scope
from .dto import (
    AvailabilityResult,
    IngredientImpact,
    IngredientNode,
    RecipeAvailabilityDetail,
    RecipeSnapshot,
    snapshot_graph,
)
from .exceptions import DatabaseError, RecipeNotFound
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

# Lower is better
_TIER_RANK = {
    AvailabilityTier.EXACT: 0,
    AvailabilityTier.WITH_SUBSTITUTES: 1,
    AvailabilityTier.WITH_ALTERNATIVES: 2,
    AvailabilityTier.UNAVAILABLE: 3,
}


def _as_id_set(values) -> Optional[Set[int]]:
    """Return values as a set, or None if they are missing or not a usable collection."""
    if values is None:
        return None
    try:
        return set(values)
    except TypeError:
        return None


def _covering_ids(node: IngredientNode, attr: str, stock: Set[int]) -> List[int]:
    peers = _as_id_set(getattr(node, attr, None)) or set()
    return sorted(peer for peer in peers if peer in stock)


def _missing(required: Set[int], stock: Set[int]) -> Set[int]:
    return {ingredient_id for ingredient_id in required if ingredient_id not in stock}


def classify_recipe(
    ingredient_ids: Iterable[int],
    in_stock_ids: Iterable[int],
    graph: Mapping[int, IngredientNode],
) -> AvailabilityTier:
    """
    Classify one recipe by the IDs it requires.

    Args:
        ingredient_ids: Ingredient IDs referenced by the recipe's lines
        in_stock_ids: IDs currently in stock
        graph: Ingredient ID -> IngredientNode snapshot

    Returns:
        The recipe's AvailabilityTier (UNAVAILABLE when no tier applies)
    """
    required = _as_id_set(ingredient_ids)
    stock = _as_id_set(in_stock_ids) or set()
    if required is None or graph is None:
        return AvailabilityTier.UNAVAILABLE

    if any(ingredient_id not in graph for ingredient_id in required):
        return AvailabilityTier.UNAVAILABLE

    missing = _missing(required, stock)
    if not missing:
        return AvailabilityTier.EXACT

    if all(_covering_ids(graph[m], "substitute_ids", stock) for m in missing):
        return AvailabilityTier.WITH_SUBSTITUTES
    if all(_covering_ids(graph[m], "alternative_ids", stock) for m in missing):
        return AvailabilityTier.WITH_ALTERNATIVES
    return AvailabilityTier.UNAVAILABLE


def classify(
    recipes: Sequence,
    in_stock_ids: Iterable[int],
    graph: Mapping[int, IngredientNode],
) -> AvailabilityResult:
    """
    Partition recipes into the exact, with_substitutes and with_alternatives tiers.

    Args:
        recipes: Objects exposing ``ingredient_ids`` (Recipe models,
            RecipeSnapshot or any look-alike)
        in_stock_ids: IDs currently in stock
        graph: Ingredient ID -> IngredientNode snapshot

    Returns:
        AvailabilityResult; each list keeps the input order
    """
    result = AvailabilityResult()
    stock = _as_id_set(in_stock_ids) or set()

    for recipe in recipes or ():
        tier = classify_recipe(getattr(recipe, "ingredient_ids", None), stock, graph)
        if tier is AvailabilityTier.EXACT:
            result.exact.append(recipe)
        elif tier is AvailabilityTier.WITH_SUBSTITUTES:
            result.with_substitutes.append(recipe)
        elif tier is AvailabilityTier.WITH_ALTERNATIVES:
            result.with_alternatives.append(recipe)

    log_operation(
        logger,
        operation="classify",
        outcome="success",
        level=logging.DEBUG,
        **result.counts(),
    )
    return result


def get_available(
    recipes: Sequence,
    in_stock_ids: Iterable[int],
    graph: Optional[Mapping[int, IngredientNode]] = None,
) -> List:
    """
    Return only the recipes whose ingredients are all in stock.

    When graph is given, a recipe requiring an ID the graph does not hold is
    left out, exactly as classify() would. Without it, in_stock_ids alone
    decides.
    """
    if graph is not None:
        return [
            recipe
            for recipe in recipes or ()
            if classify_recipe(getattr(recipe, "ingredient_ids", None), in_stock_ids, graph)
            is AvailabilityTier.EXACT
        ]

    stock = _as_id_set(in_stock_ids) or set()
    available = []
    for recipe in recipes or ():
        required = _as_id_set(getattr(recipe, "ingredient_ids", None))
        if required is not None and not _missing(required, stock):
            available.append(recipe)
    return available


def explain_recipe(
    recipe,
    in_stock_ids: Iterable[int],
    graph: Mapping[int, IngredientNode],
) -> RecipeAvailabilityDetail:
    """
    Explain a recipe's tier.

    Every missing ingredient that has an in-stock substitute (or alternative)
    is mapped to the lowest such ID, whichever tier the recipe ends up in.
    """
    ingredient_ids = getattr(recipe, "ingredient_ids", None)
    tier = classify_recipe(ingredient_ids, in_stock_ids, graph)
    detail = RecipeAvailabilityDetail(recipe_id=getattr(recipe, "id", None), tier=tier)

    required = _as_id_set(ingredient_ids)
    stock = _as_id_set(in_stock_ids) or set()
    if required is None or graph is None:
        return detail

    detail.missing_ids = sorted(_missing(required, stock))
    for missing_id in detail.missing_ids:
        node = graph.get(missing_id)
        if node is None:
            continue
        substitutes = _covering_ids(node, "substitute_ids", stock)
        if substitutes:
            detail.substitutions[missing_id] = substitutes[0]
        alternatives = _covering_ids(node, "alternative_ids", stock)
        if alternatives:
            detail.alternatives[missing_id] = alternatives[0]
    return detail


def rank_ingredient_impact(
    recipes: Sequence,
    in_stock_ids: Iterable[int],
    graph: Mapping[int, IngredientNode],
) -> List[IngredientImpact]:
    """
    Rank out-of-stock ingredients by how many recipes stocking them would unlock.

    For each out-of-stock ingredient in the graph, every recipe is
    re-classified with that one ingredient added to stock; a recipe counts
    toward the tier it moves into when that tier is better than its current
    one.

    Returns:
        IngredientImpact list sorted by total unlocked (descending), then
        name and ID
    """
    stock = _as_id_set(in_stock_ids) or set()
    recipes = list(recipes or ())
    baseline = [
        classify_recipe(getattr(r, "ingredient_ids", None), stock, graph) for r in recipes
    ]

    impacts = []
    for ingredient_id, node in (graph or {}).items():
        if ingredient_id in stock:
            continue
        impact = IngredientImpact(
            ingredient_id=ingredient_id, ingredient_name=getattr(node, "name", "")
        )
        trial_stock = stock | {ingredient_id}
        for recipe, before in zip(recipes, baseline):
            after = classify_recipe(getattr(recipe, "ingredient_ids", None), trial_stock, graph)
            if _TIER_RANK[after] >= _TIER_RANK[before]:
                continue
            if after is AvailabilityTier.EXACT:
                impact.newly_exact += 1
            elif after is AvailabilityTier.WITH_SUBSTITUTES:
                impact.newly_with_substitutes += 1
            else:
                impact.newly_with_alternatives += 1
        impacts.append(impact)

    impacts.sort(key=lambda i: (-i.total, i.ingredient_name or "", i.ingredient_id))
    return impacts


# ============================================================================
# Store-backed wrappers
# ============================================================================


def _load_snapshot(session):
    """Read ingredients and recipes once and detach them into plain snapshots."""
    ingredients = session.query(Ingredient).all()
    graph = snapshot_graph(ingredients)
    in_stock_ids = {node.id for node in graph.values() if node.in_stock}
    recipes = session.query(Recipe).order_by(Recipe.name, Recipe.id).all()
    return recipes, in_stock_ids, graph


def get_recipe_availability(session=None) -> Dict[str, List[Dict]]:
    """
    Classify every stored recipe against the current stock.

    Returns:
        {"exact": [...], "with_substitutes": [...], "with_alternatives": [...]}
        holding recipe dictionaries ordered by name
    """

    def _impl(session):
        recipes, in_stock_ids, graph = _load_snapshot(session)
        by_id = {r.id: r for r in recipes}
        snapshots = [RecipeSnapshot.from_model(r) for r in recipes]
        result = classify(snapshots, in_stock_ids, graph)
        return {
            AvailabilityTier.EXACT.value: [
                by_id[s.id].to_dict(include_relationships=True) for s in result.exact
            ],
            AvailabilityTier.WITH_SUBSTITUTES.value: [
                by_id[s.id].to_dict(include_relationships=True) for s in result.with_substitutes
            ],
            AvailabilityTier.WITH_ALTERNATIVES.value: [
                by_id[s.id].to_dict(include_relationships=True) for s in result.with_alternatives
            ],
        }

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to compute recipe availability", e)


def get_available_recipes(session=None) -> List[Dict]:
    """Get the recipes that can be made exactly as written."""

    def _impl(session):
        recipes, in_stock_ids, graph = _load_snapshot(session)
        return [
            r.to_dict(include_relationships=True)
            for r in get_available(recipes, in_stock_ids, graph)
        ]

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve available recipes", e)


def get_availability_details(recipe_id: int, session=None) -> RecipeAvailabilityDetail:
    """
    Explain one stored recipe's tier against the current stock.

    Raises:
        RecipeNotFound: If recipe_id doesn't exist
    """

    def _impl(session):
        recipe = session.get(Recipe, recipe_id)
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        graph = snapshot_graph(session.query(Ingredient).all())
        in_stock_ids = {node.id for node in graph.values() if node.in_stock}
        return explain_recipe(RecipeSnapshot.from_model(recipe), in_stock_ids, graph)

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to explain availability of recipe {recipe_id}", e)


def get_ingredient_impact(limit: Optional[int] = None, session=None) -> List[IngredientImpact]:
    """
    Rank out-of-stock ingredients by the recipes they would unlock.

    Args:
        limit: Keep only the first N entries
        session: Optional SQLAlchemy session
    """

    def _impl(session):
        recipes, in_stock_ids, graph = _load_snapshot(session)
        snapshots = [RecipeSnapshot.from_model(r) for r in recipes]
        impacts = rank_ingredient_impact(snapshots, in_stock_ids, graph)
        return impacts[:limit] if limit is not None else impacts

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as session:
            return _impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to compute ingredient impact", e)
