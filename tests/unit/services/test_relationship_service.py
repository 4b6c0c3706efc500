"""Tests for the symmetric substitute/alternative relationship graph."""

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from cocktaildb.models.enums import RelationKind
from cocktaildb.models.ingredient import Ingredient, ingredient_substitutes
from cocktaildb.services import relationship_service, stock_events
from cocktaildb.services.database import session_scope
from cocktaildb.services.exceptions import (
    DatabaseError,
    IngredientNotFound,
    UnknownIngredient,
    ValidationError,
)


def subs(ingredient_id):
    return relationship_service.get_relations(ingredient_id, "substitute")


def alts(ingredient_id):
    return relationship_service.get_relations(ingredient_id, "alternative")


class TestSetRelations:
    """Tests for set_relations()."""

    def test_adds_reverse_edge(self, bar):
        """Setting B as A's substitute also lists A under B."""
        vodka, vanilla = bar["vodka"], bar["vanilla_vodka"]

        relationship_service.set_relations(vanilla.id, "substitute", {vodka.id})

        assert subs(vanilla.id) == {vodka.id}
        assert subs(vodka.id) == {vanilla.id}

    def test_accepts_enum_kind(self, bar):
        """RelationKind members work the same as their string values."""
        relationship_service.set_relations(
            bar["prosecco"].id, RelationKind.ALTERNATIVE, [bar["champagne"].id]
        )

        assert alts(bar["champagne"].id) == {bar["prosecco"].id}

    def test_returns_added_and_removed(self, bar):
        """Summary reports the peers added and removed."""
        a, b, c = bar["gin"].id, bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(a, "substitute", {b})

        summary = relationship_service.set_relations(a, "substitute", {c})

        assert summary == {"added": {c}, "removed": {b}}

    def test_replacement_removes_reverse_edge(self, bar):
        """A peer dropped from the set no longer lists the owner."""
        a, b, c = bar["gin"].id, bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(a, "substitute", {b, c})

        relationship_service.set_relations(a, "substitute", {c})

        assert subs(a) == {c}
        assert subs(b) == set()
        assert subs(c) == {a}

    def test_same_set_twice_is_noop(self, bar):
        """Repeating set_relations with the same set changes nothing."""
        a, b = bar["gin"].id, bar["vodka"].id
        relationship_service.set_relations(a, "substitute", {b})

        summary = relationship_service.set_relations(a, "substitute", {b})

        assert summary == {"added": set(), "removed": set()}
        assert subs(a) == {b}
        assert subs(b) == {a}

    def test_empty_set_clears_both_directions(self, bar):
        """An empty desired set removes the owner from every former peer."""
        a, b, c = bar["gin"].id, bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(a, "alternative", {b, c})

        relationship_service.set_relations(a, "alternative", set())

        assert alts(a) == set()
        assert alts(b) == set()
        assert alts(c) == set()

    def test_peer_keeps_its_other_relations(self, bar):
        """Adding the owner to a peer does not disturb the peer's other peers."""
        a, b, c = bar["gin"].id, bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(b, "substitute", {c})

        relationship_service.set_relations(a, "substitute", {b})

        assert subs(b) == {a, c}
        assert subs(c) == {b}

    def test_kinds_are_independent(self, bar):
        """Substitutes and alternatives are separate graphs."""
        a, b = bar["prosecco"].id, bar["champagne"].id
        relationship_service.set_relations(a, "substitute", {b})

        relationship_service.set_relations(a, "alternative", {b})
        relationship_service.set_relations(a, "substitute", set())

        assert subs(b) == set()
        assert alts(b) == {a}

    def test_cleans_stale_reverse_edge(self, test_db, bar):
        """A one-sided row pointing at the owner is removed when not desired."""
        a, b = bar["gin"].id, bar["vodka"].id
        session = test_db()
        session.execute(ingredient_substitutes.insert().values(ingredient_id=b, substitute_id=a))
        session.commit()

        summary = relationship_service.set_relations(a, "substitute", set())

        assert summary["removed"] == {b}
        assert subs(b) == set()
        assert relationship_service.find_asymmetric_relations() == []

    def test_invalid_kind_raises_validation_error(self, bar):
        """Only substitute and alternative are accepted."""
        with pytest.raises(ValidationError):
            relationship_service.set_relations(bar["gin"].id, "cousin", set())

    def test_self_relation_rejected(self, bar):
        """An ingredient cannot list itself."""
        gin = bar["gin"].id
        with pytest.raises(ValidationError):
            relationship_service.set_relations(gin, "substitute", {gin})
        assert subs(gin) == set()

    def test_missing_owner_raises(self, bar):
        """Unknown owner raises IngredientNotFound."""
        with pytest.raises(IngredientNotFound):
            relationship_service.set_relations(9999, "substitute", {bar["gin"].id})

    def test_unknown_peer_writes_nothing(self, bar):
        """Unknown peers fail the whole call before any write."""
        a, b = bar["gin"].id, bar["vodka"].id
        relationship_service.set_relations(a, "substitute", {b})

        with pytest.raises(UnknownIngredient) as exc:
            relationship_service.set_relations(a, "substitute", {bar["tonic"].id, 777, 778})

        assert exc.value.ingredient_ids == [777, 778]
        assert subs(a) == {b}
        assert subs(b) == {a}
        assert subs(bar["tonic"].id) == set()

    def test_logs_success(self, bar, caplog):
        """Successful mutations log at INFO."""
        with caplog.at_level(logging.INFO, logger="cocktaildb.services"):
            relationship_service.set_relations(bar["gin"].id, "substitute", {bar["vodka"].id})

        assert "set_relations: success" in caplog.text


class TestRemoveIngredient:
    """Tests for remove_ingredient()."""

    def test_removes_all_references(self, bar):
        """Every referrer loses the ID in both kinds."""
        a, b, c = bar["gin"].id, bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(b, "substitute", {a, c})
        relationship_service.set_relations(c, "alternative", {a})

        removed = relationship_service.remove_ingredient(a)

        assert removed == 4
        assert subs(b) == {c}
        assert alts(c) == set()
        assert subs(a) == set()
        assert alts(a) == set()

    def test_finds_one_sided_referrers(self, test_db, bar):
        """Referrers are found in the tables, not via the owner's own list."""
        a, b = bar["gin"].id, bar["vodka"].id
        session = test_db()
        session.execute(ingredient_substitutes.insert().values(ingredient_id=b, substitute_id=a))
        session.commit()

        relationship_service.remove_ingredient(a)

        assert subs(b) == set()

    def test_missing_ingredient_raises(self, test_db):
        """Unknown ingredient raises IngredientNotFound."""
        with pytest.raises(IngredientNotFound):
            relationship_service.remove_ingredient(42)


class TestAudit:
    """Tests for get_relations() and find_asymmetric_relations()."""

    def test_symmetric_after_mixed_operations(self, bar):
        """The graph stays symmetric across a sequence of edits."""
        ids = [ing.id for ing in bar.values()]
        relationship_service.set_relations(ids[0], "substitute", set(ids[1:4]))
        relationship_service.set_relations(ids[2], "substitute", {ids[4], ids[5]})
        relationship_service.set_relations(ids[0], "substitute", {ids[2], ids[6]})
        relationship_service.set_relations(ids[3], "alternative", {ids[0], ids[1]})
        relationship_service.remove_ingredient(ids[2])

        assert relationship_service.find_asymmetric_relations() == []

    def test_reports_one_sided_rows(self, test_db, bar):
        """A row without its mirror is reported."""
        a, b = bar["gin"].id, bar["vodka"].id
        session = test_db()
        session.execute(ingredient_substitutes.insert().values(ingredient_id=a, substitute_id=b))
        session.commit()

        assert relationship_service.find_asymmetric_relations() == [("substitute", a, b)]

    def test_get_relations_missing_ingredient(self, test_db):
        """get_relations raises for unknown ingredient."""
        with pytest.raises(IngredientNotFound):
            relationship_service.get_relations(5, "substitute")

    def test_model_collections_match_tables(self, test_db, bar):
        """Ingredient.substitute_ids reads the same rows."""
        a, b = bar["gin"].id, bar["vodka"].id
        relationship_service.set_relations(a, "substitute", {b})

        session = test_db()
        session.expire_all()
        assert session.get(Ingredient, b).substitute_ids == {a}


class TestRelationListeners:
    """Direct relationship edits tell stock listeners to recompute."""

    def test_set_relations_notifies_after_commit(self, bar):
        vodka, vanilla = bar["vodka"].id, bar["vanilla_vodka"].id
        calls = []
        stock_events.register_stock_listener(calls.append)

        relationship_service.set_relations(vanilla, "substitute", {vodka})

        assert calls == ["relations_changed"]

    def test_unchanged_set_does_not_notify(self, bar):
        vodka, vanilla = bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(vanilla, "substitute", {vodka})
        calls = []
        stock_events.register_stock_listener(calls.append)

        relationship_service.set_relations(vanilla, "substitute", {vodka})

        assert calls == []

    def test_remove_ingredient_notifies(self, bar):
        vodka, vanilla = bar["vodka"].id, bar["vanilla_vodka"].id
        relationship_service.set_relations(vanilla, "substitute", {vodka})
        calls = []
        stock_events.register_stock_listener(calls.append)

        assert relationship_service.remove_ingredient(vodka) == 2

        assert calls == ["relations_removed"]
        assert subs(vanilla) == set()

    def test_remove_ingredient_without_relations_does_not_notify(self, bar):
        calls = []
        stock_events.register_stock_listener(calls.append)

        assert relationship_service.remove_ingredient(bar["gin"].id) == 0

        assert calls == []

    def test_caller_session_leaves_notifying_to_caller(self, bar):
        vodka, vanilla = bar["vodka"].id, bar["vanilla_vodka"].id
        calls = []
        stock_events.register_stock_listener(calls.append)

        with relationship_service.graph_lock():
            with session_scope() as session:
                relationship_service.set_relations(vanilla, "substitute", {vodka}, session=session)

        assert calls == []
        assert subs(vodka) == {vanilla}

    def test_listener_sees_committed_graph(self, bar):
        vodka, vanilla = bar["vodka"].id, bar["vanilla_vodka"].id
        seen = []
        stock_events.register_stock_listener(lambda reason: seen.append(subs(vodka)))

        relationship_service.set_relations(vanilla, "substitute", {vodka})

        assert seen == [{vanilla}]


class TestRelationDatabaseErrors:
    """SQLAlchemy failures surface as DatabaseError."""

    def test_get_relations(self, tableless_session):
        with pytest.raises(DatabaseError) as exc:
            relationship_service.get_relations(1, "substitute", session=tableless_session)
        assert isinstance(exc.value.original_error, SQLAlchemyError)

    def test_find_asymmetric_relations(self, tableless_session):
        with pytest.raises(DatabaseError):
            relationship_service.find_asymmetric_relations(session=tableless_session)
