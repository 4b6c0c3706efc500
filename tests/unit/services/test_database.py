"""Tests for engine creation and session management."""

import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

import cocktaildb.services.database as db_module
from cocktaildb.models.ingredient import Ingredient
from cocktaildb.services.database import create_database_engine, init_database, session_scope


class TestEngine:
    """Tests for create_database_engine()."""

    def test_memory_engine_uses_static_pool(self):
        engine = create_database_engine("sqlite:///:memory:", echo=False)
        assert isinstance(engine.pool, StaticPool)
        engine.dispose()

    def test_foreign_keys_enabled(self):
        engine = create_database_engine("sqlite:///:memory:", echo=False)
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        engine.dispose()

    def test_init_database_creates_tables(self, tmp_path):
        engine = create_database_engine(f"sqlite:///{tmp_path / 'c.db'}", echo=False)
        init_database(engine)
        init_database(engine)
        with engine.connect() as conn:
            names = {
                row[0]
                for row in conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            }
        assert {"ingredients", "recipes", "recipe_ingredients",
                "ingredient_substitutes", "ingredient_alternatives"} <= names
        engine.dispose()


class TestSessionScope:
    """Tests for session_scope()."""

    def test_commits_on_success(self, test_db):
        with session_scope() as session:
            session.add(Ingredient(name="Soda", ingredient_type="soda"))

        with session_scope() as session:
            assert session.query(Ingredient).count() == 1

    def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Ingredient(name="Soda", ingredient_type="soda"))
                session.flush()
                raise RuntimeError("abort")

        with session_scope() as session:
            assert session.query(Ingredient).count() == 0


class TestResetDatabase:
    """Tests for reset_database()."""

    def test_requires_confirmation(self):
        with pytest.raises(ValueError):
            db_module.reset_database()

    def test_reset_and_close(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COCKTAILDB_DATABASE_URL", f"sqlite:///{tmp_path / 'reset.db'}")
        db_module.close_connections()
        try:
            db_module.initialize_app_database()
            assert db_module.verify_database()
            db_module.reset_database(confirm=True)
            assert db_module.verify_database()
        finally:
            db_module.close_connections()
