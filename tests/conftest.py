"""Pytest configuration and fixtures for service layer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from cocktaildb.models.base import Base
from cocktaildb.services import ingredient_service, stock_events
from cocktaildb.utils.config import reset_config


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import cocktaildb.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


@pytest.fixture
def tableless_session():
    """A session on an in-memory database with no tables; every query fails."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture(autouse=True)
def clear_stock_listeners():
    """Stock listeners are module state; keep tests from leaking them."""
    yield
    stock_events.clear_stock_listeners()


@pytest.fixture(autouse=True)
def clean_config():
    """Drop the cached Config so env-var changes take effect per test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_ingredient(test_db):
    """Factory creating ingredients through the service layer."""

    def _make(name, ingredient_type="other", in_stock=False, abv=0, **extra):
        data = {
            "name": name,
            "ingredient_type": ingredient_type,
            "in_stock": in_stock,
            "abv": abv,
        }
        data.update(extra)
        return ingredient_service.create_ingredient(data)

    return _make


@pytest.fixture
def bar(make_ingredient):
    """A small bar.

    Creates:
    - Vodka (spirit, 40%, in stock)
    - Vanilla Vodka (spirit, 35%, out of stock)
    - Champagne (wine, 12%, in stock)
    - Prosecco (wine, 11%, out of stock)
    - Lime Juice (juice, in stock)
    - Tonic (soda, in stock)
    - Gin (spirit, 42%, out of stock)
    """
    return {
        "vodka": make_ingredient("Vodka", "spirit", in_stock=True, abv=40),
        "vanilla_vodka": make_ingredient("Vanilla Vodka", "spirit", in_stock=False, abv=35),
        "champagne": make_ingredient("Champagne", "wine", in_stock=True, abv=12),
        "prosecco": make_ingredient("Prosecco", "wine", in_stock=False, abv=11),
        "lime": make_ingredient("Lime Juice", "juice", in_stock=True),
        "tonic": make_ingredient("Tonic", "soda", in_stock=True),
        "gin": make_ingredient("Gin", "spirit", in_stock=False, abv=42),
    }
