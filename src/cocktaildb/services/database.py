"""
Database connection and session management for the Cocktail Catalog.

One engine and one sessionmaker are shared per process. Every service opens
its unit of work through session_scope(), which commits on success and rolls
back on any exception, so a failed relation or lineage edit writes nothing.
"""

from typing import Optional
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..utils.config import get_config
from ..models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    Set SQLite pragmas on every new connection.

    Foreign keys must be on for variation_of_id ON DELETE SET NULL and the
    relation tables' ON DELETE CASCADE to take effect.
    """
    module = type(dbapi_connection).__module__
    if "sqlite" not in module:
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Build an engine for the catalog database.

    In-memory URLs get a single shared connection so every session sees the
    same tables. File URLs wait up to config.db_timeout seconds on a locked
    database instead of failing at once.
    """
    config = get_config()
    if database_url is None:
        database_url = config.database_url
    if echo is None:
        echo = config.sql_echo

    logger.info(f"Opening catalog database: {database_url}")

    if ":memory:" in database_url or "mode=memory" in database_url:
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": config.db_timeout},
        )
    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    return engine


def _register_models() -> None:
    # Mapped classes must be imported before create_all() or drop_all()
    from ..models import ingredient, recipe  # noqa: F401


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing catalog tables. Existing tables are left alone."""
    if engine is None:
        engine = get_engine()

    _register_models()
    Base.metadata.create_all(engine)
    logger.info("Catalog tables ready")


def get_engine(force_recreate: bool = False) -> Engine:
    """
    Return the shared engine, building it on first use (or again when
    force_recreate is set).
    """
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()

    return _engine


def get_session_factory() -> sessionmaker:
    """Return the shared sessionmaker. Objects stay readable after commit."""
    global _SessionFactory

    if _SessionFactory is None:
        engine = get_engine()
        _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """Open a bare session. The caller owns commit, rollback and close."""
    return get_session_factory()()


@contextmanager
def session_scope():
    """
    Run one unit of work: commit when the block exits cleanly, roll back
    and re-raise otherwise. The session is closed either way.

    Example:
        with session_scope() as session:
            session.add(Ingredient(name="Vodka", ingredient_type="spirit"))
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def database_exists() -> bool:
    """Return True if the configured SQLite file is present."""
    return get_config().database_exists()


def verify_database() -> bool:
    """
    Return True if the engine connects and the ingredients and recipes
    tables are present.
    """
    try:
        engine = get_engine()
        tables = inspect(engine).get_table_names()
    except Exception as e:
        logger.error(f"Could not inspect catalog database: {e}")
        return False

    return {"ingredients", "recipes"}.issubset(tables)


def reset_database(confirm: bool = False) -> None:
    """
    Drop and recreate every catalog table, discarding all ingredients,
    relations and recipes.

    Raises:
        ValueError: If confirm is not True
    """
    if not confirm:
        raise ValueError("reset_database() deletes the whole catalog; pass confirm=True")

    logger.warning("Resetting catalog database")
    engine = get_engine()
    _register_models()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Catalog tables recreated")


def close_connections() -> None:
    """Dispose of the shared engine and forget the sessionmaker."""
    global _engine, _SessionFactory

    _SessionFactory = None

    if _engine is not None:
        _engine.dispose()
        _engine = None

    logger.info("Catalog database connections closed")


def initialize_app_database() -> None:
    """
    Prepare the catalog database for use.

    The data directory is only created for the configured file location; an
    explicit COCKTAILDB_DATABASE_URL is used as given.
    """
    config = get_config()

    if not config.has_database_url_override:
        config.ensure_directories()
        if not config.database_exists():
            logger.info(f"Creating new database at: {config.database_path}")
        else:
            logger.info(f"Using existing database at: {config.database_path}")

    init_database(get_engine())
    if not verify_database():
        logger.warning("Catalog tables missing after initialization")
