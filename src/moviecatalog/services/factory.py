"""Factory functions for creating catalog contexts.

Provides a production factory backed by a database file and a test factory
backed by in-memory SQLite for fast, isolated testing.
"""

from pathlib import Path

import structlog

from moviecatalog.services.context import DEFAULT_DB_PATH, CatalogContext, create_async_engine_from_path


def create_context(db_path: str | Path = DEFAULT_DB_PATH) -> CatalogContext:
    """Create a CatalogContext over a SQLite database file.

    The file and its tables are created when the context is opened, if they
    don't already exist. The context owns its engine and disposes it on close.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An unopened CatalogContext; use it with ``async with``.
    """
    logger = structlog.get_logger(__name__)

    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine_from_path(str(path))
    return CatalogContext(engine=engine, logger=logger, owns_engine=True)


def create_test_context() -> CatalogContext:
    """Create a CatalogContext over a private in-memory database.

    Each call gets independent storage, so tests don't interfere.
    """
    logger = structlog.get_logger(__name__)

    engine = create_async_engine_from_path(":memory:")
    return CatalogContext(engine=engine, logger=logger, owns_engine=True)
