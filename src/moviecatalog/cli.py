"""Movie catalog maintenance CLI.

Creates the catalog schema, reports row counts, prints single pages of
movies, people or tags, and runs raw statements against the database.
"""

import asyncio
import sys
from enum import Enum

import structlog
import typer

from moviecatalog.models.entities import Movie, Person, Tag
from moviecatalog.models.enums import CatalogSet
from moviecatalog.services.context import DEFAULT_DB_PATH
from moviecatalog.services.factory import create_context
from moviecatalog.services.pagination import PageOutOfRangeError, Pagination


class PagedSet(str, Enum):
    """Sets that can be listed page by page."""

    MOVIES = "movies"
    PEOPLE = "people"
    TAGS = "tags"


structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=lambda name: structlog.PrintLogger(file=sys.stderr),
    wrapper_class=structlog.BoundLogger,
    context_class=dict,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="moviecatalog",
    help="""Inspect and maintain the movie catalog database.

Examples:

  # Create the schema
  uv run moviecatalog init

  # Show the first page of movies, filtered by numerical id
  uv run moviecatalog page movies 0 --numerical

  # Run a raw statement
  uv run moviecatalog exec 'UPDATE movies SET rating = 0 WHERE rating < 0'""",
    rich_markup_mode="markdown",
)

DbOption = typer.Option(
    DEFAULT_DB_PATH,
    "--db",
    "-d",
    help="Path to the SQLite database file",
)


@app.command()
def init(db: str = DbOption) -> None:
    """Create the catalog tables if they don't exist."""

    async def run() -> None:
        async with create_context(db):
            pass

    asyncio.run(run())
    typer.echo(f"Catalog ready at {db}")


@app.command()
def count(db: str = DbOption) -> None:
    """Show the row count of every catalog set."""

    async def run() -> dict[str, int]:
        async with create_context(db) as context:
            return {catalog_set.value: await context.get_table_rows_count(catalog_set) for catalog_set in CatalogSet}

    for name, rows in asyncio.run(run()).items():
        typer.echo(f"{name}: {rows}")


@app.command()
def page(
    catalog_set: PagedSet = typer.Argument(..., help="Set to list"),
    number: int = typer.Argument(0, help="Zero-based page number"),
    numerical: bool = typer.Option(
        True,
        "--numerical/--materialize",
        help="Filter by numerical id range, or load everything and slice",
    ),
    db: str = DbOption,
) -> None:
    """Print one page of movies, people or tags."""

    async def run() -> tuple[list, int]:
        async with create_context(db) as context:
            pagination = Pagination(context, context.set_for(catalog_set.value))
            items = await pagination.select_page(number, use_numerical_id=numerical)
            return items, await pagination.get_max_page()

    try:
        items, max_page = asyncio.run(run())
    except PageOutOfRangeError as exc:
        logger.error("page_out_of_range", page=exc.page, max_page=exc.max_page)
        typer.echo(str(exc))
        raise typer.Exit(1)

    for item in items:
        typer.echo(_describe(item))
    typer.echo(f"Page {number + 1} of {max_page}")


@app.command(name="exec")
def exec_sql(
    statement: str = typer.Argument(..., help="Raw SQL statement, passed to the database unchanged"),
    db: str = DbOption,
) -> None:
    """Execute a raw statement and print the number of affected rows."""

    async def run() -> int:
        async with create_context(db) as context:
            return await context.execute_sql(statement)

    rows = asyncio.run(run())
    typer.echo(f"{rows} rows affected")


@app.command()
def version() -> None:
    """Show version information."""
    from moviecatalog import __version__

    typer.echo(f"moviecatalog {__version__}")


def _describe(item: Movie | Person | Tag) -> str:
    if isinstance(item, Movie):
        return f"[{item.numerical_id}] {item} ({item.rating:.1f})"
    if isinstance(item, Person):
        return f"[{item.numerical_id}] {item.person_id} - {item.primary_name}"
    return f"[{item.numerical_id}] {item.tag_id} - {item.name}"
