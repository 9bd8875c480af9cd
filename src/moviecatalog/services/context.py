"""Persistence context: a unit of work over the catalog's SQLite database.

Uses SQLAlchemy's native async support with aiosqlite. A CatalogContext owns
one AsyncSession for its whole lifetime and is meant for a single logical
request; it is not safe to share between concurrent tasks. Open it with
``async with`` so the session is released on every exit path.
"""

from types import TracebackType
from typing import Any

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from moviecatalog.models.entities import Movie, Person, Tag
from moviecatalog.models.enums import CatalogSet
from moviecatalog.models.tables import (
    LINK_MAPPINGS,
    MOVIES_TABLE,
    ActorsMoviesLink,
    DirectorsMoviesLink,
    MovieRecord,
    PersonRecord,
    TagRecord,
    TagsMoviesLink,
)
from moviecatalog.services import queries

DEFAULT_DB_PATH = "movies.db"

_RECORD_TO_ENTITY: dict[type[SQLModel], type[Movie] | type[Person] | type[Tag]] = {
    MovieRecord: Movie,
    PersonRecord: Person,
    TagRecord: Tag,
}

_RELATIONSHIP_FIELDS = {"titles", "actors", "directors", "tags", "movies"}


class MappingError(RuntimeError):
    """Raised when a link table's foreign keys do not point where they must."""


def verify_link_mapping(mappings: dict[type[SQLModel], tuple[str, str]] = LINK_MAPPINGS) -> None:
    """Check every link table references its role table and the movies table.

    Args:
        mappings: Link record -> (role column, expected role table name).

    Raises:
        MappingError: If a column is missing or references the wrong table.
    """
    for link, (role_column, role_table) in mappings.items():
        table = link.__table__
        for column_name, expected in ((role_column, role_table), ("movie_id", MOVIES_TABLE)):
            if column_name not in table.c:
                raise MappingError(f"{table.name}.{column_name} is not mapped")
            targets = {fk.column.table.name for fk in table.c[column_name].foreign_keys}
            if targets != {expected}:
                raise MappingError(
                    f"{table.name}.{column_name} must reference {expected}, found {sorted(targets) or 'nothing'}"
                )


class CatalogContext:
    """Owns the catalog's six sets and the queries and commands issued on them.

    Accepts an AsyncEngine via dependency injection so tests can run on an
    in-memory database. When ``owns_engine`` is true the engine is disposed
    on close.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        logger: structlog.stdlib.BoundLogger | None = None,
        owns_engine: bool = False,
    ) -> None:
        self._engine = engine
        self._logger = logger or structlog.get_logger(__name__)
        self._owns_engine = owns_engine
        self._session: AsyncSession | None = None
        self._closed = False

    async def __aenter__(self) -> "CatalogContext":
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def open(self) -> None:
        """Verify the mapping, create missing tables and start the session."""
        if self._closed:
            raise RuntimeError("CatalogContext is closed")
        if self._session is not None:
            return
        await self.initialize_schema()
        self._session = AsyncSession(self._engine, expire_on_commit=False)
        self._logger.debug("catalog_context_opened")

    async def initialize_schema(self) -> None:
        """Create database tables if they don't exist. Existing tables are left untouched."""
        verify_link_mapping()
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._logger.info("schema_initialized")

    async def close(self) -> None:
        """Release the session. Safe to call without prior operations and more than once."""
        if self._closed:
            return
        self._closed = True
        if self._session is not None:
            await self._session.close()
            self._session = None
        if self._owns_engine:
            await self._engine.dispose()
        self._logger.debug("catalog_context_closed")

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("CatalogContext not open. Call open() first.")
        return self._session

    # Owned sets. Each is a fresh, unexecuted statement ordered by stable id.

    @property
    def movies(self) -> Select:
        return select(MovieRecord).order_by(MovieRecord.movie_id)

    @property
    def people(self) -> Select:
        return select(PersonRecord).order_by(PersonRecord.person_id)

    @property
    def tags(self) -> Select:
        return select(TagRecord).order_by(TagRecord.tag_id)

    @property
    def actors_movies(self) -> Select:
        return select(ActorsMoviesLink).order_by(ActorsMoviesLink.actors_movies_link_id)

    @property
    def directors_movies(self) -> Select:
        return select(DirectorsMoviesLink).order_by(DirectorsMoviesLink.directors_movies_link_id)

    @property
    def tags_movies(self) -> Select:
        return select(TagsMoviesLink).order_by(TagsMoviesLink.tags_movies_link_id)

    def set_for(self, catalog_set: CatalogSet | str) -> Select:
        return getattr(self, CatalogSet(catalog_set).value)

    # Materialization.

    async def count(self, statement: Select) -> int:
        """Return the number of rows the statement would produce."""
        count_statement = select(func.count()).select_from(statement.order_by(None).subquery())
        return int(await self.session.scalar(count_statement) or 0)

    async def get_table_rows_count(self, catalog_set: CatalogSet | str | Select) -> int:
        statement = catalog_set if isinstance(catalog_set, Select) else self.set_for(catalog_set)
        return await self.count(statement)

    async def scalar(self, statement: Select) -> Any:
        return await self.session.scalar(statement)

    async def fetch_all(self, statement: Select) -> list[Any]:
        """Execute the statement and return its first column, typically table records."""
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def fetch_entities(self, statement: Select) -> list[Any]:
        """Execute the statement and convert movie, person and tag records to domain entities.

        Records without a domain counterpart (link records) are returned as-is.
        """
        return [self._record_to_entity(record) for record in await self.fetch_all(statement)]

    async def execute_sql(self, statement: str) -> int:
        """Run a raw data-manipulation statement and return the affected row count.

        The statement goes to the driver unchanged: no parameter binding and no
        validation. Errors propagate to the caller as raised by the driver.
        """
        conn = await self.session.connection()
        result = await conn.exec_driver_sql(statement)
        rowcount = result.rowcount
        await self.session.commit()
        self.session.expire_all()
        self._logger.debug("raw_sql_executed", rowcount=rowcount)
        return rowcount

    # Data import.

    async def add_person(self, person: Person) -> Person:
        """Persist a person and return it with its assigned ids.

        A missing numerical_id becomes one past the highest in the table.
        A failed insert is rolled back and the context stays usable.

        Raises:
            sqlalchemy.exc.IntegrityError: If an explicit id is already taken.
        """
        record = PersonRecord.model_validate(
            await self._with_numerical_id(person.model_dump(exclude=_RELATIONSHIP_FIELDS), PersonRecord)
        )
        await self._add_record(record)
        self._logger.debug("person_added", person_id=record.person_id)
        return Person.model_validate(record.model_dump())

    async def add_tag(self, tag: Tag) -> Tag:
        """Persist a tag and return it with its assigned ids, like add_person()."""
        record = TagRecord.model_validate(
            await self._with_numerical_id(tag.model_dump(exclude=_RELATIONSHIP_FIELDS), TagRecord)
        )
        await self._add_record(record)
        self._logger.debug("tag_added", tag_id=record.tag_id)
        return Tag.model_validate(record.model_dump())

    async def add_movie(self, movie: Movie) -> Movie:
        """Persist a movie together with links to its actors, directors and tags.

        Related people and tags must already be saved. Ids are assigned as in
        add_person(); on failure nothing is written.

        Raises:
            ValueError: If a related person or tag has no stable id yet.
            sqlalchemy.exc.IntegrityError: If an explicit id is already taken.
        """
        related = [*movie.actors, *movie.directors]
        if any(person.person_id is None for person in related) or any(tag.tag_id is None for tag in movie.tags):
            raise ValueError("related people and tags must be saved before the movie")

        record = MovieRecord.model_validate(
            await self._with_numerical_id(movie.model_dump(exclude=_RELATIONSHIP_FIELDS), MovieRecord)
        )
        session = self.session
        try:
            session.add(record)
            await session.flush()
            session.add_all(
                [
                    *(ActorsMoviesLink.between(actor, record) for actor in movie.actors),
                    *(DirectorsMoviesLink.between(director, record) for director in movie.directors),
                    *(TagsMoviesLink.between(tag, record) for tag in movie.tags),
                ]
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        self._logger.debug(
            "movie_added",
            movie_id=record.movie_id,
            actor_count=len(movie.actors),
            director_count=len(movie.directors),
            tag_count=len(movie.tags),
        )
        titles = frozenset(title.model_copy(update={"movie_id": record.movie_id}) for title in movie.titles)
        return movie.model_copy(
            update={"movie_id": record.movie_id, "numerical_id": record.numerical_id, "titles": titles}
        )

    async def link_actor(self, person: Person, movie: Movie) -> ActorsMoviesLink:
        link = ActorsMoviesLink.between(person, movie)
        await self._add_record(link)
        return link

    async def link_director(self, person: Person, movie: Movie) -> DirectorsMoviesLink:
        link = DirectorsMoviesLink.between(person, movie)
        await self._add_record(link)
        return link

    async def link_tag(self, tag: Tag, movie: Movie) -> TagsMoviesLink:
        link = TagsMoviesLink.between(tag, movie)
        await self._add_record(link)
        return link

    # Hydrated reads.

    async def get_movie(self, movie_id: int) -> Movie | None:
        """Load a movie with its actors, directors and tags (without their own links)."""
        record = await self.session.get(MovieRecord, movie_id)
        if record is None:
            return None
        return Movie.model_validate(
            {
                **record.model_dump(),
                "actors": await self.fetch_entities(queries.actors_of_movie(movie_id)),
                "directors": await self.fetch_entities(queries.directors_of_movie(movie_id)),
                "tags": await self.fetch_entities(queries.tags_of_movie(movie_id)),
            }
        )

    async def get_person(self, person_id: int) -> Person | None:
        """Load a person with every movie they acted in or directed."""
        record = await self.session.get(PersonRecord, person_id)
        if record is None:
            return None
        movies = await self.fetch_entities(queries.movies_of_person(person_id))
        return Person.model_validate({**record.model_dump(), "movies": movies})

    async def get_tag(self, tag_id: int) -> Tag | None:
        record = await self.session.get(TagRecord, tag_id)
        if record is None:
            return None
        movies = await self.fetch_entities(queries.movies_of_tag(tag_id))
        return Tag.model_validate({**record.model_dump(), "movies": movies})

    async def _add_record(self, record: SQLModel) -> None:
        try:
            self.session.add(record)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def _with_numerical_id(self, data: dict[str, Any], record_type: type[SQLModel]) -> dict[str, Any]:
        # Next id follows the highest one in use, so it never collides with explicit ids
        # and sequential imports stay dense and zero-based.
        if data.get("numerical_id") is None:
            highest = await self.session.scalar(select(func.max(record_type.numerical_id)))
            data["numerical_id"] = 0 if highest is None else highest + 1
        return data

    def _record_to_entity(self, record: Any) -> Any:
        entity_type = _RECORD_TO_ENTITY.get(type(record))
        if entity_type is None:
            return record
        return entity_type.model_validate(record.model_dump())


def create_async_engine_from_path(db_path: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the given database path.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.

    Returns:
        AsyncEngine instance configured for aiosqlite.
    """
    if db_path == ":memory:":
        # Every pooled connection would otherwise see its own empty database
        return create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    return create_async_engine(f"sqlite+aiosqlite:///{db_path}")
