"""Query helpers composing joins between link tables and entity tables.

Every helper returns an unexecuted SQLAlchemy ``Select``. Building one does
no I/O, so callers can narrow it further (or hand it to Pagination) before a
CatalogContext counts or fetches it.

Single-role helpers are equi-joins on the link's role column, so a pair
linked twice comes back twice. Union helpers (cast, movies of a person) use
IN subqueries and return each entity once. All helpers order by the target's
stable id.
"""

from typing import Any

from sqlalchemy import Select, func, or_, select

from moviecatalog.models.tables import (
    ActorsMoviesLink,
    DirectorsMoviesLink,
    MovieRecord,
    PersonRecord,
    TagRecord,
    TagsMoviesLink,
)


def actors_of_movie(movie_id: int) -> Select:
    return (
        select(PersonRecord)
        .join(ActorsMoviesLink, ActorsMoviesLink.actor_id == PersonRecord.person_id)
        .where(ActorsMoviesLink.movie_id == movie_id)
        .order_by(PersonRecord.person_id)
    )


def directors_of_movie(movie_id: int) -> Select:
    return (
        select(PersonRecord)
        .join(DirectorsMoviesLink, DirectorsMoviesLink.director_id == PersonRecord.person_id)
        .where(DirectorsMoviesLink.movie_id == movie_id)
        .order_by(PersonRecord.person_id)
    )


def tags_of_movie(movie_id: int) -> Select:
    return (
        select(TagRecord)
        .join(TagsMoviesLink, TagsMoviesLink.tag_id == TagRecord.tag_id)
        .where(TagsMoviesLink.movie_id == movie_id)
        .order_by(TagRecord.tag_id)
    )


def cast_of_movie(movie_id: int) -> Select:
    """People linked to the movie as actor, director or both."""
    actor_ids = select(ActorsMoviesLink.actor_id).where(ActorsMoviesLink.movie_id == movie_id)
    director_ids = select(DirectorsMoviesLink.director_id).where(DirectorsMoviesLink.movie_id == movie_id)
    return (
        select(PersonRecord)
        .where(or_(PersonRecord.person_id.in_(actor_ids), PersonRecord.person_id.in_(director_ids)))
        .order_by(PersonRecord.person_id)
    )


def movies_as_actor(person_id: int) -> Select:
    return (
        select(MovieRecord)
        .join(ActorsMoviesLink, ActorsMoviesLink.movie_id == MovieRecord.movie_id)
        .where(ActorsMoviesLink.actor_id == person_id)
        .order_by(MovieRecord.movie_id)
    )


def movies_as_director(person_id: int) -> Select:
    return (
        select(MovieRecord)
        .join(DirectorsMoviesLink, DirectorsMoviesLink.movie_id == MovieRecord.movie_id)
        .where(DirectorsMoviesLink.director_id == person_id)
        .order_by(MovieRecord.movie_id)
    )


def movies_of_person(person_id: int) -> Select:
    """Movies the person acted in, directed, or both."""
    acted = select(ActorsMoviesLink.movie_id).where(ActorsMoviesLink.actor_id == person_id)
    directed = select(DirectorsMoviesLink.movie_id).where(DirectorsMoviesLink.director_id == person_id)
    return (
        select(MovieRecord)
        .where(or_(MovieRecord.movie_id.in_(acted), MovieRecord.movie_id.in_(directed)))
        .order_by(MovieRecord.movie_id)
    )


def movies_of_tag(tag_id: int) -> Select:
    return (
        select(MovieRecord)
        .join(TagsMoviesLink, TagsMoviesLink.movie_id == MovieRecord.movie_id)
        .where(TagsMoviesLink.tag_id == tag_id)
        .order_by(MovieRecord.movie_id)
    )


def movie_count_of_tag(tag_id: int) -> Select:
    """Count of links from the tag to movies. Execute with CatalogContext.scalar()."""
    return select(func.count()).select_from(TagsMoviesLink).where(TagsMoviesLink.tag_id == tag_id)


def entity_of(statement: Select) -> Any | None:
    """Return the mapped class a statement selects first, or None for column/aggregate selects."""
    descriptions = statement.column_descriptions
    if not descriptions:
        return None
    entity = descriptions[0].get("entity")
    if entity is None or descriptions[0].get("expr") is not entity:
        return None
    return entity
