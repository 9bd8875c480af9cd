"""SQLModel table definitions for database persistence.

The catalog keeps its domain entities (entities.py) apart from the table
records defined here. Domain entities are frozen and carry relationship
collections; records are mutable rows that SQLAlchemy can add and flush.
Field names are aligned so conversion goes through model_dump() and
model_validate().

Many-to-many relationships are modelled as explicit link records, one table
per role, each with its own generated surrogate key and two foreign keys.
Nothing prevents the same (role, movie) pair from being linked twice.
"""

from typing import Any, ClassVar

from sqlmodel import Field, SQLModel

from moviecatalog.models.base import NAME_MAX_LENGTH

MOVIES_TABLE = "movies"
PEOPLE_TABLE = "people"
TAGS_TABLE = "Tags"


class MovieRecord(SQLModel, table=True):
    __tablename__ = MOVIES_TABLE

    movie_id: int | None = Field(default=None, primary_key=True)
    numerical_id: int = Field(index=True, unique=True)
    primary_title: str
    rating: float = 0.0


class PersonRecord(SQLModel, table=True):
    __tablename__ = PEOPLE_TABLE

    person_id: int | None = Field(default=None, primary_key=True)
    numerical_id: int = Field(index=True, unique=True)
    primary_name: str = Field(max_length=NAME_MAX_LENGTH)


class TagRecord(SQLModel, table=True):
    """Tag rows live in a fixed table name independent of the class name."""

    __tablename__ = TAGS_TABLE

    tag_id: int | None = Field(default=None, primary_key=True)
    numerical_id: int = Field(index=True, unique=True)
    name: str = Field(max_length=NAME_MAX_LENGTH)


class _MovieLink:
    """Shared helpers for link records.

    Subclasses name the column holding the role entity id in ROLE_COLUMN and
    the attribute of the role entity that feeds it in ROLE_ENTITY_ID.
    """

    ROLE_COLUMN: ClassVar[str]
    ROLE_ENTITY_ID: ClassVar[str]

    @classmethod
    def between(cls, role_entity: Any, movie: Any) -> Any:
        """Build a link from a saved role entity (person or tag) and a saved movie."""
        role_id = getattr(role_entity, cls.ROLE_ENTITY_ID)
        if role_id is None or movie.movie_id is None:
            raise ValueError("both entities must be saved before they can be linked")
        return cls(**{cls.ROLE_COLUMN: role_id, "movie_id": movie.movie_id})

    def to_sql_values(self) -> str:
        """Render the link as a ``(role_id, movie_id)`` VALUES tuple for bulk inserts."""
        return f"({getattr(self, self.ROLE_COLUMN)}, {self.movie_id})"


class ActorsMoviesLink(_MovieLink, SQLModel, table=True):
    __tablename__ = "actors_movies"
    ROLE_COLUMN: ClassVar[str] = "actor_id"
    ROLE_ENTITY_ID: ClassVar[str] = "person_id"

    actors_movies_link_id: int | None = Field(default=None, primary_key=True)
    actor_id: int = Field(index=True, foreign_key=f"{PEOPLE_TABLE}.person_id")
    movie_id: int = Field(index=True, foreign_key=f"{MOVIES_TABLE}.movie_id")


class DirectorsMoviesLink(_MovieLink, SQLModel, table=True):
    __tablename__ = "directors_movies"
    ROLE_COLUMN: ClassVar[str] = "director_id"
    ROLE_ENTITY_ID: ClassVar[str] = "person_id"

    directors_movies_link_id: int | None = Field(default=None, primary_key=True)
    director_id: int = Field(index=True, foreign_key=f"{PEOPLE_TABLE}.person_id")
    movie_id: int = Field(index=True, foreign_key=f"{MOVIES_TABLE}.movie_id")


class TagsMoviesLink(_MovieLink, SQLModel, table=True):
    __tablename__ = "tags_movies"
    ROLE_COLUMN: ClassVar[str] = "tag_id"
    ROLE_ENTITY_ID: ClassVar[str] = "tag_id"

    tags_movies_link_id: int | None = Field(default=None, primary_key=True)
    tag_id: int = Field(index=True, foreign_key=f"{TAGS_TABLE}.tag_id")
    movie_id: int = Field(index=True, foreign_key=f"{MOVIES_TABLE}.movie_id")


# Link record -> (role column, table the role column must reference).
LINK_MAPPINGS: dict[type[SQLModel], tuple[str, str]] = {
    ActorsMoviesLink: ("actor_id", PEOPLE_TABLE),
    DirectorsMoviesLink: ("director_id", PEOPLE_TABLE),
    TagsMoviesLink: ("tag_id", TAGS_TABLE),
}
