"""Domain entities of the movie catalog.

Entities are frozen pydantic models. Field names match the table records in
tables.py so that conversion is a plain model_dump()/model_validate() pair.
Relationship collections (actors, directors, tags, movies) are only filled
when a caller hydrates them; records loaded from a table carry none.
"""

from typing import Any

from pydantic import Field, field_validator, model_validator

from moviecatalog.models.base import CatalogModel, truncate_text


class Person(CatalogModel):
    """Actor or director. `movies` lists films in either role when hydrated."""

    person_id: int | None = None
    numerical_id: int | None = Field(default=None, ge=0)
    primary_name: str
    movies: tuple["Movie", ...] = ()

    @field_validator("primary_name", mode="before")
    @classmethod
    def _truncate_primary_name(cls, value: Any) -> str:
        return truncate_text(value)

    def with_no_links(self) -> "Person":
        return Person(
            person_id=self.person_id,
            numerical_id=self.numerical_id,
            primary_name=self.primary_name,
        )


class Tag(CatalogModel):
    """Free-form label attached to movies. Stored in the `Tags` table."""

    tag_id: int | None = None
    numerical_id: int | None = Field(default=None, ge=0)
    name: str
    movies: tuple["Movie", ...] = ()

    @field_validator("name", mode="before")
    @classmethod
    def _truncate_name(cls, value: Any) -> str:
        return truncate_text(value)

    def with_no_links(self) -> "Tag":
        return Tag(tag_id=self.tag_id, numerical_id=self.numerical_id, name=self.name)


class Title(CatalogModel):
    """Alternate title of a movie. Kept in memory only, never stored."""

    title_id: int | None = None
    movie_id: int | None = None
    name: str

    @field_validator("name", mode="before")
    @classmethod
    def _truncate_name(cls, value: Any) -> str:
        return truncate_text(value)


class Movie(CatalogModel):
    """A film with its rating, alternate titles and linked people and tags.

    The primary title is always among `titles`, truncated like any other title.
    """

    movie_id: int | None = None
    numerical_id: int | None = Field(default=None, ge=0)
    primary_title: str
    rating: float = 0.0
    titles: frozenset[Title] = Field(default_factory=frozenset)
    actors: tuple[Person, ...] = ()
    directors: tuple[Person, ...] = ()
    tags: tuple[Tag, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _include_primary_title(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("primary_title"), str):
            data = dict(data)
            primary = Title(name=data["primary_title"], movie_id=data.get("movie_id"))
            titles = {
                title if isinstance(title, Title) else Title.model_validate(title)
                for title in data.get("titles") or ()
            }
            if not any(title.name == primary.name for title in titles):
                titles.add(primary)
            data["titles"] = frozenset(titles)
        return data

    def with_title(self, name: str) -> "Movie":
        """Return a copy carrying one more alternate title."""
        title = Title(name=name, movie_id=self.movie_id)
        return self.model_copy(update={"titles": self.titles | {title}})

    def with_no_links(self) -> "Movie":
        return Movie(
            movie_id=self.movie_id,
            numerical_id=self.numerical_id,
            primary_title=self.primary_title,
            rating=self.rating,
        )

    def __str__(self) -> str:
        return f"{self.movie_id} - {self.primary_title}"


Person.model_rebuild()
Tag.model_rebuild()

__all__ = ["Movie", "Person", "Tag", "Title"]
