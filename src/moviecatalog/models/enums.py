from enum import StrEnum


class CatalogSet(StrEnum):
    """Sets owned by a catalog context, named the way the CLI accepts them."""

    MOVIES = "movies"
    PEOPLE = "people"
    TAGS = "tags"
    ACTORS_MOVIES = "actors_movies"
    DIRECTORS_MOVIES = "directors_movies"
    TAGS_MOVIES = "tags_movies"
