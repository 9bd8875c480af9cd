from moviecatalog.models.base import NAME_MAX_LENGTH, WithNumericalId
from moviecatalog.models.entities import Movie, Person, Tag, Title
from moviecatalog.models.enums import CatalogSet

__all__ = [
    "Movie",
    "Person",
    "Tag",
    "Title",
    "CatalogSet",
    "WithNumericalId",
    "NAME_MAX_LENGTH",
]
