import pytest

from moviecatalog.models.entities import Movie, Person, Tag
from moviecatalog.models.tables import (
    ActorsMoviesLink,
    DirectorsMoviesLink,
    MovieRecord,
    PersonRecord,
    TagRecord,
    TagsMoviesLink,
)
from moviecatalog.services.context import MappingError, verify_link_mapping


def _targets(record, column: str) -> set[str]:
    return {fk.target_fullname for fk in record.__table__.c[column].foreign_keys}


def test_tag_table_uses_fixed_name() -> None:
    assert TagRecord.__table__.name == "Tags"


def test_entity_tables() -> None:
    assert MovieRecord.__table__.name == "movies"
    assert PersonRecord.__table__.name == "people"


@pytest.mark.parametrize(
    ("link", "role_column", "role_target"),
    [
        (ActorsMoviesLink, "actor_id", "people.person_id"),
        (DirectorsMoviesLink, "director_id", "people.person_id"),
        (TagsMoviesLink, "tag_id", "Tags.tag_id"),
    ],
)
def test_link_foreign_keys(link, role_column: str, role_target: str) -> None:
    assert _targets(link, role_column) == {role_target}
    assert _targets(link, "movie_id") == {"movies.movie_id"}


def test_link_tables_have_surrogate_keys() -> None:
    assert [c.name for c in ActorsMoviesLink.__table__.primary_key] == ["actors_movies_link_id"]
    assert [c.name for c in DirectorsMoviesLink.__table__.primary_key] == ["directors_movies_link_id"]
    assert [c.name for c in TagsMoviesLink.__table__.primary_key] == ["tags_movies_link_id"]


def test_link_between_saved_entities() -> None:
    person = Person(person_id=3, primary_name="Al Pacino")
    tag = Tag(tag_id=5, name="crime")
    movie = Movie(movie_id=9, primary_title="Heat")

    actor_link = ActorsMoviesLink.between(person, movie)
    director_link = DirectorsMoviesLink.between(person, movie)
    tag_link = TagsMoviesLink.between(tag, movie)

    assert (actor_link.actor_id, actor_link.movie_id) == (3, 9)
    assert (director_link.director_id, director_link.movie_id) == (3, 9)
    assert (tag_link.tag_id, tag_link.movie_id) == (5, 9)
    assert actor_link.actors_movies_link_id is None


def test_link_between_unsaved_entities_is_rejected() -> None:
    with pytest.raises(ValueError):
        ActorsMoviesLink.between(Person(primary_name="Nobody"), Movie(movie_id=1, primary_title="Heat"))
    with pytest.raises(ValueError):
        TagsMoviesLink.between(Tag(tag_id=1, name="crime"), Movie(primary_title="Heat"))


def test_link_sql_values() -> None:
    assert ActorsMoviesLink(actor_id=3, movie_id=9).to_sql_values() == "(3, 9)"
    assert DirectorsMoviesLink(director_id=4, movie_id=10).to_sql_values() == "(4, 10)"
    assert TagsMoviesLink(tag_id=5, movie_id=11).to_sql_values() == "(5, 11)"


def test_verify_link_mapping_accepts_configured_tables() -> None:
    verify_link_mapping()


def test_verify_link_mapping_rejects_wrong_target() -> None:
    with pytest.raises(MappingError, match="actor_id must reference Tags"):
        verify_link_mapping({ActorsMoviesLink: ("actor_id", "Tags")})


def test_verify_link_mapping_rejects_missing_column() -> None:
    with pytest.raises(MappingError, match="not mapped"):
        verify_link_mapping({TagsMoviesLink: ("person_id", "people")})
