"""Tests for the context factory module."""

from pathlib import Path

from moviecatalog.models.entities import Person
from moviecatalog.models.enums import CatalogSet
from moviecatalog.services.context import CatalogContext
from moviecatalog.services.factory import create_context, create_test_context


class TestCreateContext:
    """Tests for create_context factory."""

    def test_creates_catalog_context_instance(self, tmp_path: Path) -> None:
        context = create_context(tmp_path / "movies.db")

        assert isinstance(context, CatalogContext)
        assert context._owns_engine is True

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "data" / "movies.db"
        assert not db_path.parent.exists()

        create_context(db_path)

        assert db_path.parent.exists()

    async def test_database_file_created_on_open(self, tmp_path: Path) -> None:
        db_path = tmp_path / "movies.db"

        async with create_context(db_path):
            pass

        assert db_path.exists()


class TestCreateTestContext:
    """Tests for create_test_context factory."""

    async def test_contexts_do_not_share_storage(self) -> None:
        async with create_test_context() as first, create_test_context() as second:
            await first.add_person(Person(primary_name="Ada"))

            assert await first.get_table_rows_count(CatalogSet.PEOPLE) == 1
            assert await second.get_table_rows_count(CatalogSet.PEOPLE) == 0
