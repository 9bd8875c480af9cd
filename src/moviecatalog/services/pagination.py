"""Fixed-size pagination over any catalog statement.

Two strategies are supported. The numerical-id path pushes a range predicate
on ``numerical_id`` down to the database and only works when the selected
entity has dense, gap-free numerical ids. The materializing path loads the
whole result set and slices it in memory; it works for any statement but
costs memory proportional to the full result, whatever page is requested.
"""

import math

import structlog
from sqlalchemy import Select

from moviecatalog.services.context import CatalogContext
from moviecatalog.services.queries import entity_of

PAGE_SIZE = 20


class PageOutOfRangeError(IndexError):
    """Raised when a page lies outside ``[0, max_page)``."""

    def __init__(self, page: int, max_page: int) -> None:
        super().__init__(f"Page out of range [0, {max_page})")
        self.page = page
        self.max_page = max_page


class Pagination:
    """Selects one page of PAGE_SIZE entities from a source statement.

    Holds no state besides the context and the statement: every call counts
    the source again, and the count and the fetch are separate round-trips.
    """

    def __init__(
        self,
        context: CatalogContext,
        statement: Select,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._context = context
        self._statement = statement
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def statement(self) -> Select:
        return self._statement

    async def get_max_page(self) -> int:
        """Return ``ceil(count / PAGE_SIZE)``; zero for an empty source."""
        entry_count = await self._context.count(self._statement)
        return math.ceil(entry_count / PAGE_SIZE)

    async def select_page(self, page: int, use_numerical_id: bool) -> list:
        """Return the entities on ``page``.

        Args:
            page: Zero-based page number.
            use_numerical_id: Filter by numerical id range in the database
                instead of loading the full source and slicing it.

        Returns:
            Domain entities for the page. The numerical-id path may return
            fewer than PAGE_SIZE items when ids have gaps.

        Raises:
            PageOutOfRangeError: If page is outside ``[0, max_page)``, which
                includes every page of an empty source.
            TypeError: If the numerical-id path is requested for a statement
                whose entity has no numerical_id column.
        """
        max_page = await self.get_max_page()
        if page < 0 or page >= max_page:
            raise PageOutOfRangeError(page, max_page)

        start = page * PAGE_SIZE
        end = (page + 1) * PAGE_SIZE

        if use_numerical_id:
            numerical_id = getattr(entity_of(self._statement), "numerical_id", None)
            if numerical_id is None:
                raise TypeError("statement does not select an entity with a numerical_id column")
            ranged = self._statement.where(numerical_id >= start, numerical_id < end)
            items = await self._context.fetch_entities(ranged)
        else:
            everything = await self._context.fetch_entities(self._statement)
            items = everything[start : min(end, len(everything))]

        self._logger.debug(
            "page_selected",
            page=page,
            max_page=max_page,
            use_numerical_id=use_numerical_id,
            item_count=len(items),
        )
        return items
