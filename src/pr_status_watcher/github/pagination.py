"""Cursor pagination for GraphQL connections."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_PAGES = 10
DEFAULT_MAX_ITEMS = 1000


@dataclass
class SearchPage(Generic[T]):
    """One page of a cursor-paginated connection."""

    items: list[T] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: str | None = None


class CursorPaginator(Generic[T]):
    """Async iterator over a cursor-paginated connection.

    Pages are requested until the connection reports no further page or a
    safety cap is reached. Hitting a cap truncates the result and logs a
    warning; it never raises.
    """

    def __init__(
        self,
        fetch_page: Callable[[str | None], Awaitable[SearchPage[T]]],
        max_pages: int = DEFAULT_MAX_PAGES,
        max_items: int = DEFAULT_MAX_ITEMS,
        label: str = "search",
    ):
        """Initialize cursor paginator.

        Args:
            fetch_page: Coroutine function taking the ``after`` cursor
                (``None`` for the first page) and returning a page
            max_pages: Maximum number of pages to fetch
            max_items: Maximum number of items to yield
            label: Name used in log messages
        """
        self.fetch_page = fetch_page
        self.max_pages = max_pages
        self.max_items = max_items
        self.label = label

        self.pages_fetched = 0
        self.truncated = False

    async def __aiter__(self) -> AsyncIterator[T]:
        """Async iterator implementation."""
        cursor: str | None = None
        yielded = 0

        while True:
            if self.pages_fetched >= self.max_pages:
                self.truncated = True
                logger.warning(
                    f"Pagination for {self.label} stopped at the {self.max_pages}-page cap; "
                    f"results truncated to {yielded} items"
                )
                return

            page = await self.fetch_page(cursor)
            self.pages_fetched += 1
            logger.debug(
                f"Fetched page {self.pages_fetched} for {self.label} "
                f"({len(page.items)} items, has_next={page.has_next_page})"
            )

            for item in page.items:
                if yielded >= self.max_items:
                    self.truncated = True
                    logger.warning(
                        f"Pagination for {self.label} stopped at the "
                        f"{self.max_items}-item cap; results truncated"
                    )
                    return
                yield item
                yielded += 1

            if not page.has_next_page:
                return
            if not page.end_cursor:
                logger.warning(
                    f"Page {self.pages_fetched} for {self.label} reported more results "
                    "but no cursor; stopping"
                )
                return
            cursor = page.end_cursor

    async def collect_all(self) -> list[T]:
        """Collect all items from all pages.

        Returns:
            List of all items
        """
        items = []
        async for item in self:
            items.append(item)
        return items
