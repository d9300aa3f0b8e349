"""
Offset pagination over a page-fetching coroutine.
"""
import logging
from typing import AsyncIterator, Awaitable, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchPage = Callable[[int, int], Awaitable[List[T]]]


async def paginate(fetch_page: FetchPage, page_size: int) -> AsyncIterator[List[T]]:
    """
    Yield pages from fetch_page(offset, limit) until a short page comes back.

    An empty first page yields nothing. Errors raised by fetch_page propagate.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    offset = 0
    pages = 0
    while True:
        page = await fetch_page(offset, page_size)
        pages += 1
        logger.debug("Fetched page %s at offset %s: %s rows", pages, offset, len(page))
        if page:
            yield page
        if len(page) < page_size:
            break
        offset += page_size


class PageStream(Generic[T]):
    """
    Restartable page sequence: every `async for` starts again from offset 0.
    """

    def __init__(self, fetch_page: FetchPage, page_size: int):
        self.fetch_page = fetch_page
        self.page_size = page_size

    def __aiter__(self) -> AsyncIterator[List[T]]:
        return paginate(self.fetch_page, self.page_size)

    async def collect(self) -> List[T]:
        rows: List[T] = []
        async for page in self:
            rows.extend(page)
        return rows
