"""Round-based parallel page fetching for Canvas list endpoints."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List

from canvas_api.client import CanvasAuthError
from constants import DEFAULT_PER_PAGE, DEFAULT_PARALLEL_BATCHES

logger = logging.getLogger(__name__)

PageRequest = Callable[[int, int], Awaitable[List[Any]]]


@dataclass
class PageResult:
    """Outcome of one page request. A failed page carries no items."""

    page: int
    items: List[Any] = field(default_factory=list)
    failed: bool = False

    def is_last_page(self, page_size: int) -> bool:
        return not self.failed and len(self.items) < page_size


@dataclass
class FetchResult:
    items: List[Any]
    failed_pages: List[int] = field(default_factory=list)
    pages_requested: int = 0

    @property
    def complete(self) -> bool:
        return not self.failed_pages


class PaginatedFetcher:
    """
    Fetch an unbounded collection by page number.

    Each round requests `parallel_batches` consecutive pages concurrently.
    Fetching stops after a round in which no page returned items, or in which
    any successful page came back shorter than `page_size`. A failed page is
    recorded in `failed_pages` and never counts as a short page.
    """

    def __init__(
        self,
        fetch_page: PageRequest,
        page_size: int = DEFAULT_PER_PAGE,
        parallel_batches: int = DEFAULT_PARALLEL_BATCHES,
        label: str = "collection",
    ) -> None:
        if page_size < 1 or parallel_batches < 1:
            raise ValueError("page_size and parallel_batches must be positive")
        self.fetch_page = fetch_page
        self.page_size = page_size
        self.parallel_batches = parallel_batches
        self.label = label

    async def _request(self, page: int) -> PageResult:
        try:
            items = await self.fetch_page(page, self.page_size)
        except CanvasAuthError:
            raise
        except Exception as e:
            logger.warning("Failed to fetch %s page %d: %s", self.label, page, e)
            return PageResult(page=page, failed=True)
        return PageResult(page=page, items=list(items or []))

    async def fetch_round(self, first_page: int) -> List[PageResult]:
        pages = range(first_page, first_page + self.parallel_batches)
        # gather preserves argument order, so results are in page order
        return list(await asyncio.gather(*(self._request(p) for p in pages)))

    async def fetch_all(self) -> FetchResult:
        result = FetchResult(items=[])
        page = 1

        while True:
            round_results = await self.fetch_round(page)
            result.pages_requested += len(round_results)

            for page_result in round_results:
                if page_result.failed:
                    result.failed_pages.append(page_result.page)
                result.items.extend(page_result.items)

            if not any(r.items for r in round_results):
                break
            if any(r.is_last_page(self.page_size) for r in round_results):
                break
            page += self.parallel_batches

        logger.debug(
            "Fetched %d %s items over %d pages", len(result.items), self.label, result.pages_requested
        )
        return result
