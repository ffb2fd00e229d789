"""Bounded-concurrency fan-out of per-entity fetches."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Sequence, Set

from canvas_api.client import CanvasAuthError
from constants import MAX_CONCURRENT_COURSES, MAX_FETCH_RETRIES, RETRY_BACKOFF_SECONDS

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


async def fetch_with_retry(
    fetch: Callable[[], Awaitable[List[Any]]],
    max_retries: int = MAX_FETCH_RETRIES,
    backoff: float = RETRY_BACKOFF_SECONDS,
    sleep: Sleep = asyncio.sleep,
    label: str = "fetch",
    on_give_up: Optional[Callable[[Exception], None]] = None,
) -> List[Any]:
    """
    Run `fetch` with up to `max_retries` retries and linear backoff.

    Delays are backoff * 1, backoff * 2, ... Returns an empty list once the
    retries are exhausted. Auth failures are raised immediately.
    """
    attempt = 0
    while True:
        try:
            return await fetch()
        except CanvasAuthError:
            raise
        except Exception as e:
            attempt += 1
            if attempt > max_retries:
                logger.error("%s failed after %d attempts: %s", label, attempt, e)
                if on_give_up is not None:
                    on_give_up(e)
                return []
            delay = backoff * attempt
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.1fs",
                label, attempt, max_retries + 1, e, delay,
            )
            await sleep(delay)


def chunked(items: Sequence[Any], size: int) -> List[List[Any]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchOrchestrator:
    """
    Fetch a collection for each entity, `max_concurrent` entities at a time.

    Chunks run strictly one after another. Every requested entity appears in
    the result, mapped to an empty list when its fetch gave up.
    """

    def __init__(
        self,
        fetch_entity: Callable[[Hashable], Awaitable[List[Any]]],
        max_concurrent: int = MAX_CONCURRENT_COURSES,
        max_retries: int = MAX_FETCH_RETRIES,
        backoff: float = RETRY_BACKOFF_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be positive")
        self.fetch_entity = fetch_entity
        self.max_concurrent = max_concurrent
        self.max_retries = max_retries
        self.backoff = backoff
        self.sleep = sleep

    async def _fetch_one(self, entity_id: Hashable, failed: Optional[Set[Hashable]]) -> List[Any]:
        def give_up(error: Exception) -> None:
            if failed is not None:
                failed.add(entity_id)

        return await fetch_with_retry(
            lambda: self.fetch_entity(entity_id),
            max_retries=self.max_retries,
            backoff=self.backoff,
            sleep=self.sleep,
            label=f"fetch for {entity_id}",
            on_give_up=give_up,
        )

    async def fetch_all(
        self,
        entity_ids: Sequence[Hashable],
        failed: Optional[Set[Hashable]] = None,
    ) -> Dict[Hashable, List[Any]]:
        """
        Fetch every entity and return {entity_id: collection}.

        Ids whose fetch gave up are added to `failed` when a set is passed.
        """
        results: Dict[Hashable, List[Any]] = {}

        for chunk in chunked(list(entity_ids), self.max_concurrent):
            collections = await asyncio.gather(*(self._fetch_one(eid, failed) for eid in chunk))
            results.update(zip(chunk, collections))

        return results
