"""Client-side data synchronization: caching, pagination, refresh and polling."""

from .cache import TTLCache, CachedCollection
from .persistent import PersistentCollectionCache
from .paginator import PaginatedFetcher, PageResult, FetchResult
from .batch import BatchOrchestrator, fetch_with_retry
from .refresher import BackgroundRefresher
from .poller import JobPoller, PollState, PollPhase
from .result import Ok, Err, Result

__all__ = [
    'TTLCache',
    'CachedCollection',
    'PersistentCollectionCache',
    'PaginatedFetcher',
    'PageResult',
    'FetchResult',
    'BatchOrchestrator',
    'fetch_with_retry',
    'BackgroundRefresher',
    'JobPoller',
    'PollState',
    'PollPhase',
    'Ok',
    'Err',
    'Result',
]
