"""Canvas service layer: cached courses and assignments, and display formatting."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Hashable, List, Optional, Set, Tuple

from canvas_api.client import CanvasClient, CanvasAPIError
from canvas_api.endpoints import (
    course_page_request,
    assignment_page_request,
    parse_courses,
    parse_assignments,
    submit_text_entry,
)
from config import (
    COURSE_CACHE_TTL,
    ASSIGNMENT_CACHE_TTL,
    BACKGROUND_REFRESH_INTERVAL,
)
from constants import (
    ASSIGNMENTS_COLLECTION,
    COURSES_CACHE_KEY,
    COURSE_NICKNAME_PREFIX,
    DEFAULT_PARALLEL_BATCHES,
    DEFAULT_PER_PAGE,
    MAX_CONCURRENT_COURSES,
    MAX_FETCH_RETRIES,
    RETRY_BACKOFF_SECONDS,
)
from database import db_manager
from datasync.batch import BatchOrchestrator
from datasync.cache import TTLCache
from datasync.paginator import PaginatedFetcher
from datasync.persistent import PersistentCollectionCache
from datasync.refresher import BackgroundRefresher
from datasync.result import Ok, Err, Result
from utils.datetime_utils import format_local, due_status, is_due_within, parse_canvas_datetime

logger = logging.getLogger(__name__)


def assignments_cache_key(course_id: Any) -> str:
    return f"{ASSIGNMENTS_COLLECTION}_{course_id}"


class CanvasDataService:
    """
    Courses and per-course assignments with in-memory TTL caching.

    Assignment lists are also written to an optional persisted cache. A read
    served from the persisted cache schedules a background revalidation for
    that course; a read served from memory issues no request at all.
    """

    def __init__(
        self,
        client: CanvasClient,
        cache: Optional[TTLCache] = None,
        persisted: Optional[PersistentCollectionCache] = None,
        course_ttl: float = COURSE_CACHE_TTL,
        assignment_ttl: float = ASSIGNMENT_CACHE_TTL,
        page_size: int = DEFAULT_PER_PAGE,
        parallel_batches: int = DEFAULT_PARALLEL_BATCHES,
        max_concurrent: int = MAX_CONCURRENT_COURSES,
        max_retries: int = MAX_FETCH_RETRIES,
        retry_backoff: float = RETRY_BACKOFF_SECONDS,
        refresh_interval: float = BACKGROUND_REFRESH_INTERVAL,
        sleep=asyncio.sleep,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else TTLCache()
        self.persisted = persisted
        self.course_ttl = course_ttl
        self.assignment_ttl = assignment_ttl
        self.page_size = page_size
        self.parallel_batches = parallel_batches
        self.orchestrator = BatchOrchestrator(
            self._fetch_assignments,
            max_concurrent=max_concurrent,
            max_retries=max_retries,
            backoff=retry_backoff,
            sleep=sleep,
        )
        self.refresher = BackgroundRefresher(
            self.refresh_all, refresh_interval, name="canvas refresh", sleep=sleep
        )

    # ----------------------------------------
    # Network fetches (no caching)
    # ----------------------------------------

    async def _fetch_courses(self) -> List[Dict[str, Any]]:
        fetcher = PaginatedFetcher(
            course_page_request(self.client),
            page_size=self.page_size,
            parallel_batches=self.parallel_batches,
            label="courses",
        )
        result = await fetcher.fetch_all()
        if not result.complete:
            raise CanvasAPIError(f"Could not load courses from Canvas (failed pages {result.failed_pages})")
        return parse_courses(result.items)

    async def _fetch_assignments(self, course_id: Any) -> List[Dict[str, Any]]:
        fetcher = PaginatedFetcher(
            assignment_page_request(self.client, course_id),
            page_size=self.page_size,
            parallel_batches=self.parallel_batches,
            label=f"course {course_id} assignments",
        )
        result = await fetcher.fetch_all()
        if not result.complete:
            raise CanvasAPIError(
                f"Incomplete assignment list for course {course_id} (failed pages {result.failed_pages})"
            )
        return parse_assignments(result.items)

    async def _store_assignments(self, course_id: Any, assignments: List[Dict[str, Any]]) -> None:
        self.cache.set(assignments_cache_key(course_id), assignments, self.assignment_ttl)
        if self.persisted is not None:
            await self.persisted.save(course_id, assignments)

    # ----------------------------------------
    # Foreground reads
    # ----------------------------------------

    async def get_courses(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """Active courses, from cache while fresh. Raises CanvasAPIError on failure."""
        if force_refresh:
            self.cache.clear(COURSES_CACHE_KEY)
        elif self.cache.is_valid(COURSES_CACHE_KEY):
            return self.cache.get(COURSES_CACHE_KEY).data

        courses = await self._fetch_courses()
        self.cache.set(COURSES_CACHE_KEY, courses, self.course_ttl)
        logger.info("Loaded %d courses", len(courses))
        return courses

    async def get_assignments(self, course_id: Any, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """Published assignments for one course. Raises CanvasAPIError on failure."""
        key = assignments_cache_key(course_id)

        if force_refresh:
            self.cache.clear(key)
            if self.persisted is not None:
                await self.persisted.clear(course_id)
        elif self.cache.is_valid(key):
            return self.cache.get(key).data
        elif self.persisted is not None:
            stored = await self.persisted.load(course_id)
            if stored is not None:
                self.cache.set(key, stored, self.assignment_ttl)
                self.refresher.trigger(lambda: self.refresh_assignments(course_id))
                return stored

        assignments = await self._fetch_assignments(course_id)
        await self._store_assignments(course_id, assignments)
        return assignments

    async def get_all_assignments(self, force_refresh: bool = False) -> Dict[Hashable, List[Dict[str, Any]]]:
        """
        Assignments for every active course, keyed by course id.

        Courses with a fresh cache entry are served from memory; the rest are
        fetched through the batch orchestrator. A course whose fetch gives up
        maps to an empty list and is not cached. A forced refresh also drops
        every persisted assignment entry first.
        """
        if force_refresh and self.persisted is not None:
            removed = await self.persisted.clear_all()
            logger.info("Cleared %d persisted assignment keys", removed)

        courses = await self.get_courses(force_refresh=force_refresh)
        results: Dict[Hashable, List[Dict[str, Any]]] = {}
        missing: List[Any] = []

        for course in courses:
            key = assignments_cache_key(course["id"])
            if not force_refresh and self.cache.is_valid(key):
                results[course["id"]] = self.cache.get(key).data
            else:
                missing.append(course["id"])

        if missing:
            failed: Set[Hashable] = set()
            fetched = await self.orchestrator.fetch_all(missing, failed=failed)
            for course_id, assignments in fetched.items():
                if course_id not in failed:
                    await self._store_assignments(course_id, assignments)
            if failed:
                logger.warning("Assignments unavailable for courses %s", sorted(failed, key=str))
            results.update(fetched)

        return results

    async def get_upcoming_assignments(
        self,
        window: timedelta = timedelta(days=7),
        now: Optional[datetime] = None,
    ) -> List[Tuple[Dict[str, Any], Dict[str, Any]]]:
        """(course, assignment) pairs due within `window`, soonest first."""
        now = now or datetime.now(timezone.utc)
        courses = {course["id"]: course for course in await self.get_courses()}
        by_course = await self.get_all_assignments()

        upcoming = []
        for course_id, assignments in by_course.items():
            course = courses.get(course_id, {"id": course_id, "name": str(course_id)})
            for assignment in assignments:
                try:
                    due_soon = is_due_within(assignment.get("due_at"), window, now)
                except ValueError:
                    logger.warning(
                        "Skipping assignment %s with unreadable due date %r",
                        assignment.get("id"), assignment.get("due_at"),
                    )
                    continue
                if due_soon:
                    upcoming.append((course, assignment))

        upcoming.sort(key=lambda pair: parse_canvas_datetime(pair[1]["due_at"]))
        return upcoming

    # ----------------------------------------
    # Background revalidation
    # ----------------------------------------

    async def refresh_courses(self) -> Result:
        try:
            courses = await self._fetch_courses()
        except CanvasAPIError as e:
            return Err(reason=f"courses: {e}", error=e)
        self.cache.set(COURSES_CACHE_KEY, courses, self.course_ttl)
        return Ok(courses)

    async def refresh_assignments(self, course_id: Any) -> Result:
        try:
            assignments = await self._fetch_assignments(course_id)
        except CanvasAPIError as e:
            return Err(reason=f"course {course_id}: {e}", error=e)
        await self._store_assignments(course_id, assignments)
        return Ok(assignments)

    async def refresh_all(self) -> Result:
        """Revalidate courses and every course's assignments. Never raises."""
        courses_result = await self.refresh_courses()
        if not courses_result.ok:
            return courses_result

        course_ids = [course["id"] for course in courses_result.value]
        failed: Set[Hashable] = set()
        try:
            fetched = await self.orchestrator.fetch_all(course_ids, failed=failed)
        except CanvasAPIError as e:
            return Err(reason=f"assignments: {e}", error=e)

        for course_id, assignments in fetched.items():
            if course_id not in failed:
                await self._store_assignments(course_id, assignments)

        if failed:
            return Err(reason=f"assignments unavailable for courses {sorted(failed, key=str)}")
        return Ok({course_id: len(items) for course_id, items in fetched.items()})

    def start_background_refresh(self) -> None:
        self.refresher.start()

    def stop_background_refresh(self) -> None:
        self.refresher.stop()

    # ----------------------------------------
    # Course nicknames
    # ----------------------------------------

    async def set_course_nickname(self, course_id: Any, nickname: Optional[str]) -> None:
        """Store a display nickname for a course. An empty nickname removes it."""
        key = f"{COURSE_NICKNAME_PREFIX}_{course_id}"
        nickname = (nickname or "").strip()
        if nickname:
            await db_manager.set_value(key, nickname)
        else:
            await db_manager.delete_value(key)

    async def apply_nicknames(self, courses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Copies of `courses` with their stored nickname (or None) under "nickname"."""
        named = []
        for course in courses:
            nickname = await db_manager.get_value(f"{COURSE_NICKNAME_PREFIX}_{course['id']}")
            named.append({**course, "nickname": nickname})
        return named

    # ----------------------------------------
    # Submission
    # ----------------------------------------

    async def submit_text(self, course_id: Any, assignment_id: Any, body: str) -> Dict[str, Any]:
        """Submit drafted text to Canvas as an online text entry."""
        if not body or not body.strip():
            raise ValueError("Cannot submit an empty draft")
        submission = await asyncio.to_thread(
            submit_text_entry, self.client, course_id, assignment_id, body
        )
        logger.info("Submitted assignment %s in course %s", assignment_id, course_id)
        return submission


# ========================================
# Display formatting
# ========================================

def format_courses(courses: List[Dict[str, Any]]) -> List[str]:
    """Return display strings for a course list. A nickname replaces the course name."""
    formatted: List[str] = []

    for course in courses:
        course_id = course.get("id", "N/A")
        name = course.get("nickname") or course.get("name", "Unnamed Course")
        code = course.get("course_code", "")

        if code:
            formatted.append(f"{course_id} – {code}: {name}")
        else:
            formatted.append(f"{course_id} – {name}")

    return formatted


def format_assignments(assignments: List[Dict[str, Any]], now: Optional[datetime] = None) -> List[str]:
    """Return display strings for an assignment list, with due status."""
    if not assignments:
        return ["No active assignments for this course."]

    formatted: List[str] = []

    for assignment in assignments:
        name = assignment.get("name", "Untitled Assignment")
        due_at = assignment.get("due_at")
        points = assignment.get("points_possible") or 0
        url = assignment.get("html_url", "")

        if due_at:
            try:
                due_str = format_local(due_at)
                status, _ = due_status(due_at, now)
            except ValueError:
                due_str, status = due_at, "Unknown due date"
        else:
            due_str, status = "No due date", "No due date"

        formatted.append(f"📚 [{name}]({url}) – due {due_str} ({status}) – {points} pts")

    return formatted
