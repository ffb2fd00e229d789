"""Canvas API endpoint functions."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .client import CanvasClient

COURSES_ENDPOINT = "users/self/courses"

PageRequest = Callable[[int, int], Awaitable[List[Dict[str, Any]]]]


def assignments_endpoint(course_id: Any) -> str:
    return f"courses/{course_id}/assignments"


def course_page_request(client: CanvasClient) -> PageRequest:
    """Page-addressed request for the current user's active courses."""
    async def fetch(page: int, per_page: int) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(
            client.get_page,
            COURSES_ENDPOINT,
            page,
            per_page,
            {"enrollment_state": "active", "include[]": "term"},
        )
    return fetch


def assignment_page_request(client: CanvasClient, course_id: Any) -> PageRequest:
    """Page-addressed request for one course's assignments."""
    async def fetch(page: int, per_page: int) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(
            client.get_page, assignments_endpoint(course_id), page, per_page
        )
    return fetch


def parse_courses(data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep named, actively enrolled courses and reduce them to view records."""
    valid_courses: List[Dict[str, Any]] = []
    for course in data:
        # Skip malformed entries with no name
        if "id" not in course or "name" not in course:
            continue
        # Present only when Canvas reports it; absent means the query filter applied
        if course.get("enrollment_state", "active") != "active":
            continue

        valid_courses.append({
            "id": course["id"],
            "name": course.get("name"),
            "course_code": course.get("course_code"),
            "start_at": course.get("start_at"),
            "end_at": course.get("end_at"),
            "term": course.get("term"),
        })

    return valid_courses


def parse_assignments(data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep published, non-deleted assignments and reduce them to view records."""
    valid_assignments: List[Dict[str, Any]] = []
    for assignment in data:
        if "id" not in assignment or "name" not in assignment:
            continue
        if assignment.get("workflow_state") == "deleted":
            continue
        if assignment.get("published") is not True:
            continue

        valid_assignments.append({
            "id": assignment["id"],
            "name": assignment["name"],
            "description": assignment.get("description") or "",
            "due_at": assignment.get("due_at"),
            "points_possible": assignment.get("points_possible"),
            "published": True,
            "workflow_state": assignment.get("workflow_state"),
            "html_url": assignment.get("html_url"),
            "submission_types": assignment.get("submission_types") or [],
        })

    return valid_assignments


def submit_text_entry(
    client: CanvasClient,
    course_id: Any,
    assignment_id: Any,
    body: str,
    comment: Optional[str] = None,
) -> Dict[str, Any]:
    """Submit `body` as an online text entry for the current user."""
    payload: Dict[str, Any] = {
        "submission": {
            "submission_type": "online_text_entry",
            "body": body,
        }
    }
    if comment:
        payload["comment"] = {"text_comment": comment}
    return client.post(f"courses/{course_id}/assignments/{assignment_id}/submissions", payload)
