"""Canvas API client package for interacting with the Canvas LMS API."""

from .client import CanvasClient, CanvasAPIError, CanvasAuthError
from .endpoints import (
    course_page_request,
    assignment_page_request,
    parse_courses,
    parse_assignments,
    submit_text_entry,
)

__all__ = [
    'CanvasClient',
    'CanvasAPIError',
    'CanvasAuthError',
    'course_page_request',
    'assignment_page_request',
    'parse_courses',
    'parse_assignments',
    'submit_text_entry',
]
