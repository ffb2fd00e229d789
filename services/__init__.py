"""Services package for business logic operations."""

from .canvas_service import CanvasDataService, format_courses, format_assignments
from .link_service import LinkProcessingService, ProcessedLink
from .writing_service import WritingService, WritingServiceError, DraftHistory

__all__ = [
    'CanvasDataService',
    'format_courses',
    'format_assignments',
    'LinkProcessingService',
    'ProcessedLink',
    'WritingService',
    'WritingServiceError',
    'DraftHistory',
]
