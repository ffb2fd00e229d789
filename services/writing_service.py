"""Assignment drafting through the Gemini processing function."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from constants import (
    GEMINI_PROCESSOR_FUNCTION,
    WRITING_OPERATIONS,
    DEFAULT_GRADE_LEVEL,
    MIN_GRADE_LEVEL,
    MAX_GRADE_LEVEL,
)
from jobs.store import decode_function_response

logger = logging.getLogger(__name__)


class WritingServiceError(Exception):
    """Raised when the text processor fails or returns no text."""
    pass


class DraftHistory:
    """The current draft plus the drafts it replaced, newest last."""

    def __init__(self, content: str = "") -> None:
        self.content = content
        self._previous: List[str] = []

    def replace(self, content: str) -> None:
        self._previous.append(self.content)
        self.content = content

    def undo(self) -> bool:
        """Restore the previous draft. Returns False when there is nothing to undo."""
        if not self._previous:
            return False
        self.content = self._previous.pop()
        return True

    def __len__(self) -> int:
        return len(self._previous)


class WritingService:
    def __init__(self, client: Client) -> None:
        self.client = client

    def _invoke(self, content: str, operation: str, options: Dict[str, Any]) -> str:
        raw = self.client.functions.invoke(
            GEMINI_PROCESSOR_FUNCTION,
            invoke_options={"body": {"content": content, "type": operation, **options}},
        )
        data = decode_function_response(raw)
        if data.get("error"):
            raise WritingServiceError(str(data["error"]))
        result = data.get("result")
        if not isinstance(result, str) or not result.strip():
            raise WritingServiceError(f"{operation} returned no text")
        return result

    async def process(self, content: str, operation: str, **options: Any) -> str:
        """Run one text operation and return the processed text. Extra options go in the request body."""
        if operation not in WRITING_OPERATIONS:
            raise ValueError(f"Unknown operation {operation!r}")
        if not content or not content.strip():
            raise ValueError("Please add some content first")
        try:
            return await asyncio.to_thread(self._invoke, content, operation, options)
        except (WritingServiceError, ValueError):
            raise
        except Exception as e:
            logger.error("Text processor call failed (%s): %s", operation, e)
            raise WritingServiceError(f"{operation} failed: {e}") from e

    async def analyze_requirements(self, description: str) -> str:
        return await self.process(description, "analyze_requirements")

    async def generate_draft(self, description: str, history: Optional[DraftHistory] = None) -> str:
        """Generate a draft from the assignment description and record it in history."""
        draft = await self.process(description, "generate_content")
        if history is not None:
            history.replace(draft)
        return draft

    async def improve_draft(self, history: DraftHistory) -> str:
        """Improve the current draft in place, keeping the old one for undo."""
        improved = await self.process(history.content, "improve_writing")
        history.replace(improved)
        return improved

    async def format_draft(self, history: DraftHistory) -> str:
        """Clean up structure and formatting of the current draft."""
        formatted = await self.process(history.content, "format_text")
        history.replace(formatted)
        return formatted

    async def adjust_grade_level(self, history: DraftHistory, level: int = DEFAULT_GRADE_LEVEL) -> str:
        """Rewrite the current draft for a school grade level."""
        if not MIN_GRADE_LEVEL <= level <= MAX_GRADE_LEVEL:
            raise ValueError(f"Grade level must be between {MIN_GRADE_LEVEL} and {MAX_GRADE_LEVEL}")
        adjusted = await self.process(history.content, "adjust_grade_level", level=level)
        history.replace(adjusted)
        return adjusted
