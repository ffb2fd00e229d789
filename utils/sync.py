"""Canvas data synchronization utilities."""

import logging

from database.db_manager import init_db
from datasync.result import Result

logger = logging.getLogger(__name__)


async def sync_canvas_data(service) -> Result:
    """Warm every cache: courses, then each course's assignments."""
    logger.info("Syncing Canvas data...")

    # Ensure DB exists
    await init_db()

    result = await service.refresh_all()
    if result.ok:
        logger.info("Canvas data synced successfully (%d courses).", len(result.value))
    else:
        logger.warning("Canvas sync incomplete: %s", result.reason)
    return result
