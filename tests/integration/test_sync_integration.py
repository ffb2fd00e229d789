"""
Integration tests for Canvas sync functionality.
Tests the complete sync workflow from API to the persisted cache.
"""

import asyncio
import json
import unittest
import os
from unittest.mock import AsyncMock, Mock
import database.db_manager as db_manager
from canvas_api.client import CanvasAPIError
from canvas_api.endpoints import COURSES_ENDPOINT
from datasync.persistent import PersistentCollectionCache
from services.canvas_service import CanvasDataService, format_courses
from utils.sync import sync_canvas_data


def canvas_with(courses, assignments_by_course, failing=()):
    """Mock client whose single page holds every record."""

    def get_page(endpoint, page, per_page, params=None):
        if page > 1:
            return []
        if endpoint == COURSES_ENDPOINT:
            return courses
        course_id = int(endpoint.split("/")[1])
        if course_id in failing:
            raise CanvasAPIError("Canvas unavailable")
        return assignments_by_course.get(course_id, [])

    client = Mock()
    client.get_page.side_effect = get_page
    return client


COURSES = [
    {"id": 201, "name": "Advanced Python", "course_code": "CS301"},
    {"id": 202, "name": "Machine Learning", "course_code": "CS401"},
]

ASSIGNMENTS = {
    201: [
        {"id": 1001, "name": "Python Project 1", "due_at": "2025-12-15T23:59:00Z", "published": True},
        {"id": 1002, "name": "Python Quiz 1", "due_at": "2025-12-20T23:59:00Z", "published": True},
        {"id": 1003, "name": "Hidden draft", "due_at": "2025-12-21T23:59:00Z", "published": False},
    ],
    202: [
        {"id": 2001, "name": "ML Assignment 1", "due_at": "2025-12-18T23:59:00Z", "published": True},
    ],
}


class TestSyncIntegration(unittest.IsolatedAsyncioTestCase):
    """Integration tests for Canvas data synchronization."""

    @classmethod
    def setUpClass(cls):
        """Set up test database path."""
        cls.test_db_path = "data/test_sync_bot.db"

    async def asyncSetUp(self):
        """Point the database at a fresh file for each test."""
        if os.path.exists(self.test_db_path):
            os.remove(self.test_db_path)

        self.original_db_path = db_manager.DB_PATH
        db_manager.DB_PATH = self.test_db_path

    async def asyncTearDown(self):
        """Clean up test database."""
        db_manager.DB_PATH = self.original_db_path

        if os.path.exists(self.test_db_path):
            os.remove(self.test_db_path)

    def make_service(self, client):
        return CanvasDataService(
            client,
            persisted=PersistentCollectionCache("assignments", ttl=1800),
            sleep=AsyncMock(),
        )

    async def test_full_sync_workflow(self):
        """Test complete sync from Canvas API to the persisted cache."""
        service = self.make_service(canvas_with(COURSES, ASSIGNMENTS))

        result = await sync_canvas_data(service)

        self.assertTrue(result.ok)
        self.assertEqual(result.value, {201: 2, 202: 1})

        stored = json.loads(await db_manager.get_value("assignments_201"))
        self.assertEqual([a["id"] for a in stored], [1001, 1002])
        self.assertIsNotNone(await db_manager.get_value("assignments_201_timestamp"))
        self.assertIsNotNone(await db_manager.get_value("assignments_202"))

    async def test_sync_creates_database(self):
        """Test that sync initializes the schema on a missing database file."""
        self.assertFalse(os.path.exists(self.test_db_path))

        await sync_canvas_data(self.make_service(canvas_with(COURSES, ASSIGNMENTS)))

        self.assertTrue(os.path.exists(self.test_db_path))

    async def test_restart_serves_persisted_data(self):
        """Test that a new service instance reads assignments written by the last one."""
        await sync_canvas_data(self.make_service(canvas_with(COURSES, ASSIGNMENTS)))

        offline = canvas_with(COURSES, ASSIGNMENTS, failing={201, 202})
        restarted = self.make_service(offline)
        assignments = await restarted.get_assignments(201)

        self.assertEqual([a["name"] for a in assignments], ["Python Project 1", "Python Quiz 1"])
        results = await asyncio.gather(*list(restarted.refresher._pending))
        self.assertFalse(results[0].ok)

    async def test_sync_updates_existing_data(self):
        """Test that a second sync replaces stored assignments."""
        await sync_canvas_data(self.make_service(canvas_with(COURSES, ASSIGNMENTS)))

        updated = dict(ASSIGNMENTS)
        updated[202] = [
            {"id": 2001, "name": "ML Assignment 1 (revised)", "published": True},
            {"id": 2002, "name": "ML Assignment 2", "published": True},
        ]
        await sync_canvas_data(self.make_service(canvas_with(COURSES, updated)))

        stored = json.loads(await db_manager.get_value("assignments_202"))
        self.assertEqual([a["name"] for a in stored], ["ML Assignment 1 (revised)", "ML Assignment 2"])

    async def test_partial_failure_reports_err(self):
        """Test that a course that keeps failing is reported and not persisted."""
        service = self.make_service(canvas_with(COURSES, ASSIGNMENTS, failing={202}))

        result = await sync_canvas_data(service)

        self.assertFalse(result.ok)
        self.assertIn("202", result.reason)
        self.assertIsNotNone(await db_manager.get_value("assignments_201"))
        self.assertIsNone(await db_manager.get_value("assignments_202"))

    async def test_forced_refresh_drops_stale_persisted_entries(self):
        """Test that a forced refresh removes persisted assignments a failing course would otherwise keep."""
        await sync_canvas_data(self.make_service(canvas_with(COURSES, ASSIGNMENTS)))
        await db_manager.set_value("course_nickname_201", "Python")

        service = self.make_service(canvas_with(COURSES, ASSIGNMENTS, failing={202}))
        result = await service.get_all_assignments(force_refresh=True)

        self.assertEqual(result[202], [])
        self.assertIsNone(await db_manager.get_value("assignments_202"))
        self.assertIsNone(await db_manager.get_value("assignments_202_timestamp"))
        self.assertIsNotNone(await db_manager.get_value("assignments_201"))
        self.assertEqual(await db_manager.get_value("course_nickname_201"), "Python")

    async def test_course_nicknames(self):
        """Test that nicknames are stored, shown in place of the name and cleared."""
        await db_manager.init_db()
        service = self.make_service(canvas_with(COURSES, ASSIGNMENTS))

        await service.set_course_nickname(201, "  Python  ")
        named = await service.apply_nicknames(await service.get_courses())

        self.assertEqual([c["nickname"] for c in named], ["Python", None])
        self.assertEqual(format_courses(named), ["201 – CS301: Python", "202 – CS401: Machine Learning"])
        self.assertNotIn("nickname", COURSES[0])

        await service.set_course_nickname(201, "")
        self.assertIsNone(await db_manager.get_value("course_nickname_201"))


if __name__ == "__main__":
    unittest.main()
