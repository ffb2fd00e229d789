"""
Regression tests for Canvas API compatibility.
Ensures the client keeps working with Canvas API responses.
"""

import unittest
from unittest.mock import Mock, patch
from canvas_api.client import CanvasClient
from canvas_api.endpoints import parse_assignments, parse_courses
from constants import DEFAULT_PER_PAGE


class TestCanvasAPIRegression(unittest.TestCase):
    """Regression tests for Canvas API behavior."""

    def setUp(self):
        self.client = CanvasClient(base_url="https://test.canvas.com/api/v1", token="test")

    def test_get_page_does_not_follow_link_header(self):
        """
        REGRESSION: The client used to follow rel="next" Link headers inside one call,
        which serialized every page. Each call must fetch exactly one page.
        """
        with patch('canvas_api.client.requests.get') as mock_get:
            response = Mock()
            response.status_code = 200
            response.json.return_value = [{"id": 1}]
            response.headers = {"Link": '<https://test.canvas.com/api/v1/courses?page=2>; rel="next"'}
            mock_get.return_value = response

            result = self.client.get_page("courses", 1)

            self.assertEqual(result, [{"id": 1}])
            self.assertEqual(mock_get.call_count, 1)

    def test_default_page_size_is_canvas_maximum(self):
        """
        REGRESSION: Canvas defaults to 10 items per page; always ask for the maximum.
        """
        with patch('canvas_api.client.requests.get') as mock_get:
            response = Mock()
            response.status_code = 200
            response.json.return_value = []
            mock_get.return_value = response

            self.client.get_page("courses", 1)

            self.assertEqual(mock_get.call_args.kwargs["params"]["per_page"], DEFAULT_PER_PAGE)
            self.assertEqual(DEFAULT_PER_PAGE, 100)

    def test_course_without_course_code(self):
        """
        REGRESSION: Some Canvas courses have no course_code; they must still parse.
        """
        result = parse_courses([{"id": 1, "name": "Sandbox"}])

        self.assertEqual(len(result), 1)
        self.assertIsNone(result[0]["course_code"])

    def test_assignment_ids_may_be_strings(self):
        """
        REGRESSION: Some Canvas instances return string ids (large id setting).
        """
        result = parse_assignments([
            {"id": "10000000000001", "name": "Essay", "published": True, "workflow_state": "published"}
        ])

        self.assertEqual(result[0]["id"], "10000000000001")

    def test_assignment_without_due_date(self):
        """
        REGRESSION: Assignments without due dates must not be dropped.
        """
        result = parse_assignments([{"id": 1, "name": "Ungraded survey", "published": True, "due_at": None}])

        self.assertEqual(len(result), 1)
        self.assertIsNone(result[0]["due_at"])


if __name__ == "__main__":
    unittest.main()
