import asyncio

from canvas_api.client import CanvasClient
from services.canvas_service import CanvasDataService


async def main():
    service = CanvasDataService(CanvasClient())
    courses = await service.get_courses()
    by_course = await service.get_all_assignments()
    with open("canvas_assignments_dump.txt", "w", encoding="utf-8") as f:
        for course in courses:
            course_id = course["id"]
            course_name = course.get("name", "")
            f.write(f"=== Course {course_id}: {course_name} ===\n")
            for a in by_course.get(course_id, []):
                name = a.get("name")
                due_at = a.get("due_at")
                f.write(f"  - {name} | due_at: {due_at}\n")
            f.write("\n")

if __name__ == "__main__":
    asyncio.run(main())
