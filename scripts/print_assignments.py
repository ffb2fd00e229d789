import asyncio
import json

from config import PERSISTED_CACHE_TTL
from constants import ASSIGNMENTS_COLLECTION
from database.db_manager import init_db, list_keys
from datasync.persistent import PersistentCollectionCache

async def main():
    await init_db()
    cache = PersistentCollectionCache(ASSIGNMENTS_COLLECTION, PERSISTED_CACHE_TTL)
    print("Cached assignments:")
    for key in await list_keys(f"{ASSIGNMENTS_COLLECTION}_"):
        if key.endswith("_timestamp"):
            continue
        course_id = key[len(ASSIGNMENTS_COLLECTION) + 1:]
        rows = await cache.load(course_id)
        if rows is None:
            print(f"{course_id}: expired or unreadable")
            continue
        for row in rows:
            print(json.dumps({"course_id": course_id, "id": row.get("id"), "name": row.get("name"), "due_at": row.get("due_at")}))

if __name__ == "__main__":
    asyncio.run(main())
