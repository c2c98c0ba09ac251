"""
Activity Service - the per-user activity feed stored in MongoDB.

Each document:
    {
        "user_id": 12,
        "activity_type": "project_application",
        "title": "Applied to Inventory Dashboard",
        "description": "...",
        "metadata": {"project_id": 7},
        "created_at": datetime
    }
"""

import logging
from datetime import datetime
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.db.mongodb import get_collection, COLLECTIONS

logger = logging.getLogger(__name__)


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


class ActivityService:
    """Append and read activity documents."""

    def __init__(self, collection: Optional[Collection] = None):
        self.collection = collection if collection is not None else get_collection(COLLECTIONS["activities"])

    def record(
        self,
        user_id: int,
        activity_type: str,
        title: str,
        description: str = "",
        metadata: Optional[dict] = None,
    ) -> str:
        """Insert an activity and return its ObjectId as string."""
        doc = {
            "user_id": user_id,
            "activity_type": activity_type,
            "title": title,
            "description": description,
            "metadata": metadata or {},
            "created_at": datetime.utcnow(),
        }
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def record_quietly(self, user_id: int, activity_type: str, title: str, **kwargs) -> Optional[str]:
        """
        Same as record(), but a MongoDB outage only logs a warning.

        The feed is secondary to the write that produced the activity, so a
        failed feed insert must not fail the request.
        """
        try:
            return self.record(user_id, activity_type, title, **kwargs)
        except PyMongoError as e:
            logger.warning("Could not record %s activity for user %s: %s", activity_type, user_id, e)
            return None

    def recent(self, user_id: int, limit: int = 10) -> List[dict]:
        """Newest activities first."""
        cursor = (
            self.collection.find({"user_id": user_id})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return [serialize_doc(doc) for doc in cursor]


def get_activity_service() -> ActivityService:
    """FastAPI dependency - activity service bound to the activities collection."""
    return ActivityService()
