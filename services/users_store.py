"""MongoDB persistence for user records"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection

from models.user import User

logger = logging.getLogger(__name__)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parses an id string, returning None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _to_user(doc: Dict[str, Any]) -> User:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return User(**doc)


class UserStore:
    """Users collection: lookups by id/email and inserts. Email and username are unique."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("email", unique=True)
        await self.collection.create_index("username", unique=True)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return _to_user(doc) if doc else None

    async def find_by_email(self, email: str) -> Optional[User]:
        doc = await self.collection.find_one({"email": email})
        return _to_user(doc) if doc else None

    async def exists(self, email: str, username: str) -> bool:
        """True if any user already has this email or this username."""
        doc = await self.collection.find_one({"$or": [{"email": email}, {"username": username}]}, {"_id": 1})
        return doc is not None

    async def insert(self, username: str, email: str, password_hash: str) -> User:
        """Inserts a user. Raises pymongo DuplicateKeyError if a unique index is violated."""
        now = datetime.now(timezone.utc)
        doc = {
            "username": username,
            "email": email,
            "password": password_hash,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Created user {result.inserted_id} ({username}).")
        return _to_user(doc)

    async def delete(self, user_id: str) -> bool:
        oid = to_object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1
