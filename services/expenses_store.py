"""MongoDB persistence and aggregation for expense records"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from models.expense import Expense
from services.users_store import to_object_id



def _to_expense(doc: Dict[str, Any]) -> Expense:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    doc["user_id"] = str(doc["user_id"])
    return Expense(**doc)


class ExpenseStore:
    """
    Expenses collection. Every query is scoped by `user_id`, so a record owned
    by someone else behaves exactly like a missing one.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("user_id", 1), ("created_at", -1)])

    async def list_for_user(self, user_id: str) -> List[Expense]:
        """Returns the user's expenses, newest first."""
        owner = to_object_id(user_id)
        if owner is None:
            return []
        expenses = []
        cursor = self.collection.find({"user_id": owner}).sort([("created_at", -1), ("_id", -1)])
        async for doc in cursor:
            expenses.append(_to_expense(doc))
        return expenses

    async def insert(self, user_id: str, category: str, amount: float, comments: Optional[str]) -> Expense:
        now = datetime.now(timezone.utc)
        doc = {
            "user_id": to_object_id(user_id),
            "category": category,
            "amount": amount,
            "comments": comments,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_expense(doc)

    async def update_owned(
        self, user_id: str, expense_id: str, category: str, amount: float, comments: Optional[str]
    ) -> Optional[Expense]:
        """Overwrites the editable fields. Returns None if the user owns no such expense."""
        owner, oid = to_object_id(user_id), to_object_id(expense_id)
        if owner is None or oid is None:
            return None
        doc = await self.collection.find_one_and_update(
            {"_id": oid, "user_id": owner},
            {"$set": {
                "category": category,
                "amount": amount,
                "comments": comments,
                "updated_at": datetime.now(timezone.utc),
            }},
            return_document=ReturnDocument.AFTER,
        )
        return _to_expense(doc) if doc else None

    async def delete_owned(self, user_id: str, expense_id: str) -> bool:
        owner, oid = to_object_id(user_id), to_object_id(expense_id)
        if owner is None or oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid, "user_id": owner})
        return result.deleted_count == 1

    async def delete_for_user(self, user_id: str) -> int:
        owner = to_object_id(user_id)
        if owner is None:
            return 0
        result = await self.collection.delete_many({"user_id": owner})
        return result.deleted_count

    async def category_totals(self, user_id: str) -> List[Dict[str, Any]]:
        """Sum and count of amounts per category, largest total first."""
        owner = to_object_id(user_id)
        if owner is None:
            return []
        pipeline = [
            {"$match": {"user_id": owner}},
            {"$group": {"_id": "$category", "total": {"$sum": "$amount"}, "count": {"$sum": 1}}},
            {"$sort": {"total": -1, "_id": 1}},
        ]
        rows = []
        async for doc in self.collection.aggregate(pipeline):
            rows.append({"category": doc["_id"], "total": doc["total"], "count": doc["count"]})
        return rows
