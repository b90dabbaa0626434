"""Database handle created at startup and handed to request handlers"""
import logging

from motor.motor_asyncio import AsyncIOMotorClient

from config import Settings
from services.expenses_store import ExpenseStore
from services.users_store import UserStore

logger = logging.getLogger(__name__)


class Database:
    """Wraps a Motor client and exposes the user and expense stores."""

    def __init__(self, client, db_name: str):
        self.client = client
        self.db = client[db_name]
        self.users = UserStore(self.db.get_collection("users"))
        self.expenses = ExpenseStore(self.db.get_collection("expenses"))

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        logger.info(f"Connecting to MongoDB at {settings.mongodb_uri}...")
        client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
        return cls(client, settings.db_name)

    async def ping(self) -> None:
        await self.client.admin.command("ping")

    async def ensure_indexes(self) -> None:
        await self.users.ensure_indexes()
        await self.expenses.ensure_indexes()
        logger.info("Database indexes ensured.")

    async def delete_user(self, user_id: str) -> bool:
        """Removes a user together with all of their expenses."""
        deleted_expenses = await self.expenses.delete_for_user(user_id)
        deleted = await self.users.delete(user_id)
        logger.warning(f"Deleted user {user_id} and {deleted_expenses} expenses (user found: {deleted}).")
        return deleted

    def close(self) -> None:
        self.client.close()
