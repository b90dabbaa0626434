"""Service layer for handling expense-related logic."""
import logging
from typing import List

from errors import NotFoundError
from models.expense import CategoryStat, Expense, ExpenseIn, ExpenseStats
from services.expenses_store import ExpenseStore
from utils.validation import parse_input

logger = logging.getLogger(__name__)

EXPENSE_NOT_FOUND = "Expense not found"


def _validate(category, amount, comments) -> ExpenseIn:
    return parse_input(ExpenseIn, {"category": category, "amount": amount, "comments": comments})


async def list_expenses(store: ExpenseStore, user_id: str) -> List[Expense]:
    """Fetches all of the user's expenses, newest first."""
    expenses = await store.list_for_user(user_id)
    logger.info(f"Fetched {len(expenses)} expenses for user {user_id}.")
    return expenses


async def create_expense(store: ExpenseStore, user_id: str, category, amount, comments=None) -> Expense:
    data = _validate(category, amount, comments)
    expense = await store.insert(user_id, data.category, data.amount, data.comments)
    logger.info(f"User {user_id} added expense {expense.id} ({data.category}: {data.amount}).")
    return expense


async def update_expense(store: ExpenseStore, user_id: str, expense_id: str, category, amount, comments=None) -> Expense:
    """
    Overwrites category, amount and comments of an expense the user owns.
    An id owned by another user is reported as not found, same as a missing one.
    """
    data = _validate(category, amount, comments)
    expense = await store.update_owned(user_id, expense_id, data.category, data.amount, data.comments)
    if expense is None:
        logger.warning(f"Update rejected: expense {expense_id} not found for user {user_id}.")
        raise NotFoundError(EXPENSE_NOT_FOUND)
    logger.info(f"User {user_id} updated expense {expense_id}.")
    return expense


async def delete_expense(store: ExpenseStore, user_id: str, expense_id: str) -> None:
    if not await store.delete_owned(user_id, expense_id):
        logger.warning(f"Delete rejected: expense {expense_id} not found for user {user_id}.")
        raise NotFoundError(EXPENSE_NOT_FOUND)
    logger.info(f"User {user_id} deleted expense {expense_id}.")


def summarize_totals(rows: List[dict]) -> ExpenseStats:
    """
    Builds the stats payload from per-category rows (already ordered by total).
    Percentages are rounded to 2 places and are 0 when there is nothing to share.
    """
    total_expenses = sum(row["total"] for row in rows)
    stats = [
        CategoryStat(
            category=row["category"],
            total=round(row["total"], 2),
            count=int(row["count"]),
            percentage=round(100 * row["total"] / total_expenses, 2) if total_expenses > 0 else 0,
        )
        for row in rows
    ]
    return ExpenseStats(stats=stats, total_expenses=round(total_expenses, 2))


async def get_stats(store: ExpenseStore, user_id: str) -> ExpenseStats:
    rows = await store.category_totals(user_id)
    stats = summarize_totals(rows)
    logger.info(f"Computed stats for user {user_id}: {len(stats.stats)} categories, total {stats.total_expenses}.")
    return stats
