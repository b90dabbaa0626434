"""Tests for expense CRUD, ownership and statistics."""
import pytest

from errors import NotFoundError, ValidationError
from services import auth_service, expenses_service
from services.expenses_service import summarize_totals


async def _user_id(database, settings, name="alice"):
    result = await auth_service.sign_up(database.users, settings, name, f"{name}@example.com", "secret123")
    return result.user.id


class TestExpenseCrud:

    @pytest.mark.asyncio
    async def test_create_trims_and_owns(self, database, settings):
        user_id = await _user_id(database, settings)

        expense = await expenses_service.create_expense(database.expenses, user_id, " Food ", "12.50", "  lunch ")

        assert expense.user_id == user_id
        assert expense.category == "Food"
        assert expense.amount == 12.5
        assert expense.comments == "lunch"

    @pytest.mark.asyncio
    async def test_create_rejects_bad_amounts(self, database, settings):
        user_id = await _user_id(database, settings)
        for amount in ("-5", "abc"):
            with pytest.raises(ValidationError):
                await expenses_service.create_expense(database.expenses, user_id, "Food", amount)
        expense = await expenses_service.create_expense(database.expenses, user_id, "Food", "0.01")
        assert expense.amount == 0.01

    @pytest.mark.asyncio
    async def test_list_is_newest_first_and_scoped_to_owner(self, database, settings):
        alice = await _user_id(database, settings, "alice")
        bob = await _user_id(database, settings, "bob")
        first = await expenses_service.create_expense(database.expenses, alice, "Food", 1)
        second = await expenses_service.create_expense(database.expenses, alice, "Rent", 2)
        await expenses_service.create_expense(database.expenses, bob, "Fuel", 3)

        listed = await expenses_service.list_expenses(database.expenses, alice)

        assert [e.id for e in listed] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_overwrites_fields(self, database, settings):
        user_id = await _user_id(database, settings)
        expense = await expenses_service.create_expense(database.expenses, user_id, "Food", 10, "old")

        updated = await expenses_service.update_expense(database.expenses, user_id, expense.id, "Groceries", 20)

        assert updated.id == expense.id
        assert (updated.category, updated.amount, updated.comments) == ("Groceries", 20.0, None)

    @pytest.mark.asyncio
    async def test_other_users_expense_is_not_found(self, database, settings):
        alice = await _user_id(database, settings, "alice")
        bob = await _user_id(database, settings, "bob")
        expense = await expenses_service.create_expense(database.expenses, alice, "Food", 10)

        with pytest.raises(NotFoundError):
            await expenses_service.update_expense(database.expenses, bob, expense.id, "Mine", 1)
        with pytest.raises(NotFoundError):
            await expenses_service.delete_expense(database.expenses, bob, expense.id)

        untouched = await expenses_service.list_expenses(database.expenses, alice)
        assert untouched[0].category == "Food"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, database, settings):
        user_id = await _user_id(database, settings)
        with pytest.raises(NotFoundError):
            await expenses_service.delete_expense(database.expenses, user_id, "not-an-object-id")

    @pytest.mark.asyncio
    async def test_delete_removes_expense(self, database, settings):
        user_id = await _user_id(database, settings)
        expense = await expenses_service.create_expense(database.expenses, user_id, "Food", 10)

        await expenses_service.delete_expense(database.expenses, user_id, expense.id)

        assert await expenses_service.list_expenses(database.expenses, user_id) == []
        with pytest.raises(NotFoundError):
            await expenses_service.delete_expense(database.expenses, user_id, expense.id)

    @pytest.mark.asyncio
    async def test_deleting_user_cascades_to_expenses(self, database, settings):
        user_id = await _user_id(database, settings)
        await expenses_service.create_expense(database.expenses, user_id, "Food", 10)
        await expenses_service.create_expense(database.expenses, user_id, "Rent", 20)

        assert await database.delete_user(user_id)

        assert await database.expenses.list_for_user(user_id) == []
        assert await database.users.find_by_id(user_id) is None


class TestStats:

    @pytest.mark.asyncio
    async def test_groups_by_category(self, database, settings):
        user_id = await _user_id(database, settings)
        for category, amount in (("Food", 100), ("Food", 50), ("Transport", 30)):
            await expenses_service.create_expense(database.expenses, user_id, category, amount)

        stats = await expenses_service.get_stats(database.expenses, user_id)

        assert stats.total_expenses == 180
        assert [(s.category, s.total, s.count, s.percentage) for s in stats.stats] == [
            ("Food", 150, 2, 83.33),
            ("Transport", 30, 1, 16.67),
        ]

    @pytest.mark.asyncio
    async def test_no_expenses(self, database, settings):
        user_id = await _user_id(database, settings)

        stats = await expenses_service.get_stats(database.expenses, user_id)

        assert stats.stats == []
        assert stats.total_expenses == 0

    @pytest.mark.asyncio
    async def test_only_counts_own_expenses(self, database, settings):
        alice = await _user_id(database, settings, "alice")
        bob = await _user_id(database, settings, "bob")
        await expenses_service.create_expense(database.expenses, alice, "Food", 10)
        await expenses_service.create_expense(database.expenses, bob, "Food", 99)

        stats = await expenses_service.get_stats(database.expenses, alice)

        assert stats.total_expenses == 10
        assert stats.stats[0].percentage == 100

    def test_totals_and_percentages_add_up(self):
        rows = [
            {"category": "A", "total": 10.1, "count": 1},
            {"category": "B", "total": 20.2, "count": 2},
            {"category": "C", "total": 3.3, "count": 1},
        ]

        stats = summarize_totals(rows)

        assert sum(s.total for s in stats.stats) == pytest.approx(stats.total_expenses, abs=0.01)
        assert sum(s.percentage for s in stats.stats) == pytest.approx(100, abs=0.05)

    def test_zero_total_gives_zero_percentage(self):
        stats = summarize_totals([{"category": "A", "total": 0, "count": 0}])
        assert stats.stats[0].percentage == 0
