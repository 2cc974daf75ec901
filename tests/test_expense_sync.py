"""
FieldOps - Payroll Expense Sync and Expense Ledger Tests
"""

import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import select

from app.models.expense import Expense, ExpenseType
from app.services.expense_service import ExpenseService
from app.services.expense_sync_service import ExpenseSyncService
from app.services.payroll_service import PayrollService
from app.utils.error_handling import (
    ExpenseNotFoundException,
    InvalidAmountException,
    PayrollManagedExpenseException,
    ValidationException,
)


async def expenses_for(db_session, slip_id):
    result = await db_session.execute(
        select(Expense)
        .where(Expense.payroll_slip_id == slip_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


class TestExpenseSymmetry:
    """Paid slip <-> exactly one expense row."""

    @pytest.mark.asyncio
    async def test_paid_creates_one_expense(self, db_session, rai_worker, boss_user, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        service = PayrollService(db_session)
        slip = await service.create_slip(rai_worker.id, "2026-01", deduction=Decimal("20"), note="Jan")

        paid = await service.set_paid_status(slip.id, True, actor_id=boss_user.id)
        rows = await expenses_for(db_session, slip.id)

        assert len(rows) == 1
        expense = rows[0]
        assert expense.title == f"Payroll 2026-01 - Prasert ({slip.slip_no})"
        assert expense.type == ExpenseType.LABOR
        assert expense.amount == Decimal("280")
        assert expense.work_date == paid.paid_at.date()
        assert expense.job_note == "Jan"
        assert expense.created_by == boss_user.id

    @pytest.mark.asyncio
    async def test_paid_twice_keeps_single_row(self, db_session, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        service = PayrollService(db_session)
        slip = await service.create_slip(rai_worker.id, "2026-01")

        await service.set_paid_status(slip.id, True)
        first = await expenses_for(db_session, slip.id)
        await service.set_paid_status(slip.id, True)
        second = await expenses_for(db_session, slip.id)

        assert len(second) == 1
        assert second[0].id == first[0].id

    @pytest.mark.asyncio
    async def test_unpaid_removes_row(self, db_session, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        service = PayrollService(db_session)
        slip = await service.create_slip(rai_worker.id, "2026-01")

        await service.set_paid_status(slip.id, True)
        await service.set_paid_status(slip.id, False)

        assert await expenses_for(db_session, slip.id) == []

    @pytest.mark.asyncio
    async def test_unpaid_on_never_paid_slip_is_noop(self, db_session, rai_worker):
        service = PayrollService(db_session)
        slip = await service.create_slip(rai_worker.id, "2026-01")

        await service.set_paid_status(slip.id, False)
        assert await expenses_for(db_session, slip.id) == []

    @pytest.mark.asyncio
    async def test_display_name_falls_back_to_username(self, db_session, daily_worker, make_task):
        await make_task(daily_worker.id, area=Decimal("1"))
        service = PayrollService(db_session)
        slip = await service.create_slip(daily_worker.id, "2026-01")

        await service.set_paid_status(slip.id, True)
        rows = await expenses_for(db_session, slip.id)

        assert rows[0].title == f"Payroll 2026-01 - helper1 ({slip.slip_no})"


class TestExpenseSyncService:

    @pytest.mark.asyncio
    async def test_upsert_updates_in_place(self, db_session, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        slip = await PayrollService(db_session).create_slip(rai_worker.id, "2026-01")
        sync = ExpenseSyncService(db_session)

        created = await sync.upsert(slip)
        slip.note = "corrected"
        updated = await sync.upsert(slip)
        await db_session.commit()

        rows = await expenses_for(db_session, slip.id)
        assert [r.id for r in rows] == [created.id]
        assert updated.job_note == "corrected"
        # No paid_at yet, so today is used
        assert updated.work_date == date.today()

    @pytest.mark.asyncio
    async def test_remove_without_row(self, db_session):
        assert await ExpenseSyncService(db_session).remove(99) is False


class TestExpenseListing:

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        service = PayrollService(db_session)
        slip = await service.create_slip(rai_worker.id, "2026-01")
        await service.set_paid_status(slip.id, True)
        db_session.add(Expense(
            title="Diesel",
            type=ExpenseType.FUEL,
            amount=Decimal("1500"),
            work_date=date(2020, 5, 1),
        ))
        await db_session.commit()

        listing = ExpenseService(db_session)
        everything = await listing.list_expenses()
        assert [e.payroll_slip_id for e in everything] == [slip.id, None]
        assert len(await listing.list_expenses(expense_type="fuel")) == 1
        on_day = await listing.list_expenses(work_date=date(2020, 5, 1))
        assert [e.title for e in on_day] == ["Diesel"]
        assert await listing.list_expenses(work_date=date(2020, 5, 2)) == []
        payroll_rows = await listing.list_expenses(payroll_only=True)
        assert [e.payroll_slip_id for e in payroll_rows] == [slip.id]

    @pytest.mark.asyncio
    async def test_unknown_type(self, db_session):
        with pytest.raises(ValidationException):
            await ExpenseService(db_session).list_expenses(expense_type="food")


class TestManualExpenses:
    """Hand-entered rows; payroll-linked rows cannot be touched."""

    @pytest.mark.asyncio
    async def test_create(self, db_session, boss_user):
        expense = await ExpenseService(db_session).create_expense(
            title="Spare blade",
            expense_type="material",
            amount="1250.5",
            work_date=date(2026, 1, 12),
            qty_note="2 pcs",
            actor_id=boss_user.id,
        )

        assert expense.id is not None
        assert expense.type == ExpenseType.MATERIAL
        assert expense.amount == Decimal("1250.50")
        assert expense.payroll_slip_id is None
        assert expense.created_by == boss_user.id

    @pytest.mark.asyncio
    async def test_create_validation(self, db_session):
        service = ExpenseService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.create_expense("Diesel", "fuel", 0, date(2026, 1, 1))
        with pytest.raises(ValidationException):
            await service.create_expense("Diesel", "food", 100, date(2026, 1, 1))
        with pytest.raises(ValidationException):
            await service.create_expense("  ", "fuel", 100, date(2026, 1, 1))
        assert await service.list_expenses() == []

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session):
        service = ExpenseService(db_session)
        expense = await service.create_expense(
            "Diesel", "fuel", 900, date(2026, 1, 5), job_note="tractor 2",
        )

        updated = await service.update_expense(
            expense.id, {"amount": 950, "job_note": None, "payroll_slip_id": 1},
        )

        assert updated.amount == Decimal("950.00")
        assert updated.title == "Diesel"
        assert updated.job_note == "tractor 2"
        assert updated.payroll_slip_id is None

    @pytest.mark.asyncio
    async def test_delete(self, db_session):
        service = ExpenseService(db_session)
        expense = await service.create_expense("Diesel", "fuel", 900, date(2026, 1, 5))

        assert await service.delete_expense(expense.id) == expense.id
        with pytest.raises(ExpenseNotFoundException):
            await service.get_expense(expense.id)

    @pytest.mark.asyncio
    async def test_missing_expense(self, db_session):
        service = ExpenseService(db_session)
        with pytest.raises(ExpenseNotFoundException):
            await service.update_expense(404, {"title": "x"})
        with pytest.raises(ExpenseNotFoundException):
            await service.delete_expense(404)

    @pytest.mark.asyncio
    async def test_payroll_row_is_protected(self, db_session, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        payroll = PayrollService(db_session)
        slip = await payroll.create_slip(rai_worker.id, "2026-01")
        await payroll.set_paid_status(slip.id, True)
        expense_id = (await expenses_for(db_session, slip.id))[0].id
        service = ExpenseService(db_session)

        with pytest.raises(PayrollManagedExpenseException) as exc_info:
            await service.update_expense(expense_id, {"amount": 1})
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["payrollSlipId"] == slip.id

        with pytest.raises(PayrollManagedExpenseException):
            await service.delete_expense(expense_id)

        rows = await expenses_for(db_session, slip.id)
        assert len(rows) == 1
        assert rows[0].amount == Decimal("300.00")
