"""
FieldOps - API Endpoint Tests

Envelope shape, auth, status codes and camelCase payloads.
"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from app.models.task import JobType
from app.utils.security import create_access_token


class TestAuth:

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/api/v1/payrolls")

        assert response.status_code == 401
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_bad_token(self, client):
        response = await client.get(
            "/api/v1/payrolls", headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, boss_user):
        token = create_access_token(boss_user.id, expires_delta=timedelta(minutes=-5))
        response = await client.get(
            "/api/v1/payrolls", headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, client):
        token = create_access_token(424242)
        response = await client.get(
            "/api/v1/payrolls", headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_plain_user_cannot_create(self, client, plain_headers, rai_worker):
        response = await client.post(
            "/api/v1/payrolls",
            json={"userId": rai_worker.id, "month": "2026-01"},
            headers=plain_headers,
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_plain_user_can_read(self, client, plain_headers):
        response = await client.get("/api/v1/payrolls", headers=plain_headers)
        assert response.status_code == 200


class TestPayrollEndpoints:

    @pytest.mark.asyncio
    async def test_preview(self, client, boss_headers, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))

        response = await client.get(
            "/api/v1/payrolls/preview",
            params={"userId": rai_worker.id, "month": "2026-01"},
            headers=boss_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["raiQty"] == "5.00"
        assert data["raiAmount"] == "300.00"
        assert data["grossAmount"] == "300.00"
        assert data["skippedCount"] == 0
        assert data["details"][0]["display"] == "2026-01-10 Ploughing 5 rai"

    @pytest.mark.asyncio
    async def test_preview_bad_month(self, client, boss_headers, rai_worker):
        response = await client.get(
            "/api/v1/payrolls/preview",
            params={"userId": rai_worker.id, "month": "2026-1"},
            headers=boss_headers,
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_MONTH"
        assert error["field"] == "month"
        assert error["timestamp"].endswith("Z")
        assert "+00:00" not in error["timestamp"]
        assert datetime.fromisoformat(error["timestamp"][:-1]).year >= 2026

    @pytest.mark.asyncio
    async def test_preview_unknown_employee(self, client, boss_headers):
        response = await client.get(
            "/api/v1/payrolls/preview",
            params={"userId": 9999, "month": "2026-01"},
            headers=boss_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_create_then_conflict(self, client, boss_headers, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        payload = {"userId": rai_worker.id, "month": "2026-01", "deduction": 100, "note": "advance"}

        created = await client.post("/api/v1/payrolls", json=payload, headers=boss_headers)

        assert created.status_code == 201
        body = created.json()
        assert body["ok"] is True
        slip = body["data"]
        assert slip["slipNo"] == f"PR-202601-{slip['id']:06d}"
        assert slip["netAmount"] == "200.00"
        assert slip["status"] == "Unpaid"
        assert slip["employeeUsername"] == "driver1"
        assert slip["createdByUsername"] == "boss"

        again = await client.post("/api/v1/payrolls", json=payload, headers=boss_headers)

        assert again.status_code == 409
        error = again.json()["error"]
        assert error["code"] == "DUPLICATE_PAYROLL_SLIP"
        assert error["details"]["id"] == slip["id"]
        assert error["details"]["slipNo"] == slip["slipNo"]

    @pytest.mark.asyncio
    async def test_create_negative_deduction(self, client, boss_headers, rai_worker):
        response = await client.post(
            "/api/v1/payrolls",
            json={"userId": rai_worker.id, "month": "2026-01", "deduction": -5},
            headers=boss_headers,
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_list_get_pay_delete(self, client, boss_headers, daily_worker, make_task):
        await make_task(daily_worker.id, job_type=JobType.REPAIR, start_date=date(2026, 2, 3))
        created = await client.post(
            "/api/v1/payrolls",
            json={"userId": daily_worker.id, "month": "2026-02"},
            headers=boss_headers,
        )
        slip_id = created.json()["data"]["id"]

        listing = await client.get(
            "/api/v1/payrolls",
            params={"month": "2026-02", "status": "Unpaid"},
            headers=boss_headers,
        )
        data = listing.json()["data"]
        assert data["count"] == 1
        assert data["items"][0]["dailyAmount"] == "400.00"
        assert data["filters"]["month"] == "2026-02"

        fetched = await client.get(f"/api/v1/payrolls/{slip_id}", headers=boss_headers)
        assert fetched.status_code == 200
        assert fetched.json()["data"]["id"] == slip_id

        paid = await client.patch(
            f"/api/v1/payrolls/{slip_id}/pay", json={"paid": True}, headers=boss_headers,
        )
        assert paid.status_code == 200
        assert paid.json()["data"]["status"] == "Paid"
        assert paid.json()["data"]["paidAt"] is not None

        expenses = await client.get(
            "/api/v1/expenses", params={"type": "labor"}, headers=boss_headers,
        )
        items = expenses.json()["data"]["items"]
        assert len(items) == 1
        assert items[0]["payrollSlipId"] == slip_id
        assert items[0]["amount"] == "400.00"

        deleted = await client.delete(f"/api/v1/payrolls/{slip_id}", headers=boss_headers)
        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"id": slip_id}

        missing = await client.get(f"/api/v1/payrolls/{slip_id}", headers=boss_headers)
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "PAYROLL_SLIP_NOT_FOUND"

        expenses = await client.get("/api/v1/expenses", headers=boss_headers)
        assert expenses.json()["data"]["count"] == 0

    @pytest.mark.asyncio
    async def test_pay_missing_slip(self, client, boss_headers):
        response = await client.patch(
            "/api/v1/payrolls/31337/pay", json={"paid": True}, headers=boss_headers,
        )
        assert response.status_code == 404


class TestTaskEndpoints:

    @pytest.mark.asyncio
    async def test_payment_flow(self, client, boss_headers, rai_worker, make_task):
        task = await make_task(rai_worker.id, area=Decimal("5"))

        created = await client.post(
            f"/api/v1/tasks/{task.id}/payments",
            json={"amount": 700, "note": "cash"},
            headers=boss_headers,
        )
        assert created.status_code == 201
        payment_id = created.json()["data"]["id"]
        assert created.json()["data"]["amount"] == 700

        listing = await client.get(f"/api/v1/tasks/{task.id}/payments", headers=boss_headers)
        data = listing.json()["data"]
        assert data["taskId"] == task.id
        assert data["count"] == 1
        assert data["items"][0]["note"] == "cash"

        deleted = await client.delete(
            f"/api/v1/tasks/{task.id}/payments/{payment_id}", headers=boss_headers,
        )
        assert deleted.json()["data"] == {"paymentId": payment_id}

    @pytest.mark.asyncio
    async def test_payment_rejects_zero(self, client, boss_headers, rai_worker, make_task):
        task = await make_task(rai_worker.id, area=Decimal("5"))
        response = await client.post(
            f"/api/v1/tasks/{task.id}/payments", json={"amount": 0}, headers=boss_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_assignees_then_preview_uses_override(
        self, client, boss_headers, rai_worker, make_task,
    ):
        task = await make_task(rai_worker.id, area=Decimal("5"))

        saved = await client.put(
            f"/api/v1/tasks/{task.id}/assignees",
            json={"assignees": [{"userId": rai_worker.id, "useDefault": False, "ratePerRai": 70}]},
            headers=boss_headers,
        )
        assert saved.status_code == 200
        assert saved.json()["data"][0]["ratePerRai"] == "70.00"

        preview = await client.get(
            "/api/v1/payrolls/preview",
            params={"userId": rai_worker.id, "month": "2026-01"},
            headers=boss_headers,
        )
        assert preview.json()["data"]["raiAmount"] == "350.00"


class TestMonthToken:

    @pytest.mark.asyncio
    async def test_trailing_newline_rejected(self, client, boss_headers, rai_worker):
        created = await client.post(
            "/api/v1/payrolls",
            json={"userId": rai_worker.id, "month": "2026-01"},
            headers=boss_headers,
        )
        assert created.status_code == 201

        preview = await client.get(
            "/api/v1/payrolls/preview",
            params={"userId": rai_worker.id, "month": "2026-01\n"},
            headers=boss_headers,
        )
        assert preview.status_code == 422
        assert preview.json()["error"]["code"] == "INVALID_MONTH"

        again = await client.post(
            "/api/v1/payrolls",
            json={"userId": rai_worker.id, "month": "2026-01\n"},
            headers=boss_headers,
        )
        assert again.status_code == 422
        assert again.json()["error"]["code"] == "INVALID_MONTH"

        listing = await client.get("/api/v1/payrolls", headers=boss_headers)
        assert listing.json()["data"]["count"] == 1


class TestExpenseEndpoints:

    @pytest.mark.asyncio
    async def test_manual_expense_flow(self, client, boss_headers, boss_user):
        created = await client.post(
            "/api/v1/expenses",
            json={
                "title": "Diesel",
                "type": "fuel",
                "amount": 1500,
                "workDate": "2026-01-15",
                "qtyNote": "60 L",
                "payrollSlipId": 99,
            },
            headers=boss_headers,
        )
        assert created.status_code == 201
        expense = created.json()["data"]
        assert expense["amount"] == "1500.00"
        assert expense["payrollSlipId"] is None
        assert expense["createdBy"] == boss_user.id

        patched = await client.patch(
            f"/api/v1/expenses/{expense['id']}",
            json={"amount": 1450, "jobNote": "tractor 2"},
            headers=boss_headers,
        )
        assert patched.status_code == 200
        assert patched.json()["data"]["amount"] == "1450.00"
        assert patched.json()["data"]["title"] == "Diesel"
        assert patched.json()["data"]["jobNote"] == "tractor 2"

        on_day = await client.get(
            "/api/v1/expenses", params={"from": "2026-01-15"}, headers=boss_headers,
        )
        assert on_day.json()["data"]["count"] == 1
        other_day = await client.get(
            "/api/v1/expenses", params={"from": "2026-01-16"}, headers=boss_headers,
        )
        assert other_day.json()["data"]["count"] == 0

        deleted = await client.delete(f"/api/v1/expenses/{expense['id']}", headers=boss_headers)
        assert deleted.json()["data"] == {"id": expense["id"]}

        missing = await client.delete(f"/api/v1/expenses/{expense['id']}", headers=boss_headers)
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "EXPENSE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_create_rejects_bad_amount(self, client, boss_headers):
        response = await client.post(
            "/api/v1/expenses",
            json={"title": "Diesel", "type": "fuel", "amount": 0, "workDate": "2026-01-15"},
            headers=boss_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_plain_user_cannot_write(self, client, plain_headers):
        response = await client.post(
            "/api/v1/expenses",
            json={"title": "Diesel", "type": "fuel", "amount": 10, "workDate": "2026-01-15"},
            headers=plain_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_payroll_expense_is_read_only(self, client, boss_headers, rai_worker, make_task):
        await make_task(rai_worker.id, area=Decimal("5"))
        created = await client.post(
            "/api/v1/payrolls",
            json={"userId": rai_worker.id, "month": "2026-01"},
            headers=boss_headers,
        )
        slip_id = created.json()["data"]["id"]
        await client.patch(
            f"/api/v1/payrolls/{slip_id}/pay", json={"paid": True}, headers=boss_headers,
        )
        listing = await client.get(
            "/api/v1/expenses", params={"payrollOnly": "true"}, headers=boss_headers,
        )
        expense_id = listing.json()["data"]["items"][0]["id"]

        patched = await client.patch(
            f"/api/v1/expenses/{expense_id}", json={"amount": 1}, headers=boss_headers,
        )
        assert patched.status_code == 409
        assert patched.json()["error"]["code"] == "PAYROLL_MANAGED_EXPENSE"

        deleted = await client.delete(f"/api/v1/expenses/{expense_id}", headers=boss_headers)
        assert deleted.status_code == 409

        listing = await client.get(
            "/api/v1/expenses", params={"payrollOnly": "true"}, headers=boss_headers,
        )
        assert listing.json()["data"]["items"][0]["amount"] == "300.00"
