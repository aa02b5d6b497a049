import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from torah_connect_backend.database import models as db_models
from torah_connect_backend.services.security import JWTHandler

from tests.database import factories

from pprint import pp as pprint


# Helper to create auth headers
def auth_headers_for_user(user: db_models.Profiles) -> dict:
    """Creates a JWT token for the given user and returns auth headers."""
    token = JWTHandler.create_access_token(subject=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.anyio
class TestWithdrawalsAPI:

    async def test_withdrawal_cycle(
        self,
        db_session: AsyncSession,
        client: httpx.AsyncClient,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        admin_headers = auth_headers_for_user(test_admin_orm)
        teacher_headers = auth_headers_for_user(test_teacher_orm)

        # --- ARRANGE: one processed payment worth 21000 to the teacher ---
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        await db_session.flush()

        # --- ACT: request ---
        created = await client.post(
            "/withdrawals/", json={"amount": 15000, "bank_account": "IL620108000000099999999"}, headers=teacher_headers
        )
        pprint(created.json())

        # --- ASSERT ---
        assert created.status_code == 201
        assert created.json()["status"] == "pending"

        too_much = await client.post(
            "/withdrawals/", json={"amount": 6001, "bank_account": "IL620108000000099999999"}, headers=teacher_headers
        )
        assert too_much.status_code == 400

        queue = await client.get("/admin/withdrawals/?status=pending", headers=admin_headers)
        assert [w["id"] for w in queue.json()] == [created.json()["id"]]

        # --- ACT: complete ---
        completed = await client.post(
            f"/admin/withdrawals/{created.json()['id']}/complete", json={"notes": "wired"}, headers=admin_headers
        )

        # --- ASSERT ---
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["notes"] == "wired"

        balance = await client.get("/withdrawals/balance", headers=teacher_headers)
        assert balance.json() == {"earned": 21000, "withdrawn": 15000, "pending": 0, "available": 6000}

    async def test_non_positive_amount_is_invalid(
        self,
        client: httpx.AsyncClient,
        test_teacher_orm: db_models.Profiles
    ):
        response = await client.post(
            "/withdrawals/", json={"amount": 0, "bank_account": "IL62"}, headers=auth_headers_for_user(test_teacher_orm)
        )
        assert response.status_code == 422

    async def test_teacher_cannot_review_withdrawals(
        self,
        client: httpx.AsyncClient,
        test_teacher_orm: db_models.Profiles
    ):
        response = await client.get("/admin/withdrawals/", headers=auth_headers_for_user(test_teacher_orm))
        assert response.status_code == 403

    async def test_reject_without_notes(
        self,
        db_session: AsyncSession,
        client: httpx.AsyncClient,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        withdrawal = factories.WithdrawalFactory(teacher_id=test_teacher_orm.id)
        await db_session.flush()

        response = await client.post(
            f"/admin/withdrawals/{withdrawal.id}/reject", headers=auth_headers_for_user(test_admin_orm)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
