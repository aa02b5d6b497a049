import pytest
import datetime
import uuid
from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from torah_connect_backend.database import models as db_models
from torah_connect_backend.database.db_enums import PaymentStatus, WithdrawalStatus
from torah_connect_backend.models import finance as finance_models
from torah_connect_backend.services.withdrawal_service import WithdrawalService

from tests.database import factories

from pprint import pp as pprint

BANK_ACCOUNT = "IL620108000000099999999"


@pytest.mark.anyio
class TestWithdrawalBalance:

    async def test_balance_counts_processed_earnings_only(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm, status=PaymentStatus.PENDING.value)
        factories.MonthlyPaymentFactory()
        factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, amount=5000, status=WithdrawalStatus.COMPLETED.value)
        factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, amount=3000)
        factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, amount=10000, status=WithdrawalStatus.REJECTED.value)
        await db_session.flush()

        # --- ACT ---
        balance = await withdrawal_service.balance(test_teacher_orm)
        pprint(balance.model_dump())

        # --- ASSERT ---
        assert balance.earned == 42000
        assert balance.withdrawn == 5000
        assert balance.pending == 3000
        assert balance.available == 34000

    async def test_teacher_without_earnings_has_nothing_available(
        self,
        withdrawal_service: WithdrawalService,
        test_teacher_orm: db_models.Profiles
    ):
        balance = await withdrawal_service.balance(test_teacher_orm)
        assert balance == finance_models.WithdrawalBalance(earned=0, withdrawn=0, pending=0, available=0)

    async def test_student_has_no_balance(
        self,
        withdrawal_service: WithdrawalService,
        test_student_orm: db_models.Profiles
    ):
        with pytest.raises(HTTPException) as e:
            await withdrawal_service.balance(test_student_orm)
        assert e.value.status_code == 403


@pytest.mark.anyio
class TestWithdrawalRequest:

    async def test_request_reserves_the_amount(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        await db_session.flush()

        # --- ACT ---
        withdrawal = await withdrawal_service.request(
            finance_models.WithdrawalCreate(amount=21000, bank_account=BANK_ACCOUNT), test_teacher_orm
        )

        # --- ASSERT ---
        assert withdrawal.status == WithdrawalStatus.PENDING.value
        assert withdrawal.teacher_id == test_teacher_orm.id
        balance = await withdrawal_service.balance(test_teacher_orm)
        assert balance.pending == 21000
        assert balance.available == 0
        assert [w.id for w in await withdrawal_service.list_mine(test_teacher_orm)] == [withdrawal.id]

    async def test_request_above_balance_is_refused(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, amount=20000)
        await db_session.flush()

        # --- ACT & ASSERT ---
        with pytest.raises(HTTPException) as e:
            await withdrawal_service.request(
                finance_models.WithdrawalCreate(amount=1001, bank_account=BANK_ACCOUNT), test_teacher_orm
            )
        assert e.value.status_code == 400
        assert len(await withdrawal_service.list_mine(test_teacher_orm)) == 1

    async def test_student_cannot_request(
        self,
        withdrawal_service: WithdrawalService,
        test_student_orm: db_models.Profiles
    ):
        with pytest.raises(HTTPException) as e:
            await withdrawal_service.request(
                finance_models.WithdrawalCreate(amount=100, bank_account=BANK_ACCOUNT), test_student_orm
            )
        assert e.value.status_code == 403


@pytest.mark.anyio
class TestWithdrawalDecisions:

    async def test_complete_once(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        withdrawal = factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, amount=5000)
        await db_session.flush()

        # --- ACT ---
        completed = await withdrawal_service.complete(withdrawal.id, test_admin_orm, "sent 2026-10-01")

        # --- ASSERT ---
        assert completed.status == WithdrawalStatus.COMPLETED.value
        assert completed.processed_by == test_admin_orm.id
        assert completed.processed_at is not None
        assert completed.notes == "sent 2026-10-01"
        assert (await withdrawal_service.balance(test_teacher_orm)).withdrawn == 5000

        with pytest.raises(HTTPException) as e:
            await withdrawal_service.reject(withdrawal.id, test_admin_orm)
        assert e.value.status_code == 409

    async def test_reject_releases_the_amount(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        factories.MonthlyPaymentFactory(teacher=test_teacher_orm)
        withdrawal = factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, amount=21000)
        await db_session.flush()
        assert (await withdrawal_service.balance(test_teacher_orm)).available == 0

        # --- ACT ---
        rejected = await withdrawal_service.reject(withdrawal.id, test_admin_orm, "wrong account")

        # --- ASSERT ---
        assert rejected.status == WithdrawalStatus.REJECTED.value
        assert (await withdrawal_service.balance(test_teacher_orm)).available == 21000

    async def test_teacher_cannot_decide(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_teacher_orm: db_models.Profiles
    ):
        withdrawal = factories.WithdrawalFactory(teacher_id=test_teacher_orm.id)
        await db_session.flush()

        with pytest.raises(HTTPException) as e:
            await withdrawal_service.complete(withdrawal.id, test_teacher_orm)
        assert e.value.status_code == 403

    async def test_unknown_withdrawal_is_not_found(
        self,
        withdrawal_service: WithdrawalService,
        test_admin_orm: db_models.Profiles
    ):
        with pytest.raises(HTTPException) as e:
            await withdrawal_service.complete(uuid.uuid4(), test_admin_orm)
        assert e.value.status_code == 404

    async def test_decision_after_concurrent_decision_conflicts(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        """The loaded withdrawal still reads pending while another admin has already completed it."""
        # --- ARRANGE ---
        first_admin = factories.AdminFactory()
        withdrawal = factories.WithdrawalFactory(teacher_id=test_teacher_orm.id)
        await db_session.flush()
        await db_session.execute(
            update(db_models.TeacherWithdrawals).where(
                db_models.TeacherWithdrawals.id == withdrawal.id
            ).values(
                status=WithdrawalStatus.COMPLETED.value,
                processed_by=first_admin.id,
                processed_at=datetime.datetime(2026, 10, 1, 9, 0, tzinfo=datetime.timezone.utc)
            ).execution_options(synchronize_session=False)
        )
        assert withdrawal.status == WithdrawalStatus.PENDING.value

        # --- ACT ---
        with pytest.raises(HTTPException) as e:
            await withdrawal_service.reject(withdrawal.id, test_admin_orm)

        # --- ASSERT ---
        assert e.value.status_code == 409
        await db_session.refresh(withdrawal)
        assert withdrawal.status == WithdrawalStatus.COMPLETED.value
        assert withdrawal.processed_by == first_admin.id

    async def test_admin_lists_by_status(
        self,
        db_session: AsyncSession,
        withdrawal_service: WithdrawalService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        pending = factories.WithdrawalFactory(teacher_id=test_teacher_orm.id)
        factories.WithdrawalFactory(teacher_id=test_teacher_orm.id, status=WithdrawalStatus.COMPLETED.value)
        await db_session.flush()

        listed = await withdrawal_service.list_all(test_admin_orm, WithdrawalStatus.PENDING)

        assert [w.id for w in listed] == [pending.id]
