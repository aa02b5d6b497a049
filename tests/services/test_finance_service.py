import pytest
import datetime
from decimal import Decimal
from uuid import UUID
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from torah_connect_backend.database import models as db_models
from torah_connect_backend.database.db_enums import PaymentStatus, ApprovalStatus
from torah_connect_backend.models import finance as finance_models
from torah_connect_backend.services.finance_service import (
    SalarySettingsService,
    TeacherHoursService,
    HoursAggregator,
    MonthlyPaymentService
)

from tests.database import factories
from tests.constants import TEST_MONTH, TEST_TEACHER_PERCENTAGE, TEST_ADMIN_PERCENTAGE

from pprint import pp as pprint


async def _log(db_session: AsyncSession, teacher: db_models.Profiles, hours: str, day: datetime.date):
    db_session.add(db_models.TeacherHours(teacher_id=teacher.id, hours_taught=Decimal(hours), date_taught=day))
    await db_session.flush()


@pytest.mark.anyio
class TestSalarySettingsService:

    async def test_default_split_before_first_row(self, salary_settings_service: SalarySettingsService):
        current = await salary_settings_service.get_current()

        assert current.id is None
        assert current.teacher_percentage == TEST_TEACHER_PERCENTAGE
        assert current.admin_percentage == TEST_ADMIN_PERCENTAGE

    async def test_admin_updates_split(
        self,
        salary_settings_service: SalarySettingsService,
        test_admin_orm: db_models.Profiles
    ):
        data = finance_models.SalarySettingsCreate(teacher_percentage=Decimal("0.65"), admin_percentage=Decimal("0.35"))

        row = await salary_settings_service.update(data, test_admin_orm)
        current = await salary_settings_service.get_current()

        assert current.id == row.id
        assert current.teacher_percentage == Decimal("0.65")
        assert current.updated_by == test_admin_orm.id

    async def test_teacher_cannot_update_split(
        self,
        salary_settings_service: SalarySettingsService,
        test_teacher_orm: db_models.Profiles
    ):
        data = finance_models.SalarySettingsCreate(teacher_percentage=Decimal("0.9"), admin_percentage=Decimal("0.1"))
        with pytest.raises(HTTPException) as e:
            await salary_settings_service.update(data, test_teacher_orm)
        assert e.value.status_code == 403

    def test_split_must_add_up(self):
        with pytest.raises(ValidationError):
            finance_models.SalarySettingsCreate(teacher_percentage=Decimal("0.7"), admin_percentage=Decimal("0.2"))


@pytest.mark.anyio
class TestTeacherHoursService:

    async def test_teacher_logs_hours(
        self,
        teacher_hours_service: TeacherHoursService,
        test_teacher_orm: db_models.Profiles
    ):
        data = finance_models.TeacherHoursCreate(hours_taught=Decimal("1.50"), date_taught=datetime.date(2026, 3, 2))

        row = await teacher_hours_service.log_hours(data, test_teacher_orm)

        assert row.id is not None
        assert row.teacher_id == test_teacher_orm.id

    async def test_pending_teacher_cannot_log_hours(
        self,
        teacher_hours_service: TeacherHoursService,
        test_pending_teacher_orm: db_models.Profiles
    ):
        data = finance_models.TeacherHoursCreate(hours_taught=Decimal("1"), date_taught=datetime.date(2026, 3, 2))
        with pytest.raises(HTTPException) as e:
            await teacher_hours_service.log_hours(data, test_pending_teacher_orm)
        assert e.value.status_code == 403

    async def test_cannot_log_hours_for_someone_elses_session(
        self,
        db_session: AsyncSession,
        teacher_hours_service: TeacherHoursService,
        test_teacher_orm: db_models.Profiles,
        test_student_orm: db_models.Profiles
    ):
        other_teacher = factories.TeacherFactory()
        await db_session.flush()
        session = db_models.CourseSessions(
            teacher_id=other_teacher.id,
            student_id=test_student_orm.id,
            session_date=datetime.datetime(2026, 3, 2, 10, tzinfo=datetime.timezone.utc),
            duration_minutes=60,
            session_type="regular",
        )
        db_session.add(session)
        await db_session.flush()

        data = finance_models.TeacherHoursCreate(
            hours_taught=Decimal("1"), date_taught=datetime.date(2026, 3, 2), session_id=session.id
        )
        with pytest.raises(HTTPException) as e:
            await teacher_hours_service.log_hours(data, test_teacher_orm)
        assert e.value.status_code == 403

    async def test_aggregator_sums_one_month(
        self,
        db_session: AsyncSession,
        test_teacher_orm: db_models.Profiles
    ):
        await _log(db_session, test_teacher_orm, "6.00", datetime.date(2026, 3, 1))
        await _log(db_session, test_teacher_orm, "4.50", datetime.date(2026, 3, 31))
        await _log(db_session, test_teacher_orm, "3.00", datetime.date(2026, 4, 1))

        total = await HoursAggregator(db=db_session).total_hours(test_teacher_orm.id, TEST_MONTH)

        assert total == Decimal("10.50")


@pytest.mark.anyio
class TestMonthlyPaymentService:

    async def test_generate_ten_hours(
        self,
        db_session: AsyncSession,
        payment_service: MonthlyPaymentService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        """10 hours at 2000 with a 70/30 split."""
        # --- ARRANGE ---
        await _log(db_session, test_teacher_orm, "6", datetime.date(2026, 3, 3))
        await _log(db_session, test_teacher_orm, "4", datetime.date(2026, 3, 20))

        # --- ACT ---
        summary = await payment_service.generate(TEST_MONTH, test_admin_orm)
        pprint(summary.model_dump())

        # --- ASSERT ---
        assert len(summary.generated) == 1
        payment = summary.generated[0]
        assert payment.teacher_id == test_teacher_orm.id
        assert payment.gross_amount == 20000
        assert payment.teacher_amount == 14000
        assert payment.admin_amount == 6000
        assert payment.teacher_percentage == TEST_TEACHER_PERCENTAGE
        assert payment.status == PaymentStatus.PENDING

    async def test_generate_is_idempotent(
        self,
        db_session: AsyncSession,
        payment_service: MonthlyPaymentService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        await _log(db_session, test_teacher_orm, "2", datetime.date(2026, 3, 3))

        first = await payment_service.generate(TEST_MONTH, test_admin_orm)
        second = await payment_service.generate(TEST_MONTH, test_admin_orm)

        assert len(first.generated) == 1
        assert second.generated == []
        assert second.skipped_teacher_ids == [test_teacher_orm.id]
        assert len(await payment_service.list_payments(test_admin_orm)) == 1

    async def test_teacher_without_hours_is_skipped(
        self,
        payment_service: MonthlyPaymentService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        summary = await payment_service.generate(TEST_MONTH, test_admin_orm)

        assert summary.generated == []
        assert summary.skipped_teacher_ids == [test_teacher_orm.id]

    async def test_failing_teacher_does_not_stop_the_batch(
        self,
        db_session: AsyncSession,
        mock_hours_aggregator: HoursAggregator,
        salary_settings_service: SalarySettingsService,
        test_admin_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        good_teacher = factories.TeacherFactory(first_name="Aaron")
        bad_teacher = factories.TeacherFactory(first_name="Boaz")
        unrated_teacher = factories.TeacherFactory(first_name="Caleb", hourly_rate=None)
        factories.TeacherFactory(first_name="Dan", approval_status=ApprovalStatus.PENDING.value)
        await db_session.flush()

        async def total_hours(teacher_id: UUID, month_year: str) -> Decimal:
            if teacher_id == bad_teacher.id:
                raise RuntimeError("hours source unavailable")
            return Decimal("5")

        mock_hours_aggregator.total_hours.side_effect = total_hours
        service = MonthlyPaymentService(
            db=db_session,
            hours_aggregator=mock_hours_aggregator,
            salary_settings_service=salary_settings_service
        )

        # --- ACT ---
        summary = await service.generate(TEST_MONTH, test_admin_orm)
        pprint(summary.model_dump())

        # --- ASSERT ---
        assert [p.teacher_id for p in summary.generated] == [good_teacher.id]
        assert summary.generated[0].gross_amount == 10000
        assert set(summary.failed_teacher_ids) == {bad_teacher.id, unrated_teacher.id}
        assert mock_hours_aggregator.total_hours.await_count == 3

    async def test_generate_rejects_bad_month(
        self,
        payment_service: MonthlyPaymentService,
        test_admin_orm: db_models.Profiles
    ):
        with pytest.raises(HTTPException) as e:
            await payment_service.generate("2026-13", test_admin_orm)
        assert e.value.status_code == 400

    async def test_teacher_cannot_generate(
        self,
        payment_service: MonthlyPaymentService,
        test_teacher_orm: db_models.Profiles
    ):
        with pytest.raises(HTTPException) as e:
            await payment_service.generate(TEST_MONTH, test_teacher_orm)
        assert e.value.status_code == 403

    async def test_process_once(
        self,
        db_session: AsyncSession,
        payment_service: MonthlyPaymentService,
        salary_settings_service: SalarySettingsService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        await _log(db_session, test_teacher_orm, "10", datetime.date(2026, 3, 3))
        summary = await payment_service.generate(TEST_MONTH, test_admin_orm)
        payment_id = summary.generated[0].id

        # A later change of split must not touch generated payments
        await salary_settings_service.update(
            finance_models.SalarySettingsCreate(teacher_percentage=Decimal("0.5"), admin_percentage=Decimal("0.5")),
            test_admin_orm
        )

        # --- ACT ---
        processed = await payment_service.process(payment_id, test_admin_orm)

        # --- ASSERT ---
        assert processed.status == PaymentStatus.PROCESSED.value
        assert processed.processed_by == test_admin_orm.id
        assert processed.processed_at is not None
        assert processed.teacher_amount == 14000

        with pytest.raises(HTTPException) as e:
            await payment_service.process(payment_id, test_admin_orm)
        assert e.value.status_code == 409

    async def test_process_after_concurrent_processing_conflicts(
        self,
        db_session: AsyncSession,
        payment_service: MonthlyPaymentService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        """The loaded payment still reads pending while another admin has already processed it."""
        # --- ARRANGE ---
        first_admin = factories.AdminFactory()
        await db_session.flush()
        await _log(db_session, test_teacher_orm, "3", datetime.date(2026, 3, 3))
        summary = await payment_service.generate(TEST_MONTH, test_admin_orm)
        payment = await db_session.get(db_models.MonthlyTeacherPayments, summary.generated[0].id)
        processed_at = datetime.datetime(2026, 4, 1, 9, 0, tzinfo=datetime.timezone.utc)

        await db_session.execute(
            update(db_models.MonthlyTeacherPayments).where(
                db_models.MonthlyTeacherPayments.id == payment.id
            ).values(
                status=PaymentStatus.PROCESSED.value,
                processed_by=first_admin.id,
                processed_at=processed_at
            ).execution_options(synchronize_session=False)
        )
        assert payment.status == PaymentStatus.PENDING.value

        # --- ACT ---
        with pytest.raises(HTTPException) as e:
            await payment_service.process(payment.id, test_admin_orm)

        # --- ASSERT ---
        assert e.value.status_code == 409
        await db_session.refresh(payment)
        assert payment.status == PaymentStatus.PROCESSED.value
        assert payment.processed_by == first_admin.id

    async def test_teachers_only_see_their_own_payments(
        self,
        db_session: AsyncSession,
        payment_service: MonthlyPaymentService,
        test_admin_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        other_teacher = factories.TeacherFactory()
        await db_session.flush()
        await _log(db_session, test_teacher_orm, "1", datetime.date(2026, 3, 3))
        await _log(db_session, other_teacher, "2", datetime.date(2026, 3, 3))
        await payment_service.generate(TEST_MONTH, test_admin_orm)

        mine = await payment_service.list_payments(test_teacher_orm)
        everything = await payment_service.list_payments(test_admin_orm, status_filter=PaymentStatus.PENDING)

        assert [p.teacher_id for p in mine] == [test_teacher_orm.id]
        assert len(everything) == 2
        assert await payment_service.list_payments(test_admin_orm, month_year="2026-04") == []

    async def test_student_cannot_list_payments(
        self,
        payment_service: MonthlyPaymentService,
        test_student_orm: db_models.Profiles
    ):
        with pytest.raises(HTTPException) as e:
            await payment_service.list_payments(test_student_orm)
        assert e.value.status_code == 403
