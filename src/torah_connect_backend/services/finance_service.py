'''
Salary settings, teacher hours and monthly teacher payments.
'''
from typing import Optional, Annotated
from uuid import UUID
from decimal import Decimal
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core import payments as payment_rules
from ..core.approval import is_publicly_listed
from ..common.exceptions import PaymentAlreadyProcessedError
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, ApprovalStatus, PaymentStatus
from ..database.models import utcnow
from ..models import finance as finance_models
from ..common.logger import log
from ..common.config import settings
from .user_service import require_admin

# --- Service 1: Salary Settings ---

class SalarySettingsService:
    """
    Append-only history of the global teacher/admin split. The newest row is
    in effect; before the first row exists the configured default applies.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def get_current(self) -> finance_models.SalarySettingsRead:
        stmt = select(db_models.TeacherSalarySettings).order_by(
            db_models.TeacherSalarySettings.created_at.desc()
        ).limit(1)
        row = (await self.db.execute(stmt)).scalars().first()
        if row:
            return finance_models.SalarySettingsRead.model_validate(row)

        teacher_pct = settings.DEFAULT_TEACHER_PERCENTAGE
        return finance_models.SalarySettingsRead(
            teacher_percentage=teacher_pct,
            admin_percentage=Decimal(1) - teacher_pct
        )

    async def update(
        self,
        settings_data: finance_models.SalarySettingsCreate,
        current_user: db_models.Profiles
    ) -> db_models.TeacherSalarySettings:
        require_admin(current_user, "change salary settings")
        teacher_pct, admin_pct = payment_rules.validate_split(
            settings_data.teacher_percentage, settings_data.admin_percentage
        )
        row = db_models.TeacherSalarySettings(
            teacher_percentage=teacher_pct,
            admin_percentage=admin_pct,
            updated_by=current_user.id,
        )
        self.db.add(row)
        await self.db.flush()
        log.info(f"Admin {current_user.id} set salary split to {teacher_pct}/{admin_pct}.")
        return row


# --- Service 2: Teacher Hours ---

class TeacherHoursService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def log_hours(
        self,
        hours_data: finance_models.TeacherHoursCreate,
        current_user: db_models.Profiles
    ) -> db_models.TeacherHours:
        log.info(f"User {current_user.id} logging {hours_data.hours_taught}h on {hours_data.date_taught}.")
        if not is_publicly_listed(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only approved teachers can log teaching hours."
            )

        if hours_data.session_id:
            session = await self.db.get(db_models.CourseSessions, hours_data.session_id)
            if not session:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found.")
            if session.teacher_id != current_user.id:
                log.warning(f"SECURITY: Teacher {current_user.id} tried to log hours for session {session.id} of teacher {session.teacher_id}.")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="You can only log hours for your own sessions."
                )

        row = db_models.TeacherHours(
            teacher_id=current_user.id,
            hours_taught=hours_data.hours_taught,
            date_taught=hours_data.date_taught,
            session_id=hours_data.session_id,
        )
        self.db.add(row)
        await self.db.flush()
        return row


class HoursAggregator:
    """
    Sums the hours a teacher logged within a calendar month.
    Injected into MonthlyPaymentService so the source of hours can be swapped.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def total_hours(self, teacher_id: UUID, month_year: str) -> Decimal:
        first_day, last_day = payment_rules.month_bounds(month_year)
        stmt = select(func.coalesce(func.sum(db_models.TeacherHours.hours_taught), 0)).filter(
            db_models.TeacherHours.teacher_id == teacher_id,
            db_models.TeacherHours.date_taught >= first_day,
            db_models.TeacherHours.date_taught <= last_day
        )
        total = (await self.db.execute(stmt)).scalar_one()
        return Decimal(str(total))


# --- Service 3: Monthly Payments ---

class MonthlyPaymentService:
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        hours_aggregator: Annotated[HoursAggregator, Depends(HoursAggregator)],
        salary_settings_service: Annotated[SalarySettingsService, Depends(SalarySettingsService)]
    ):
        self.db = db
        self.hours_aggregator = hours_aggregator
        self.salary_settings_service = salary_settings_service

    async def _already_generated(self, month_year: str) -> set[UUID]:
        stmt = select(db_models.MonthlyTeacherPayments.teacher_id).filter(
            db_models.MonthlyTeacherPayments.month_year == month_year
        )
        return set((await self.db.execute(stmt)).scalars().all())

    async def generate(self, month_year: str, current_user: db_models.Profiles) -> finance_models.PaymentGenerationSummary:
        """
        Creates one pending payment per approved teacher for the month.

        Teachers with no hours, or already paid for the month, are skipped.
        A teacher whose hours cannot be aggregated is reported as failed and
        the batch moves on; payments generated for the others are kept.
        """
        require_admin(current_user, f"generate payments for {month_year}")
        try:
            payment_rules.parse_month(month_year)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        log.info(f"Admin {current_user.id} generating teacher payments for {month_year}.")
        split = await self.salary_settings_service.get_current()
        existing = await self._already_generated(month_year)

        stmt = select(db_models.Profiles).filter(
            db_models.Profiles.role == UserRole.TEACHER.value,
            db_models.Profiles.approval_status == ApprovalStatus.APPROVED.value
        ).order_by(db_models.Profiles.created_at)
        teachers = (await self.db.execute(stmt)).scalars().all()

        summary = finance_models.PaymentGenerationSummary(month_year=month_year)
        new_rows: list[db_models.MonthlyTeacherPayments] = []

        for teacher in teachers:
            if teacher.id in existing:
                summary.skipped_teacher_ids.append(teacher.id)
                continue

            try:
                hours = await self.hours_aggregator.total_hours(teacher.id, month_year)
            except Exception as e:
                log.error(f"Failed to aggregate hours for teacher {teacher.id} in {month_year}: {e}", exc_info=True)
                summary.failed_teacher_ids.append(teacher.id)
                continue

            if hours <= 0:
                summary.skipped_teacher_ids.append(teacher.id)
                continue

            if teacher.hourly_rate is None:
                log.warning(f"Teacher {teacher.id} has {hours}h in {month_year} but no hourly rate.")
                summary.failed_teacher_ids.append(teacher.id)
                continue

            calc = payment_rules.compute_monthly_payment(
                hours, teacher.hourly_rate, split.teacher_percentage, split.admin_percentage
            )
            row = db_models.MonthlyTeacherPayments(
                teacher_id=teacher.id,
                month_year=month_year,
                status=PaymentStatus.PENDING.value,
                **calc.model_dump()
            )
            self.db.add(row)
            new_rows.append(row)

        await self.db.flush()
        summary.generated = [finance_models.MonthlyPaymentRead.model_validate(r) for r in new_rows]
        log.info(
            f"Payments for {month_year}: {len(summary.generated)} generated, "
            f"{len(summary.skipped_teacher_ids)} skipped, {len(summary.failed_teacher_ids)} failed."
        )
        return summary

    async def list_payments(
        self,
        current_user: db_models.Profiles,
        status_filter: Optional[PaymentStatus] = None,
        month_year: Optional[str] = None
    ) -> list[db_models.MonthlyTeacherPayments]:
        """Admins see every payment; teachers see their own."""
        stmt = select(db_models.MonthlyTeacherPayments).options(
            selectinload(db_models.MonthlyTeacherPayments.teacher)
        )
        if current_user.role == UserRole.TEACHER.value:
            stmt = stmt.filter(db_models.MonthlyTeacherPayments.teacher_id == current_user.id)
        else:
            require_admin(current_user, "list teacher payments")

        if status_filter:
            stmt = stmt.filter(db_models.MonthlyTeacherPayments.status == status_filter.value)
        if month_year:
            stmt = stmt.filter(db_models.MonthlyTeacherPayments.month_year == month_year)

        stmt = stmt.order_by(
            db_models.MonthlyTeacherPayments.month_year.desc(),
            db_models.MonthlyTeacherPayments.created_at
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def process(self, payment_id: UUID, current_user: db_models.Profiles) -> db_models.MonthlyTeacherPayments:
        """pending -> processed. Amounts are never recomputed here."""
        require_admin(current_user, f"process payment {payment_id}")
        payment = await self.db.get(db_models.MonthlyTeacherPayments, payment_id)
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found.")

        try:
            payment_rules.ensure_pending(payment)
        except PaymentAlreadyProcessedError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        stmt = update(db_models.MonthlyTeacherPayments).where(
            db_models.MonthlyTeacherPayments.id == payment.id,
            db_models.MonthlyTeacherPayments.status == PaymentStatus.PENDING.value
        ).values(
            status=PaymentStatus.PROCESSED.value,
            processed_by=current_user.id,
            processed_at=utcnow()
        ).execution_options(synchronize_session=False)
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            log.warning(f"Payment {payment.id} was processed concurrently; refusing to process it again.")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment has already been processed.")

        await self.db.refresh(payment)
        log.info(f"Admin {current_user.id} processed payment {payment.id}.")
        return payment
