'''
Teacher withdrawals out of processed monthly payments.

A request locks the teacher's profile row before reading the balance, so two
requests from the same teacher cannot both spend the same earnings. Admin
decisions move a withdrawal out of pending with a conditional UPDATE.
'''
from typing import Optional, Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..core import payments as payment_rules
from ..common.exceptions import InsufficientBalanceError, WithdrawalAlreadyDecidedError
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, PaymentStatus, WithdrawalStatus
from ..database.models import utcnow
from ..models import finance as finance_models
from ..common.logger import log
from .user_service import require_admin


def _require_teacher(current_user: db_models.Profiles, action: str) -> None:
    if current_user.role != UserRole.TEACHER.value:
        log.warning(f"User {current_user.id} (Role: {current_user.role}) tried to {action}.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only teachers can withdraw earnings."
        )


class WithdrawalService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _earned(self, teacher_id: UUID) -> int:
        stmt = select(func.coalesce(func.sum(db_models.MonthlyTeacherPayments.teacher_amount), 0)).filter(
            db_models.MonthlyTeacherPayments.teacher_id == teacher_id,
            db_models.MonthlyTeacherPayments.status == PaymentStatus.PROCESSED.value
        )
        return int((await self.db.execute(stmt)).scalar_one())

    async def _withdrawn_by_status(self, teacher_id: UUID) -> dict[str, int]:
        stmt = select(
            db_models.TeacherWithdrawals.status,
            func.coalesce(func.sum(db_models.TeacherWithdrawals.amount), 0)
        ).filter(
            db_models.TeacherWithdrawals.teacher_id == teacher_id
        ).group_by(db_models.TeacherWithdrawals.status)
        return {row_status: int(total) for row_status, total in (await self.db.execute(stmt)).all()}

    async def _compute_balance(self, teacher_id: UUID) -> finance_models.WithdrawalBalance:
        earned = await self._earned(teacher_id)
        totals = await self._withdrawn_by_status(teacher_id)
        withdrawn = totals.get(WithdrawalStatus.COMPLETED.value, 0)
        pending = totals.get(WithdrawalStatus.PENDING.value, 0)
        return finance_models.WithdrawalBalance(
            earned=earned,
            withdrawn=withdrawn,
            pending=pending,
            available=payment_rules.available_balance(earned, withdrawn + pending),
        )

    async def balance(self, current_user: db_models.Profiles) -> finance_models.WithdrawalBalance:
        _require_teacher(current_user, "view a withdrawal balance")
        return await self._compute_balance(current_user.id)

    async def request(
        self,
        withdrawal_data: finance_models.WithdrawalCreate,
        current_user: db_models.Profiles
    ) -> db_models.TeacherWithdrawals:
        _require_teacher(current_user, "request a withdrawal")
        log.info(f"Teacher {current_user.id} requesting a withdrawal of {withdrawal_data.amount}.")

        # Serializes requests of the same teacher
        lock_stmt = select(db_models.Profiles.id).filter(
            db_models.Profiles.id == current_user.id
        ).with_for_update()
        await self.db.execute(lock_stmt)

        balance = await self._compute_balance(current_user.id)
        try:
            payment_rules.ensure_withdrawable(withdrawal_data.amount, balance.available)
        except InsufficientBalanceError as e:
            log.info(f"Withdrawal refused for teacher {current_user.id}: {e}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        withdrawal = db_models.TeacherWithdrawals(
            teacher_id=current_user.id,
            amount=withdrawal_data.amount,
            bank_account=withdrawal_data.bank_account,
            status=WithdrawalStatus.PENDING.value,
        )
        self.db.add(withdrawal)
        await self.db.flush()
        log.info(f"Withdrawal {withdrawal.id} created for teacher {current_user.id}.")
        return withdrawal

    async def list_mine(self, current_user: db_models.Profiles) -> list[db_models.TeacherWithdrawals]:
        _require_teacher(current_user, "list withdrawals")
        stmt = select(db_models.TeacherWithdrawals).filter(
            db_models.TeacherWithdrawals.teacher_id == current_user.id
        ).order_by(db_models.TeacherWithdrawals.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(
        self,
        current_user: db_models.Profiles,
        status_filter: Optional[WithdrawalStatus] = None
    ) -> list[db_models.TeacherWithdrawals]:
        require_admin(current_user, "list teacher withdrawals")
        stmt = select(db_models.TeacherWithdrawals)
        if status_filter:
            stmt = stmt.filter(db_models.TeacherWithdrawals.status == status_filter.value)
        stmt = stmt.order_by(db_models.TeacherWithdrawals.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _decide(
        self,
        withdrawal_id: UUID,
        target: WithdrawalStatus,
        current_user: db_models.Profiles,
        notes: Optional[str] = None
    ) -> db_models.TeacherWithdrawals:
        require_admin(current_user, f"mark withdrawal {withdrawal_id} as {target.value}")
        withdrawal = await self.db.get(db_models.TeacherWithdrawals, withdrawal_id)
        if not withdrawal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Withdrawal not found.")

        try:
            payment_rules.ensure_withdrawal_pending(withdrawal)
        except WithdrawalAlreadyDecidedError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        stmt = update(db_models.TeacherWithdrawals).where(
            db_models.TeacherWithdrawals.id == withdrawal.id,
            db_models.TeacherWithdrawals.status == WithdrawalStatus.PENDING.value
        ).values(
            status=target.value,
            processed_by=current_user.id,
            processed_at=utcnow(),
            notes=notes
        ).execution_options(synchronize_session=False)
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            log.warning(f"Withdrawal {withdrawal.id} was decided concurrently; refusing to mark it {target.value}.")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Withdrawal has already been decided.")

        await self.db.refresh(withdrawal)
        log.info(f"Admin {current_user.id} marked withdrawal {withdrawal.id} as {target.value}.")
        return withdrawal

    async def complete(self, withdrawal_id: UUID, current_user: db_models.Profiles, notes: Optional[str] = None) -> db_models.TeacherWithdrawals:
        """pending -> completed, once the money has been sent."""
        return await self._decide(withdrawal_id, WithdrawalStatus.COMPLETED, current_user, notes)

    async def reject(self, withdrawal_id: UUID, current_user: db_models.Profiles, notes: Optional[str] = None) -> db_models.TeacherWithdrawals:
        """pending -> rejected. The amount becomes available again."""
        return await self._decide(withdrawal_id, WithdrawalStatus.REJECTED, current_user, notes)
