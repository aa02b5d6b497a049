'''
Teacher approval workflow. The profile update and its audit row are written
in the same transaction.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..core import approval as approval_rules
from ..common.exceptions import InvalidApprovalTransitionError
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import ApprovalAction, ApprovalStatus, UserRole
from ..database.models import utcnow
from ..common.logger import log
from .user_service import require_admin


class ApprovalService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _get_teacher(self, teacher_id: UUID) -> db_models.Profiles:
        teacher = await self.db.get(db_models.Profiles, teacher_id)
        if not teacher or teacher.role != UserRole.TEACHER.value:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found.")
        return teacher

    async def _transition(
        self,
        teacher: db_models.Profiles,
        action: ApprovalAction,
        actor: Optional[db_models.Profiles],
        notes: Optional[str]
    ) -> db_models.Profiles:
        try:
            target = approval_rules.next_status(teacher.approval_status, action)
        except InvalidApprovalTransitionError as e:
            log.warning(f"Rejected approval transition for teacher {teacher.id}: {e}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        # The write only lands while the row is still in a source state, so a
        # concurrent transition that committed first turns this one into a 409.
        sources, _ = approval_rules.TRANSITIONS[action]
        in_source_state = db_models.Profiles.approval_status.in_([s.value for s in sources])
        if ApprovalStatus.PENDING in sources:
            in_source_state = or_(in_source_state, db_models.Profiles.approval_status.is_(None))

        if action == ApprovalAction.REAPPLIED:
            approved_at, approved_by = None, None
        else:
            approved_at, approved_by = utcnow(), actor.id

        stmt = update(db_models.Profiles).where(
            db_models.Profiles.id == teacher.id,
            in_source_state
        ).values(
            approval_status=target.value,
            approved_at=approved_at,
            approved_by=approved_by
        ).execution_options(synchronize_session=False)
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            log.warning(f"Approval status of teacher {teacher.id} changed concurrently; '{action.value}' refused.")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="The teacher's approval status was changed by another request."
            )

        self.db.add(db_models.AdminApprovals(
            teacher_id=teacher.id,
            action=action.value,
            admin_id=actor.id if actor and action != ApprovalAction.REAPPLIED else None,
            notes=notes,
        ))
        await self.db.flush()
        await self.db.refresh(teacher)
        log.info(f"Teacher {teacher.id} moved to '{target.value}' ({action.value}).")
        return teacher

    async def approve(self, teacher_id: UUID, notes: Optional[str], current_user: db_models.Profiles) -> db_models.Profiles:
        require_admin(current_user, f"approve teacher {teacher_id}")
        teacher = await self._get_teacher(teacher_id)
        return await self._transition(teacher, ApprovalAction.APPROVED, current_user, notes)

    async def reject(self, teacher_id: UUID, notes: Optional[str], current_user: db_models.Profiles) -> db_models.Profiles:
        require_admin(current_user, f"reject teacher {teacher_id}")
        teacher = await self._get_teacher(teacher_id)
        return await self._transition(teacher, ApprovalAction.REJECTED, current_user, notes)

    async def reapply(self, notes: Optional[str], current_user: db_models.Profiles) -> db_models.Profiles:
        """A rejected teacher puts themselves back in the review queue."""
        if current_user.role != UserRole.TEACHER.value:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only teachers can re-apply.")
        return await self._transition(current_user, ApprovalAction.REAPPLIED, current_user, notes)

    async def review_queue(self, current_user: db_models.Profiles) -> list[db_models.Profiles]:
        """Pending and rejected teachers, newest first."""
        require_admin(current_user, "view the teacher review queue")
        stmt = select(db_models.Profiles).filter(
            db_models.Profiles.role == UserRole.TEACHER.value,
            db_models.Profiles.approval_status.in_([s.value for s in approval_rules.REVIEW_QUEUE_STATES])
        ).order_by(db_models.Profiles.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def history(self, teacher_id: UUID, current_user: db_models.Profiles) -> list[db_models.AdminApprovals]:
        is_self = current_user.id == teacher_id
        if not is_self:
            require_admin(current_user, f"view the approval history of teacher {teacher_id}")
        await self._get_teacher(teacher_id)
        stmt = select(db_models.AdminApprovals).filter(
            db_models.AdminApprovals.teacher_id == teacher_id
        ).order_by(db_models.AdminApprovals.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
