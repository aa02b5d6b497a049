'''
Live classes: approved teachers publish them under a generated course key,
students join them by key.

Joining locks the class row before counting its enrollments, so concurrent
joins cannot push a class past max_participants. The unique
(class_id, student_id) key backs the "join once" rule.
'''
import datetime
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core import live_classes as live_class_rules
from ..core.approval import is_publicly_listed
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import LiveClassJoinReason, UserRole
from ..database.models import utcnow
from ..common.logger import log
from ..models import live_classes as live_class_models

# Fresh keys tried before giving up on a create
KEY_ATTEMPTS = 5

_REFUSAL_STATUS = {
    LiveClassJoinReason.NOT_A_STUDENT: status.HTTP_403_FORBIDDEN,
    LiveClassJoinReason.CLASS_CLOSED: status.HTTP_409_CONFLICT,
    LiveClassJoinReason.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    LiveClassJoinReason.CLASS_FULL: status.HTTP_409_CONFLICT,
}


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    return value.replace(tzinfo=datetime.timezone.utc) if value.tzinfo is None else value


class LiveClassService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    # --- Reads ---

    async def _enrolled_counts(self, class_ids: list[UUID]) -> dict[UUID, int]:
        if not class_ids:
            return {}
        stmt = select(
            db_models.ClassEnrollments.class_id,
            func.count(db_models.ClassEnrollments.id)
        ).filter(
            db_models.ClassEnrollments.class_id.in_(class_ids)
        ).group_by(db_models.ClassEnrollments.class_id)
        return {class_id: count for class_id, count in (await self.db.execute(stmt)).all()}

    async def to_read_models(self, classes: list[db_models.LiveClasses]) -> list[live_class_models.LiveClassRead]:
        counts = await self._enrolled_counts([c.id for c in classes])
        return [
            live_class_models.LiveClassRead.model_validate(c).model_copy(update={"enrolled_count": counts.get(c.id, 0)})
            for c in classes
        ]

    async def to_read_model(self, live_class: db_models.LiveClasses) -> live_class_models.LiveClassRead:
        return (await self.to_read_models([live_class]))[0]

    async def get_class(self, class_id: UUID) -> db_models.LiveClasses:
        live_class = await self.db.get(db_models.LiveClasses, class_id)
        if not live_class:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Live class not found.")
        return live_class

    async def _is_enrolled(self, class_id: UUID, student_id: UUID) -> bool:
        stmt = select(db_models.ClassEnrollments.id).filter(
            db_models.ClassEnrollments.class_id == class_id,
            db_models.ClassEnrollments.student_id == student_id
        )
        return (await self.db.execute(stmt)).first() is not None

    async def get_for_user(self, class_id: UUID, current_user: db_models.Profiles) -> db_models.LiveClasses:
        """The owning teacher, enrolled students and admins can open a class."""
        live_class = await self.get_class(class_id)
        if current_user.role == UserRole.ADMIN.value or live_class.teacher_id == current_user.id:
            return live_class
        if await self._is_enrolled(live_class.id, current_user.id):
            return live_class
        log.warning(f"SECURITY: User {current_user.id} tried to open live class {class_id} without being enrolled.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not enrolled in this live class."
        )

    async def list_mine(self, current_user: db_models.Profiles) -> list[db_models.LiveClasses]:
        """Teachers get the classes they host, students the classes they joined, admins everything."""
        stmt = select(db_models.LiveClasses)
        if current_user.role == UserRole.TEACHER.value:
            stmt = stmt.filter(db_models.LiveClasses.teacher_id == current_user.id)
        elif current_user.role == UserRole.STUDENT.value:
            stmt = stmt.join(
                db_models.ClassEnrollments,
                db_models.ClassEnrollments.class_id == db_models.LiveClasses.id
            ).filter(db_models.ClassEnrollments.student_id == current_user.id)
        stmt = stmt.order_by(db_models.LiveClasses.scheduled_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # --- Writes ---

    async def _unused_course_key(self) -> str:
        for _ in range(KEY_ATTEMPTS):
            key = live_class_rules.generate_course_key()
            stmt = select(db_models.LiveClasses.id).filter(db_models.LiveClasses.course_key == key)
            if (await self.db.execute(stmt)).first() is None:
                return key
        log.error(f"No unused course key found after {KEY_ATTEMPTS} attempts.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not allocate a course key, please try again."
        )

    async def create_class(
        self,
        class_data: live_class_models.LiveClassCreate,
        current_user: db_models.Profiles
    ) -> db_models.LiveClasses:
        log.info(f"User {current_user.id} attempting to create live class '{class_data.title}'.")
        if not is_publicly_listed(current_user):
            log.warning(f"User {current_user.id} (Role: {current_user.role}, approval: {current_user.approval_status}) tried to create a live class.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only approved teachers can create live classes."
            )
        if _as_utc(class_data.scheduled_at) <= utcnow():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A live class must be scheduled in the future."
            )

        live_class = db_models.LiveClasses(
            teacher_id=current_user.id,
            course_key=await self._unused_course_key(),
            is_active=True,
            **class_data.model_dump()
        )
        self.db.add(live_class)
        await self.db.flush()
        log.info(f"Live class {live_class.id} created with key {live_class.course_key}.")
        return live_class

    async def join(self, course_key: str, current_user: db_models.Profiles) -> live_class_models.JoinLiveClassResult:
        key = live_class_rules.normalize_course_key(course_key)
        log.info(f"User {current_user.id} attempting to join live class with key '{key}'.")

        stmt = select(db_models.LiveClasses).filter(
            db_models.LiveClasses.course_key == key
        ).with_for_update()
        live_class = (await self.db.execute(stmt)).scalars().first()
        if live_class is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid course key.")

        count_stmt = select(func.count(db_models.ClassEnrollments.id)).filter(
            db_models.ClassEnrollments.class_id == live_class.id
        )
        decision = live_class_rules.can_join(
            current_user,
            live_class,
            already_enrolled=await self._is_enrolled(live_class.id, current_user.id),
            enrolled_count=(await self.db.execute(count_stmt)).scalar_one(),
        )
        if not decision.allowed:
            log.info(f"User {current_user.id} refused from live class {live_class.id}: {decision.reason.value}.")
            raise HTTPException(
                status_code=_REFUSAL_STATUS[decision.reason],
                detail=live_class_rules.describe(decision.reason)
            )

        enrollment = db_models.ClassEnrollments(class_id=live_class.id, student_id=current_user.id)
        self.db.add(enrollment)
        try:
            await self.db.flush()
        except IntegrityError:
            log.warning(f"Concurrent join detected for user {current_user.id} on live class {live_class.id}.")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=live_class_rules.describe(LiveClassJoinReason.ALREADY_ENROLLED)
            )

        log.info(f"User {current_user.id} joined live class {live_class.id}.")
        return live_class_models.JoinLiveClassResult(
            reason=decision.reason,
            message=live_class_rules.describe(decision.reason),
            live_class=await self.to_read_model(live_class),
            enrollment=live_class_models.ClassEnrollmentRead.model_validate(enrollment),
        )

    async def cancel(self, class_id: UUID, current_user: db_models.Profiles) -> db_models.LiveClasses:
        """Closes the class to new joins. Existing enrollments are kept."""
        live_class = await self.get_class(class_id)
        if current_user.role != UserRole.ADMIN.value and live_class.teacher_id != current_user.id:
            log.warning(f"SECURITY: User {current_user.id} tried to cancel live class {class_id} of teacher {live_class.teacher_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only cancel your own live classes."
            )
        live_class.is_active = False
        await self.db.flush()
        log.info(f"Live class {live_class.id} cancelled by user {current_user.id}.")
        return live_class
