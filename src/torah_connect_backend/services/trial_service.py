'''
Trial booking and sponsored enrollment.

The eligibility read is side-effect free. Booking re-runs the same decision
and then writes everything in the request's transaction: the sponsored path
claims a slot and enrolls the student; the trial path increments the
student's counter with a conditional update, inserts the trial session and
records the consumed trial under its scoping key.
'''
from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core import trials as trial_rules
from ..core.approval import is_publicly_listed
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import (
    TrialDecisionReason, SessionType, SessionStatus, EnrollmentSource, UserRole
)
from ..common.config import settings
from ..common.logger import log
from ..models import trials as trial_models
from .course_service import CourseService
from .donation_service import DonationService


class TrialService:
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        course_service: Annotated[CourseService, Depends(CourseService)],
        donation_service: Annotated[DonationService, Depends(DonationService)]
    ):
        self.db = db
        self.course_service = course_service
        self.donation_service = donation_service

    async def _get_bookable_course(self, course_id: UUID) -> db_models.Courses:
        course = await self.course_service.get_course(course_id)
        if not is_publicly_listed(course.teacher):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")
        return course

    async def has_used_trial_for_scope(self, student_id: UUID, course: db_models.Courses) -> bool:
        stmt = select(db_models.TrialUsages.id).filter(
            db_models.TrialUsages.student_id == student_id,
            db_models.TrialUsages.subject == trial_rules.trial_scope_key(course)
        )
        return (await self.db.execute(stmt)).first() is not None

    async def _is_enrolled(self, student_id: UUID, course_id: UUID) -> bool:
        stmt = select(db_models.CourseEnrollments.id).filter(
            db_models.CourseEnrollments.student_id == student_id,
            db_models.CourseEnrollments.course_id == course_id
        )
        return (await self.db.execute(stmt)).first() is not None

    async def _has_capacity(self, course: db_models.Courses, lock: bool = False) -> bool:
        """
        False once the course holds max_students enrollments. With `lock` the
        course row is locked first so concurrent enrollments count one at a time.
        """
        if course.max_students is None:
            return True
        if lock:
            await self.db.execute(
                select(db_models.Courses.id).filter(db_models.Courses.id == course.id).with_for_update()
            )
        stmt = select(func.count(db_models.CourseEnrollments.id)).filter(
            db_models.CourseEnrollments.course_id == course.id
        )
        return (await self.db.execute(stmt)).scalar_one() < course.max_students

    async def _sponsorship_possible(self, student: db_models.Profiles, course: db_models.Courses) -> bool:
        if student.role != UserRole.STUDENT.value:
            return False
        if await self._is_enrolled(student.id, course.id):
            return False
        if not await self._has_capacity(course):
            return False
        return await self.donation_service.available_slots() > 0

    async def _decide(self, student: db_models.Profiles, course: db_models.Courses) -> trial_rules.TrialDecision:
        return trial_rules.can_book_trial(
            student,
            course,
            has_used_trial_for_scope=await self.has_used_trial_for_scope(student.id, course),
            sponsored_slot_available=await self._sponsorship_possible(student, course),
            default_max=settings.DEFAULT_MAX_TRIAL_LESSONS,
        )

    async def check_eligibility(self, course_id: UUID, current_user: db_models.Profiles) -> trial_models.TrialEligibilityRead:
        log.info(f"Checking trial eligibility of user {current_user.id} for course {course_id}.")
        course = await self._get_bookable_course(course_id)
        decision = await self._decide(current_user, course)
        return trial_models.TrialEligibilityRead(
            course_id=course.id,
            allowed=decision.allowed,
            reason=decision.reason,
            message=trial_rules.describe(decision.reason),
            trials_remaining=trial_rules.remaining_trials(
                current_user.trial_lessons_used, current_user.max_trial_lessons, settings.DEFAULT_MAX_TRIAL_LESSONS
            ) if current_user.role == UserRole.STUDENT.value else 0,
        )

    async def _enroll_sponsored(self, student: db_models.Profiles, course: db_models.Courses):
        if not await self._has_capacity(course, lock=True):
            log.info(f"Course {course.id} filled up before user {student.id} could enroll.")
            return None
        slot = await self.donation_service.claim_slot(student.id, course.id)
        if slot is None:
            return None
        enrollment = db_models.CourseEnrollments(
            course_id=course.id,
            student_id=student.id,
            source=EnrollmentSource.SPONSORED.value,
            sponsored_course_id=slot.id,
        )
        self.db.add(enrollment)
        await self.db.flush()
        return enrollment

    async def _consume_trial(self, student: db_models.Profiles, course: db_models.Courses, now: datetime):
        """
        Returns the new trial session, or None when the conditional increment
        found the quota already used up by a concurrent booking.
        """
        increment = update(db_models.Profiles).where(
            db_models.Profiles.id == student.id,
            db_models.Profiles.trial_lessons_used < db_models.Profiles.max_trial_lessons
        ).values(
            trial_lessons_used=db_models.Profiles.trial_lessons_used + 1
        ).execution_options(synchronize_session=False)
        result = await self.db.execute(increment)
        if result.rowcount != 1:
            return None

        session = db_models.CourseSessions(
            course_id=course.id,
            teacher_id=course.teacher_id,
            student_id=student.id,
            session_date=trial_rules.trial_session_date(now, settings.TRIAL_SESSION_DELAY_DAYS),
            duration_minutes=course.session_duration_minutes or settings.DEFAULT_SESSION_DURATION_MINUTES,
            session_type=SessionType.TRIAL.value,
            status=SessionStatus.SCHEDULED.value,
        )
        self.db.add(session)
        await self.db.flush()

        self.db.add(db_models.TrialUsages(
            student_id=student.id,
            subject=trial_rules.trial_scope_key(course),
            teacher_id=course.teacher_id,
            course_id=course.id,
            session_id=session.id,
        ))
        await self.db.flush()
        return session

    async def book(self, course_id: UUID, current_user: db_models.Profiles) -> trial_models.TrialBookingResult:
        log.info(f"User {current_user.id} attempting to book course {course_id}.")
        course = await self._get_bookable_course(course_id)
        decision = await self._decide(current_user, course)

        if decision.reason == TrialDecisionReason.SPONSORED:
            try:
                enrollment = await self._enroll_sponsored(current_user, course)
            except IntegrityError:
                log.warning(f"Concurrent enrollment detected for user {current_user.id} on course {course_id}.")
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="You are already enrolled in this course."
                )
            if enrollment is not None:
                return trial_models.TrialBookingResult(
                    allowed=True,
                    reason=decision.reason,
                    message=trial_rules.describe(decision.reason),
                    enrollment=trial_models.EnrollmentRead.model_validate(enrollment),
                )
            # The course filled up or every slot was taken between the check and the claim
            decision = trial_rules.can_book_trial(
                current_user, course,
                has_used_trial_for_scope=await self.has_used_trial_for_scope(current_user.id, course),
                sponsored_slot_available=False,
                default_max=settings.DEFAULT_MAX_TRIAL_LESSONS,
            )

        if not decision.consumes_trial:
            log.info(f"Trial for user {current_user.id} on course {course_id} refused: {decision.reason.value}.")
            return trial_models.TrialBookingResult(
                allowed=False, reason=decision.reason, message=trial_rules.describe(decision.reason)
            )

        try:
            session = await self._consume_trial(current_user, course, datetime.now(timezone.utc))
        except IntegrityError:
            log.warning(f"Concurrent trial booking detected for user {current_user.id}, subject '{course.subject}'.")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A trial for this subject was booked concurrently."
            )

        if session is None:
            reason = TrialDecisionReason.QUOTA_EXHAUSTED
            return trial_models.TrialBookingResult(allowed=False, reason=reason, message=trial_rules.describe(reason))

        await self.db.refresh(current_user)
        log.info(f"Trial session {session.id} booked for user {current_user.id} on {session.session_date}.")
        return trial_models.TrialBookingResult(
            allowed=True,
            reason=decision.reason,
            message=trial_rules.describe(decision.reason),
            session=trial_models.CourseSessionRead.model_validate(session),
        )

    async def list_my_trials(self, current_user: db_models.Profiles) -> list[db_models.CourseSessions]:
        stmt = select(db_models.CourseSessions).filter(
            db_models.CourseSessions.student_id == current_user.id,
            db_models.CourseSessions.session_type == SessionType.TRIAL.value
        ).order_by(db_models.CourseSessions.session_date.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
