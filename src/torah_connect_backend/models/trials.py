'''

'''
import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ..database.db_enums import TrialDecisionReason, SessionType, SessionStatus, EnrollmentSource


class TrialEligibilityRead(BaseModel):
    course_id: UUID
    allowed: bool
    reason: TrialDecisionReason
    message: str
    trials_remaining: int


class CourseSessionRead(BaseModel):
    id: UUID
    course_id: Optional[UUID] = None
    teacher_id: UUID
    student_id: UUID
    session_date: datetime.datetime
    duration_minutes: int
    session_type: SessionType
    status: SessionStatus
    meeting_link: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EnrollmentRead(BaseModel):
    id: UUID
    course_id: UUID
    student_id: UUID
    source: EnrollmentSource
    sponsored_course_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class TrialBookingResult(BaseModel):
    """
    Outcome of a booking attempt. Exactly one of `session` (trial booked)
    or `enrollment` (sponsored) is set when `allowed` is true.
    """
    allowed: bool
    reason: TrialDecisionReason
    message: str
    session: Optional[CourseSessionRead] = None
    enrollment: Optional[EnrollmentRead] = None
