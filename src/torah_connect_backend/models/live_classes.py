'''

'''
import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import LiveClassJoinReason


class LiveClassCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    scheduled_at: datetime.datetime
    duration_minutes: int = Field(60, gt=0)
    max_participants: int = Field(20, gt=0)
    meeting_link: Optional[str] = None


class LiveClassRead(BaseModel):
    """
    Pydantic model for reading a live class.
    Corresponds to db_models.LiveClasses, plus the current enrollment count.
    """
    id: UUID
    teacher_id: UUID
    title: str
    description: Optional[str] = None
    course_key: str
    meeting_link: Optional[str] = None
    scheduled_at: datetime.datetime
    duration_minutes: int
    max_participants: int
    is_active: bool
    enrolled_count: int = 0
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class JoinLiveClass(BaseModel):
    course_key: str = Field(..., min_length=1)


class ClassEnrollmentRead(BaseModel):
    id: UUID
    class_id: UUID
    student_id: UUID
    enrolled_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class JoinLiveClassResult(BaseModel):
    reason: LiveClassJoinReason
    message: str
    live_class: LiveClassRead
    enrollment: ClassEnrollmentRead
