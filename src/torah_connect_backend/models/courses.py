'''

'''
import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import CourseAudience


class CourseTeacherRead(BaseModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CourseRead(BaseModel):
    """
    Pydantic model for reading a course.
    Corresponds to db_models.Courses.
    """
    id: UUID
    teacher_id: UUID
    title: str
    subject: str
    audience: CourseAudience
    price: int
    currency: str
    description: Optional[str] = None
    age_range: Optional[str] = None
    session_duration_minutes: int
    total_sessions: Optional[int] = None
    max_students: Optional[int] = None
    is_trial_available: bool
    is_active: bool
    created_at: datetime.datetime
    teacher: Optional[CourseTeacherRead] = None

    model_config = ConfigDict(from_attributes=True)


class CourseCreate(BaseModel):
    title: str
    subject: str
    audience: CourseAudience = CourseAudience.GENERAL
    price: int = Field(0, ge=0) # smallest currency unit
    currency: str = "EUR"
    description: Optional[str] = None
    age_range: Optional[str] = None
    session_duration_minutes: int = Field(60, gt=0)
    total_sessions: Optional[int] = Field(None, gt=0)
    max_students: Optional[int] = Field(None, gt=0)
    is_trial_available: bool = True


class CourseUpdate(BaseModel):
    """
    All fields are optional to allow for partial updates (PATCH).
    """
    title: Optional[str] = None
    subject: Optional[str] = None
    audience: Optional[CourseAudience] = None
    price: Optional[int] = Field(None, ge=0)
    currency: Optional[str] = None
    description: Optional[str] = None
    age_range: Optional[str] = None
    session_duration_minutes: Optional[int] = Field(None, gt=0)
    total_sessions: Optional[int] = Field(None, gt=0)
    max_students: Optional[int] = Field(None, gt=0)
    is_trial_available: Optional[bool] = None
