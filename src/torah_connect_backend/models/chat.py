'''

'''
import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import MessageType, BookingStatus


class ChatMessageRead(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    message_type: MessageType
    meeting_data: Optional[dict[str, Any]] = None
    read_at: Optional[datetime.datetime] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationRead(BaseModel):
    """A conversation as listed for one viewer."""
    id: UUID
    student_id: UUID
    teacher_id: UUID
    counterpart_id: UUID
    counterpart_name: Optional[str] = None
    updated_at: datetime.datetime
    unread_count: int
    last_message: Optional[ChatMessageRead] = None


class MessageCreate(BaseModel):
    recipient_id: UUID
    content: str = Field(..., min_length=1)


class MeetingRequestCreate(BaseModel):
    lesson_date: datetime.date
    lesson_time: datetime.time
    duration_minutes: int = Field(60, gt=0)
    subject: Optional[str] = None
    notes: Optional[str] = None


class MeetingResponse(BaseModel):
    accept: bool
    note: Optional[str] = None


class LessonBookingRead(BaseModel):
    id: UUID
    student_id: UUID
    teacher_id: UUID
    conversation_id: Optional[UUID] = None
    lesson_date: datetime.date
    lesson_time: datetime.time
    duration_minutes: int
    subject: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus

    model_config = ConfigDict(from_attributes=True)
