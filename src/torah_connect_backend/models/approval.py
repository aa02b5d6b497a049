'''

'''
import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import ApprovalAction
from .user import TeacherRead


class ApprovalDecision(BaseModel):
    notes: Optional[str] = None


class ApprovalRecordRead(BaseModel):
    """Audit row. Corresponds to db_models.AdminApprovals."""
    id: UUID
    teacher_id: UUID
    admin_id: Optional[UUID] = None
    action: ApprovalAction
    notes: Optional[str] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewQueueEntry(TeacherRead):
    """A teacher awaiting review, with the transitions their status still allows."""
    allowed_actions: list[ApprovalAction] = Field(default_factory=list)
