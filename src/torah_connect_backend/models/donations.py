'''

'''
import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import DonationType, DonationStatus


class DonationCreate(BaseModel):
    amount: int = Field(..., gt=0) # smallest currency unit
    donation_type: DonationType
    courses_sponsored: int = Field(0, ge=0)
    message: Optional[str] = None


class DonationRead(BaseModel):
    id: UUID
    donor_id: Optional[UUID] = None
    amount: int
    donation_type: DonationType
    courses_sponsored: int
    status: DonationStatus
    message: Optional[str] = None
    completed_at: Optional[datetime.datetime] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class SponsoredAvailability(BaseModel):
    available_slots: int
