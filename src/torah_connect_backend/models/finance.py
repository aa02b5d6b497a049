'''

'''
import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..database.db_enums import PaymentStatus, WithdrawalStatus


# --- Salary settings ---

class SalarySettingsCreate(BaseModel):
    teacher_percentage: Decimal = Field(..., ge=0, le=1)
    admin_percentage: Decimal = Field(..., ge=0, le=1)

    @model_validator(mode='after')
    def check_split(self):
        if self.teacher_percentage + self.admin_percentage != Decimal(1):
            raise ValueError("teacher_percentage and admin_percentage must add up to 1")
        return self


class SalarySettingsRead(BaseModel):
    id: Optional[UUID] = None # None when the configured default is in effect
    teacher_percentage: Decimal
    admin_percentage: Decimal
    updated_by: Optional[UUID] = None
    created_at: Optional[datetime.datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- Teacher hours ---

class TeacherHoursCreate(BaseModel):
    hours_taught: Decimal = Field(..., gt=0, decimal_places=2)
    date_taught: datetime.date
    session_id: Optional[UUID] = None


class TeacherHoursRead(BaseModel):
    id: UUID
    teacher_id: UUID
    hours_taught: Decimal
    date_taught: datetime.date
    session_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


# --- Monthly payments ---

class MonthlyPaymentRead(BaseModel):
    """
    Pydantic model for reading a generated payment.
    Corresponds to db_models.MonthlyTeacherPayments.
    """
    id: UUID
    teacher_id: UUID
    month_year: str
    total_hours: Decimal
    hourly_rate: int
    gross_amount: int
    teacher_percentage: Decimal
    admin_percentage: Decimal
    teacher_amount: int
    admin_amount: int
    status: PaymentStatus
    processed_by: Optional[UUID] = None
    processed_at: Optional[datetime.datetime] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentGenerationSummary(BaseModel):
    month_year: str
    generated: list[MonthlyPaymentRead] = Field(default_factory=list)
    skipped_teacher_ids: list[UUID] = Field(default_factory=list)
    failed_teacher_ids: list[UUID] = Field(default_factory=list)


# --- Withdrawals ---

class WithdrawalCreate(BaseModel):
    amount: int = Field(..., gt=0) # smallest currency unit
    bank_account: str = Field(..., min_length=1)


class WithdrawalDecision(BaseModel):
    notes: Optional[str] = None


class WithdrawalRead(BaseModel):
    id: UUID
    teacher_id: UUID
    amount: int
    bank_account: str
    status: WithdrawalStatus
    processed_by: Optional[UUID] = None
    processed_at: Optional[datetime.datetime] = None
    notes: Optional[str] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class WithdrawalBalance(BaseModel):
    """All amounts in the smallest currency unit."""
    earned: int # teacher share of processed payments
    withdrawn: int # completed withdrawals
    pending: int # withdrawals awaiting an admin
    available: int
