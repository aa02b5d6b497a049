'''
Monthly payment split and teacher withdrawals.

Amounts are integers in the smallest currency unit. The teacher share is
rounded half-up and the admin share is derived by subtraction, so the two
shares always add back to the gross amount exactly.
'''
import calendar
import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from ..common.exceptions import (
    InvalidSalarySplitError, PaymentAlreadyProcessedError, InsufficientBalanceError, WithdrawalAlreadyDecidedError
)
from ..database.db_enums import PaymentStatus, WithdrawalStatus

Number = Union[int, float, str, Decimal]


class PaymentCalculation(BaseModel):
    total_hours: Decimal
    hourly_rate: int
    gross_amount: int
    teacher_percentage: Decimal
    admin_percentage: Decimal
    teacher_amount: int
    admin_amount: int

    model_config = ConfigDict(frozen=True)


def _to_decimal(value: Number) -> Decimal:
    # str() keeps floats like 0.7 from turning into 0.6999...
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_split(teacher_percentage: Number, admin_percentage: Number) -> tuple[Decimal, Decimal]:
    teacher_pct = _to_decimal(teacher_percentage)
    admin_pct = _to_decimal(admin_percentage)
    if not (Decimal(0) <= teacher_pct <= Decimal(1)) or not (Decimal(0) <= admin_pct <= Decimal(1)):
        raise InvalidSalarySplitError("Percentages must be between 0 and 1.")
    if teacher_pct + admin_pct != Decimal(1):
        raise InvalidSalarySplitError(
            f"Teacher ({teacher_pct}) and admin ({admin_pct}) percentages must add up to 1."
        )
    return teacher_pct, admin_pct


def compute_monthly_payment(
    total_hours: Number,
    hourly_rate: int,
    teacher_percentage: Number,
    admin_percentage: Optional[Number] = None
) -> PaymentCalculation:
    teacher_pct = _to_decimal(teacher_percentage)
    if admin_percentage is None:
        admin_percentage = Decimal(1) - teacher_pct
    teacher_pct, admin_pct = validate_split(teacher_pct, admin_percentage)
    hours = _to_decimal(total_hours)
    if hours < 0 or hourly_rate < 0:
        raise ValueError("Hours and hourly rate cannot be negative.")

    gross_amount = _round_half_up(hours * hourly_rate)
    teacher_amount = _round_half_up(gross_amount * teacher_pct)
    admin_amount = gross_amount - teacher_amount

    return PaymentCalculation(
        total_hours=hours,
        hourly_rate=hourly_rate,
        gross_amount=gross_amount,
        teacher_percentage=teacher_pct,
        admin_percentage=admin_pct,
        teacher_amount=teacher_amount,
        admin_amount=admin_amount,
    )


def parse_month(month_year: str) -> tuple[int, int]:
    """Parses 'YYYY-MM'. Raises ValueError on anything else."""
    try:
        year_str, month_str = month_year.split("-")
        if len(year_str) != 4 or len(month_str) != 2:
            raise ValueError
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise ValueError(f"Invalid month '{month_year}', expected YYYY-MM.")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month '{month_year}', expected YYYY-MM.")
    return year, month


def month_bounds(month_year: str) -> tuple[datetime.date, datetime.date]:
    """First and last calendar day of the month, both inclusive."""
    year, month = parse_month(month_year)
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, 1), datetime.date(year, month, last_day)


def ensure_pending(payment) -> None:
    if payment.status != PaymentStatus.PENDING.value:
        raise PaymentAlreadyProcessedError(f"Payment {payment.id} has already been processed.")


# --- Withdrawals ---

def available_balance(earned: int, committed: int) -> int:
    """
    Processed teacher earnings less every pending or completed withdrawal.
    Pending withdrawals reserve their amount until an admin rejects them.
    """
    return max(int(earned or 0) - int(committed or 0), 0)


def ensure_withdrawable(amount: int, available: int) -> None:
    if amount > available:
        raise InsufficientBalanceError(
            f"Withdrawal of {amount} exceeds the available balance of {available}."
        )


def ensure_withdrawal_pending(withdrawal) -> None:
    if withdrawal.status != WithdrawalStatus.PENDING.value:
        raise WithdrawalAlreadyDecidedError(f"Withdrawal {withdrawal.id} is already {withdrawal.status}.")
