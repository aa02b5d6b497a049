'''
Live classes: teachers publish a class under a short course key, students
join it by typing the key in.

The join decision is checked in order: only students join, the class must
still be open, a student joins a class once, and the class holds at most
max_participants students.
'''
import secrets
import string
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..database.db_enums import LiveClassJoinReason, UserRole

COURSE_KEY_LENGTH = 8
COURSE_KEY_ALPHABET = string.ascii_uppercase + string.digits


class JoinDecision(BaseModel):
    allowed: bool
    reason: LiveClassJoinReason

    model_config = ConfigDict(frozen=True)


_MESSAGES = {
    LiveClassJoinReason.OK: "You have joined the live class.",
    LiveClassJoinReason.NOT_A_STUDENT: "Only students can join live classes.",
    LiveClassJoinReason.CLASS_CLOSED: "This live class is no longer open.",
    LiveClassJoinReason.ALREADY_ENROLLED: "You are already enrolled in this live class.",
    LiveClassJoinReason.CLASS_FULL: "This live class has reached its maximum capacity.",
}


def describe(reason: LiveClassJoinReason) -> str:
    return _MESSAGES[reason]


def generate_course_key(length: int = COURSE_KEY_LENGTH) -> str:
    return ''.join(secrets.choice(COURSE_KEY_ALPHABET) for _ in range(length))


def normalize_course_key(course_key: Optional[str]) -> str:
    """Keys are matched case-insensitively and without surrounding whitespace."""
    return (course_key or '').strip().upper()


def seats_left(max_participants: int, enrolled_count: int) -> int:
    return max(max_participants - enrolled_count, 0)


def can_join(user, live_class, already_enrolled: bool, enrolled_count: int) -> JoinDecision:
    if user.role != UserRole.STUDENT.value:
        return JoinDecision(allowed=False, reason=LiveClassJoinReason.NOT_A_STUDENT)

    if not live_class.is_active:
        return JoinDecision(allowed=False, reason=LiveClassJoinReason.CLASS_CLOSED)

    if already_enrolled:
        return JoinDecision(allowed=False, reason=LiveClassJoinReason.ALREADY_ENROLLED)

    if seats_left(live_class.max_participants, enrolled_count) <= 0:
        return JoinDecision(allowed=False, reason=LiveClassJoinReason.CLASS_FULL)

    return JoinDecision(allowed=True, reason=LiveClassJoinReason.OK)
