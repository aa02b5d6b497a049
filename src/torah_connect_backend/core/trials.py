'''
Trial eligibility: decides whether a student may book a free trial lesson
for a course, and whether a sponsored slot pre-empts the trial.

The scoping key for "already used" is the course subject: a student gets at
most one trial per subject, whichever teacher offers it.
'''
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..database.db_enums import TrialDecisionReason, UserRole


class TrialDecision(BaseModel):
    allowed: bool
    reason: TrialDecisionReason

    model_config = ConfigDict(frozen=True)

    @property
    def consumes_trial(self) -> bool:
        return self.reason == TrialDecisionReason.OK


_MESSAGES = {
    TrialDecisionReason.SPONSORED: "Your enrollment has been sponsored by the community.",
    TrialDecisionReason.QUOTA_EXHAUSTED: "You have used all your trial lessons.",
    TrialDecisionReason.ALREADY_USED_FOR_SUBJECT: "You have already used your free trial for this subject.",
    TrialDecisionReason.TRIAL_NOT_AVAILABLE: "This course does not offer a trial lesson.",
    TrialDecisionReason.NOT_A_STUDENT: "Only students can book trial lessons.",
    TrialDecisionReason.OK: "You can book a trial lesson for this course.",
}


def describe(reason: TrialDecisionReason) -> str:
    return _MESSAGES[reason]


def remaining_trials(trial_lessons_used: Optional[int], max_trial_lessons: Optional[int], default_max: int = 2) -> int:
    used = trial_lessons_used or 0
    cap = max_trial_lessons if max_trial_lessons is not None else default_max
    return max(cap - used, 0)


def trial_scope_key(course) -> str:
    """Normalized subject used as the uniqueness key for consumed trials."""
    return course.subject.strip().lower()


def can_book_trial(
    student,
    course,
    has_used_trial_for_scope: bool,
    sponsored_slot_available: bool,
    default_max: int = 2
) -> TrialDecision:
    """
    Pure decision, in order:
    1. a sponsored slot grants full enrollment without consuming a trial
    2. the global trial counter has reached its cap
    3. a trial was already consumed for this subject
    4. otherwise the trial is allowed
    Non-students and inactive courses are refused up front; a course with
    trials switched off can still be entered through a sponsored slot.
    """
    if student.role != UserRole.STUDENT.value:
        return TrialDecision(allowed=False, reason=TrialDecisionReason.NOT_A_STUDENT)

    if not course.is_active:
        return TrialDecision(allowed=False, reason=TrialDecisionReason.TRIAL_NOT_AVAILABLE)

    if sponsored_slot_available:
        return TrialDecision(allowed=True, reason=TrialDecisionReason.SPONSORED)

    if not course.is_trial_available:
        return TrialDecision(allowed=False, reason=TrialDecisionReason.TRIAL_NOT_AVAILABLE)

    if remaining_trials(student.trial_lessons_used, student.max_trial_lessons, default_max) <= 0:
        return TrialDecision(allowed=False, reason=TrialDecisionReason.QUOTA_EXHAUSTED)

    if has_used_trial_for_scope:
        return TrialDecision(allowed=False, reason=TrialDecisionReason.ALREADY_USED_FOR_SUBJECT)

    return TrialDecision(allowed=True, reason=TrialDecisionReason.OK)


def trial_session_date(now: datetime, delay_days: int = 1) -> datetime:
    """Trial sessions are dated a fixed delay after booking; business days are not computed."""
    return now + timedelta(days=delay_days)
