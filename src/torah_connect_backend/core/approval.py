'''
Approval state machine for teacher profiles.

    pending  --approve-->  approved   (terminal)
    pending  --reject--->  rejected
    rejected --reapply-->  pending
'''
from ..common.exceptions import InvalidApprovalTransitionError
from ..database.db_enums import ApprovalAction, ApprovalStatus, UserRole

# action -> (allowed source states, resulting state)
TRANSITIONS: dict[ApprovalAction, tuple[frozenset[ApprovalStatus], ApprovalStatus]] = {
    ApprovalAction.APPROVED: (frozenset({ApprovalStatus.PENDING}), ApprovalStatus.APPROVED),
    ApprovalAction.REJECTED: (frozenset({ApprovalStatus.PENDING}), ApprovalStatus.REJECTED),
    ApprovalAction.REAPPLIED: (frozenset({ApprovalStatus.REJECTED}), ApprovalStatus.PENDING),
}

REVIEW_QUEUE_STATES = frozenset({ApprovalStatus.PENDING, ApprovalStatus.REJECTED})


def next_status(current, action: ApprovalAction) -> ApprovalStatus:
    """
    Returns the state reached by applying `action` to `current`.
    Raises InvalidApprovalTransitionError for any move not in TRANSITIONS.
    A missing status is read as pending.
    """
    current_status = ApprovalStatus(current) if current else ApprovalStatus.PENDING
    sources, target = TRANSITIONS[action]
    if current_status not in sources:
        raise InvalidApprovalTransitionError(current_status.value, target.value)
    return target


def allowed_actions(current) -> list[ApprovalAction]:
    current_status = ApprovalStatus(current) if current else ApprovalStatus.PENDING
    return [action for action, (sources, _) in TRANSITIONS.items() if current_status in sources]


def is_publicly_listed(profile) -> bool:
    """Only approved, active teachers may be listed, create courses, or host sessions."""
    return (
        profile.role == UserRole.TEACHER.value
        and profile.is_active
        and profile.approval_status == ApprovalStatus.APPROVED.value
    )
