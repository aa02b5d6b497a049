import pytest
from types import SimpleNamespace

from torah_connect_backend.core import approval
from torah_connect_backend.common.exceptions import InvalidApprovalTransitionError
from torah_connect_backend.database.db_enums import ApprovalAction, ApprovalStatus, UserRole


class TestNextStatus:

    @pytest.mark.parametrize("current,action,expected", [
        (ApprovalStatus.PENDING, ApprovalAction.APPROVED, ApprovalStatus.APPROVED),
        (ApprovalStatus.PENDING, ApprovalAction.REJECTED, ApprovalStatus.REJECTED),
        (ApprovalStatus.REJECTED, ApprovalAction.REAPPLIED, ApprovalStatus.PENDING),
        ("pending", ApprovalAction.APPROVED, ApprovalStatus.APPROVED),
        (None, ApprovalAction.REJECTED, ApprovalStatus.REJECTED),
    ])
    def test_legal_transitions(self, current, action, expected):
        assert approval.next_status(current, action) == expected

    @pytest.mark.parametrize("current,action", [
        (ApprovalStatus.APPROVED, ApprovalAction.APPROVED),
        (ApprovalStatus.APPROVED, ApprovalAction.REJECTED),
        (ApprovalStatus.APPROVED, ApprovalAction.REAPPLIED),
        (ApprovalStatus.REJECTED, ApprovalAction.APPROVED),
        (ApprovalStatus.REJECTED, ApprovalAction.REJECTED),
        (ApprovalStatus.PENDING, ApprovalAction.REAPPLIED),
    ])
    def test_illegal_transitions_raise(self, current, action):
        with pytest.raises(InvalidApprovalTransitionError):
            approval.next_status(current, action)

    def test_allowed_actions(self):
        assert approval.allowed_actions("pending") == [ApprovalAction.APPROVED, ApprovalAction.REJECTED]
        assert approval.allowed_actions("rejected") == [ApprovalAction.REAPPLIED]
        assert approval.allowed_actions("approved") == []


class TestListing:

    def _profile(self, role=UserRole.TEACHER.value, is_active=True, status="approved"):
        return SimpleNamespace(role=role, is_active=is_active, approval_status=status)

    def test_only_approved_active_teachers_are_listed(self):
        assert approval.is_publicly_listed(self._profile()) is True
        assert approval.is_publicly_listed(self._profile(status="pending")) is False
        assert approval.is_publicly_listed(self._profile(status="rejected")) is False
        assert approval.is_publicly_listed(self._profile(is_active=False)) is False
        assert approval.is_publicly_listed(self._profile(role=UserRole.STUDENT.value)) is False
