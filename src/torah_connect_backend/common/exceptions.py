"""
This file contains custom, application-specific exceptions.
Raised by the pure rules in `core/`; services translate them to HTTP errors.
"""

class InvalidApprovalTransitionError(Exception):
    """Raised when a teacher's approval status cannot move to the requested state."""
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move approval status from '{current}' to '{target}'.")

class InvalidSalarySplitError(Exception):
    """Raised when teacher and admin percentages do not add up to exactly 1."""
    pass

class PaymentAlreadyProcessedError(Exception):
    """Raised when a processed monthly payment would be changed."""
    pass

class InsufficientBalanceError(Exception):
    """Raised when a withdrawal asks for more than the teacher's available earnings."""
    pass

class WithdrawalAlreadyDecidedError(Exception):
    """Raised when a completed or rejected withdrawal would be decided again."""
    pass
