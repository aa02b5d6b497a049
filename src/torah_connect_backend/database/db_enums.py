'''
Static enums mirroring the database ENUM types and the decision vocabularies
shared between `core/`, the services and the API models.
'''
import enum


class ListableEnum(str, enum.Enum):
    """A custom Enum base class that can list all member values."""
    @classmethod
    def get_all_names(cls) -> list[str]:
        return [member.value for member in cls]


class UserRole(ListableEnum):
    STUDENT = 'student'
    TEACHER = 'teacher'
    ADMIN = 'admin'

class Gender(ListableEnum):
    MALE = 'male'
    FEMALE = 'female'

class ApprovalStatus(ListableEnum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

class ApprovalAction(ListableEnum):
    APPROVED = 'approved'
    REJECTED = 'rejected'
    REAPPLIED = 'reapplied'

class CourseAudience(ListableEnum):
    CHILDREN = 'children'
    WOMEN = 'women'
    MEN = 'men'
    GENERAL = 'general'

class SessionType(ListableEnum):
    TRIAL = 'trial'
    REGULAR = 'regular'

class SessionStatus(ListableEnum):
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

class BookingStatus(ListableEnum):
    REQUESTED = 'requested'
    SCHEDULED = 'scheduled'
    DECLINED = 'declined'
    CANCELLED = 'cancelled'

class MessageType(ListableEnum):
    TEXT = 'text'
    MEETING_REQUEST = 'meeting_request'
    MEETING_RESPONSE = 'meeting_response'

class PaymentStatus(ListableEnum):
    PENDING = 'pending'
    PROCESSED = 'processed'

class DonationType(ListableEnum):
    SINGLE_COURSE = 'single_course'
    MULTIPLE_COURSES = 'multiple_courses'
    CUSTOM = 'custom'

class DonationStatus(ListableEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'

class EnrollmentSource(ListableEnum):
    SPONSORED = 'sponsored'
    PAID = 'paid'

class AdminActionType(ListableEnum):
    ROLE_CHANGE = 'role_change'
    PROFILE_DELETE = 'profile_delete'
    DONATION_COMPLETE = 'donation_complete'

class TrialDecisionReason(ListableEnum):
    SPONSORED = 'SPONSORED'
    QUOTA_EXHAUSTED = 'QUOTA_EXHAUSTED'
    ALREADY_USED_FOR_SUBJECT = 'ALREADY_USED_FOR_SUBJECT'
    TRIAL_NOT_AVAILABLE = 'TRIAL_NOT_AVAILABLE'
    NOT_A_STUDENT = 'NOT_A_STUDENT'
    OK = 'OK'

class WithdrawalStatus(ListableEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    REJECTED = 'rejected'

class LiveClassJoinReason(ListableEnum):
    OK = 'OK'
    NOT_A_STUDENT = 'NOT_A_STUDENT'
    CLASS_CLOSED = 'CLASS_CLOSED'
    ALREADY_ENROLLED = 'ALREADY_ENROLLED'
    CLASS_FULL = 'CLASS_FULL'
