from typing import Optional

from sqlalchemy import (
    JSON, BigInteger, Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKeyConstraint,
    Index, Integer, Numeric, PrimaryKeyConstraint, String, Text, Time, UniqueConstraint, Uuid
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import datetime
import decimal
import uuid

from .db_enums import (
    UserRole, Gender, ApprovalStatus, ApprovalAction, CourseAudience, SessionType,
    SessionStatus, BookingStatus, MessageType, PaymentStatus, DonationType,
    DonationStatus, EnrollmentSource, AdminActionType, WithdrawalStatus
)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Base(DeclarativeBase):
    pass


class Profiles(Base):
    __tablename__ = 'profiles'
    __table_args__ = (
        CheckConstraint('trial_lessons_used >= 0', name='profiles_trial_lessons_used_check'),
        PrimaryKeyConstraint('id', name='profiles_pkey'),
        UniqueConstraint('email', name='profiles_email_key'),
        Index('idx_profiles_role_approval', 'role', 'approval_status')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255))
    password: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(Enum(*UserRole.get_all_names(), name='user_role'), default=UserRole.STUDENT.value)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    first_name: Mapped[Optional[str]] = mapped_column(Text)
    last_name: Mapped[Optional[str]] = mapped_column(Text)
    gender: Mapped[Optional[str]] = mapped_column(Enum(*Gender.get_all_names(), name='gender_enum'))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    time_zone: Mapped[Optional[str]] = mapped_column(Text)

    # Matching attributes (sets of labels, stored as JSON arrays)
    subjects: Mapped[list] = mapped_column(JSON, default=list)
    languages: Mapped[list] = mapped_column(JSON, default=list)
    audiences: Mapped[list] = mapped_column(JSON, default=list)

    # Teacher-only
    hourly_rate: Mapped[Optional[int]] = mapped_column(Integer)
    approval_status: Mapped[Optional[str]] = mapped_column(Enum(*ApprovalStatus.get_all_names(), name='approval_status_enum'))
    approved_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    # Student-only
    trial_lessons_used: Mapped[int] = mapped_column(Integer, default=0)
    max_trial_lessons: Mapped[int] = mapped_column(Integer, default=2)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow)

    courses: Mapped[list['Courses']] = relationship('Courses', back_populates='teacher', passive_deletes=True)


class Courses(Base):
    __tablename__ = 'courses'
    __table_args__ = (
        CheckConstraint('price >= 0', name='courses_price_check'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='courses_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='courses_pkey'),
        Index('idx_courses_teacher_id', 'teacher_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    title: Mapped[str] = mapped_column(Text)
    subject: Mapped[str] = mapped_column(Text)
    audience: Mapped[str] = mapped_column(Enum(*CourseAudience.get_all_names(), name='course_audience_enum'), default=CourseAudience.GENERAL.value)
    price: Mapped[int] = mapped_column(Integer, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text)
    age_range: Mapped[Optional[str]] = mapped_column(Text)
    currency: Mapped[str] = mapped_column(Text, default='EUR')
    session_duration_minutes: Mapped[int] = mapped_column(Integer, default=60)
    total_sessions: Mapped[Optional[int]] = mapped_column(Integer)
    max_students: Mapped[Optional[int]] = mapped_column(Integer)
    is_trial_available: Mapped[bool] = mapped_column(Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow)

    teacher: Mapped['Profiles'] = relationship('Profiles', back_populates='courses')


class CourseSessions(Base):
    __tablename__ = 'course_sessions'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='SET NULL', name='course_sessions_course_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['profiles.id'], ondelete='CASCADE', name='course_sessions_student_id_fkey'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='course_sessions_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='course_sessions_pkey'),
        Index('idx_course_sessions_student_type', 'student_id', 'session_type')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    session_date: Mapped[datetime.datetime] = mapped_column(DateTime(True))
    duration_minutes: Mapped[int] = mapped_column(Integer)
    session_type: Mapped[str] = mapped_column(Enum(*SessionType.get_all_names(), name='session_type_enum'))
    status: Mapped[str] = mapped_column(Enum(*SessionStatus.get_all_names(), name='session_status_enum'), default=SessionStatus.SCHEDULED.value)
    meeting_link: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)

    course: Mapped[Optional['Courses']] = relationship('Courses')


class TrialUsages(Base):
    """One row per trial consumed; the unique key is the trial scoping key."""
    __tablename__ = 'trial_usages'
    __table_args__ = (
        ForeignKeyConstraint(['student_id'], ['profiles.id'], ondelete='CASCADE', name='trial_usages_student_id_fkey'),
        ForeignKeyConstraint(['session_id'], ['course_sessions.id'], ondelete='SET NULL', name='trial_usages_session_id_fkey'),
        PrimaryKeyConstraint('id', name='trial_usages_pkey'),
        UniqueConstraint('student_id', 'subject', name='trial_usages_student_id_subject_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    subject: Mapped[str] = mapped_column(Text)
    teacher_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    course_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    session_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class CourseEnrollments(Base):
    __tablename__ = 'course_enrollments'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='course_enrollments_course_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['profiles.id'], ondelete='CASCADE', name='course_enrollments_student_id_fkey'),
        PrimaryKeyConstraint('id', name='course_enrollments_pkey'),
        UniqueConstraint('course_id', 'student_id', name='course_enrollments_course_id_student_id_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    source: Mapped[str] = mapped_column(Enum(*EnrollmentSource.get_all_names(), name='enrollment_source_enum'))
    sponsored_course_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class Donations(Base):
    __tablename__ = 'donations'
    __table_args__ = (
        CheckConstraint('amount > 0', name='donations_amount_check'),
        CheckConstraint('courses_sponsored >= 0', name='donations_courses_sponsored_check'),
        ForeignKeyConstraint(['donor_id'], ['profiles.id'], ondelete='SET NULL', name='donations_donor_id_fkey'),
        PrimaryKeyConstraint('id', name='donations_pkey')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    donor_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    amount: Mapped[int] = mapped_column(Integer)
    donation_type: Mapped[str] = mapped_column(Enum(*DonationType.get_all_names(), name='donation_type_enum'))
    courses_sponsored: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(Enum(*DonationStatus.get_all_names(), name='donation_status_enum'), default=DonationStatus.PENDING.value)
    message: Mapped[Optional[str]] = mapped_column(Text)
    completed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)

    sponsored_courses: Mapped[list['SponsoredCourses']] = relationship('SponsoredCourses', back_populates='donation')


class SponsoredCourses(Base):
    """A community-funded enrollment slot. Unused while beneficiary_id is NULL."""
    __tablename__ = 'sponsored_courses'
    __table_args__ = (
        ForeignKeyConstraint(['donation_id'], ['donations.id'], ondelete='CASCADE', name='sponsored_courses_donation_id_fkey'),
        ForeignKeyConstraint(['beneficiary_id'], ['profiles.id'], ondelete='SET NULL', name='sponsored_courses_beneficiary_id_fkey'),
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='SET NULL', name='sponsored_courses_course_id_fkey'),
        PrimaryKeyConstraint('id', name='sponsored_courses_pkey'),
        Index('idx_sponsored_courses_unused', 'beneficiary_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    donation_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    beneficiary_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    course_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    used_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)

    donation: Mapped['Donations'] = relationship('Donations', back_populates='sponsored_courses')


class AdminApprovals(Base):
    """Advisory audit trail of approval transitions. Rows are never updated."""
    __tablename__ = 'admin_approvals'
    __table_args__ = (
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='admin_approvals_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='admin_approvals_pkey'),
        Index('idx_admin_approvals_teacher_id', 'teacher_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    action: Mapped[str] = mapped_column(Enum(*ApprovalAction.get_all_names(), name='approval_action_enum'))
    # NULL when the teacher re-applies themselves
    admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class AdminActions(Base):
    __tablename__ = 'admin_actions'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='admin_actions_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    action_type: Mapped[str] = mapped_column(Enum(*AdminActionType.get_all_names(), name='admin_action_type_enum'))
    target_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    details: Mapped[Optional[dict]] = mapped_column(JSON)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class TeacherSalarySettings(Base):
    """Append-only. The most recently created row is the split in effect."""
    __tablename__ = 'teacher_salary_settings'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='teacher_salary_settings_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_percentage: Mapped[decimal.Decimal] = mapped_column(Numeric(5, 4))
    admin_percentage: Mapped[decimal.Decimal] = mapped_column(Numeric(5, 4))
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class TeacherHours(Base):
    __tablename__ = 'teacher_hours'
    __table_args__ = (
        CheckConstraint('hours_taught > 0', name='teacher_hours_hours_taught_check'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='teacher_hours_teacher_id_fkey'),
        ForeignKeyConstraint(['session_id'], ['course_sessions.id'], ondelete='SET NULL', name='teacher_hours_session_id_fkey'),
        PrimaryKeyConstraint('id', name='teacher_hours_pkey'),
        Index('idx_teacher_hours_teacher_date', 'teacher_id', 'date_taught')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    hours_taught: Mapped[decimal.Decimal] = mapped_column(Numeric(6, 2))
    date_taught: Mapped[datetime.date] = mapped_column(Date)
    session_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class MonthlyTeacherPayments(Base):
    __tablename__ = 'monthly_teacher_payments'
    __table_args__ = (
        CheckConstraint('teacher_amount + admin_amount = gross_amount', name='monthly_teacher_payments_split_check'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='monthly_teacher_payments_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='monthly_teacher_payments_pkey'),
        UniqueConstraint('teacher_id', 'month_year', name='monthly_teacher_payments_teacher_id_month_year_key'),
        Index('idx_monthly_teacher_payments_status', 'status')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    month_year: Mapped[str] = mapped_column(String(7))
    total_hours: Mapped[decimal.Decimal] = mapped_column(Numeric(8, 2))
    hourly_rate: Mapped[int] = mapped_column(Integer)
    gross_amount: Mapped[int] = mapped_column(BigInteger)
    # The split in effect when the row was generated, never re-derived afterwards
    teacher_percentage: Mapped[decimal.Decimal] = mapped_column(Numeric(5, 4))
    admin_percentage: Mapped[decimal.Decimal] = mapped_column(Numeric(5, 4))
    teacher_amount: Mapped[int] = mapped_column(BigInteger)
    admin_amount: Mapped[int] = mapped_column(BigInteger)
    status: Mapped[str] = mapped_column(Enum(*PaymentStatus.get_all_names(), name='payment_status_enum'), default=PaymentStatus.PENDING.value)
    processed_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    processed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)

    teacher: Mapped['Profiles'] = relationship('Profiles')


class Conversations(Base):
    __tablename__ = 'conversations'
    __table_args__ = (
        ForeignKeyConstraint(['student_id'], ['profiles.id'], ondelete='CASCADE', name='conversations_student_id_fkey'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='conversations_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='conversations_pkey'),
        UniqueConstraint('student_id', 'teacher_id', name='conversations_student_id_teacher_id_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)

    student: Mapped['Profiles'] = relationship('Profiles', foreign_keys='[Conversations.student_id]')
    teacher: Mapped['Profiles'] = relationship('Profiles', foreign_keys='[Conversations.teacher_id]')
    messages: Mapped[list['ChatMessages']] = relationship(
        'ChatMessages',
        back_populates='conversation',
        order_by='ChatMessages.created_at'
    )


class ChatMessages(Base):
    __tablename__ = 'chat_messages'
    __table_args__ = (
        ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='CASCADE', name='chat_messages_conversation_id_fkey'),
        ForeignKeyConstraint(['sender_id'], ['profiles.id'], ondelete='CASCADE', name='chat_messages_sender_id_fkey'),
        PrimaryKeyConstraint('id', name='chat_messages_pkey'),
        Index('idx_chat_messages_conversation_created', 'conversation_id', 'created_at')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    content: Mapped[str] = mapped_column(Text)
    message_type: Mapped[str] = mapped_column(Enum(*MessageType.get_all_names(), name='message_type'), default=MessageType.TEXT.value)
    meeting_data: Mapped[Optional[dict]] = mapped_column(JSON)
    read_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)

    conversation: Mapped['Conversations'] = relationship('Conversations', back_populates='messages')


class LessonBookings(Base):
    """A live session scheduled through a chat meeting request."""
    __tablename__ = 'lesson_bookings'
    __table_args__ = (
        CheckConstraint('duration_minutes > 0', name='lesson_bookings_duration_check'),
        ForeignKeyConstraint(['student_id'], ['profiles.id'], ondelete='CASCADE', name='lesson_bookings_student_id_fkey'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='lesson_bookings_teacher_id_fkey'),
        ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='SET NULL', name='lesson_bookings_conversation_id_fkey'),
        PrimaryKeyConstraint('id', name='lesson_bookings_pkey')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    conversation_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    lesson_date: Mapped[datetime.date] = mapped_column(Date)
    lesson_time: Mapped[datetime.time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60)
    subject: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Enum(*BookingStatus.get_all_names(), name='booking_status_enum'), default=BookingStatus.REQUESTED.value)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow)


class LiveClasses(Base):
    """A scheduled group class students join with its course key."""
    __tablename__ = 'live_classes'
    __table_args__ = (
        CheckConstraint('duration_minutes > 0', name='live_classes_duration_check'),
        CheckConstraint('max_participants > 0', name='live_classes_max_participants_check'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='live_classes_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='live_classes_pkey'),
        UniqueConstraint('course_key', name='live_classes_course_key_key'),
        Index('idx_live_classes_teacher_id', 'teacher_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    title: Mapped[str] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    course_key: Mapped[str] = mapped_column(String(16))
    meeting_link: Mapped[Optional[str]] = mapped_column(Text)
    scheduled_at: Mapped[datetime.datetime] = mapped_column(DateTime(True))
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60)
    max_participants: Mapped[int] = mapped_column(Integer, default=20)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow)

    teacher: Mapped['Profiles'] = relationship('Profiles')


class ClassEnrollments(Base):
    __tablename__ = 'class_enrollments'
    __table_args__ = (
        ForeignKeyConstraint(['class_id'], ['live_classes.id'], ondelete='CASCADE', name='class_enrollments_class_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['profiles.id'], ondelete='CASCADE', name='class_enrollments_student_id_fkey'),
        PrimaryKeyConstraint('id', name='class_enrollments_pkey'),
        UniqueConstraint('class_id', 'student_id', name='class_enrollments_class_id_student_id_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    enrolled_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)


class TeacherWithdrawals(Base):
    """
    A teacher's request to be paid out of processed earnings. Pending and
    completed rows count against the balance; rejected rows release it.
    """
    __tablename__ = 'teacher_withdrawals'
    __table_args__ = (
        CheckConstraint('amount > 0', name='teacher_withdrawals_amount_check'),
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='CASCADE', name='teacher_withdrawals_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='teacher_withdrawals_pkey'),
        Index('idx_teacher_withdrawals_teacher_status', 'teacher_id', 'status')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    amount: Mapped[int] = mapped_column(BigInteger)
    bank_account: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Enum(*WithdrawalStatus.get_all_names(), name='withdrawal_status_enum'), default=WithdrawalStatus.PENDING.value)
    processed_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    processed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=utcnow)
