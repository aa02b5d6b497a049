'''
Profile services: lookup, signup, self-service edits and admin escape hatches.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, ApprovalStatus, AdminActionType
from ..common.config import settings
from ..common.logger import log
from ..common.security_utils import HashedPassword
from ..models import user as user_models


def require_admin(current_user: db_models.Profiles, action: str) -> None:
    """Raises 403 unless the current user is an admin."""
    if current_user.role != UserRole.ADMIN.value:
        log.warning(f"SECURITY: Non-admin user {current_user.id} (Role: {current_user.role}) tried to {action}.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can perform this action."
        )


def to_read_model(profile: db_models.Profiles):
    """Picks the role-specific read model for a profile."""
    if profile.role == UserRole.TEACHER.value:
        return user_models.TeacherRead.model_validate(profile)
    if profile.role == UserRole.STUDENT.value:
        return user_models.StudentRead.model_validate(profile)
    return user_models.AdminRead.model_validate(profile)


class UserService:
    """
    Base service for profile-related database operations.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def get_user_by_email(self, email: str) -> db_models.Profiles | None:
        log.info(f"Fetching profile for email: {email}")
        try:
            stmt = select(db_models.Profiles).filter(db_models.Profiles.email == email.lower())
            result = await self.db.execute(stmt)
            return result.scalars().first()
        except Exception as e:
            log.error(f"Database error fetching profile by email {email}: {e}", exc_info=True)
            raise

    async def get_user_by_id(self, user_id: UUID) -> db_models.Profiles | None:
        log.info(f"Fetching profile for ID: {user_id}")
        try:
            return await self.db.get(db_models.Profiles, user_id)
        except Exception as e:
            log.error(f"Database error fetching profile by ID {user_id}: {e}", exc_info=True)
            raise

    async def get_users_by_ids(self, user_ids: list[UUID]) -> list[db_models.Profiles]:
        if not user_ids:
            return []
        log.info(f"Fetching {len(user_ids)} profiles by ID list.")
        try:
            stmt = select(db_models.Profiles).filter(db_models.Profiles.id.in_(user_ids))
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except Exception as e:
            log.error(f"Database error fetching profiles by ID list: {e}", exc_info=True)
            raise


class ProfileService(UserService):
    """Signup and self-service edits."""

    async def _ensure_email_free(self, email: str) -> None:
        if await self.get_user_by_email(email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered."
            )

    async def create_student(self, signup: user_models.StudentSignup) -> db_models.Profiles:
        """
        Creates a new student profile (for sign-up).
        Students start with an unused trial allowance.
        """
        log.info(f"Attempting to create student {signup.email}.")
        await self._ensure_email_free(signup.email)

        new_student = db_models.Profiles(
            email=signup.email.lower(),
            password=HashedPassword.get_hash(signup.password),
            role=UserRole.STUDENT.value,
            first_name=signup.first_name,
            last_name=signup.last_name,
            gender=signup.gender.value if signup.gender else None,
            time_zone=signup.time_zone,
            subjects=signup.subjects,
            languages=signup.languages,
            audiences=[],
            trial_lessons_used=0,
            max_trial_lessons=settings.DEFAULT_MAX_TRIAL_LESSONS,
        )
        self.db.add(new_student)
        await self.db.flush()
        log.info(f"Created student {new_student.id}.")
        return new_student

    async def create_teacher(self, signup: user_models.TeacherSignup) -> db_models.Profiles:
        """
        Creates a new teacher profile (for sign-up).
        Teachers are hidden from every listing until an admin approves them.
        """
        log.info(f"Attempting to create teacher {signup.email}.")
        await self._ensure_email_free(signup.email)

        new_teacher = db_models.Profiles(
            email=signup.email.lower(),
            password=HashedPassword.get_hash(signup.password),
            role=UserRole.TEACHER.value,
            first_name=signup.first_name,
            last_name=signup.last_name,
            gender=signup.gender.value if signup.gender else None,
            time_zone=signup.time_zone,
            bio=signup.bio,
            subjects=signup.subjects,
            languages=signup.languages,
            audiences=signup.audiences,
            hourly_rate=signup.hourly_rate,
            approval_status=ApprovalStatus.PENDING.value,
            trial_lessons_used=0,
            max_trial_lessons=0,
        )
        self.db.add(new_teacher)
        await self.db.flush()
        log.info(f"Created teacher {new_teacher.id} (pending approval).")
        return new_teacher

    async def update_me(
        self,
        update_data: user_models.ProfileUpdate,
        current_user: db_models.Profiles
    ) -> db_models.Profiles:
        """
        Applies a partial update to the caller's own profile.
        hourly_rate is only accepted from teachers.
        """
        log.info(f"User {current_user.id} updating own profile.")
        update_dict = update_data.model_dump(exclude_unset=True)

        if "hourly_rate" in update_dict and current_user.role != UserRole.TEACHER.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only teachers have an hourly rate."
            )

        for key, value in update_dict.items():
            if key == "gender" and value is not None:
                value = value.value
            setattr(current_user, key, value)

        self.db.add(current_user)
        await self.db.flush()
        await self.db.refresh(current_user)
        return current_user


class AdminService(UserService):
    """Admin-only changes to other people's profiles. Every change leaves an audit row."""

    def _audit(self, admin: db_models.Profiles, action_type: AdminActionType, target_id: UUID, details: Optional[dict] = None):
        self.db.add(db_models.AdminActions(
            admin_id=admin.id,
            action_type=action_type.value,
            target_user_id=target_id,
            details=details or {}
        ))

    async def _get_target(self, user_id: UUID) -> db_models.Profiles:
        target = await self.get_user_by_id(user_id)
        if not target:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
        return target

    async def change_role(
        self,
        user_id: UUID,
        role_change: user_models.RoleChange,
        current_user: db_models.Profiles
    ) -> db_models.Profiles:
        """
        Moves a profile to another role.
        A profile becoming a teacher enters the approval queue as pending.
        """
        require_admin(current_user, f"change the role of user {user_id}")
        target = await self._get_target(user_id)

        old_role = target.role
        new_role = role_change.role.value
        if old_role == new_role:
            return target

        log.info(f"Admin {current_user.id} changing role of {user_id} from {old_role} to {new_role}.")
        target.role = new_role
        if new_role == UserRole.TEACHER.value and target.approval_status is None:
            target.approval_status = ApprovalStatus.PENDING.value

        self._audit(current_user, AdminActionType.ROLE_CHANGE, target.id, {"from": old_role, "to": new_role})
        await self.db.flush()
        await self.db.refresh(target)
        return target

    async def delete_profile(self, user_id: UUID, current_user: db_models.Profiles) -> None:
        """
        Hard-deletes a profile. The audit row is written first and references the id only.
        """
        require_admin(current_user, f"delete user {user_id}")
        if user_id == current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot delete their own profile."
            )
        target = await self._get_target(user_id)

        self._audit(current_user, AdminActionType.PROFILE_DELETE, target.id, {"email": target.email, "role": target.role})
        await self.db.delete(target)
        await self.db.flush()
        log.info(f"Admin {current_user.id} deleted profile {user_id}.")
