'''

'''
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.approval import is_publicly_listed
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..common.logger import log
from ..models import courses as course_models


class CourseService:
    """
    Course ownership rules: only approved teachers create courses, and only
    the owning teacher or an admin may change or deactivate one.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def get_course(self, course_id: UUID) -> db_models.Courses:
        stmt = select(db_models.Courses).options(
            selectinload(db_models.Courses.teacher)
        ).filter(db_models.Courses.id == course_id)
        result = await self.db.execute(stmt)
        course = result.scalars().first()
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")
        return course

    def _authorize_write(self, course: db_models.Courses, current_user: db_models.Profiles):
        is_owner = course.teacher_id == current_user.id
        is_admin = current_user.role == UserRole.ADMIN.value
        if not is_owner and not is_admin:
            log.warning(f"SECURITY: User {current_user.id} tried to modify course {course.id} owned by {course.teacher_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to modify this course."
            )

    async def create_course(
        self,
        course_data: course_models.CourseCreate,
        current_user: db_models.Profiles
    ) -> db_models.Courses:
        log.info(f"User {current_user.id} attempting to create course '{course_data.title}'.")
        if not is_publicly_listed(current_user):
            log.warning(f"User {current_user.id} (Role: {current_user.role}, approval: {current_user.approval_status}) tried to create a course.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only approved teachers can create courses."
            )

        data = course_data.model_dump()
        data["audience"] = course_data.audience.value
        new_course = db_models.Courses(teacher_id=current_user.id, is_active=True, **data)
        self.db.add(new_course)
        await self.db.flush()
        return await self.get_course(new_course.id)

    async def update_course(
        self,
        course_id: UUID,
        update_data: course_models.CourseUpdate,
        current_user: db_models.Profiles
    ) -> db_models.Courses:
        course = await self.get_course(course_id)
        self._authorize_write(course, current_user)

        for key, value in update_data.model_dump(exclude_unset=True).items():
            if key == "audience" and value is not None:
                value = value.value
            setattr(course, key, value)

        await self.db.flush()
        log.info(f"User {current_user.id} updated course {course_id}.")
        return course

    async def deactivate_course(self, course_id: UUID, current_user: db_models.Profiles) -> None:
        """Courses are never physically deleted."""
        course = await self.get_course(course_id)
        self._authorize_write(course, current_user)
        course.is_active = False
        await self.db.flush()
        log.info(f"User {current_user.id} deactivated course {course_id}.")
