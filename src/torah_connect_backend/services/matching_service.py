'''
Search surfaces: teachers, courses and study partners. Every surface loads
its rows and passes them through the same visibility rule in core/matching.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from ..core import matching
from ..core.approval import is_publicly_listed
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, ApprovalStatus
from ..common.logger import log


def _has_label(labels: Optional[list], wanted: Optional[str]) -> bool:
    if not wanted:
        return True
    return matching.normalize_label(wanted) in matching.normalize_audiences(labels)


def _matches_search(profile: db_models.Profiles, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.strip().lower()
    haystack = " ".join(filter(None, [
        profile.first_name, profile.last_name, profile.bio, *(profile.subjects or [])
    ])).lower()
    return needle in haystack


class MatchingService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _approved_teachers(self) -> list[db_models.Profiles]:
        stmt = select(db_models.Profiles).filter(
            db_models.Profiles.role == UserRole.TEACHER.value,
            db_models.Profiles.approval_status == ApprovalStatus.APPROVED.value,
            db_models.Profiles.is_active.is_(True)
        ).order_by(db_models.Profiles.first_name, db_models.Profiles.last_name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_teachers(
        self,
        current_user: db_models.Profiles,
        subject: Optional[str] = None,
        language: Optional[str] = None,
        audience: Optional[str] = None,
        search: Optional[str] = None
    ) -> list[db_models.Profiles]:
        """
        Approved teachers visible to the viewer, narrowed by the optional filters.
        """
        log.info(f"User {current_user.id} searching teachers (subject={subject}, language={language}, audience={audience}).")
        try:
            teachers = [
                t for t in await self._approved_teachers()
                if _has_label(t.subjects, subject)
                and _has_label(t.languages, language)
                and _has_label(t.audiences, audience)
                and _matches_search(t, search)
            ]
            viewer = matching.viewer_from_profile(current_user)
            return matching.filter_visible(viewer, teachers, matching.candidate_from_teacher)
        except Exception as e:
            log.error(f"Database error searching teachers for user {current_user.id}: {e}", exc_info=True)
            raise

    async def audience_labels(self, current_user: db_models.Profiles) -> list[str]:
        """The audience filter options offered to this viewer."""
        labels: set[str] = set()
        for teacher in await self._approved_teachers():
            labels.update(teacher.audiences or [])
        return matching.audiences_for_viewer(matching.viewer_from_profile(current_user), labels)

    async def get_teacher(self, teacher_id: UUID, current_user: db_models.Profiles) -> db_models.Profiles:
        teacher = await self.db.get(db_models.Profiles, teacher_id)
        viewer = matching.viewer_from_profile(current_user)
        if (
            not teacher
            or not is_publicly_listed(teacher)
            or not matching.is_visible(viewer, matching.candidate_from_teacher(teacher))
        ):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found.")
        return teacher

    async def list_courses(
        self,
        current_user: db_models.Profiles,
        subject: Optional[str] = None,
        audience: Optional[str] = None,
        trial_only: bool = False
    ) -> list[db_models.Courses]:
        """
        Active courses of approved teachers, visible to the viewer.
        """
        log.info(f"User {current_user.id} searching courses (subject={subject}, audience={audience}, trial_only={trial_only}).")
        try:
            stmt = select(db_models.Courses).join(db_models.Courses.teacher).options(
                contains_eager(db_models.Courses.teacher)
            ).filter(
                db_models.Courses.is_active.is_(True),
                db_models.Profiles.approval_status == ApprovalStatus.APPROVED.value,
                db_models.Profiles.is_active.is_(True)
            ).order_by(db_models.Courses.created_at.desc())

            if trial_only:
                stmt = stmt.filter(db_models.Courses.is_trial_available.is_(True))
            if audience:
                stmt = stmt.filter(db_models.Courses.audience == matching.normalize_label(audience))

            result = await self.db.execute(stmt)
            courses = [
                c for c in result.scalars().unique().all()
                if not subject or matching.normalize_label(c.subject) == matching.normalize_label(subject)
            ]
            viewer = matching.viewer_from_profile(current_user)
            return matching.filter_visible(viewer, courses, matching.candidate_from_course)
        except Exception as e:
            log.error(f"Database error searching courses for user {current_user.id}: {e}", exc_info=True)
            raise

    async def list_partners(
        self,
        current_user: db_models.Profiles,
        subject: Optional[str] = None,
        language: Optional[str] = None
    ) -> list[db_models.Profiles]:
        """Other active students the viewer may study with."""
        log.info(f"User {current_user.id} searching study partners.")
        stmt = select(db_models.Profiles).filter(
            db_models.Profiles.role == UserRole.STUDENT.value,
            db_models.Profiles.is_active.is_(True),
            db_models.Profiles.id != current_user.id
        ).order_by(db_models.Profiles.first_name, db_models.Profiles.last_name)
        result = await self.db.execute(stmt)
        students = [
            s for s in result.scalars().all()
            if _has_label(s.subjects, subject) and _has_label(s.languages, language)
        ]
        viewer = matching.viewer_from_profile(current_user)
        return matching.filter_visible(viewer, students, matching.candidate_from_partner)
