'''
API endpoints for courses: search, and create/update/deactivate by the owning teacher.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Response

from ..database import models as db_models
from ..models import courses as course_models
from ..services.security import verify_token_and_get_user
from ..services.course_service import CourseService
from ..services.matching_service import MatchingService


class CoursesAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/courses",
                tags=["Courses"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.get_all,
                methods=["GET"],
                response_model=list[course_models.CourseRead])
        self.router.add_api_route(
                "/",
                self.create,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=course_models.CourseRead)
        self.router.add_api_route(
                "/{course_id}",
                self.update,
                methods=["PATCH"],
                response_model=course_models.CourseRead)
        self.router.add_api_route(
                "/{course_id}",
                self.delete,
                methods=["DELETE"],
                status_code=status.HTTP_204_NO_CONTENT)

    async def get_all(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)],
        subject: Optional[str] = None,
        audience: Optional[str] = None,
        trial_only: bool = False
    ):
        courses = await matching_service.list_courses(current_user, subject, audience, trial_only)
        return [course_models.CourseRead.model_validate(c) for c in courses]

    async def create(
        self,
        course_data: course_models.CourseCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        course_service: Annotated[CourseService, Depends(CourseService)]
    ):
        course = await course_service.create_course(course_data, current_user)
        return course_models.CourseRead.model_validate(course)

    async def update(
        self,
        course_id: UUID,
        update_data: course_models.CourseUpdate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        course_service: Annotated[CourseService, Depends(CourseService)]
    ):
        course = await course_service.update_course(course_id, update_data, current_user)
        return course_models.CourseRead.model_validate(course)

    async def delete(
        self,
        course_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        course_service: Annotated[CourseService, Depends(CourseService)]
    ):
        """Soft delete: the course is deactivated, never removed."""
        await course_service.deactivate_course(course_id, current_user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


courses_api = CoursesAPI()
router = courses_api.router
