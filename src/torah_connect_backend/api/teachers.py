'''
API endpoints for the teacher and study-partner search surfaces.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import user as user_models
from ..services.security import verify_token_and_get_user
from ..services.matching_service import MatchingService


def to_pydantic_list(orm_list: list, model):
    return [model.model_validate(item) for item in orm_list]


class TeachersAPI:
    """Approved teachers, filtered by what the viewer may see."""
    def __init__(self):
        self.router = APIRouter(
                prefix="/teachers",
                tags=["Teachers"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.get_all,
                methods=["GET"],
                response_model=list[user_models.TeacherRead])
        self.router.add_api_route(
                "/audiences",
                self.get_audiences,
                methods=["GET"],
                response_model=user_models.AudienceLabels)
        self.router.add_api_route(
                "/{teacher_id}",
                self.get_by_id,
                methods=["GET"],
                response_model=user_models.TeacherRead)

    async def get_all(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)],
        subject: Optional[str] = None,
        language: Optional[str] = None,
        audience: Optional[str] = None,
        search: Optional[str] = None
    ):
        teachers = await matching_service.list_teachers(current_user, subject, language, audience, search)
        return to_pydantic_list(teachers, user_models.TeacherRead)

    async def get_audiences(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)]
    ):
        """The audience filter options this viewer may choose from."""
        labels = await matching_service.audience_labels(current_user)
        return user_models.AudienceLabels(audiences=labels)

    async def get_by_id(
        self,
        teacher_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)]
    ):
        teacher = await matching_service.get_teacher(teacher_id, current_user)
        return user_models.TeacherRead.model_validate(teacher)


class PartnersAPI:
    """Study-partner search over other students."""
    def __init__(self):
        self.router = APIRouter(
                prefix="/partners",
                tags=["Partners"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.get_all,
                methods=["GET"],
                response_model=list[user_models.PartnerRead])

    async def get_all(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)],
        subject: Optional[str] = None,
        language: Optional[str] = None
    ):
        partners = await matching_service.list_partners(current_user, subject, language)
        return to_pydantic_list(partners, user_models.PartnerRead)


teachers_api = TeachersAPI()
partners_api = PartnersAPI()

router = APIRouter()
router.include_router(teachers_api.router)
router.include_router(partners_api.router)
