'''
API endpoints for trial eligibility and booking.
Refusals are returned as data (allowed=false plus a reason), not as errors.
'''
from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import trials as trial_models
from ..services.security import verify_token_and_get_user
from ..services.trial_service import TrialService


class TrialsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/trials",
                tags=["Trials"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/mine",
                self.get_mine,
                methods=["GET"],
                response_model=list[trial_models.CourseSessionRead])
        self.router.add_api_route(
                "/eligibility/{course_id}",
                self.get_eligibility,
                methods=["GET"],
                response_model=trial_models.TrialEligibilityRead)
        self.router.add_api_route(
                "/{course_id}/book",
                self.book,
                methods=["POST"],
                response_model=trial_models.TrialBookingResult)

    async def get_mine(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        trial_service: Annotated[TrialService, Depends(TrialService)]
    ):
        sessions = await trial_service.list_my_trials(current_user)
        return [trial_models.CourseSessionRead.model_validate(s) for s in sessions]

    async def get_eligibility(
        self,
        course_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        trial_service: Annotated[TrialService, Depends(TrialService)]
    ):
        """Read-only preview of what booking would do."""
        return await trial_service.check_eligibility(course_id, current_user)

    async def book(
        self,
        course_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        trial_service: Annotated[TrialService, Depends(TrialService)]
    ):
        return await trial_service.book(course_id, current_user)


trials_api = TrialsAPI()
router = trials_api.router
