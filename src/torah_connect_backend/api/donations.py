'''
API endpoints for donations and sponsored-course availability.
'''
from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Depends, status

from ..database import models as db_models
from ..models import donations as donation_models
from ..services.security import verify_token_and_get_user
from ..services.donation_service import DonationService


class DonationsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/donations",
                tags=["Donations"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.create,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=donation_models.DonationRead)
        self.router.add_api_route(
                "/mine",
                self.get_mine,
                methods=["GET"],
                response_model=list[donation_models.DonationRead])
        self.router.add_api_route(
                "/sponsored/available",
                self.get_available,
                methods=["GET"],
                response_model=donation_models.SponsoredAvailability)
        self.router.add_api_route(
                "/{donation_id}/complete",
                self.complete,
                methods=["POST"],
                response_model=donation_models.DonationRead)

    async def create(
        self,
        donation_data: donation_models.DonationCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        donation_service: Annotated[DonationService, Depends(DonationService)]
    ):
        donation = await donation_service.create_donation(donation_data, current_user)
        return donation_models.DonationRead.model_validate(donation)

    async def get_mine(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        donation_service: Annotated[DonationService, Depends(DonationService)]
    ):
        donations = await donation_service.list_for_donor(current_user)
        return [donation_models.DonationRead.model_validate(d) for d in donations]

    async def get_available(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        donation_service: Annotated[DonationService, Depends(DonationService)]
    ):
        return donation_models.SponsoredAvailability(available_slots=await donation_service.available_slots())

    async def complete(
        self,
        donation_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        donation_service: Annotated[DonationService, Depends(DonationService)]
    ):
        """Admin only. Creates the donation's sponsored slots."""
        donation = await donation_service.complete_donation(donation_id, current_user)
        return donation_models.DonationRead.model_validate(donation)


donations_api = DonationsAPI()
router = donations_api.router
