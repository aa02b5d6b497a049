'''
API endpoints for live classes: creation, joining by course key and listing.
'''
from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Depends, status

from ..database import models as db_models
from ..models import live_classes as live_class_models
from ..services.security import verify_token_and_get_user
from ..services.live_class_service import LiveClassService


class LiveClassesAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/live-classes",
                tags=["Live Classes"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.create,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=live_class_models.LiveClassRead)
        self.router.add_api_route(
                "/mine",
                self.get_mine,
                methods=["GET"],
                response_model=list[live_class_models.LiveClassRead])
        self.router.add_api_route(
                "/join",
                self.join,
                methods=["POST"],
                response_model=live_class_models.JoinLiveClassResult)
        self.router.add_api_route(
                "/{class_id}",
                self.get_one,
                methods=["GET"],
                response_model=live_class_models.LiveClassRead)
        self.router.add_api_route(
                "/{class_id}",
                self.cancel,
                methods=["DELETE"],
                response_model=live_class_models.LiveClassRead)

    async def create(
        self,
        class_data: live_class_models.LiveClassCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        live_class_service: Annotated[LiveClassService, Depends(LiveClassService)]
    ):
        live_class = await live_class_service.create_class(class_data, current_user)
        return await live_class_service.to_read_model(live_class)

    async def get_mine(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        live_class_service: Annotated[LiveClassService, Depends(LiveClassService)]
    ):
        classes = await live_class_service.list_mine(current_user)
        return await live_class_service.to_read_models(classes)

    async def join(
        self,
        join_data: live_class_models.JoinLiveClass,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        live_class_service: Annotated[LiveClassService, Depends(LiveClassService)]
    ):
        return await live_class_service.join(join_data.course_key, current_user)

    async def get_one(
        self,
        class_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        live_class_service: Annotated[LiveClassService, Depends(LiveClassService)]
    ):
        live_class = await live_class_service.get_for_user(class_id, current_user)
        return await live_class_service.to_read_model(live_class)

    async def cancel(
        self,
        class_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        live_class_service: Annotated[LiveClassService, Depends(LiveClassService)]
    ):
        live_class = await live_class_service.cancel(class_id, current_user)
        return await live_class_service.to_read_model(live_class)


live_classes_api = LiveClassesAPI()
router = live_classes_api.router
