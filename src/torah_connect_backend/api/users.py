'''
API endpoints for profiles: self-service edits, re-application, and the
admin-only role change and delete.
'''
from typing import Annotated, Optional, Union
from uuid import UUID
from fastapi import APIRouter, Depends, status, Response

from ..database import models as db_models
from ..models import user as user_models
from ..models import approval as approval_models
from ..services.security import verify_token_and_get_user
from ..services.user_service import ProfileService, AdminService, to_read_model
from ..services.approval_service import ApprovalService

ProfileReadAny = Union[user_models.StudentRead, user_models.TeacherRead, user_models.AdminRead]


class UserAPI:
    """Endpoints for the current user's own profile."""
    def __init__(self):
        self.router = APIRouter(prefix="/users", tags=["Users"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route("/me", self.read_users_me, methods=["GET"], response_model=ProfileReadAny)
        self.router.add_api_route("/me", self.update_users_me, methods=["PATCH"], response_model=ProfileReadAny)
        self.router.add_api_route(
                "/me/reapply",
                self.reapply,
                methods=["POST"],
                response_model=user_models.TeacherRead)

    async def read_users_me(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)]
    ):
        """
        Returns the profile information for the currently authenticated user.
        """
        return to_read_model(current_user)

    async def update_users_me(
        self,
        update_data: user_models.ProfileUpdate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ):
        updated = await profile_service.update_me(update_data, current_user)
        return to_read_model(updated)

    async def reapply(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        approval_service: Annotated[ApprovalService, Depends(ApprovalService)],
        decision: Optional[approval_models.ApprovalDecision] = None
    ):
        """A rejected teacher moves back to pending review."""
        teacher = await approval_service.reapply(decision.notes if decision else None, current_user)
        return user_models.TeacherRead.model_validate(teacher)


class UserAdminAPI:
    """Admin escape hatches on other profiles."""
    def __init__(self):
        self.router = APIRouter(prefix="/users", tags=["Users"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/{user_id}/role",
                self.change_role,
                methods=["PATCH"],
                response_model=ProfileReadAny)
        self.router.add_api_route(
                "/{user_id}",
                self.delete,
                methods=["DELETE"],
                status_code=status.HTTP_204_NO_CONTENT)

    async def change_role(
        self,
        user_id: UUID,
        role_change: user_models.RoleChange,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        admin_service: Annotated[AdminService, Depends(AdminService)]
    ):
        updated = await admin_service.change_role(user_id, role_change, current_user)
        return to_read_model(updated)

    async def delete(
        self,
        user_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        admin_service: Annotated[AdminService, Depends(AdminService)]
    ):
        await admin_service.delete_profile(user_id, current_user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


# Instantiate and combine routers
user_api = UserAPI()
user_admin_api = UserAdminAPI()

router = APIRouter()
router.include_router(user_api.router)
router.include_router(user_admin_api.router)
