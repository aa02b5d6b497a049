'''
Admin endpoints for the teacher approval workflow.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import APIRouter, Depends

from ..core import approval as approval_rules
from ..database import models as db_models
from ..models import user as user_models
from ..models import approval as approval_models
from ..services.security import verify_token_and_get_user
from ..services.approval_service import ApprovalService


class ApprovalsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/admin/teachers",
                tags=["Admin: Approvals"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/review-queue",
                self.get_review_queue,
                methods=["GET"],
                response_model=list[approval_models.ReviewQueueEntry])
        self.router.add_api_route(
                "/{teacher_id}/approve",
                self.approve,
                methods=["POST"],
                response_model=user_models.TeacherRead)
        self.router.add_api_route(
                "/{teacher_id}/reject",
                self.reject,
                methods=["POST"],
                response_model=user_models.TeacherRead)
        self.router.add_api_route(
                "/{teacher_id}/approvals",
                self.get_history,
                methods=["GET"],
                response_model=list[approval_models.ApprovalRecordRead])

    async def get_review_queue(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        approval_service: Annotated[ApprovalService, Depends(ApprovalService)]
    ):
        """Pending and rejected teachers, newest first."""
        teachers = await approval_service.review_queue(current_user)
        return [
            approval_models.ReviewQueueEntry(
                **user_models.TeacherRead.model_validate(t).model_dump(),
                allowed_actions=approval_rules.allowed_actions(t.approval_status)
            )
            for t in teachers
        ]

    async def approve(
        self,
        teacher_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        approval_service: Annotated[ApprovalService, Depends(ApprovalService)],
        decision: Optional[approval_models.ApprovalDecision] = None
    ):
        teacher = await approval_service.approve(teacher_id, decision.notes if decision else None, current_user)
        return user_models.TeacherRead.model_validate(teacher)

    async def reject(
        self,
        teacher_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        approval_service: Annotated[ApprovalService, Depends(ApprovalService)],
        decision: Optional[approval_models.ApprovalDecision] = None
    ):
        teacher = await approval_service.reject(teacher_id, decision.notes if decision else None, current_user)
        return user_models.TeacherRead.model_validate(teacher)

    async def get_history(
        self,
        teacher_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        approval_service: Annotated[ApprovalService, Depends(ApprovalService)]
    ):
        records = await approval_service.history(teacher_id, current_user)
        return [approval_models.ApprovalRecordRead.model_validate(r) for r in records]


approvals_api = ApprovalsAPI()
router = approvals_api.router
