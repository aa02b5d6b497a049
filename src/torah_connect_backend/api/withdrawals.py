'''
API endpoints for teacher withdrawals and their admin review.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status

from ..database import models as db_models
from ..database.db_enums import WithdrawalStatus
from ..models import finance as finance_models
from ..services.security import verify_token_and_get_user
from ..services.withdrawal_service import WithdrawalService


class WithdrawalsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/withdrawals",
                tags=["Withdrawals"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/balance",
                self.get_balance,
                methods=["GET"],
                response_model=finance_models.WithdrawalBalance)
        self.router.add_api_route(
                "/",
                self.create,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=finance_models.WithdrawalRead)
        self.router.add_api_route(
                "/mine",
                self.get_mine,
                methods=["GET"],
                response_model=list[finance_models.WithdrawalRead])

    async def get_balance(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        withdrawal_service: Annotated[WithdrawalService, Depends(WithdrawalService)]
    ):
        return await withdrawal_service.balance(current_user)

    async def create(
        self,
        withdrawal_data: finance_models.WithdrawalCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        withdrawal_service: Annotated[WithdrawalService, Depends(WithdrawalService)]
    ):
        withdrawal = await withdrawal_service.request(withdrawal_data, current_user)
        return finance_models.WithdrawalRead.model_validate(withdrawal)

    async def get_mine(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        withdrawal_service: Annotated[WithdrawalService, Depends(WithdrawalService)]
    ):
        withdrawals = await withdrawal_service.list_mine(current_user)
        return [finance_models.WithdrawalRead.model_validate(w) for w in withdrawals]


class AdminWithdrawalsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/admin/withdrawals",
                tags=["Admin: Payments"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.get_all,
                methods=["GET"],
                response_model=list[finance_models.WithdrawalRead])
        self.router.add_api_route(
                "/{withdrawal_id}/complete",
                self.complete,
                methods=["POST"],
                response_model=finance_models.WithdrawalRead)
        self.router.add_api_route(
                "/{withdrawal_id}/reject",
                self.reject,
                methods=["POST"],
                response_model=finance_models.WithdrawalRead)

    async def get_all(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        withdrawal_service: Annotated[WithdrawalService, Depends(WithdrawalService)],
        status_filter: Annotated[Optional[WithdrawalStatus], Query(alias="status")] = None
    ):
        withdrawals = await withdrawal_service.list_all(current_user, status_filter)
        return [finance_models.WithdrawalRead.model_validate(w) for w in withdrawals]

    async def complete(
        self,
        withdrawal_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        withdrawal_service: Annotated[WithdrawalService, Depends(WithdrawalService)],
        decision: Optional[finance_models.WithdrawalDecision] = None
    ):
        withdrawal = await withdrawal_service.complete(
            withdrawal_id, current_user, decision.notes if decision else None
        )
        return finance_models.WithdrawalRead.model_validate(withdrawal)

    async def reject(
        self,
        withdrawal_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        withdrawal_service: Annotated[WithdrawalService, Depends(WithdrawalService)],
        decision: Optional[finance_models.WithdrawalDecision] = None
    ):
        withdrawal = await withdrawal_service.reject(
            withdrawal_id, current_user, decision.notes if decision else None
        )
        return finance_models.WithdrawalRead.model_validate(withdrawal)


withdrawals_api = WithdrawalsAPI()
admin_withdrawals_api = AdminWithdrawalsAPI()

router = APIRouter()
router.include_router(withdrawals_api.router)
router.include_router(admin_withdrawals_api.router)
