'''
API endpoints for salary settings, teacher hours and monthly teacher payments.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status

from ..database import models as db_models
from ..database.db_enums import PaymentStatus
from ..models import finance as finance_models
from ..services.security import verify_token_and_get_user
from ..services.finance_service import SalarySettingsService, TeacherHoursService, MonthlyPaymentService
from ..services.user_service import require_admin


class SalarySettingsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/admin/salary-settings",
                tags=["Admin: Payments"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.get_current,
                methods=["GET"],
                response_model=finance_models.SalarySettingsRead)
        self.router.add_api_route(
                "/",
                self.update,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=finance_models.SalarySettingsRead)

    async def get_current(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        salary_settings_service: Annotated[SalarySettingsService, Depends(SalarySettingsService)]
    ):
        require_admin(current_user, "view salary settings")
        return await salary_settings_service.get_current()

    async def update(
        self,
        settings_data: finance_models.SalarySettingsCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        salary_settings_service: Annotated[SalarySettingsService, Depends(SalarySettingsService)]
    ):
        """Appends a new split. Payments already generated keep the split they were made with."""
        row = await salary_settings_service.update(settings_data, current_user)
        return finance_models.SalarySettingsRead.model_validate(row)


class MonthlyPaymentsAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/admin/payments",
                tags=["Admin: Payments"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.get_all,
                methods=["GET"],
                response_model=list[finance_models.MonthlyPaymentRead])
        self.router.add_api_route(
                "/generate",
                self.generate,
                methods=["POST"],
                response_model=finance_models.PaymentGenerationSummary)
        self.router.add_api_route(
                "/{payment_id}/process",
                self.process,
                methods=["POST"],
                response_model=finance_models.MonthlyPaymentRead)

    async def get_all(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        payment_service: Annotated[MonthlyPaymentService, Depends(MonthlyPaymentService)],
        status_filter: Annotated[Optional[PaymentStatus], Query(alias="status")] = None,
        month: Optional[str] = None
    ):
        payments = await payment_service.list_payments(current_user, status_filter, month)
        return [finance_models.MonthlyPaymentRead.model_validate(p) for p in payments]

    async def generate(
        self,
        month: Annotated[str, Query(description="Target month as YYYY-MM")],
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        payment_service: Annotated[MonthlyPaymentService, Depends(MonthlyPaymentService)]
    ):
        return await payment_service.generate(month, current_user)

    async def process(
        self,
        payment_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        payment_service: Annotated[MonthlyPaymentService, Depends(MonthlyPaymentService)]
    ):
        payment = await payment_service.process(payment_id, current_user)
        return finance_models.MonthlyPaymentRead.model_validate(payment)


class TeacherHoursAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/teacher-hours",
                tags=["Teacher Hours"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.create,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=finance_models.TeacherHoursRead)
        self.router.add_api_route(
                "/payments",
                self.get_my_payments,
                methods=["GET"],
                response_model=list[finance_models.MonthlyPaymentRead])

    async def create(
        self,
        hours_data: finance_models.TeacherHoursCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        hours_service: Annotated[TeacherHoursService, Depends(TeacherHoursService)]
    ):
        row = await hours_service.log_hours(hours_data, current_user)
        return finance_models.TeacherHoursRead.model_validate(row)

    async def get_my_payments(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        payment_service: Annotated[MonthlyPaymentService, Depends(MonthlyPaymentService)]
    ):
        """A teacher's own payment history."""
        payments = await payment_service.list_payments(current_user)
        return [finance_models.MonthlyPaymentRead.model_validate(p) for p in payments]


salary_settings_api = SalarySettingsAPI()
monthly_payments_api = MonthlyPaymentsAPI()
teacher_hours_api = TeacherHoursAPI()

router = APIRouter()
router.include_router(salary_settings_api.router)
router.include_router(monthly_payments_api.router)
router.include_router(teacher_hours_api.router)
