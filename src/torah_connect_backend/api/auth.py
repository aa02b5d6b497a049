'''
API endpoints for Authentication including login and signup.
'''
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ..services.auth_service import LoginService
from ..services.user_service import ProfileService
from ..models import token as token_models
from ..models import user as user_models
from ..common.logger import log

class AuthRoutes:
    """
    A class to encapsulate all authentication and signup endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/auth",
            tags=["Authentication"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/login",
            self.login_for_access_token,
            methods=["POST"],
            response_model=token_models.Token,
            summary="Login for Access Token"
        )
        self.router.add_api_route(
            "/signup/student",
            self.signup_student,
            methods=["POST"],
            response_model=user_models.StudentRead,
            status_code=status.HTTP_201_CREATED,
            summary="Student Signup"
        )
        self.router.add_api_route(
            "/signup/teacher",
            self.signup_teacher,
            methods=["POST"],
            response_model=user_models.TeacherRead,
            status_code=status.HTTP_201_CREATED,
            summary="Teacher Signup"
        )

    async def login_for_access_token(
        self,
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        """
        Authenticates a user and returns an access token.
        Uses OAuth2PasswordRequestForm (username & password fields).
        """
        try:
            return await login_service.login_user(form_data)
        except HTTPException as e:
            raise e
        except Exception as e:
            log.error(f"Unexpected error during login: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal server error occurred during login.",
            )

    async def signup_student(
        self,
        student_data: user_models.StudentSignup,
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ):
        """Creates a student profile with a fresh trial allowance."""
        new_student = await profile_service.create_student(student_data)
        return user_models.StudentRead.model_validate(new_student)

    async def signup_teacher(
        self,
        teacher_data: user_models.TeacherSignup,
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ):
        """
        Creates a teacher profile. The teacher stays out of every listing until approved.
        """
        new_teacher = await profile_service.create_teacher(teacher_data)
        return user_models.TeacherRead.model_validate(new_teacher)

# Create an instance of the class and export its router
auth_routes = AuthRoutes()
router = auth_routes.router
