'''

'''
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from .security import JWTHandler
from .user_service import UserService
from ..common.security_utils import HashedPassword
from ..database import models as db_models
from ..models import token as token_models
from ..common.logger import log

class LoginService:
    """
    Exchanges email and password for a role-bound access token.
    """
    def __init__(
        self,
        user_service: Annotated[UserService, Depends(UserService)]
    ):
        self.user_service = user_service

    async def authenticate(self, email: str, password: str) -> db_models.Profiles:
        """
        Returns the active profile for the credentials. Old bcrypt hashes are
        upgraded in place on a successful match.
        """
        profile = await self.user_service.get_user_by_email(email)
        if not profile or not HashedPassword.verify(password, profile.password):
            log.warning(f"Login refused for '{email}': bad credentials.")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not profile.is_active:
            log.warning(f"Login refused for '{email}': profile is deactivated.")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user.")

        if HashedPassword.needs_rehash(profile.password):
            profile.password = HashedPassword.get_hash(password)
            await self.user_service.db.flush()
            log.info(f"Upgraded password hash of profile {profile.id}.")

        return profile

    async def login_user(self, form_data: OAuth2PasswordRequestForm) -> token_models.Token:
        profile = await self.authenticate(form_data.username, form_data.password)
        access_token = JWTHandler.create_access_token(subject=profile.email, role=profile.role)
        log.info(f"Profile {profile.id} logged in as {profile.role}.")
        return token_models.Token(access_token=access_token, token_type="bearer", role=profile.role)
