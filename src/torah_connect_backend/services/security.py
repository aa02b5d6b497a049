'''
Access tokens and the `current_user` dependencies.

Tokens name the profile by email and carry the role it had at login. A token
whose role no longer matches the stored profile is refused, so an admin role
change takes effect on the next request instead of at token expiry.
'''
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from ..common.config import settings
from ..models.token import TokenPayload
from ..common.logger import log
from ..database import models as db_models
from ..database.db_enums import UserRole
from .user_service import UserService


class JWTHandler:
    @staticmethod
    def create_access_token(
        subject: str,
        role: Optional[UserRole | str] = None,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        claims = {"sub": str(subject), "exp": expire}
        if role is not None:
            claims["role"] = UserRole(role).value
        return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> TokenPayload | None:
        try:
            claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
            return TokenPayload.model_validate(claims)
        except (JWTError, ValueError) as e: # pydantic's ValidationError is a ValueError
            log.warning(f"Rejected access token: {e}")
            return None


async def resolve_user_from_token(token: str, user_service: UserService) -> db_models.Profiles | None:
    """
    Maps a bearer token to an active profile, or None.
    Used by both the HTTP dependency and the chat WebSocket handshake.
    """
    payload = JWTHandler.decode_token(token)
    if payload is None:
        return None

    user = await user_service.get_user_by_email(payload.sub)
    if user is None or not user.is_active:
        log.warning(f"Token for '{payload.sub}' refers to a missing or inactive profile.")
        return None

    if payload.role is not None and payload.role.value != user.role:
        log.warning(f"Token for '{payload.sub}' was issued for role '{payload.role.value}', profile is now '{user.role}'.")
        return None

    return user


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

async def verify_token_and_get_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    user_service: Annotated[UserService, Depends(UserService)]
    ) -> db_models.Profiles:
    user = await resolve_user_from_token(token, user_service)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
