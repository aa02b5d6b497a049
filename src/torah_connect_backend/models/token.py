'''

'''
from typing import Optional
from pydantic import BaseModel, EmailStr
from datetime import datetime

from ..database.db_enums import UserRole

class Token(BaseModel):
    access_token: str
    token_type: str
    role: UserRole

class TokenPayload(BaseModel):
    sub: EmailStr # the profile's email
    exp: datetime
    role: Optional[UserRole] = None # role at issue time; a later role change invalidates the token
