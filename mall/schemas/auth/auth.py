from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field

from mall.schemas.common import CamelModel

class AuthCredentials(CamelModel):
    email: EmailStr
    password: str

class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None

class UserRead(CamelModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

class AuthResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: Optional[UserRead] = None
    token: Optional[str] = None
