from pydantic import BaseModel, EmailStr
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: str


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: str = "student"
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class SessionResponse(BaseModel):
    state: str
    user: Optional[SessionUser] = None
