from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    grade: Optional[int] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    role: str = "student"
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    grade: Optional[int] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
