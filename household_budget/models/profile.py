from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID
import re


# ===== PROFILE PYDANTIC MODELS =====

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class ProfileCreate(BaseModel):
    email: str = Field(..., description="Profile email address")
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    role: str = Field("user", min_length=1, max_length=50)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not re.match(EMAIL_PATTERN, v.strip()):
            raise ValueError('Invalid email format')
        return v.lower().strip()


class ProfileUpdate(BaseModel):
    """Update profile - names only"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    full_name: str
    created_at: datetime

    class Config:
        from_attributes = True
