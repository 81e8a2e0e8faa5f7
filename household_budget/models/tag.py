from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID


# ===== TAG PYDANTIC MODELS =====

class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Tag name")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v


class TagUpdate(BaseModel):
    """Update tag - all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v


class TagResponse(BaseModel):
    """Tag data returned to client"""
    id: UUID
    user_id: UUID
    name: str
    created_at: datetime

    class Config:
        from_attributes = True
