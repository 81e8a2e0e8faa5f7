from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

# ===== CATEGORY PYDANTIC MODELS =====

class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Category name")
    parent_id: Optional[UUID] = Field(None, description="The ID of the parent category, for sub-categories")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Category name")
    parent_id: Optional[UUID] = Field(None, description="The ID of the parent category, for sub-categories")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

class CategoryResponse(CategoryBase):
    id: UUID
    user_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True

class CategoryTreeNode(BaseModel):
    """A root category with its sub-categories, as rendered by the category manager"""
    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    children: List["CategoryTreeNode"] = Field(default_factory=list)
