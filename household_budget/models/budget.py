from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from household_budget.db.core import BudgetPeriod
from household_budget.services.normalize import normalize_one

# ===== BUDGET PYDANTIC MODELS =====

class BudgetCreate(BaseModel):
    category_id: Optional[UUID] = Field(None, description="The ID of the category this budget applies to")
    period: BudgetPeriod = Field(BudgetPeriod.MONTHLY, description="Budget period")
    amount: Decimal = Field(..., gt=0, description="Budget amount, must be greater than zero")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

class BudgetUpdate(BaseModel):
    category_id: Optional[UUID] = None
    period: Optional[BudgetPeriod] = None
    amount: Optional[Decimal] = Field(None, gt=0)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

class BudgetResponse(BaseModel):
    id: UUID
    user_id: UUID
    category_id: Optional[UUID]
    period: BudgetPeriod
    amount: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


# ===== BUDGET WITH CATEGORY (JOINED) MODELS =====

class BudgetCategoryParent(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True

class BudgetCategory(BaseModel):
    id: UUID
    name: str
    parent: Optional[BudgetCategoryParent] = None

    # One-to-one joins may arrive as a single-element list
    @field_validator('parent', mode='before')
    @classmethod
    def normalize_parent(cls, v):
        return normalize_one(v)

    class Config:
        from_attributes = True

class BudgetWithCategory(BaseModel):
    """A budget joined to its category and, if present, the category's parent"""
    id: UUID
    period: BudgetPeriod
    amount: Decimal
    category: Optional[BudgetCategory] = None

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v):
        return normalize_one(v)

    class Config:
        from_attributes = True

class BudgetTreeNode(BaseModel):
    """A category node carrying its budgets and its sub-category nodes"""
    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    synthesized: bool = False
    budgets: List[BudgetWithCategory] = Field(default_factory=list)
    children: List["BudgetTreeNode"] = Field(default_factory=list)

class BudgetGroupingResponse(BaseModel):
    categories: List[BudgetTreeNode] = Field(default_factory=list)
    uncategorized: List[BudgetWithCategory] = Field(default_factory=list)
