from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from household_budget.db.core import TransactionDirection

# ===== TRANSACTION SPLIT MODELS =====

class TransactionSplitCreate(BaseModel):
    category_id: Optional[UUID] = Field(None, description="Category this part of the transaction is booked to")
    amount: Decimal = Field(..., gt=0, description="Split amount, must be greater than zero")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class TransactionSplitResponse(BaseModel):
    id: UUID
    category_id: Optional[UUID]
    amount: Decimal

    class Config:
        from_attributes = True


# ===== TRANSACTION PYDANTIC MODELS =====

class TransactionCreate(BaseModel):
    account_id: UUID = Field(..., description="Account the transaction belongs to")
    cardholder_id: Optional[UUID] = Field(None, description="Cardholder who made the transaction")
    direction: TransactionDirection = Field(..., description="credit or debit")
    amount: Decimal = Field(..., gt=0, description="Transaction amount, must be greater than zero")
    description: Optional[str] = Field(None, max_length=255, description="Transaction description")
    merchant: Optional[str] = Field(None, max_length=255, description="Merchant name")
    category_id: Optional[UUID] = Field(None, description="The ID of the transaction's category")
    occurred_at: datetime = Field(..., description="When the transaction happened")
    is_pending: bool = Field(False, description="Not yet posted by the institution")
    notes: Optional[str] = Field(None, description="User notes")
    raw_data: Optional[Dict[str, Any]] = Field(None, description="Raw transaction data from source")
    tag_ids: List[UUID] = Field(default_factory=list, description="Tags attached to the transaction")
    splits: List[TransactionSplitCreate] = Field(default_factory=list, description="Category splits")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

    @field_validator('description', 'merchant')
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class TransactionUpdate(BaseModel):
    """
    Update transaction - all fields optional.

    ``tag_ids`` and ``splits`` replace the current lists when given and are
    left alone when omitted.
    """
    account_id: Optional[UUID] = None
    cardholder_id: Optional[UUID] = None
    direction: Optional[TransactionDirection] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=255)
    merchant: Optional[str] = Field(None, max_length=255)
    category_id: Optional[UUID] = None
    occurred_at: Optional[datetime] = None
    is_pending: Optional[bool] = None
    notes: Optional[str] = None
    raw_data: Optional[Dict[str, Any]] = None
    tag_ids: Optional[List[UUID]] = None
    splits: Optional[List[TransactionSplitCreate]] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

    @field_validator('description', 'merchant')
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class RelatedRecord(BaseModel):
    """id and name of a joined account, cardholder, category or tag"""
    id: UUID
    name: str

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    """Transaction data returned to client"""
    id: UUID
    user_id: UUID
    account_id: UUID
    cardholder_id: Optional[UUID]
    category_id: Optional[UUID]
    direction: TransactionDirection
    amount: Decimal
    description: Optional[str]
    merchant: Optional[str]
    occurred_at: datetime
    is_pending: bool
    notes: Optional[str]
    raw_data: Optional[Dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionWithRelations(TransactionResponse):
    account: Optional[RelatedRecord] = None
    cardholder: Optional[RelatedRecord] = None
    category: Optional[RelatedRecord] = None
    tags: List[RelatedRecord] = Field(default_factory=list)
    splits: List[TransactionSplitResponse] = Field(default_factory=list)
