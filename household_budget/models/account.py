from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing_extensions import Self

from household_budget.db.core import AccountType, AccountRole


# ===== ACCOUNT MEMBER MODELS =====

class AccountMemberSpec(BaseModel):
    """
    One entry of the desired membership list as submitted with the account form.

    Rows are not validated here; the membership reconciler checks each one
    against AccountMemberCreate after the account record has been written.
    """
    user_id: Any = Field(None, description="Profile id of the member")
    role: Any = Field(None, description="owner, editor or viewer")


class AccountMemberCreate(BaseModel):
    account_id: UUID
    user_id: UUID
    role: AccountRole


class AccountMemberRole(BaseModel):
    user_id: UUID
    role: AccountRole

    class Config:
        from_attributes = True


class AccountMemberResponse(AccountMemberRole):
    id: UUID
    account_id: UUID
    created_at: datetime


# ===== ACCOUNT MODELS =====

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Account name")
    type: AccountType = Field(..., description="Type of account")
    institution: Optional[str] = Field(None, max_length=255, description="Financial institution name")
    credit_limit: Optional[Decimal] = Field(None, ge=0, description="Credit limit (credit cards only)")
    is_active: bool = Field(True, description="Whether the account is in use")
    account_members: List[AccountMemberSpec] = Field(default_factory=list, description="Full list of account members")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('institution')
    @classmethod
    def validate_institution(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator('credit_limit')
    @classmethod
    def validate_credit_limit(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

    @model_validator(mode="after")
    def check_credit_limit_type(self) -> Self:
        if self.credit_limit is not None and self.type != AccountType.CREDIT_CARD:
            raise ValueError("credit_limit is only allowed for credit_card accounts")
        return self


class AccountUpdate(BaseModel):
    """
    Update account - account fields optional.

    The membership list is always a full replacement: omitting it clears the
    account's members.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[AccountType] = None
    institution: Optional[str] = Field(None, max_length=255)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    account_members: List[AccountMemberSpec] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('institution')
    @classmethod
    def validate_institution(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator('credit_limit')
    @classmethod
    def validate_credit_limit(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v


class AccountResponse(BaseModel):
    """Account data returned to client"""
    id: UUID
    user_id: UUID
    name: str
    type: AccountType
    institution: Optional[str]
    credit_limit: Optional[Decimal]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AccountWithMembers(AccountResponse):
    """Account plus its current membership list"""
    members: List[AccountMemberRole] = Field(default_factory=list)
