import os
from typing import Optional
from sqlalchemy import create_engine, ForeignKey, Index, UniqueConstraint, Boolean, String, Text, JSON, DECIMAL, DateTime
from sqlalchemy.types import Enum
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, relationship, mapped_column
from datetime import datetime
from uuid import UUID, uuid4
from decimal import Decimal
from dotenv import load_dotenv
import enum


load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///household_budget.db")


class NotFoundError(Exception):
    pass


class Base(DeclarativeBase):
    pass


class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    INVESTMENT = "investment"
    LOAN = "loan"


class AccountRole(str, enum.Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class BudgetPeriod(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionDirection(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class ProfileDB(Base):
    __tablename__ = "profiles"

    __table_args__ = (
        UniqueConstraint("email", name="uq_profile_email"),
        Index("idx_profiles_email", "email"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(255))
    last_name: Mapped[Optional[str]] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(50), default="user")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    accounts = relationship("AccountDB", back_populates="owner")
    memberships = relationship("AccountMemberDB", back_populates="user")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email


class AccountDB(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_accounts_user", "user_id"),
        Index("idx_accounts_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)

    # Account Details
    name: Mapped[str] = mapped_column(String(255), nullable=False)  # "Joint Checking", "Amex Gold"
    type: Mapped[AccountType] = mapped_column(Enum(AccountType), nullable=False)
    institution: Mapped[Optional[str]] = mapped_column(String(255))
    credit_limit: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(15, 2))  # credit_card only
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    owner = relationship("ProfileDB", back_populates="accounts")
    members = relationship(
        "AccountMemberDB",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="AccountMemberDB.created_at",
    )
    transactions = relationship("TransactionDB", back_populates="account", cascade="all, delete-orphan")


class AccountMemberDB(Base):
    __tablename__ = "account_members"

    __table_args__ = (
        # One membership per user per account
        UniqueConstraint("account_id", "user_id", name="uq_account_member"),
        Index("idx_account_members_account", "account_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    account_id: Mapped[UUID] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    role: Mapped[AccountRole] = mapped_column(Enum(AccountRole), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    account = relationship("AccountDB", back_populates="members")
    user = relationship("ProfileDB", back_populates="memberships")


class CategoryDB(Base):
    __tablename__ = "categories"

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_category_name"),
        Index("idx_category_name", "name"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("categories.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationship to self for subcategories
    parent = relationship("CategoryDB", remote_side=[id], back_populates="children")
    children = relationship("CategoryDB", back_populates="parent")

    budgets = relationship("BudgetDB", back_populates="category")


class BudgetDB(Base):
    __tablename__ = "budgets"

    __table_args__ = (
        Index("idx_budgets_user", "user_id"),
        Index("idx_budgets_category", "category_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    category_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("categories.id"))

    period: Mapped[BudgetPeriod] = mapped_column(Enum(BudgetPeriod), default=BudgetPeriod.MONTHLY)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    category = relationship("CategoryDB", back_populates="budgets")


class TagDB(Base):
    __tablename__ = "tags"

    __table_args__ = (
        # Prevent duplicate tag names per user
        UniqueConstraint("user_id", "name", name="uq_user_tag_name"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    transactions = relationship("TransactionDB", secondary="transaction_tags", back_populates="tags")


class CardholderDB(Base):
    __tablename__ = "cardholders"

    __table_args__ = (
        Index("idx_cardholders_user", "user_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Deleting a cardholder detaches it from its transactions
    transactions = relationship("TransactionDB", back_populates="cardholder")


class TransactionDB(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_account", "account_id"),
        Index("idx_transactions_category", "category_id"),
        Index("idx_transactions_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    account_id: Mapped[UUID] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    cardholder_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("cardholders.id"))
    category_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("categories.id"))

    # Transaction Data
    direction: Mapped[TransactionDirection] = mapped_column(Enum(TransactionDirection), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)  # always positive; direction gives the sign
    description: Mapped[Optional[str]] = mapped_column(String(255))
    merchant: Mapped[Optional[str]] = mapped_column(String(255))
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_pending: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    raw_data: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    account = relationship("AccountDB", back_populates="transactions")
    cardholder = relationship("CardholderDB", back_populates="transactions")
    category = relationship("CategoryDB")
    tags = relationship("TagDB", secondary="transaction_tags", back_populates="transactions", order_by="TagDB.name")
    splits = relationship(
        "TransactionSplitDB",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionSplitDB.created_at",
    )


class TransactionSplitDB(Base):
    __tablename__ = "transaction_splits"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    transaction_id: Mapped[UUID] = mapped_column(ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("categories.id"))
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    transaction = relationship("TransactionDB", back_populates="splits")
    category = relationship("CategoryDB")


class TransactionTagDB(Base):
    __tablename__ = "transaction_tags"

    # Composite Primary Key
    transaction_id: Mapped[UUID] = mapped_column(ForeignKey("transactions.id", ondelete="CASCADE"), primary_key=True)
    tag_id: Mapped[UUID] = mapped_column(ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


engine = create_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO", "false").lower() == "true")
session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency to get the database session
def get_db():
    database = session_local()
    try:
        yield database
    finally:
        database.close()
