from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import desc, or_, select
from typing import Optional, List
from uuid import UUID

from household_budget.db.core import AccountDB, AccountMemberDB, ProfileDB, NotFoundError, AccountType, AccountRole
from household_budget.models.account import AccountCreate, AccountUpdate
from household_budget.services import membership
from household_budget.exceptions import ValidationFailedError, PersistenceError, PermissionDeniedError
from household_budget.logging_config import get_logger

logger = get_logger(__name__)

# Roles allowed to change an account they do not own
EDITOR_ROLES = (AccountRole.OWNER, AccountRole.EDITOR)

# Columns that may not be cleared through an update
NON_NULLABLE_FIELDS = ("name", "type", "is_active")


# ===== ACCESS HELPERS =====

def visible_account_ids(user_id: UUID):
    """Select of the ids of accounts the user owns or is a member of"""
    member_of = select(AccountMemberDB.account_id).where(AccountMemberDB.user_id == user_id)
    return select(AccountDB.id).where(or_(AccountDB.user_id == user_id, AccountDB.id.in_(member_of)))


def _visible_accounts(db: Session, user_id: UUID):
    return db.query(AccountDB).filter(AccountDB.id.in_(visible_account_ids(user_id)))


def can_edit_account(db_account: AccountDB, user_id: UUID) -> bool:
    if db_account.user_id == user_id:
        return True
    return any(m.user_id == user_id and m.role in EDITOR_ROLES for m in db_account.members)


# ===== DATABASE OPERATIONS =====

def create_db_account(db: Session, user_id: UUID, account_data: AccountCreate) -> AccountDB:
    """
    Create an account owned by the user, then insert its members.

    The account row is committed before the members are validated, so a
    rejected member list leaves the account in place with no members.
    """
    owner = db.query(ProfileDB).filter(ProfileDB.id == user_id).first()
    if not owner:
        raise NotFoundError(f"Profile with id {user_id} not found")

    db_account = AccountDB(
        user_id=user_id,
        name=account_data.name,
        type=account_data.type,
        institution=account_data.institution,
        credit_limit=account_data.credit_limit,
        is_active=account_data.is_active,
    )

    try:
        db.add(db_account)
        db.commit()
        db.refresh(db_account)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error inserting account '{account_data.name}' for user {user_id}: {e}")
        raise PersistenceError("Failed to insert account")

    logger.info(f"Created account {db_account.id} ({db_account.type.value}) for user {user_id}")

    membership.insert_members(db, db_account.id, account_data.account_members)
    db.refresh(db_account)
    return db_account


def read_db_account(db: Session, account_id: UUID, user_id: Optional[UUID] = None) -> Optional[AccountDB]:
    """Read an account by ID, optionally restricted to accounts the user can see"""
    if user_id:
        query = _visible_accounts(db, user_id).filter(AccountDB.id == account_id)
    else:
        query = db.query(AccountDB).filter(AccountDB.id == account_id)
    return query.options(selectinload(AccountDB.members)).first()


def read_db_accounts(db: Session, user_id: UUID, account_type: Optional[AccountType] = None,
                     active_only: bool = False, skip: int = 0, limit: int = 100) -> List[AccountDB]:
    """Read the accounts a user can see, newest first, with their members"""
    query = _visible_accounts(db, user_id)

    if account_type:
        query = query.filter(AccountDB.type == account_type)
    if active_only:
        query = query.filter(AccountDB.is_active.is_(True))

    return (
        query.options(selectinload(AccountDB.members))
        .order_by(desc(AccountDB.created_at))
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_db_account(db: Session, account_id: UUID, user_id: UUID, account_updates: AccountUpdate) -> AccountDB:
    """
    Update an account, then replace its full membership list.

    Existing members are always deleted; the submitted list (possibly empty)
    is inserted afterwards.
    """
    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")
    if not can_edit_account(db_account, user_id):
        raise PermissionDeniedError("You do not have permission to edit this account")

    update_data = account_updates.model_dump(exclude_unset=True, exclude={"account_members"})
    for field, value in update_data.items():
        if value is None and field in NON_NULLABLE_FIELDS:
            continue
        setattr(db_account, field, value)

    if db_account.credit_limit is not None and db_account.type != AccountType.CREDIT_CARD:
        db.rollback()
        raise ValidationFailedError("credit_limit is only allowed for credit_card accounts")

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating account {account_id}: {e}")
        raise PersistenceError("Failed to update account")

    logger.info(f"Updated account {account_id}")

    membership.replace_members(db, db_account.id, account_updates.account_members)
    db.refresh(db_account)
    return db_account


def delete_db_account(db: Session, account_id: UUID, user_id: UUID) -> bool:
    """Delete an account and its memberships. Only the owner may delete."""
    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")
    if db_account.user_id != user_id:
        raise PermissionDeniedError("Only the account owner can delete this account")

    try:
        db.delete(db_account)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting account {account_id}: {e}")
        raise PersistenceError("Failed to delete account")

    logger.info(f"Deleted account {account_id}")
    return True


def read_db_account_members(db: Session, account_id: UUID, user_id: UUID) -> List[AccountMemberDB]:
    """Membership rows of an account the user can see"""
    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")
    return membership.read_members(db, account_id)
