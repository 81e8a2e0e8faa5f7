from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional, List
from uuid import UUID

from household_budget.db.core import (
    TransactionDB, TransactionSplitDB, AccountDB, CategoryDB, CardholderDB, TagDB, NotFoundError
)
from household_budget.models.transaction import TransactionCreate, TransactionUpdate, TransactionSplitCreate
from household_budget.crud.crud_account import read_db_account, can_edit_account, visible_account_ids
from household_budget.exceptions import PermissionDeniedError
from household_budget.logging_config import get_logger

logger = get_logger(__name__)

# Columns that may not be cleared through an update
NON_NULLABLE_FIELDS = ("account_id", "direction", "amount", "occurred_at", "is_pending")

RELATED_LOADS = (
    joinedload(TransactionDB.account),
    joinedload(TransactionDB.cardholder),
    joinedload(TransactionDB.category),
    selectinload(TransactionDB.tags),
    selectinload(TransactionDB.splits),
)


# ===== VALIDATION HELPERS =====

def _editable_account(db: Session, account_id: UUID, user_id: UUID) -> AccountDB:
    """The account, if the user may add or change its transactions"""
    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")
    if not can_edit_account(db_account, user_id):
        raise PermissionDeniedError("You do not have permission to change transactions of this account")
    return db_account


def _check_owned(db: Session, model, record_id: Optional[UUID], user_id: UUID, label: str) -> None:
    if record_id is None:
        return
    if not db.query(model).filter(model.id == record_id, model.user_id == user_id).first():
        raise NotFoundError(f"{label} with id {record_id} not found")


def _resolve_tags(db: Session, user_id: UUID, tag_ids: List[UUID]) -> List[TagDB]:
    wanted = list(dict.fromkeys(tag_ids))
    if not wanted:
        return []
    tags = db.query(TagDB).filter(TagDB.id.in_(wanted), TagDB.user_id == user_id).all()
    missing = set(wanted) - {tag.id for tag in tags}
    if missing:
        raise NotFoundError(f"Tag with id {sorted(str(m) for m in missing)[0]} not found")
    return tags


def _build_splits(db: Session, user_id: UUID, splits: List[TransactionSplitCreate]) -> List[TransactionSplitDB]:
    for split in splits:
        _check_owned(db, CategoryDB, split.category_id, user_id, "Category")
    return [TransactionSplitDB(category_id=split.category_id, amount=split.amount) for split in splits]


# ===== DATABASE OPERATIONS =====

def create_db_transaction(db: Session, user_id: UUID, transaction_data: TransactionCreate) -> TransactionDB:
    """Record a transaction on an account the user can edit"""
    _editable_account(db, transaction_data.account_id, user_id)
    _check_owned(db, CategoryDB, transaction_data.category_id, user_id, "Category")
    _check_owned(db, CardholderDB, transaction_data.cardholder_id, user_id, "Cardholder")
    tags = _resolve_tags(db, user_id, transaction_data.tag_ids)
    splits = _build_splits(db, user_id, transaction_data.splits)

    db_transaction = TransactionDB(
        user_id=user_id,
        **transaction_data.model_dump(exclude={"tag_ids", "splits"}),
    )
    db_transaction.tags = tags
    db_transaction.splits = splits

    try:
        db.add(db_transaction)
        db.commit()
        db.refresh(db_transaction)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating transaction on account {transaction_data.account_id}: {e}")
        raise ValueError("Transaction creation failed due to database constraint")

    logger.info(
        f"Created {db_transaction.direction.value} transaction {db_transaction.id} "
        f"of {db_transaction.amount} on account {db_transaction.account_id}"
    )
    return db_transaction


def read_db_transaction(db: Session, transaction_id: UUID, user_id: UUID) -> Optional[TransactionDB]:
    """Read a transaction on one of the accounts the user can see"""
    return (
        db.query(TransactionDB)
        .filter(TransactionDB.id == transaction_id, TransactionDB.account_id.in_(visible_account_ids(user_id)))
        .options(*RELATED_LOADS)
        .first()
    )


def read_db_transactions(db: Session, user_id: UUID, account_id: Optional[UUID] = None,
                         category_id: Optional[UUID] = None, skip: int = 0, limit: int = 100) -> List[TransactionDB]:
    """
    Transactions on the accounts the user can see, newest first.

    Filtering by an account the user cannot see, or by a category that is not
    theirs, raises NotFoundError rather than returning an empty list.
    """
    if account_id and not read_db_account(db, account_id, user_id):
        raise NotFoundError(f"Account with id {account_id} not found")
    _check_owned(db, CategoryDB, category_id, user_id, "Category")

    query = db.query(TransactionDB).filter(TransactionDB.account_id.in_(visible_account_ids(user_id)))

    if account_id:
        query = query.filter(TransactionDB.account_id == account_id)
    if category_id:
        query = query.filter(TransactionDB.category_id == category_id)

    return (
        query.options(*RELATED_LOADS)
        .order_by(desc(TransactionDB.created_at))
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_db_transaction(db: Session, transaction_id: UUID, user_id: UUID,
                          transaction_updates: TransactionUpdate) -> TransactionDB:
    """Update an existing transaction; tags and splits are replaced when given"""
    db_transaction = read_db_transaction(db, transaction_id, user_id)
    if not db_transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")
    _editable_account(db, db_transaction.account_id, user_id)

    update_data = transaction_updates.model_dump(exclude_unset=True, exclude={"tag_ids", "splits"})

    if update_data.get("account_id") and update_data["account_id"] != db_transaction.account_id:
        _editable_account(db, update_data["account_id"], user_id)
    if "category_id" in update_data:
        _check_owned(db, CategoryDB, update_data["category_id"], user_id, "Category")
    if "cardholder_id" in update_data:
        _check_owned(db, CardholderDB, update_data["cardholder_id"], user_id, "Cardholder")

    tags = _resolve_tags(db, user_id, transaction_updates.tag_ids) if transaction_updates.tag_ids is not None else None
    splits = _build_splits(db, user_id, transaction_updates.splits) if transaction_updates.splits is not None else None

    for field, value in update_data.items():
        if value is None and field in NON_NULLABLE_FIELDS:
            continue
        setattr(db_transaction, field, value)
    if tags is not None:
        db_transaction.tags = tags
    if splits is not None:
        db_transaction.splits = splits

    try:
        db.commit()
        db.refresh(db_transaction)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating transaction {transaction_id}: {e}")
        raise ValueError("Transaction update failed due to database constraint")

    logger.info(f"Updated transaction {transaction_id}")
    return db_transaction


def delete_db_transaction(db: Session, transaction_id: UUID, user_id: UUID) -> bool:
    """Delete a transaction together with its splits and tag links"""
    db_transaction = read_db_transaction(db, transaction_id, user_id)
    if not db_transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")
    _editable_account(db, db_transaction.account_id, user_id)

    try:
        db.delete(db_transaction)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error deleting transaction {transaction_id}: {e}")
        raise ValueError("Failed to delete transaction")

    logger.info(f"Deleted transaction {transaction_id}")
    return True
