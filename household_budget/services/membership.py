"""
Account Membership Service

Keeps an account's persisted membership rows equal to a desired list of
(user_id, role) pairs. Replacement is delete-all then insert-all, run after
the account record itself has been written and committed:

- create: account committed -> rows validated -> rows inserted
- update: account committed -> existing rows deleted and committed -> rows validated -> rows inserted

A rejected row aborts the whole insert batch. Nothing already committed is
undone, so a failure after the delete leaves the account with no members
until the caller tries again.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError
from typing import Any, Dict, Iterable, List
from uuid import UUID

from household_budget.db.core import AccountMemberDB
from household_budget.models.account import AccountMemberCreate
from household_budget.exceptions import ValidationFailedError, PersistenceError
from household_budget.logging_config import get_logger

logger = get_logger(__name__)


def _as_dict(member: Any) -> Dict[str, Any]:
    if isinstance(member, dict):
        return member
    return {"user_id": getattr(member, "user_id", None), "role": getattr(member, "role", None)}


def validate_members(account_id: UUID, members: Iterable[Any]) -> List[AccountMemberCreate]:
    """
    Validate every requested member row for ``account_id``.

    Raises ValidationFailedError on the first malformed row. Rows repeating a
    user_id collapse into one: the last role wins, the first position is kept.
    """
    by_user: Dict[UUID, AccountMemberCreate] = {}
    for index, member in enumerate(members):
        row = _as_dict(member)
        try:
            validated = AccountMemberCreate.model_validate({
                "account_id": account_id,
                "user_id": row.get("user_id"),
                "role": row.get("role"),
            })
        except ValidationError as e:
            logger.warning(f"Validation failed for account member #{index} of account {account_id}: {e.errors()}")
            raise ValidationFailedError("Validation failed for account member", errors=e.errors())
        by_user[validated.user_id] = validated
    return list(by_user.values())


def insert_members(db: Session, account_id: UUID, members: Iterable[Any]) -> List[AccountMemberDB]:
    """Validate then bulk-insert membership rows for an account. An empty list inserts nothing."""
    validated = validate_members(account_id, members)
    if not validated:
        return []

    db_members = [
        AccountMemberDB(
            account_id=member.account_id,
            user_id=member.user_id,
            role=member.role,
        )
        for member in validated
    ]

    try:
        db.add_all(db_members)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error inserting account members for account {account_id}: {e}")
        raise PersistenceError("Failed to insert account members")

    logger.info(f"Inserted {len(db_members)} member(s) for account {account_id}")
    return db_members


def delete_members(db: Session, account_id: UUID) -> int:
    """Delete every membership row of an account and commit. Returns the number of rows removed."""
    try:
        deleted = db.query(AccountMemberDB).filter(AccountMemberDB.account_id == account_id).delete(
            synchronize_session="fetch"
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting account members for account {account_id}: {e}")
        raise PersistenceError("Failed to delete account members")

    logger.debug(f"Deleted {deleted} member(s) of account {account_id}")
    return deleted


def replace_members(db: Session, account_id: UUID, members: Iterable[Any]) -> List[AccountMemberDB]:
    """
    Make the account's membership set equal to ``members``.

    The delete always runs, even for an empty list, and completes before any
    row is validated or inserted.
    """
    members = list(members)
    delete_members(db, account_id)
    return insert_members(db, account_id, members)


def read_members(db: Session, account_id: UUID) -> List[AccountMemberDB]:
    return (
        db.query(AccountMemberDB)
        .filter(AccountMemberDB.account_id == account_id)
        .order_by(AccountMemberDB.created_at)
        .all()
    )
