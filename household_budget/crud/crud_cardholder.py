from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from uuid import UUID

from household_budget.db.core import CardholderDB, NotFoundError
from household_budget.models.cardholder import CardholderCreate, CardholderUpdate
from household_budget.logging_config import get_logger

logger = get_logger(__name__)


def create_db_cardholder(db: Session, user_id: UUID, cardholder_data: CardholderCreate) -> CardholderDB:
    """Create a cardholder belonging to the user"""
    db_cardholder = CardholderDB(user_id=user_id, name=cardholder_data.name)

    try:
        db.add(db_cardholder)
        db.commit()
        db.refresh(db_cardholder)
        return db_cardholder
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating cardholder '{cardholder_data.name}': {e}")
        raise ValueError("Cardholder creation failed due to database constraint")


def read_db_cardholders(db: Session, user_id: UUID, skip: int = 0, limit: int = 100) -> List[CardholderDB]:
    """The user's cardholders ordered by name"""
    return (
        db.query(CardholderDB)
        .filter(CardholderDB.user_id == user_id)
        .order_by(CardholderDB.name)
        .offset(skip)
        .limit(limit)
        .all()
    )


def read_db_cardholder(db: Session, cardholder_id: UUID, user_id: UUID) -> Optional[CardholderDB]:
    return db.query(CardholderDB).filter(CardholderDB.id == cardholder_id, CardholderDB.user_id == user_id).first()


def update_db_cardholder(db: Session, cardholder_id: UUID, user_id: UUID,
                         cardholder_updates: CardholderUpdate) -> CardholderDB:
    db_cardholder = read_db_cardholder(db, cardholder_id, user_id)
    if not db_cardholder:
        raise NotFoundError(f"Cardholder with id {cardholder_id} not found")

    if cardholder_updates.name:
        db_cardholder.name = cardholder_updates.name

    try:
        db.commit()
        db.refresh(db_cardholder)
        return db_cardholder
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating cardholder {cardholder_id}: {e}")
        raise ValueError("Cardholder update failed due to database constraint")


def delete_db_cardholder(db: Session, cardholder_id: UUID, user_id: UUID) -> bool:
    """Delete a cardholder; its transactions keep existing without one"""
    db_cardholder = read_db_cardholder(db, cardholder_id, user_id)
    if not db_cardholder:
        raise NotFoundError(f"Cardholder with id {cardholder_id} not found")

    try:
        db.delete(db_cardholder)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error deleting cardholder {cardholder_id}: {e}")
        raise ValueError("Cannot delete cardholder due to database constraint")

    logger.info(f"Deleted cardholder {cardholder_id}")
    return True
