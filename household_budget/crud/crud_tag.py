from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from uuid import UUID

from household_budget.db.core import TagDB, NotFoundError
from household_budget.models.tag import TagCreate, TagUpdate
from household_budget.logging_config import get_logger

logger = get_logger(__name__)


def _name_taken(db: Session, user_id: UUID, name: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(TagDB).filter(TagDB.user_id == user_id, TagDB.name.ilike(name))
    if exclude_id:
        query = query.filter(TagDB.id != exclude_id)
    return query.first() is not None


def create_db_tag(db: Session, user_id: UUID, tag_data: TagCreate) -> TagDB:
    """Create a new tag for a user"""
    if _name_taken(db, user_id, tag_data.name):
        raise ValueError(f"Tag '{tag_data.name}' already exists")

    db_tag = TagDB(user_id=user_id, name=tag_data.name)

    try:
        db.add(db_tag)
        db.commit()
        db.refresh(db_tag)
        return db_tag
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating tag '{tag_data.name}': {e}")
        raise ValueError("Tag creation failed due to database constraint")


def read_db_tags(db: Session, user_id: UUID, skip: int = 0, limit: int = 100) -> List[TagDB]:
    """Read all tags for a user, ordered by name"""
    return db.query(TagDB).filter(TagDB.user_id == user_id).order_by(TagDB.name).offset(skip).limit(limit).all()


def read_db_tag(db: Session, tag_id: UUID, user_id: UUID) -> Optional[TagDB]:
    return db.query(TagDB).filter(TagDB.id == tag_id, TagDB.user_id == user_id).first()


def update_db_tag(db: Session, tag_id: UUID, user_id: UUID, tag_updates: TagUpdate) -> TagDB:
    """Rename a tag"""
    db_tag = read_db_tag(db, tag_id, user_id)
    if not db_tag:
        raise NotFoundError(f"Tag with id {tag_id} not found")

    if tag_updates.name:
        if _name_taken(db, user_id, tag_updates.name, exclude_id=tag_id):
            raise ValueError(f"Tag '{tag_updates.name}' already exists")
        db_tag.name = tag_updates.name

    try:
        db.commit()
        db.refresh(db_tag)
        return db_tag
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating tag {tag_id}: {e}")
        raise ValueError("Tag update failed due to database constraint")


def delete_db_tag(db: Session, tag_id: UUID, user_id: UUID) -> bool:
    db_tag = read_db_tag(db, tag_id, user_id)
    if not db_tag:
        raise NotFoundError(f"Tag with id {tag_id} not found")

    try:
        db.delete(db_tag)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error deleting tag {tag_id}: {e}")
        raise ValueError("Cannot delete tag due to database constraint")

    logger.info(f"Deleted tag {tag_id}")
    return True
