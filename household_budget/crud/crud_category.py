from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from uuid import UUID

from household_budget.db.core import CategoryDB, BudgetDB, TransactionDB, TransactionSplitDB, NotFoundError
from household_budget.models.category import CategoryCreate, CategoryUpdate
from household_budget.services.category_tree import CategoryForest, build_category_tree
from household_budget.logging_config import get_logger

logger = get_logger(__name__)


def _validate_parent(db: Session, user_id: UUID, parent_id: Optional[UUID], category_id: Optional[UUID] = None) -> None:
    """Categories nest one level deep: a parent must exist and must itself be a root category."""
    if parent_id is None:
        return
    if category_id is not None and parent_id == category_id:
        raise ValueError("A category cannot be its own parent")

    parent = read_db_category(db, parent_id, user_id)
    if not parent:
        raise NotFoundError(f"Parent category with id {parent_id} not found")
    if parent.parent_id is not None:
        raise ValueError(f"Category '{parent.name}' is already a sub-category and cannot have sub-categories")

    if category_id is not None:
        has_children = db.query(CategoryDB).filter(CategoryDB.parent_id == category_id).first()
        if has_children:
            raise ValueError("A category with sub-categories cannot become a sub-category")


def create_db_category(db: Session, user_id: UUID, category_data: CategoryCreate) -> CategoryDB:
    """Create a new category for the user"""

    # Check for duplicate category name
    existing_category = db.query(CategoryDB).filter(
        CategoryDB.user_id == user_id,
        CategoryDB.name.ilike(category_data.name)
    ).first()
    if existing_category:
        raise ValueError(f"Category with name '{category_data.name}' already exists")

    _validate_parent(db, user_id, category_data.parent_id)

    db_category = CategoryDB(
        user_id=user_id,
        name=category_data.name,
        parent_id=category_data.parent_id
    )

    try:
        db.add(db_category)
        db.commit()
        db.refresh(db_category)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating category '{category_data.name}': {e}")
        raise ValueError("Category creation failed due to a database constraint.")

    logger.info(f"Created category {db_category.id} '{db_category.name}'")
    return db_category

def read_db_categories(db: Session, user_id: UUID, skip: int = 0, limit: Optional[int] = None) -> List[CategoryDB]:
    """Read the user's categories ordered by name"""
    query = db.query(CategoryDB).filter(CategoryDB.user_id == user_id).order_by(CategoryDB.name).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()

def read_db_category_tree(db: Session, user_id: UUID) -> CategoryForest:
    """All of the user's categories arranged as root categories with their children"""
    return build_category_tree(read_db_categories(db, user_id))

def read_db_category(db: Session, category_id: UUID, user_id: Optional[UUID] = None) -> Optional[CategoryDB]:
    """Read a single category by its ID"""
    query = db.query(CategoryDB).filter(CategoryDB.id == category_id)
    if user_id:
        query = query.filter(CategoryDB.user_id == user_id)
    return query.first()

def update_db_category(db: Session, category_id: UUID, user_id: UUID, category_updates: CategoryUpdate) -> CategoryDB:
    """Update a category's name or parent"""
    db_category = read_db_category(db, category_id, user_id)
    if not db_category:
        raise NotFoundError(f"Category with id {category_id} not found")

    update_data = category_updates.model_dump(exclude_unset=True)

    # Check for duplicate name if name is being updated
    if update_data.get('name'):
        new_name = update_data['name']
        existing = db.query(CategoryDB).filter(
            CategoryDB.user_id == user_id,
            CategoryDB.name.ilike(new_name),
            CategoryDB.id != category_id
        ).first()
        if existing:
            raise ValueError(f"Category with name '{new_name}' already exists")
        db_category.name = new_name

    if 'parent_id' in update_data:
        _validate_parent(db, user_id, update_data['parent_id'], category_id)
        db_category.parent_id = update_data['parent_id']

    try:
        db.commit()
        db.refresh(db_category)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating category {category_id}: {e}")
        raise ValueError("Category update failed due to a database constraint.")

    return db_category

def delete_db_category(db: Session, category_id: UUID, user_id: UUID) -> bool:
    """Delete a category that no sub-category, budget or transaction refers to"""
    db_category = read_db_category(db, category_id, user_id)
    if not db_category:
        raise NotFoundError(f"Category with id {category_id} not found")

    in_use = (
        db.query(CategoryDB).filter(CategoryDB.parent_id == category_id).first()
        or db.query(BudgetDB).filter(BudgetDB.category_id == category_id).first()
        or db.query(TransactionDB).filter(TransactionDB.category_id == category_id).first()
        or db.query(TransactionSplitDB).filter(TransactionSplitDB.category_id == category_id).first()
    )
    if in_use:
        raise ValueError("Cannot delete category as it is currently in use.")

    try:
        db.delete(db_category)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error deleting category {category_id}: {e}")
        raise ValueError("Cannot delete category as it is currently in use.")

    logger.info(f"Deleted category {category_id}")
    return True
