from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional, List
from uuid import UUID

from household_budget.db.core import BudgetDB, CategoryDB, NotFoundError
from household_budget.models.budget import BudgetCreate, BudgetUpdate, BudgetWithCategory
from household_budget.services.category_tree import BudgetForest, group_budgets_by_category
from household_budget.crud.crud_category import read_db_categories
from household_budget.logging_config import get_logger

logger = get_logger(__name__)


# ===== DATABASE OPERATIONS =====

def _check_category(db: Session, user_id: UUID, category_id: Optional[UUID]) -> None:
    if category_id is None:
        return
    category = db.query(CategoryDB).filter(
        CategoryDB.id == category_id,
        CategoryDB.user_id == user_id
    ).first()
    if not category:
        raise NotFoundError(f"Category with id {category_id} not found")


def create_db_budget(db: Session, user_id: UUID, budget_data: BudgetCreate) -> BudgetDB:
    """Create a new budget, optionally scoped to a category"""
    _check_category(db, user_id, budget_data.category_id)

    db_budget = BudgetDB(
        user_id=user_id,
        category_id=budget_data.category_id,
        period=budget_data.period,
        amount=budget_data.amount,
    )

    try:
        db.add(db_budget)
        db.commit()
        db.refresh(db_budget)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating budget for user {user_id}: {e}")
        raise ValueError("Budget creation failed due to database constraint")

    logger.info(f"Created {db_budget.period.value} budget {db_budget.id} of {db_budget.amount}")
    return db_budget


def read_db_budget(db: Session, budget_id: UUID, user_id: Optional[UUID] = None) -> Optional[BudgetDB]:
    """Read a budget by ID"""
    query = db.query(BudgetDB).filter(BudgetDB.id == budget_id)
    if user_id:
        query = query.filter(BudgetDB.user_id == user_id)
    return query.first()


def read_db_budgets_with_category(db: Session, user_id: UUID, skip: int = 0,
                                  limit: Optional[int] = None) -> List[BudgetWithCategory]:
    """
    Read the user's budgets, newest first, each joined to its category and the
    category's parent.
    """
    query = (
        db.query(BudgetDB)
        .filter(BudgetDB.user_id == user_id)
        .options(joinedload(BudgetDB.category).joinedload(CategoryDB.parent))
        .order_by(desc(BudgetDB.created_at))
        .offset(skip)
    )
    if limit is not None:
        query = query.limit(limit)

    return [BudgetWithCategory.model_validate(budget) for budget in query.all()]


def read_db_budget_groups(db: Session, user_id: UUID) -> BudgetForest:
    """Budgets grouped under their categories, parents threaded in from the category list"""
    budgets = read_db_budgets_with_category(db, user_id)
    categories = read_db_categories(db, user_id)
    return group_budgets_by_category(budgets, categories=categories)


def update_db_budget(db: Session, budget_id: UUID, user_id: UUID, budget_updates: BudgetUpdate) -> BudgetDB:
    """Update an existing budget"""
    db_budget = read_db_budget(db, budget_id, user_id)
    if not db_budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    update_data = budget_updates.model_dump(exclude_unset=True)
    if 'category_id' in update_data:
        _check_category(db, user_id, update_data['category_id'])

    for field, value in update_data.items():
        if value is None and field in ("period", "amount"):
            continue
        setattr(db_budget, field, value)

    try:
        db.commit()
        db.refresh(db_budget)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating budget {budget_id}: {e}")
        raise ValueError("Budget update failed due to database constraint")

    return db_budget


def delete_db_budget(db: Session, budget_id: UUID, user_id: UUID) -> bool:
    """Delete a budget"""
    db_budget = read_db_budget(db, budget_id, user_id)
    if not db_budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    try:
        db.delete(db_budget)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error deleting budget {budget_id}: {e}")
        raise ValueError(f"Failed to delete budget: {str(e)}")

    logger.info(f"Deleted budget {budget_id}")
    return True
