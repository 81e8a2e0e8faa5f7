from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from household_budget.auth import get_current_user_id
from household_budget.crud import crud_category
from household_budget.models import category as category_models
from household_budget.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)

@router.post("/", response_model=category_models.CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category: category_models.CategoryCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Create a new category, or a sub-category when parent_id is given.
    """
    try:
        return crud_category.create_db_category(db=db, user_id=user_id, category_data=category)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[category_models.CategoryResponse])
def read_categories(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve the current user's categories, ordered by name.
    """
    return crud_category.read_db_categories(db=db, user_id=user_id, skip=skip, limit=limit)

@router.get("/tree", response_model=List[category_models.CategoryTreeNode])
def read_category_tree(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve the current user's categories as root categories with their sub-categories.
    """
    return crud_category.read_db_category_tree(db=db, user_id=user_id).nest()

@router.get("/{category_id}", response_model=category_models.CategoryResponse)
def read_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve a specific category by its ID.
    """
    db_category = crud_category.read_db_category(db=db, category_id=category_id, user_id=user_id)
    if db_category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return db_category

@router.put("/{category_id}", response_model=category_models.CategoryResponse)
def update_category(
    category_id: UUID,
    category: category_models.CategoryUpdate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Update a category's name or parent.
    """
    try:
        return crud_category.update_db_category(
            db=db, category_id=category_id, user_id=user_id, category_updates=category
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Delete a category that has no sub-categories or budgets.
    """
    try:
        crud_category.delete_db_category(db=db, category_id=category_id, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        # This error is raised if the category is still in use
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
