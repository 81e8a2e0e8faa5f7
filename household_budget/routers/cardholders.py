from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from household_budget.auth import get_current_user_id
from household_budget.crud import crud_cardholder
from household_budget.models import cardholder as cardholder_models
from household_budget.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/cardholders",
    tags=["cardholders"],
)

@router.post("/", response_model=cardholder_models.CardholderResponse, status_code=status.HTTP_201_CREATED)
def create_cardholder(
    cardholder: cardholder_models.CardholderCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Create a cardholder for the current user.
    """
    try:
        return crud_cardholder.create_db_cardholder(db=db, user_id=user_id, cardholder_data=cardholder)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[cardholder_models.CardholderResponse])
def read_cardholders(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve the current user's cardholders, ordered by name.
    """
    return crud_cardholder.read_db_cardholders(db=db, user_id=user_id, skip=skip, limit=limit)

@router.put("/{cardholder_id}", response_model=cardholder_models.CardholderResponse)
def update_cardholder(
    cardholder_id: UUID,
    cardholder: cardholder_models.CardholderUpdate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Rename a cardholder.
    """
    try:
        return crud_cardholder.update_db_cardholder(
            db=db, cardholder_id=cardholder_id, user_id=user_id, cardholder_updates=cardholder
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{cardholder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cardholder(
    cardholder_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Delete a cardholder.
    """
    try:
        crud_cardholder.delete_db_cardholder(db=db, cardholder_id=cardholder_id, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
