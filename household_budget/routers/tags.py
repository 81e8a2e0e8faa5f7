from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from household_budget.auth import get_current_user_id
from household_budget.crud import crud_tag
from household_budget.models import tag as tag_models
from household_budget.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/tags",
    tags=["tags"],
)

@router.post("/", response_model=tag_models.TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    tag: tag_models.TagCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Create a new tag.
    """
    try:
        return crud_tag.create_db_tag(db=db, user_id=user_id, tag_data=tag)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[tag_models.TagResponse])
def read_tags(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve all tags for the current user.
    """
    return crud_tag.read_db_tags(db=db, user_id=user_id, skip=skip, limit=limit)

@router.put("/{tag_id}", response_model=tag_models.TagResponse)
def update_tag(
    tag_id: UUID,
    tag: tag_models.TagUpdate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Rename a tag.
    """
    try:
        return crud_tag.update_db_tag(db=db, tag_id=tag_id, user_id=user_id, tag_updates=tag)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    tag_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Delete a tag.
    """
    try:
        crud_tag.delete_db_tag(db=db, tag_id=tag_id, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
