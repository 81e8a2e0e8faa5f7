from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from household_budget.auth import get_current_user_id
from household_budget.crud import crud_profile
from household_budget.models import profile as profile_models
from household_budget.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/profiles",
    tags=["profiles"],
)

@router.post("/", response_model=profile_models.ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_profile(profile: profile_models.ProfileCreate, db: Session = Depends(get_db)):
    """
    Register the profile of a user signed up with the auth provider.
    """
    try:
        return crud_profile.create_db_profile(db=db, profile_data=profile)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[profile_models.ProfileResponse])
def read_profiles(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve profiles, e.g. to pick account members.
    """
    return crud_profile.read_db_profiles(db, skip=skip, limit=limit)

@router.get("/{profile_id}", response_model=profile_models.ProfileResponse)
def read_profile(
    profile_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Retrieve a single profile.
    """
    db_profile = crud_profile.read_db_profile(db, profile_id=profile_id)
    if db_profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return db_profile

@router.put("/{profile_id}", response_model=profile_models.ProfileResponse)
def update_profile(
    profile_id: UUID,
    profile: profile_models.ProfileUpdate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Update the current user's own first and last name.
    """
    if profile_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only update your own profile")
    try:
        return crud_profile.update_db_profile(db, profile_id=profile_id, profile_updates=profile)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
