from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from household_budget.crud import crud_profile
from household_budget.db.core import get_db
from household_budget.exceptions import NotAuthenticatedError


# The upstream auth provider forwards the signed-in user's profile id in X-User-Id.
def get_current_user_id(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> UUID:
    try:
        return crud_profile.authenticate_profile(db, x_user_id).id
    except NotAuthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
