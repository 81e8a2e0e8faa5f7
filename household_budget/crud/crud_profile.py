from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from uuid import UUID

from household_budget.db.core import ProfileDB, NotFoundError
from household_budget.models.profile import ProfileCreate, ProfileUpdate
from household_budget.exceptions import NotAuthenticatedError
from household_budget.logging_config import get_logger

logger = get_logger(__name__)


# ===== DATABASE OPERATIONS =====

def create_db_profile(db: Session, profile_data: ProfileCreate) -> ProfileDB:
    """Register a profile for a user known to the auth provider"""
    existing = db.query(ProfileDB).filter(ProfileDB.email == profile_data.email).first()
    if existing:
        raise ValueError("Email already registered")

    db_profile = ProfileDB(
        email=profile_data.email,
        first_name=profile_data.first_name,
        last_name=profile_data.last_name,
        role=profile_data.role,
    )

    try:
        db.add(db_profile)
        db.commit()
        db.refresh(db_profile)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating profile {profile_data.email}: {e}")
        raise ValueError("Profile creation failed due to database constraint")

    logger.info(f"Created profile {db_profile.id}")
    return db_profile


def read_db_profile(db: Session, profile_id: UUID) -> Optional[ProfileDB]:
    return db.query(ProfileDB).filter(ProfileDB.id == profile_id).first()


def read_db_profiles(db: Session, skip: int = 0, limit: int = 100) -> List[ProfileDB]:
    return db.query(ProfileDB).order_by(ProfileDB.email).offset(skip).limit(limit).all()


def update_db_profile(db: Session, profile_id: UUID, profile_updates: ProfileUpdate) -> ProfileDB:
    db_profile = read_db_profile(db, profile_id)
    if not db_profile:
        raise NotFoundError(f"Profile with id {profile_id} not found")

    for field, value in profile_updates.model_dump(exclude_unset=True).items():
        setattr(db_profile, field, value)

    try:
        db.commit()
        db.refresh(db_profile)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating profile {profile_id}: {e}")
        raise ValueError("Profile update failed due to database constraint")

    return db_profile


def authenticate_profile(db: Session, raw_user_id: Optional[str]) -> ProfileDB:
    """
    Resolve the identity supplied by the auth provider to a profile.

    Raises NotAuthenticatedError when no identity is given, it is not a valid
    id, or no profile carries it.
    """
    if not raw_user_id:
        raise NotAuthenticatedError()
    try:
        profile_id = UUID(raw_user_id.strip())
    except ValueError:
        raise NotAuthenticatedError()

    db_profile = read_db_profile(db, profile_id)
    if not db_profile:
        raise NotAuthenticatedError()
    return db_profile
