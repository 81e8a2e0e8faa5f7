"""
Tests for the crud helpers that write outside the membership reconciler:
database constraint failures roll the session back and surface as ValueError.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from uuid import uuid4

from household_budget.crud import crud_cardholder, crud_profile, crud_tag
from household_budget.db.core import NotFoundError, ProfileDB
from household_budget.models.cardholder import CardholderCreate
from household_budget.models.profile import ProfileUpdate
from household_budget.models.tag import TagCreate


@pytest.fixture
def failing_commit(db, monkeypatch):
    """Make the next commits fail with a constraint error and count the rollbacks."""
    rollbacks = {"n": 0}
    real_rollback = db.rollback

    def commit():
        raise IntegrityError("COMMIT", {}, Exception("constraint failed"))

    def rollback():
        rollbacks["n"] += 1
        real_rollback()

    def _arm():
        monkeypatch.setattr(db, "commit", commit)
        monkeypatch.setattr(db, "rollback", rollback)
        return rollbacks

    return _arm


class TestProfileUpdate:
    """update_db_profile"""

    def test_renames(self, db, owner):
        profile = crud_profile.update_db_profile(db, owner.id, ProfileUpdate(first_name="Liv"))
        assert profile.first_name == "Liv"
        assert profile.last_name == "Owner"

    def test_unknown_profile(self, db):
        with pytest.raises(NotFoundError):
            crud_profile.update_db_profile(db, uuid4(), ProfileUpdate(first_name="X"))

    def test_constraint_failure_rolls_back(self, db, owner, failing_commit):
        rollbacks = failing_commit()

        with pytest.raises(ValueError, match="Profile update failed"):
            crud_profile.update_db_profile(db, owner.id, ProfileUpdate(first_name="Liv"))

        assert rollbacks["n"] == 1
        assert db.query(ProfileDB).filter(ProfileDB.id == owner.id).one().first_name == "Olivia"


class TestCardholderDelete:
    """delete_db_cardholder"""

    def test_deletes_own_cardholder(self, db, owner):
        cardholder = crud_cardholder.create_db_cardholder(db, owner.id, CardholderCreate(name="Olivia"))

        assert crud_cardholder.delete_db_cardholder(db, cardholder.id, owner.id) is True
        assert crud_cardholder.read_db_cardholders(db, owner.id) == []

    def test_other_users_cardholder_is_not_found(self, db, owner, make_profile):
        eve = make_profile("Eve")
        cardholder = crud_cardholder.create_db_cardholder(db, owner.id, CardholderCreate(name="Olivia"))

        with pytest.raises(NotFoundError):
            crud_cardholder.delete_db_cardholder(db, cardholder.id, eve.id)
        assert crud_cardholder.read_db_cardholder(db, cardholder.id, eve.id) is None
        assert [c.name for c in crud_cardholder.read_db_cardholders(db, owner.id)] == ["Olivia"]

    def test_constraint_failure_rolls_back(self, db, owner, failing_commit):
        cardholder = crud_cardholder.create_db_cardholder(db, owner.id, CardholderCreate(name="Olivia"))
        rollbacks = failing_commit()

        with pytest.raises(ValueError, match="Cannot delete cardholder"):
            crud_cardholder.delete_db_cardholder(db, cardholder.id, owner.id)

        assert rollbacks["n"] == 1
        assert crud_cardholder.read_db_cardholder(db, cardholder.id, owner.id) is not None


class TestTagDelete:
    """delete_db_tag"""

    def test_constraint_failure_rolls_back(self, db, owner, failing_commit):
        tag = crud_tag.create_db_tag(db, owner.id, TagCreate(name="vacation"))
        rollbacks = failing_commit()

        with pytest.raises(ValueError, match="Cannot delete tag"):
            crud_tag.delete_db_tag(db, tag.id, owner.id)

        assert rollbacks["n"] == 1
        assert crud_tag.read_db_tag(db, tag.id, owner.id) is not None
