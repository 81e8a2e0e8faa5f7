"""
Tests for the account membership reconciler.

Both the create and the update path run against an in-memory SQLite store;
post-state is always read back through a fresh query.
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError
from uuid import uuid4

from household_budget.crud import crud_account
from household_budget.db.core import AccountDB, AccountMemberDB, AccountRole, AccountType, NotFoundError
from household_budget.exceptions import PermissionDeniedError, PersistenceError, ValidationFailedError
from household_budget.models.account import AccountCreate, AccountMemberSpec, AccountUpdate
from household_budget.services import membership


def member_set(db, account_id):
    db.expire_all()
    rows = db.query(AccountMemberDB).filter(AccountMemberDB.account_id == account_id).all()
    return {(row.user_id, row.role.value) for row in rows}


def account_form(members, **overrides):
    data = {"name": "Joint Checking", "type": "checking", "account_members": members}
    data.update(overrides)
    return AccountCreate(**data)


@pytest.fixture
def household(make_profile):
    return [make_profile("Sam"), make_profile("Riley"), make_profile("Jordan")]


@pytest.fixture
def account(db, owner):
    db_account = AccountDB(user_id=owner.id, name="Shared Savings", type=AccountType.SAVINGS)
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


class TestValidateMembers:
    """Row validation and duplicate handling."""

    def test_valid_rows(self, account, household):
        rows = [{"user_id": str(p.id), "role": "viewer"} for p in household]

        validated = membership.validate_members(account.id, rows)

        assert [m.user_id for m in validated] == [p.id for p in household]
        assert all(m.role == AccountRole.VIEWER for m in validated)
        assert all(m.account_id == account.id for m in validated)

    def test_duplicate_user_last_role_wins(self, account, household):
        sam, riley, _ = household
        rows = [
            {"user_id": str(sam.id), "role": "viewer"},
            {"user_id": str(riley.id), "role": "editor"},
            {"user_id": str(sam.id), "role": "owner"},
        ]

        validated = membership.validate_members(account.id, rows)

        assert [(m.user_id, m.role) for m in validated] == [
            (sam.id, AccountRole.OWNER),
            (riley.id, AccountRole.EDITOR),
        ]

    def test_bad_role_rejected(self, account, household):
        with pytest.raises(ValidationFailedError, match="Validation failed for account member"):
            membership.validate_members(account.id, [{"user_id": str(household[0].id), "role": "admin"}])

    def test_bad_user_id_rejected(self, account):
        with pytest.raises(ValidationFailedError) as exc_info:
            membership.validate_members(account.id, [{"user_id": "not-a-uuid", "role": "viewer"}])
        assert exc_info.value.errors

    def test_accepts_form_rows(self, account, household):
        rows = [AccountMemberSpec(user_id=str(household[0].id), role="editor")]

        validated = membership.validate_members(account.id, rows)

        assert validated[0].role == AccountRole.EDITOR


class TestReplaceMembers:
    """Delete-all then insert-all against the store."""

    def test_round_trip_equals_target(self, db, account, household):
        target = [(household[0].id, "owner"), (household[1].id, "viewer")]

        membership.replace_members(db, account.id, [{"user_id": str(u), "role": r} for u, r in target])

        assert member_set(db, account.id) == set(target)

    def test_replacing_again_drops_previous_rows(self, db, account, household):
        sam, riley, jordan = household
        membership.replace_members(db, account.id, [
            {"user_id": str(sam.id), "role": "owner"},
            {"user_id": str(riley.id), "role": "viewer"},
        ])

        membership.replace_members(db, account.id, [
            {"user_id": str(riley.id), "role": "editor"},
            {"user_id": str(jordan.id), "role": "viewer"},
        ])

        assert member_set(db, account.id) == {(riley.id, "editor"), (jordan.id, "viewer")}

    def test_empty_target_clears_members(self, db, account, household):
        membership.replace_members(db, account.id, [{"user_id": str(household[0].id), "role": "owner"}])

        membership.replace_members(db, account.id, [])

        assert member_set(db, account.id) == set()

    def test_other_accounts_untouched(self, db, owner, account, household):
        other = AccountDB(user_id=owner.id, name="Wallet", type=AccountType.CASH)
        db.add(other)
        db.commit()
        membership.insert_members(db, other.id, [{"user_id": str(household[0].id), "role": "viewer"}])

        membership.replace_members(db, account.id, [])

        assert member_set(db, other.id) == {(household[0].id, "viewer")}

    def test_insert_failure_after_delete_leaves_no_members(self, db, account, household, monkeypatch):
        membership.replace_members(db, account.id, [{"user_id": str(household[0].id), "role": "owner"}])

        def failing_add_all(instances):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(db, "add_all", failing_add_all)

        with pytest.raises(PersistenceError, match="Failed to insert account members"):
            membership.replace_members(db, account.id, [{"user_id": str(household[1].id), "role": "viewer"}])

        monkeypatch.undo()
        assert member_set(db, account.id) == set()


class TestAccountCreatePath:
    """create_db_account: account first, then members."""

    def test_creates_account_with_members(self, db, owner, household):
        form = account_form([
            {"user_id": str(owner.id), "role": "owner"},
            {"user_id": str(household[0].id), "role": "editor"},
        ])

        db_account = crud_account.create_db_account(db, owner.id, form)

        assert db_account.user_id == owner.id
        assert member_set(db, db_account.id) == {(owner.id, "owner"), (household[0].id, "editor")}

    def test_empty_member_list(self, db, owner):
        db_account = crud_account.create_db_account(db, owner.id, account_form([]))

        assert member_set(db, db_account.id) == set()

    def test_bad_member_keeps_account_without_members(self, db, owner):
        form = account_form([
            {"user_id": "u1", "role": "viewer"},
            {"user_id": "u2", "role": "bogus"},
        ])

        with pytest.raises(ValidationFailedError):
            crud_account.create_db_account(db, owner.id, form)

        db.expire_all()
        accounts = db.query(AccountDB).filter(AccountDB.user_id == owner.id).all()
        assert [a.name for a in accounts] == ["Joint Checking"]
        assert member_set(db, accounts[0].id) == set()

    def test_bad_role_with_valid_ids_inserts_nothing(self, db, owner, household):
        form = account_form([
            {"user_id": str(household[0].id), "role": "viewer"},
            {"user_id": str(household[1].id), "role": "bogus"},
        ])

        with pytest.raises(ValidationFailedError):
            crud_account.create_db_account(db, owner.id, form)

        db.expire_all()
        assert db.query(AccountMemberDB).count() == 0
        assert db.query(AccountDB).count() == 1

    def test_unknown_owner(self, db):
        with pytest.raises(NotFoundError):
            crud_account.create_db_account(db, uuid4(), account_form([]))


class TestAccountUpdatePath:
    """update_db_account: account first, then delete-all, then insert-all."""

    def test_update_replaces_members(self, db, owner, household):
        sam, riley, jordan = household
        db_account = crud_account.create_db_account(db, owner.id, account_form([
            {"user_id": str(sam.id), "role": "viewer"},
            {"user_id": str(riley.id), "role": "viewer"},
        ]))

        updated = crud_account.update_db_account(db, db_account.id, owner.id, AccountUpdate(
            name="Family Checking",
            account_members=[
                {"user_id": str(riley.id), "role": "editor"},
                {"user_id": str(jordan.id), "role": "viewer"},
            ],
        ))

        assert updated.name == "Family Checking"
        assert member_set(db, db_account.id) == {(riley.id, "editor"), (jordan.id, "viewer")}

    def test_update_without_members_clears_them(self, db, owner, household):
        db_account = crud_account.create_db_account(db, owner.id, account_form([
            {"user_id": str(household[0].id), "role": "viewer"},
        ]))

        crud_account.update_db_account(db, db_account.id, owner.id, AccountUpdate(is_active=False))

        assert member_set(db, db_account.id) == set()

    def test_bad_member_leaves_account_updated_and_members_deleted(self, db, owner, household):
        db_account = crud_account.create_db_account(db, owner.id, account_form([
            {"user_id": str(household[0].id), "role": "owner"},
            {"user_id": str(household[1].id), "role": "viewer"},
        ]))

        with pytest.raises(ValidationFailedError):
            crud_account.update_db_account(db, db_account.id, owner.id, AccountUpdate(
                name="Renamed",
                account_members=[
                    {"user_id": "u1", "role": "viewer"},
                    {"user_id": "u2", "role": "bogus"},
                ],
            ))

        db.expire_all()
        assert db.get(AccountDB, db_account.id).name == "Renamed"
        assert member_set(db, db_account.id) == set()

    def test_duplicate_users_last_one_wins(self, db, owner, household):
        sam = household[0]
        db_account = crud_account.create_db_account(db, owner.id, account_form([]))

        crud_account.update_db_account(db, db_account.id, owner.id, AccountUpdate(account_members=[
            {"user_id": str(sam.id), "role": "viewer"},
            {"user_id": str(sam.id), "role": "editor"},
        ]))

        assert member_set(db, db_account.id) == {(sam.id, "editor")}

    def test_credit_limit_rejected_for_non_credit_account(self, db, owner, household):
        db_account = crud_account.create_db_account(db, owner.id, account_form([
            {"user_id": str(household[0].id), "role": "viewer"},
        ]))

        with pytest.raises(ValidationFailedError, match="credit_limit"):
            crud_account.update_db_account(db, db_account.id, owner.id, AccountUpdate(credit_limit="1000"))

        # Rejected before anything was written
        db.expire_all()
        assert db.get(AccountDB, db_account.id).credit_limit is None
        assert member_set(db, db_account.id) == {(household[0].id, "viewer")}

    def test_viewer_cannot_edit(self, db, owner, household):
        viewer = household[0]
        db_account = crud_account.create_db_account(db, owner.id, account_form([
            {"user_id": str(viewer.id), "role": "viewer"},
        ]))

        with pytest.raises(PermissionDeniedError):
            crud_account.update_db_account(db, db_account.id, viewer.id, AccountUpdate(name="Mine now"))

    def test_editor_can_edit(self, db, owner, household):
        editor = household[0]
        db_account = crud_account.create_db_account(db, owner.id, account_form([
            {"user_id": str(editor.id), "role": "editor"},
        ]))

        updated = crud_account.update_db_account(db, db_account.id, editor.id, AccountUpdate(
            name="Edited",
            account_members=[{"user_id": str(editor.id), "role": "editor"}],
        ))

        assert updated.name == "Edited"
