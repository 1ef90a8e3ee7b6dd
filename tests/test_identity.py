"""Tests for the identity store (users and roles)."""
import pytest
from werkzeug.security import check_password_hash

from app.aprameya.constants import Role
from app.aprameya.errors import DuplicateEmail, DuplicateUsername, ValidationError
from app.aprameya.identity import (
    count_users_by_role,
    create_user,
    get_user_by_email,
    get_user_by_id,
    get_user_by_username,
    list_users_by_role,
    set_user_role,
    update_profile,
    verify_credentials,
)


def test_new_users_are_aspirants(s):
    user = create_user(s, username="alice", password="secret", email="Alice@Example.com")
    s.commit()
    assert user.role == Role.ASPIRANT.value
    assert user.email == "alice@example.com"
    assert get_user_by_username(s, "alice").id == user.id


def test_password_is_hashed(s):
    user = create_user(s, username="alice", password="secret", email="alice@example.com")
    assert user.password_hash != "secret"
    assert check_password_hash(user.password_hash, "secret")
    assert "password_hash" not in user.to_dict()


def test_duplicate_username(s, make_user):
    make_user("alice")
    with pytest.raises(DuplicateUsername):
        create_user(s, username="alice", password="pw", email="other@example.com")


def test_duplicate_email_is_case_insensitive(s, make_user):
    make_user("alice")
    with pytest.raises(DuplicateEmail):
        create_user(s, username="alice2", password="pw", email="ALICE@example.com")


def test_registration_validation(s):
    with pytest.raises(ValidationError) as exc:
        create_user(s, username="  ", password="", email="not-an-email")
    assert exc.value.errors == ["Username is required.", "Password is required.", "Email is invalid."]


def test_lookups_return_none_when_absent(s):
    assert get_user_by_id(s, 42) is None
    assert get_user_by_username(s, "ghost") is None
    assert get_user_by_username(s, "") is None
    assert get_user_by_email(s, "ghost@example.com") is None


def test_verify_credentials(s, make_user):
    alice = make_user("alice", password="right")
    assert verify_credentials(alice, "right") is True
    assert verify_credentials(alice, "wrong") is False
    assert verify_credentials(None, "right") is False


class TestRoles:
    def test_set_user_role(self, s, make_user):
        alice = make_user("alice")
        updated = set_user_role(s, alice.id, Role.CORE_TEAM)
        s.commit()
        assert updated.role == "core_team"
        assert get_user_by_id(s, alice.id).role == "core_team"

    def test_set_role_accepts_string(self, s, make_user):
        alice = make_user("alice")
        assert set_user_role(s, alice.id, "admin").role == "admin"

    def test_set_role_unknown_user(self, s):
        assert set_user_role(s, 999, Role.ADMIN) is None

    def test_list_and_count_by_role(self, s, make_user):
        make_user("root", "admin")
        make_user("c1", "core_team")
        make_user("c2", "core_team")
        make_user("a1")
        assert [u.username for u in list_users_by_role(s, Role.CORE_TEAM)] == ["c1", "c2"]
        assert count_users_by_role(s) == {"aspirant": 1, "core_team": 2, "admin": 1}

    def test_count_includes_zero_roles(self, s, make_user):
        make_user("a1")
        assert count_users_by_role(s) == {"aspirant": 1, "core_team": 0, "admin": 0}


class TestUpdateProfile:
    def test_updates_profile_fields(self, s, make_user):
        alice = make_user("alice")
        changes = update_profile(s, alice, {"display_name": "Alice A.", "department": " CSE ", "bio": ""})
        assert alice.display_name == "Alice A."
        assert alice.department == "CSE"
        assert set(changes) == {"display_name", "department"}

    def test_role_and_username_are_ignored(self, s, make_user):
        alice = make_user("alice")
        changes = update_profile(s, alice, {"role": "admin", "username": "root"})
        assert changes == {}
        assert alice.role == "aspirant"
        assert alice.username == "alice"

    def test_email_change(self, s, make_user):
        alice = make_user("alice")
        update_profile(s, alice, {"email": "New@Example.com"})
        assert alice.email == "new@example.com"

    def test_email_taken(self, s, make_user):
        alice = make_user("alice")
        make_user("bob")
        with pytest.raises(DuplicateEmail):
            update_profile(s, alice, {"email": "bob@example.com", "display_name": "x"})
        # Nothing applied when the email is rejected.
        assert alice.display_name is None

    def test_invalid_email(self, s, make_user):
        alice = make_user("alice")
        with pytest.raises(ValidationError):
            update_profile(s, alice, {"email": "nope"})

    def test_password_change_rehashes(self, s, make_user):
        alice = make_user("alice")
        changes = update_profile(s, alice, {"password": "new-secret"})
        assert changes == {"password": {"changed": True}}
        assert verify_credentials(alice, "new-secret")
        assert not verify_credentials(alice, "pw")

    @pytest.mark.parametrize("payload", [{"email": 5}, {"password": 12345}, {"password": ["a"]}])
    def test_email_and_password_must_be_strings(self, s, make_user, payload):
        alice = make_user("alice")
        with pytest.raises(ValidationError):
            update_profile(s, alice, payload)
        assert verify_credentials(alice, "pw")

    def test_profile_field_length_follows_column(self, s, make_user):
        alice = make_user("alice")
        with pytest.raises(ValidationError) as exc:
            update_profile(s, alice, {"year": "y" * 17, "display_name": "ok"})
        assert exc.value.errors == ["year must be at most 16 characters."]
        assert alice.display_name is None
        update_profile(s, alice, {"year": "y" * 16})
        assert alice.year == "y" * 16
