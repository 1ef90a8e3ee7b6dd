"""Tests for the core team chat."""
import pytest

from app.aprameya.errors import Forbidden, NotFound, Unauthenticated, ValidationError
from app.aprameya.modules.messages.service import create_message, delete_message, list_messages


@pytest.fixture(autouse=True)
def members(make_user):
    make_user("root", "admin")
    make_user("core", "core_team")
    make_user("core2", "core_team")
    make_user("asp")


def test_core_team_posts_and_reads(s, sessions, login):
    token = login("core")
    create_message(s, sessions, {"content": "first"}, token)
    create_message(s, sessions, {"content": "second"}, token)
    s.commit()
    messages = list_messages(s, sessions, login("core2"))
    assert [m.content for m in messages] == ["second", "first"]


def test_limit(s, sessions, login):
    token = login("root")
    for i in range(3):
        create_message(s, sessions, {"content": f"m{i}"}, token)
    s.commit()
    assert len(list_messages(s, sessions, token, limit=2)) == 2


def test_aspirant_cannot_read_or_post(s, sessions, login):
    token = login("asp")
    with pytest.raises(Forbidden):
        list_messages(s, sessions, token)
    with pytest.raises(Forbidden):
        create_message(s, sessions, {"content": "let me in"}, token)


def test_anonymous(s, sessions):
    with pytest.raises(Unauthenticated):
        list_messages(s, sessions, None)


def test_empty_message(s, sessions, login):
    with pytest.raises(ValidationError):
        create_message(s, sessions, {"content": ""}, login("core"))


class TestDelete:
    @pytest.fixture()
    def message(self, s, sessions, login):
        m = create_message(s, sessions, {"content": "oops"}, login("core"))
        s.commit()
        return m

    def test_author_deletes(self, s, sessions, message, login):
        delete_message(s, sessions, message.id, login("core"))
        s.commit()
        assert list_messages(s, sessions, login("core")) == []

    def test_other_core_member_cannot_delete(self, s, sessions, message, login):
        with pytest.raises(Forbidden):
            delete_message(s, sessions, message.id, login("core2"))

    def test_admin_deletes(self, s, sessions, message, login):
        delete_message(s, sessions, message.id, login("root"))

    def test_missing(self, s, sessions, login):
        with pytest.raises(NotFound):
            delete_message(s, sessions, 12345, login("root"))


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_is_ignored(s, sessions, login, limit):
    token = login("core")
    create_message(s, sessions, {"content": "a"}, token)
    create_message(s, sessions, {"content": "b"}, token)
    s.commit()
    assert len(list_messages(s, sessions, token, limit=limit)) == 2
