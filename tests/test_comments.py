"""Tests for comments on projects, blogs and research."""
import pytest

from app.aprameya.errors import Forbidden, NotFound, Unauthenticated, ValidationError
from app.aprameya.modules.comments.service import (
    create_comment,
    delete_comment,
    list_comments_for_target,
    list_comments_for_user,
    parse_comment_target,
    update_comment,
)
from app.aprameya.modules.content.models import Blog, Event, Project


@pytest.fixture()
def project(s, make_user):
    core = make_user("core", "core_team")
    make_user("root", "admin")
    make_user("asp")
    make_user("asp2")
    p = Project(title="Rover", creator_id=core.id)
    s.add(p)
    s.commit()
    return p


def test_aspirant_comments_on_project(s, sessions, project, login):
    comment = create_comment(s, sessions, {"project_id": project.id, "content": " Nice! "}, login("asp"))
    s.commit()
    assert comment.content == "Nice!"
    assert comment.to_dict()["target_type"] == "project"
    assert [c.id for c in list_comments_for_target(s, "project", project.id)] == [comment.id]


def test_target_type_form(s, sessions, project, login):
    comment = create_comment(s, sessions, {"target_type": "project", "target_id": str(project.id), "content": "hi"}, login("asp"))
    assert comment.project_id == project.id


def test_anonymous_cannot_comment(s, sessions, project):
    with pytest.raises(Unauthenticated):
        create_comment(s, sessions, {"project_id": project.id, "content": "hi"}, None)


def test_missing_target(s, sessions, project, login):
    with pytest.raises(NotFound):
        create_comment(s, sessions, {"blog_id": 77, "content": "hi"}, login("asp"))


def test_empty_content(s, sessions, project, login):
    with pytest.raises(ValidationError):
        create_comment(s, sessions, {"project_id": project.id, "content": "   "}, login("asp"))


class TestParseTarget:
    def test_exactly_one_target(self):
        with pytest.raises(ValidationError):
            parse_comment_target({})
        with pytest.raises(ValidationError):
            parse_comment_target({"project_id": 1, "blog_id": 2})

    def test_events_take_no_comments(self):
        with pytest.raises(ValidationError):
            parse_comment_target({"target_type": "event", "target_id": 1})

    def test_id_must_be_integer(self):
        with pytest.raises(ValidationError):
            parse_comment_target({"research_id": "abc"})

    def test_column_form(self):
        assert parse_comment_target({"research_id": "3"}) == ("research", 3)

    @pytest.mark.parametrize("raw_id", [True, False, 1.9, "1.9"])
    def test_rejects_bools_and_fractions(self, raw_id):
        with pytest.raises(ValidationError):
            parse_comment_target({"project_id": raw_id})

    def test_integral_float_is_accepted(self):
        assert parse_comment_target({"blog_id": 2.0}) == ("blog", 2)


class TestEditAndDelete:
    @pytest.fixture()
    def comment(self, s, sessions, project, login):
        c = create_comment(s, sessions, {"project_id": project.id, "content": "first"}, login("asp"))
        s.commit()
        return c

    def test_author_edits(self, s, sessions, comment, login):
        updated = update_comment(s, sessions, comment.id, {"content": "edited"}, login("asp"))
        assert updated.content == "edited"

    def test_other_member_cannot_edit(self, s, sessions, comment, login):
        with pytest.raises(Forbidden):
            update_comment(s, sessions, comment.id, {"content": "mine now"}, login("asp2"))

    def test_core_team_cannot_delete_others(self, s, sessions, comment, login):
        with pytest.raises(Forbidden):
            delete_comment(s, sessions, comment.id, login("core"))

    def test_admin_deletes(self, s, sessions, project, comment, login):
        delete_comment(s, sessions, comment.id, login("root"))
        s.commit()
        assert list_comments_for_target(s, "project", project.id) == []

    def test_missing_comment(self, s, sessions, project, login):
        with pytest.raises(NotFound):
            delete_comment(s, sessions, 999, login("root"))


def test_list_for_missing_target(s):
    with pytest.raises(NotFound):
        list_comments_for_target(s, "blog", 1)


def test_list_for_unsupported_resource(s, make_user):
    core = make_user("core", "core_team")
    s.add(Event(title="Talk", creator_id=core.id))
    s.commit()
    with pytest.raises(NotFound):
        list_comments_for_target(s, "event", 1)


def test_list_for_user(s, sessions, project, login):
    blog = Blog(title="Post", creator_id=project.creator_id)
    s.add(blog)
    s.commit()
    token = login("asp")
    create_comment(s, sessions, {"project_id": project.id, "content": "a"}, token)
    create_comment(s, sessions, {"blog_id": blog.id, "content": "b"}, token)
    s.commit()
    user_id = sessions.resolve(token)
    assert [c.content for c in list_comments_for_user(s, user_id)] == ["b", "a"]
