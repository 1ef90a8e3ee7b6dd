"""Tests for dashboard resolution and the data each dashboard shows."""
from types import SimpleNamespace

import pytest

from app.aprameya.dashboard import DashboardView, build_dashboard_context, resolve_dashboard
from app.aprameya.modules.content.models import Blog, Event, Project
from app.aprameya.modules.messages.models import Message
from app.aprameya.modules.registrations.models import EventRegistration


class TestResolve:
    def test_unauthenticated(self):
        assert resolve_dashboard(None) is DashboardView.UNAUTHENTICATED

    @pytest.mark.parametrize(
        "role, view",
        [
            ("admin", DashboardView.ADMIN),
            ("core_team", DashboardView.CORE),
            ("aspirant", DashboardView.ASPIRANT),
            ("Admin", DashboardView.ADMIN),
        ],
    )
    def test_role_to_view(self, role, view):
        assert resolve_dashboard(SimpleNamespace(role=role)) is view

    @pytest.mark.parametrize("role", ["", "superuser", "core team", None])
    def test_unknown_role_gets_least_privileged_view(self, role):
        assert resolve_dashboard(SimpleNamespace(role=role)) is DashboardView.ASPIRANT


class TestContext:
    @pytest.fixture()
    def club(self, s, make_user):
        users = {
            "admin": make_user("root", "admin"),
            "core": make_user("core", "core_team"),
            "aspirant": make_user("asp"),
        }
        core_id = users["core"].id
        early = Event(title="Early", creator_id=core_id, date="2024-04-01")
        late = Event(title="Late", creator_id=core_id, date="2024-06-01")
        s.add_all(
            [
                Project(title="Rover", creator_id=core_id),
                Blog(title="By admin", creator_id=users["admin"].id),
                early,
                late,
                Message(content="standup at 5", user_id=core_id),
            ]
        )
        s.flush()
        s.add(EventRegistration(user_id=users["aspirant"].id, event_id=late.id))
        s.commit()
        return users

    def test_admin_counts(self, s, sessions, club):
        ctx = build_dashboard_context(s, sessions, DashboardView.ADMIN, club["admin"])
        assert ctx["user_counts"] == {"aspirant": 1, "core_team": 1, "admin": 1}
        assert ctx["content_counts"] == {"project": 1, "blog": 1, "research": 0, "event": 2}

    def test_core_sees_own_content_and_chat(self, s, sessions, club):
        ctx = build_dashboard_context(s, sessions, DashboardView.CORE, club["core"])
        assert [p["title"] for p in ctx["my_content"]["project"]] == ["Rover"]
        assert ctx["my_content"]["blog"] == []
        assert [m["content"] for m in ctx["recent_messages"]] == ["standup at 5"]

    def test_aspirant_sees_events_with_registration_flag(self, s, sessions, club):
        ctx = build_dashboard_context(s, sessions, DashboardView.ASPIRANT, club["aspirant"])
        assert [(e["title"], e["registered"]) for e in ctx["events"]] == [("Early", False), ("Late", True)]
        assert len(ctx["my_registrations"]) == 1
        assert ctx["my_comments"] == []
