from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import select

from app.aprameya.constants import Role
from app.aprameya.gateway import ContentGateway
from app.aprameya.identity import count_users_by_role
from app.aprameya.modules.comments.service import list_comments_for_user
from app.aprameya.modules.content.models import CONTENT_MODELS, Event
from app.aprameya.modules.messages.models import Message
from app.aprameya.modules.registrations.service import list_registrations_for_user

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.aprameya.models import User
    from app.aprameya.sessions import SessionManager

LOGIN_PATH = "/login"
RECENT_MESSAGES = 20


class DashboardView(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    ADMIN = "admin"
    CORE = "core"
    ASPIRANT = "aspirant"


def resolve_dashboard(user: "User | None") -> DashboardView:
    """
    Unauthenticated is the only non-terminal state (caller routes to login).
    Unknown role values land on the aspirant view, the least privileged one.
    """
    if user is None:
        return DashboardView.UNAUTHENTICATED
    role = Role.parse(user.role)
    if role is Role.ADMIN:
        return DashboardView.ADMIN
    if role is Role.CORE_TEAM:
        return DashboardView.CORE
    return DashboardView.ASPIRANT


def build_dashboard_context(s: "Session", sessions: "SessionManager", view: DashboardView, user: "User") -> dict:
    """Data each dashboard renders. Only called for the three terminal views."""
    if view is DashboardView.ADMIN:
        return {
            "user_counts": count_users_by_role(s),
            "content_counts": {
                resource: ContentGateway(s, sessions, model).count() for resource, model in CONTENT_MODELS.items()
            },
        }

    if view is DashboardView.CORE:
        messages = s.execute(
            select(Message).order_by(Message.created_at.desc(), Message.id.desc()).limit(RECENT_MESSAGES)
        ).scalars()
        return {
            "my_content": {
                resource: [e.to_dict() for e in ContentGateway(s, sessions, model).list_by_creator(user.id)]
                for resource, model in CONTENT_MODELS.items()
            },
            "recent_messages": [m.to_dict() for m in messages],
        }

    registrations = list_registrations_for_user(s, user.id)
    registered_ids = {r.event_id for r in registrations}
    events = ContentGateway(s, sessions, Event).list()
    return {
        "my_registrations": [r.to_dict() for r in registrations],
        "my_comments": [c.to_dict() for c in list_comments_for_user(s, user.id)],
        "events": [dict(e.to_dict(), registered=e.id in registered_ids) for e in events],
    }
