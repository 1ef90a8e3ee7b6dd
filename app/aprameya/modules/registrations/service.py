from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.aprameya.audit import record_event
from app.aprameya.errors import DuplicateRegistration, NotFound, ValidationError
from app.aprameya.gateway import resolve_actor
from app.aprameya.modules.content.models import Event
from app.aprameya.modules.registrations.models import EventRegistration
from app.aprameya.rbac import Ownership, ensure_allowed

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.aprameya.sessions import SessionManager


def parse_event_id(payload: dict | None) -> int:
    if not isinstance(payload, dict):
        raise ValidationError("Payload must be a JSON object.")
    raw = payload.get("event_id")
    if raw is None or isinstance(raw, bool):
        raise ValidationError("event_id is required.")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("event_id must be an integer.")


def get_registration(s: "Session", user_id: int, event_id: int) -> EventRegistration | None:
    return s.execute(
        select(EventRegistration).where(EventRegistration.user_id == user_id, EventRegistration.event_id == event_id)
    ).scalar_one_or_none()


def register_for_event(s: "Session", sessions: "SessionManager", payload: dict | None, token: str | None) -> EventRegistration:
    """
    Register the acting user for payload["event_id"]. The registrant is always
    the session's user; a user_id in the request is never honoured.
    """
    actor = resolve_actor(s, sessions, token)
    ensure_allowed(actor.role, "create_registration", Ownership(actor_id=actor.id, owner_id=actor.id))
    event_id = parse_event_id(payload)
    if s.get(Event, event_id) is None:
        raise NotFound(f"Event {event_id} not found.")
    if get_registration(s, actor.id, event_id) is not None:
        raise DuplicateRegistration()

    registration = EventRegistration(user_id=actor.id, event_id=event_id)
    s.add(registration)
    try:
        s.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration by the same user.
        s.rollback()
        raise DuplicateRegistration()

    record_event(
        s,
        actor=actor,
        action="registration.create",
        entity_type="EventRegistration",
        entity_id=str(registration.id),
        metadata={"event_id": event_id},
    )
    return registration


def cancel_registration(s: "Session", sessions: "SessionManager", registration_id: int, token: str | None) -> None:
    actor = resolve_actor(s, sessions, token)
    registration = s.get(EventRegistration, registration_id)
    if registration is None:
        raise NotFound(f"Registration {registration_id} not found.")
    ensure_allowed(actor.role, "cancel_registration", Ownership(actor_id=actor.id, owner_id=registration.user_id))

    event_id, user_id = registration.event_id, registration.user_id
    s.delete(registration)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="registration.cancel",
        entity_type="EventRegistration",
        entity_id=str(registration_id),
        metadata={"event_id": event_id, "user_id": user_id},
    )


def list_registrations_for_user(s: "Session", user_id: int) -> list[EventRegistration]:
    return list(
        s.execute(select(EventRegistration).where(EventRegistration.user_id == user_id).order_by(EventRegistration.id.asc())).scalars()
    )


def list_registrations_for_event(
    s: "Session", sessions: "SessionManager", event_id: int, token: str | None
) -> list[EventRegistration]:
    actor = resolve_actor(s, sessions, token)
    ensure_allowed(actor.role, "list_registration")
    if s.get(Event, event_id) is None:
        raise NotFound(f"Event {event_id} not found.")
    return list(
        s.execute(select(EventRegistration).where(EventRegistration.event_id == event_id).order_by(EventRegistration.id.asc())).scalars()
    )
