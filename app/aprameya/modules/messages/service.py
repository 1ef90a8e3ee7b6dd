from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from app.aprameya.audit import record_event
from app.aprameya.errors import NotFound, ValidationError
from app.aprameya.gateway import resolve_actor
from app.aprameya.modules.messages.models import Message
from app.aprameya.rbac import Ownership, ensure_allowed

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.aprameya.sessions import SessionManager

MAX_MESSAGE_LENGTH = 2000


def list_messages(s: "Session", sessions: "SessionManager", token: str | None, limit: int | None = None) -> list[Message]:
    actor = resolve_actor(s, sessions, token)
    ensure_allowed(actor.role, "list_message")
    q = select(Message).order_by(Message.created_at.desc(), Message.id.desc())
    if limit is not None and limit > 0:
        q = q.limit(limit)
    return list(s.execute(q).scalars())


def create_message(s: "Session", sessions: "SessionManager", payload: dict | None, token: str | None) -> Message:
    actor = resolve_actor(s, sessions, token)
    ensure_allowed(actor.role, "create_message")
    if not isinstance(payload, dict):
        raise ValidationError("Payload must be a JSON object.")
    content = str(payload.get("content") or "").strip()
    if not content:
        raise ValidationError("Message content is required.")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters.")

    message = Message(content=content, user_id=actor.id, created_at=datetime.utcnow())
    s.add(message)
    s.flush()
    record_event(s, actor=actor, action="message.create", entity_type="Message", entity_id=str(message.id))
    return message


def delete_message(s: "Session", sessions: "SessionManager", message_id: int, token: str | None) -> None:
    actor = resolve_actor(s, sessions, token)
    message = s.get(Message, message_id)
    if message is None:
        raise NotFound(f"Message {message_id} not found.")
    ensure_allowed(actor.role, "delete_message", Ownership(actor_id=actor.id, owner_id=message.user_id))

    author_id = message.user_id
    s.delete(message)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="message.delete",
        entity_type="Message",
        entity_id=str(message_id),
        metadata={"author_id": author_id},
    )
