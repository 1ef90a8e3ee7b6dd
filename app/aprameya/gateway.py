"""
Content access gateway.

Every mutation runs the same sequence:

1. resolve the session token to a user            -> Unauthenticated
2. load the target (update/delete only)           -> NotFound
3. ask the role policy, with the current owner    -> Forbidden
4. validate the payload                           -> ValidationError
5. mutate, flush, and append an audit event

Nothing is written before step 5, so a rejected request leaves no trace.
The request layer commits.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import delete, func, select

from app.aprameya.audit import record_event
from app.aprameya.errors import NotFound, Unauthenticated, ValidationError
from app.aprameya.models import User, column_max_length
from app.aprameya.modules.comments.models import TARGET_COLUMNS, Comment
from app.aprameya.modules.content.models import Event, OwnedContent
from app.aprameya.modules.registrations.models import EventRegistration
from app.aprameya.rbac import Ownership, ensure_allowed

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.aprameya.sessions import SessionManager

T = TypeVar("T", bound=OwnedContent)

# Fields a caller may send but which are always set by the gateway itself.
PROTECTED_FIELDS = frozenset({"id", "creator_id", "creator", "created_at", "updated_at"})


def resolve_actor(s: "Session", sessions: "SessionManager", token: str | None) -> User:
    user_id = sessions.resolve(token)
    user = s.get(User, user_id)
    if user is None:
        # Session outlived its user record.
        sessions.destroy(token)
        raise Unauthenticated()
    return user


def _clean_list(name: str, value: Any, errors: list[str]) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        out = []
        for item in value:
            if not isinstance(item, (str, int, float)):
                errors.append(f"{name} must be a list of strings.")
                return []
            text = str(item).strip()
            if text:
                out.append(text)
        return out
    errors.append(f"{name} must be a list of strings.")
    return []


def _clean_int(name: str, value: Any, errors: list[str]) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        errors.append(f"{name} must be an integer.")
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be an integer.")
        return 0
    if number < 0:
        errors.append(f"{name} must not be negative.")
    return number


def clean_content_payload(model: type[OwnedContent], payload: dict | None, *, partial: bool) -> dict:
    """
    Keep only the model's editable fields and coerce their types. Owner, id
    and timestamps in the payload are ignored. With partial=False (create) the
    title is required; with partial=True only the supplied fields are returned.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Payload must be a JSON object.")

    errors: list[str] = []
    cleaned: dict = {}
    for name in model.FIELDS:
        if name in PROTECTED_FIELDS:
            continue
        if name not in payload:
            continue
        value = payload.get(name)
        if name in model.LIST_FIELDS:
            cleaned[name] = _clean_list(name, value, errors)
        elif name in model.INT_FIELDS:
            cleaned[name] = _clean_int(name, value, errors)
        else:
            text = "" if value is None else str(value).strip()
            limit = column_max_length(model, name)
            if len(text) > limit:
                errors.append(f"{name} must be at most {limit} characters.")
            cleaned[name] = text or None

    if partial:
        if "title" in cleaned and not cleaned["title"]:
            errors.append("Title is required.")
    elif not cleaned.get("title"):
        errors.append("Title is required.")

    if errors:
        raise ValidationError(errors)
    return cleaned


class ContentGateway(Generic[T]):
    """CRUD for one content entity type, gated by session and role policy."""

    def __init__(self, s: "Session", sessions: "SessionManager", model: type[T]):
        self.s = s
        self.sessions = sessions
        self.model = model

    @property
    def resource(self) -> str:
        return self.model.resource

    # ---------- Reads (public) ----------
    def list(self) -> list[T]:
        ensure_allowed(None, f"list_{self.resource}")
        order = self.model.id.asc()
        if self.model is Event:
            order = Event.date.asc()
        return list(self.s.execute(select(self.model).order_by(order, self.model.id.asc())).scalars())

    def get(self, entity_id: int) -> T:
        ensure_allowed(None, f"get_{self.resource}")
        entity = self.s.get(self.model, entity_id)
        if entity is None:
            raise NotFound(f"{self.model.__name__} {entity_id} not found.")
        return entity

    def list_by_creator(self, creator_id: int) -> list[T]:
        return list(
            self.s.execute(
                select(self.model).where(self.model.creator_id == creator_id).order_by(self.model.id.asc())
            ).scalars()
        )

    def count(self) -> int:
        return self.s.execute(select(func.count()).select_from(self.model)).scalar_one()

    # ---------- Mutations ----------
    def create(self, payload: dict | None, token: str | None) -> T:
        actor = resolve_actor(self.s, self.sessions, token)
        ensure_allowed(actor.role, f"create_{self.resource}")
        fields = clean_content_payload(self.model, payload, partial=False)

        now = datetime.utcnow()
        entity = self.model(**fields, creator_id=actor.id, created_at=now, updated_at=now)
        self.s.add(entity)
        self.s.flush()

        record_event(
            self.s,
            actor=actor,
            action=f"{self.resource}.create",
            entity_type=self.model.__name__,
            entity_id=str(entity.id),
            metadata={"title": entity.title},
        )
        return entity

    def _load_for_mutation(self, entity_id: int, token: str | None, verb: str) -> tuple[User, T]:
        actor = resolve_actor(self.s, self.sessions, token)
        entity = self.s.get(self.model, entity_id)
        if entity is None:
            raise NotFound(f"{self.model.__name__} {entity_id} not found.")
        ensure_allowed(actor.role, f"{verb}_{self.resource}", Ownership(actor_id=actor.id, owner_id=entity.creator_id))
        return actor, entity

    def update(self, entity_id: int, payload: dict | None, token: str | None) -> T:
        actor, entity = self._load_for_mutation(entity_id, token, "update")
        fields = clean_content_payload(self.model, payload, partial=True)

        changes = {}
        for name, new_value in fields.items():
            old_value = getattr(entity, name)
            if new_value != old_value:
                changes[name] = {"old": old_value, "new": new_value}
                setattr(entity, name, new_value)
        if changes:
            entity.updated_at = datetime.utcnow()
        self.s.flush()

        record_event(
            self.s,
            actor=actor,
            action=f"{self.resource}.edit",
            entity_type=self.model.__name__,
            entity_id=str(entity.id),
            metadata={"title": entity.title, "changes": changes},
        )
        return entity

    def delete(self, entity_id: int, token: str | None) -> None:
        actor, entity = self._load_for_mutation(entity_id, token, "delete")

        # Dependent rows go with the entity regardless of backend cascade support.
        column = TARGET_COLUMNS.get(self.resource)
        if column is not None:
            self.s.execute(delete(Comment).where(getattr(Comment, column) == entity.id))
        if self.model is Event:
            self.s.execute(delete(EventRegistration).where(EventRegistration.event_id == entity.id))

        title = entity.title
        self.s.delete(entity)
        self.s.flush()

        record_event(
            self.s,
            actor=actor,
            action=f"{self.resource}.delete",
            entity_type=self.model.__name__,
            entity_id=str(entity_id),
            metadata={"title": title},
        )
