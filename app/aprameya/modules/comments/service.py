from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from app.aprameya.audit import record_event
from app.aprameya.errors import NotFound, ValidationError
from app.aprameya.gateway import resolve_actor
from app.aprameya.modules.comments.models import TARGET_COLUMNS, Comment
from app.aprameya.modules.content.models import CONTENT_MODELS
from app.aprameya.rbac import Ownership, ensure_allowed

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.aprameya.sessions import SessionManager

MAX_COMMENT_LENGTH = 5000


def validate_comment_content(payload: dict | None) -> str:
    if not isinstance(payload, dict):
        raise ValidationError("Payload must be a JSON object.")
    content = str(payload.get("content") or "").strip()
    if not content:
        raise ValidationError("Comment content is required.")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters.")
    return content


def parse_comment_target(payload: dict) -> tuple[str, int]:
    """
    Accepts either one of project_id/blog_id/research_id, or
    target_type + target_id. Exactly one target must be given.
    """
    given = [(resource, payload.get(column)) for resource, column in TARGET_COLUMNS.items() if payload.get(column) is not None]
    if payload.get("target_type") is not None:
        given.append((str(payload.get("target_type")).strip().lower(), payload.get("target_id")))
    if len(given) != 1:
        raise ValidationError("A comment needs exactly one target (project, blog or research).")
    resource, raw_id = given[0]
    if resource not in TARGET_COLUMNS:
        raise ValidationError(f"Comments are not supported on {resource!r}.")
    if isinstance(raw_id, bool) or (isinstance(raw_id, float) and not raw_id.is_integer()):
        raise ValidationError("Comment target id must be an integer.")
    try:
        target_id = int(raw_id)
    except (TypeError, ValueError):
        raise ValidationError("Comment target id must be an integer.")
    return resource, target_id


def _ensure_target_exists(s: "Session", resource: str, target_id: int) -> None:
    model = CONTENT_MODELS[resource]
    if s.get(model, target_id) is None:
        raise NotFound(f"{model.__name__} {target_id} not found.")


def list_comments_for_target(s: "Session", resource: str, target_id: int) -> list[Comment]:
    ensure_allowed(None, "list_comment")
    if resource not in TARGET_COLUMNS:
        raise NotFound(f"Comments are not supported on {resource!r}.")
    _ensure_target_exists(s, resource, target_id)
    column = getattr(Comment, TARGET_COLUMNS[resource])
    return list(s.execute(select(Comment).where(column == target_id).order_by(Comment.created_at.asc(), Comment.id.asc())).scalars())


def list_comments_for_user(s: "Session", user_id: int) -> list[Comment]:
    return list(s.execute(select(Comment).where(Comment.user_id == user_id).order_by(Comment.id.desc())).scalars())


def create_comment(s: "Session", sessions: "SessionManager", payload: dict | None, token: str | None) -> Comment:
    actor = resolve_actor(s, sessions, token)
    ensure_allowed(actor.role, "create_comment")
    content = validate_comment_content(payload)
    resource, target_id = parse_comment_target(payload)
    _ensure_target_exists(s, resource, target_id)

    now = datetime.utcnow()
    comment = Comment(content=content, user_id=actor.id, created_at=now, updated_at=now)
    setattr(comment, TARGET_COLUMNS[resource], target_id)
    s.add(comment)
    s.flush()

    record_event(
        s,
        actor=actor,
        action="comment.create",
        entity_type="Comment",
        entity_id=str(comment.id),
        metadata={"target_type": resource, "target_id": target_id},
    )
    return comment


def _load_comment(s: "Session", comment_id: int) -> Comment:
    comment = s.get(Comment, comment_id)
    if comment is None:
        raise NotFound(f"Comment {comment_id} not found.")
    return comment


def update_comment(
    s: "Session", sessions: "SessionManager", comment_id: int, payload: dict | None, token: str | None
) -> Comment:
    actor = resolve_actor(s, sessions, token)
    comment = _load_comment(s, comment_id)
    ensure_allowed(actor.role, "update_comment", Ownership(actor_id=actor.id, owner_id=comment.user_id))
    content = validate_comment_content(payload)

    old = comment.content
    comment.content = content
    comment.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=actor,
        action="comment.edit",
        entity_type="Comment",
        entity_id=str(comment.id),
        metadata={"changes": {"content": {"old": old, "new": content}}},
    )
    return comment


def delete_comment(s: "Session", sessions: "SessionManager", comment_id: int, token: str | None) -> None:
    actor = resolve_actor(s, sessions, token)
    comment = _load_comment(s, comment_id)
    ensure_allowed(actor.role, "delete_comment", Ownership(actor_id=actor.id, owner_id=comment.user_id))

    resource, target_id = comment.target
    author_id = comment.user_id
    s.delete(comment)
    s.flush()

    record_event(
        s,
        actor=actor,
        action="comment.delete",
        entity_type="Comment",
        entity_id=str(comment_id),
        metadata={"target_type": resource, "target_id": target_id, "author_id": author_id},
    )
