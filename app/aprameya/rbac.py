from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import g

from app.aprameya.constants import CONTENT_RESOURCES, PUBLIC_READ_RESOURCES, PUBLISHER_ROLES, Role
from app.aprameya.errors import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)

READ_VERBS = frozenset({"list", "get"})
CONTENT_VERBS = frozenset({"list", "get", "create", "update", "delete"})


@dataclass(frozen=True)
class Ownership:
    """Who is acting, and who owns the target resource."""

    actor_id: int | None
    owner_id: int | None

    @property
    def is_owner(self) -> bool:
        return self.actor_id is not None and self.actor_id == self.owner_id


def effective_role(role: Role | str | None) -> Role | None:
    """
    None stays None (unauthenticated). Anything unrecognized is treated as the
    least privileged role rather than an error.
    """
    if role is None:
        return None
    return Role.parse(role) or Role.ASPIRANT


def split_action(action: str) -> tuple[str, str | None]:
    """
    "create_project" -> ("create", "project"); bare verbs apply to content:
    "update" -> ("update", None). "set_user_role" -> ("set_role", "user").
    """
    action = (action or "").strip().lower()
    if action == "set_user_role":
        return "set_role", "user"
    verb, _, resource = action.partition("_")
    return verb, (resource or None)


def _owner_or_admin(role: Role, ownership: Ownership | None) -> bool:
    if role is Role.ADMIN:
        return True
    return ownership is not None and ownership.is_owner


def can_perform(actor_role: Role | str | None, action: str, ownership: Ownership | None = None) -> bool:
    """
    Pure allow/deny decision over (role, action, ownership). No I/O.

    `actor_role` is None for an unauthenticated actor. Unknown actions are denied.
    """
    verb, resource = split_action(action)
    is_content = resource is None or resource in CONTENT_RESOURCES

    # Public reads, even for anonymous actors.
    if verb in READ_VERBS and (resource is None or resource in PUBLIC_READ_RESOURCES):
        return True

    role = effective_role(actor_role)
    if role is None:
        return False

    if is_content:
        if verb not in CONTENT_VERBS:
            return False
        if role not in PUBLISHER_ROLES:
            return False
        if verb == "create":
            return True
        # update / delete: admin bypasses ownership; core team must own it.
        return _owner_or_admin(role, ownership)

    if resource == "user":
        # list_user / get_user (another user's record) / set_role
        return role is Role.ADMIN and verb in ("list", "get", "set_role")
    if resource == "users":
        return role is Role.ADMIN and verb == "list"

    if resource == "profile":
        return verb in ("get", "update") and _owner_or_admin(role, ownership)

    if resource == "message":
        if verb in ("list", "get", "create"):
            return role in PUBLISHER_ROLES
        if verb == "delete":
            return _owner_or_admin(role, ownership)
        return False

    if resource == "comment":
        if verb == "create":
            return True
        if verb in ("update", "delete"):
            return _owner_or_admin(role, ownership)
        return False

    if resource == "registration":
        if verb == "create":
            # Registering someone else is never allowed, not even for admins.
            return ownership is None or ownership.is_owner
        if verb in ("delete", "cancel"):
            return _owner_or_admin(role, ownership)
        if verb == "list":
            # An event's attendee list.
            return role in PUBLISHER_ROLES
        return False

    return False


def ensure_allowed(actor_role: Role | str | None, action: str, ownership: Ownership | None = None) -> None:
    """Raise Unauthenticated/Forbidden when can_perform() denies."""
    if can_perform(actor_role, action, ownership):
        return
    if actor_role is None:
        raise Unauthenticated()
    logger.warning(
        "Forbidden: role=%s action=%s actor=%s owner=%s",
        actor_role,
        action,
        ownership.actor_id if ownership else None,
        ownership.owner_id if ownership else None,
    )
    raise Forbidden()


def require_action(action: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Route decorator for actions that need no ownership information
    (listing users, reading the core team chat, ...).
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user = getattr(g, "current_user", None)
            ensure_allowed(user.role if user else None, action)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
