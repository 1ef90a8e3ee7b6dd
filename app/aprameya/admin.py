from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session

from app.aprameya.audit import record_event
from app.aprameya.constants import ROLE_VALUES, Role
from app.aprameya.db import db_session
from app.aprameya.errors import NotFound, ValidationError
from app.aprameya.identity import get_user_by_id, list_users, list_users_by_role, set_user_role, update_profile
from app.aprameya.modules.comments.service import list_comments_for_user
from app.aprameya.modules.registrations.service import list_registrations_for_user
from app.aprameya.rbac import Ownership, ensure_allowed, require_action
from app.aprameya.utils import current_token, current_user, request_payload, session_manager

bp = Blueprint("admin", __name__)


# ---------- Members (admin only) ----------
@bp.get("/users")
@require_action("list_users")
def users_list():
    s = db_session()
    role_filter = (request.args.get("role") or "").strip().lower()
    if role_filter:
        if role_filter not in ROLE_VALUES:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(sorted(ROLE_VALUES))}")
        users = list_users_by_role(s, role_filter)
    else:
        users = list_users(s)
    return jsonify([u.to_dict() for u in users])


@bp.get("/users/<int:user_id>")
@require_action("get_user")
def user_detail(user_id: int):
    user = get_user_by_id(db_session(), user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found.")
    return jsonify(user.to_dict())


@bp.patch("/users/<int:user_id>/role")
@require_action("set_user_role")
def user_role_update(user_id: int):
    s = db_session()
    actor = current_user()
    data = request_payload()
    new_role = Role.parse(data.get("role"))
    if new_role is None:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(sorted(ROLE_VALUES))}")

    user = get_user_by_id(s, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found.")
    old_role = user.role
    set_user_role(s, user_id, new_role)
    record_event(
        s,
        actor=actor,
        action="user.role_change",
        entity_type="User",
        entity_id=str(user_id),
        reason=(str(data.get("reason") or "").strip() or None),
        metadata={"old": old_role, "new": new_role.value},
    )
    s.commit()
    current_app.logger.info("Role change user_id=%s %s -> %s by %s", user_id, old_role, new_role.value, actor.username)
    return jsonify(user.to_dict())


# ---------- Own profile ----------
@bp.get("/users/me")
def me():
    return jsonify(current_user().to_dict())


@bp.patch("/users/me")
def me_update():
    s = db_session()
    user = current_user()
    ensure_allowed(user.role, "update_profile", Ownership(actor_id=user.id, owner_id=user.id))
    data = request_payload()

    changes = update_profile(s, user, data)
    record_event(s, actor=user, action="user.profile_update", entity_type="User", entity_id=str(user.id), metadata={"changes": changes})
    s.commit()

    if "password" in changes:
        # Sign out every other device.
        token = current_token()
        removed = session_manager().destroy_all_for_user(user.id)
        new_token = session_manager().create(user.id)

        if session.get("sid") == token:
            session["sid"] = new_token
        current_app.logger.info("Password changed for user_id=%s; %d sessions revoked", user.id, removed)
        body = user.to_dict()
        body["session_token"] = new_token
        return jsonify(body)

    return jsonify(user.to_dict())


@bp.get("/users/me/event-registrations")
def me_registrations():
    user = current_user()
    return jsonify([r.to_dict() for r in list_registrations_for_user(db_session(), user.id)])


@bp.get("/users/me/comments")
def me_comments():
    user = current_user()
    return jsonify([c.to_dict() for c in list_comments_for_user(db_session(), user.id)])
