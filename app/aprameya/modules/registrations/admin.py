from __future__ import annotations

from flask import Blueprint, jsonify

from app.aprameya.db import db_session
from app.aprameya.modules.registrations.service import (
    cancel_registration,
    list_registrations_for_event,
    register_for_event,
)
from app.aprameya.utils import current_token, request_payload, session_manager

bp = Blueprint("registrations", __name__)


@bp.post("/event-registrations")
def registrations_create():
    s = db_session()
    registration = register_for_event(s, session_manager(), request_payload(), current_token())
    s.commit()
    return jsonify(registration.to_dict()), 201


@bp.delete("/event-registrations/<int:registration_id>")
def registrations_cancel(registration_id: int):
    s = db_session()
    cancel_registration(s, session_manager(), registration_id, current_token())
    s.commit()
    return jsonify({"success": True})


@bp.get("/events/<int:event_id>/registrations")
def registrations_for_event(event_id: int):
    registrations = list_registrations_for_event(db_session(), session_manager(), event_id, current_token())
    return jsonify([r.to_dict() for r in registrations])
