from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.aprameya.db import db_session
from app.aprameya.modules.messages.service import create_message, delete_message, list_messages
from app.aprameya.utils import current_token, request_payload, session_manager

bp = Blueprint("messages", __name__)


@bp.get("/messages")
def messages_list():
    limit = request.args.get("limit", type=int)
    messages = list_messages(db_session(), session_manager(), current_token(), limit=limit)
    return jsonify([m.to_dict() for m in messages])


@bp.post("/messages")
def messages_create():
    s = db_session()
    message = create_message(s, session_manager(), request_payload(), current_token())
    s.commit()
    return jsonify(message.to_dict()), 201


@bp.delete("/messages/<int:message_id>")
def messages_delete(message_id: int):
    s = db_session()
    delete_message(s, session_manager(), message_id, current_token())
    s.commit()
    return jsonify({"success": True})
