from __future__ import annotations

from flask import Blueprint, jsonify

from app.aprameya.db import db_session
from app.aprameya.modules.comments.service import (
    create_comment,
    delete_comment,
    list_comments_for_target,
    update_comment,
)
from app.aprameya.utils import current_token, request_payload, session_manager

bp = Blueprint("comments", __name__)

# URL collection name -> comment target resource
TARGET_COLLECTIONS = {"projects": "project", "blogs": "blog", "research": "research"}


@bp.get("/<any(projects, blogs, research):collection>/<int:target_id>/comments")
def comments_for_target(collection: str, target_id: int):
    comments = list_comments_for_target(db_session(), TARGET_COLLECTIONS[collection], target_id)
    return jsonify([c.to_dict() for c in comments])


@bp.post("/comments")
def comments_create():
    s = db_session()
    comment = create_comment(s, session_manager(), request_payload(), current_token())
    s.commit()
    return jsonify(comment.to_dict()), 201


@bp.route("/comments/<int:comment_id>", methods=["PATCH", "PUT"])
def comments_update(comment_id: int):
    s = db_session()
    comment = update_comment(s, session_manager(), comment_id, request_payload(), current_token())
    s.commit()
    return jsonify(comment.to_dict())


@bp.delete("/comments/<int:comment_id>")
def comments_delete(comment_id: int):
    s = db_session()
    delete_comment(s, session_manager(), comment_id, current_token())
    s.commit()
    return jsonify({"success": True})
