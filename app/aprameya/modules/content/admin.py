from __future__ import annotations

from flask import Blueprint, jsonify

from app.aprameya.db import db_session
from app.aprameya.gateway import ContentGateway
from app.aprameya.modules.content.models import Blog, Event, OwnedContent, Project, ResearchItem
from app.aprameya.utils import current_token, request_payload, session_manager

bp = Blueprint("content", __name__)

# URL collection name -> model
COLLECTIONS: dict[str, type[OwnedContent]] = {
    "projects": Project,
    "blogs": Blog,
    "research": ResearchItem,
    "events": Event,
}


def _gateway(model: type[OwnedContent]) -> ContentGateway:
    return ContentGateway(db_session(), session_manager(), model)


def _register_collection(collection: str, model: type[OwnedContent]) -> None:
    def list_view():
        return jsonify([e.to_dict() for e in _gateway(model).list()])

    def create_view():
        gw = _gateway(model)
        entity = gw.create(request_payload(), current_token())
        gw.s.commit()
        return jsonify(entity.to_dict()), 201

    def detail_view(entity_id: int):
        return jsonify(_gateway(model).get(entity_id).to_dict())

    def update_view(entity_id: int):
        gw = _gateway(model)
        entity = gw.update(entity_id, request_payload(), current_token())
        gw.s.commit()
        return jsonify(entity.to_dict())

    def delete_view(entity_id: int):
        gw = _gateway(model)
        gw.delete(entity_id, current_token())
        gw.s.commit()
        return jsonify({"success": True})

    bp.add_url_rule(f"/{collection}", f"{collection}_list", list_view, methods=["GET"])
    bp.add_url_rule(f"/{collection}", f"{collection}_create", create_view, methods=["POST"])
    bp.add_url_rule(f"/{collection}/<int:entity_id>", f"{collection}_detail", detail_view, methods=["GET"])
    bp.add_url_rule(f"/{collection}/<int:entity_id>", f"{collection}_update", update_view, methods=["PATCH", "PUT"])
    bp.add_url_rule(f"/{collection}/<int:entity_id>", f"{collection}_delete", delete_view, methods=["DELETE"])


for _collection, _model in COLLECTIONS.items():
    _register_collection(_collection, _model)
