"""Generic resource endpoints over the directory.

Thin HTTP glue: every route parses its parameters and delegates to the
ResourceRepository stored in ``app.config["REPOSITORY"]``. Errors raised by
the core are rendered by ``dataservice.api.errors``.

Session handling:
    GET /api/resources/init returns a token; every other route expects it in
    the ``token`` header. A 409 response means the token is unknown or
    expired and ``init`` must be called again.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from flask import Blueprint, current_app, jsonify, request

from dataservice.core.exceptions import ValidationError
from dataservice.core.query import parse_order_by
from dataservice.core.repository import ResourceRepository

bp = Blueprint("resources", __name__, url_prefix="/api/resources")

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "1", "yes"}


# ─────────────────────────────────────────────────────────────────────────────
# Request Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _repo() -> ResourceRepository:
    return current_app.config["REPOSITORY"]


def _token() -> Optional[str]:
    return request.headers.get("token")


def _default_culture() -> str:
    cfg = current_app.config.get("APP_CONFIG")
    return getattr(cfg, "default_culture", None) or "en-US"


def _attributes() -> Optional[List[str]]:
    """Parse ``?attributes=A,B,C``; None when absent."""
    raw = request.args.get("attributes", "")
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return names or None


def _bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUE_VALUES


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer") from exc


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


# ─────────────────────────────────────────────────────────────────────────────
# Session
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/init", methods=["GET"])
def initialize():
    """Open (or reuse) a directory session and return its token."""
    token = _repo().initialize(_token(), request.args.get("connection"))
    return jsonify(token)


# ─────────────────────────────────────────────────────────────────────────────
# Read
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/search", methods=["GET"])
def search():
    """Search resources: ?query=&attributes=&pageSize=&index=&resolveRef=&orderBy=A:asc,B:desc"""
    result = _repo().get_resource_by_query(
        _token(),
        request.args.get("query", ""),
        _attributes(),
        page_size=_int_arg("pageSize", 0),
        index=_int_arg("index", 0),
        resolve_ref=_bool_arg("resolveRef"),
        order_by=parse_order_by(request.args.get("orderBy")),
    )
    return jsonify(result.to_dict())


@bp.route("/count", methods=["GET"])
def count():
    return jsonify(_repo().get_resource_count(_token(), request.args.get("query", "")))


@bp.route("/currentuser", methods=["GET"])
def current_user():
    """Person resource of ?accountName=."""
    resource = _repo().get_current_user(_token(), request.args.get("accountName", ""), _attributes())
    return jsonify(resource.to_dict())


@bp.route("/schema/<type_name>", methods=["GET"])
def schema(type_name: str):
    culture = request.args.get("culture") or _default_culture()
    return jsonify(_repo().get_schema(_token(), type_name, culture))


@bp.route("/<object_id>", methods=["GET"])
def get_resource(object_id: str):
    """Get one resource: ?attributes=&culture=&resolveRef=&format=simple|full"""
    resource = _repo().get_resource_by_id(
        _token(),
        object_id,
        _attributes(),
        culture=request.args.get("culture") or _default_culture(),
        include_permission=request.args.get("format", "simple").strip().lower() == "full",
        resolve_ref=_bool_arg("resolveRef"),
    )
    return jsonify(resource.to_dict())


# ─────────────────────────────────────────────────────────────────────────────
# Write
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("", methods=["POST"])
@bp.route("/", methods=["POST"])
def create_resource():
    """Create a resource; answers 201 with the new ObjectID (202 if pending approval)."""
    object_id = _repo().create_resource(_token(), _json_body())
    return jsonify(object_id), 201


@bp.route("", methods=["PATCH"])
@bp.route("/", methods=["PATCH"])
def update_resource():
    """Update a resource; the body must carry ObjectID and ObjectType."""
    _repo().update_resource(_token(), _json_body())
    return "", 204


@bp.route("/<object_id>", methods=["DELETE"])
def delete_resource(object_id: str):
    _repo().delete_resource(_token(), object_id)
    return "", 204


@bp.route("/values/add", methods=["POST"])
def add_values():
    """Body: {"id": ..., "attributeName": ..., "values": [...]}"""
    payload = _json_body()
    _repo().add_values_to_resource(
        _token(), payload.get("id"), payload.get("attributeName"), payload.get("values") or []
    )
    return "", 204


@bp.route("/values/remove", methods=["POST"])
def remove_values():
    """Body: {"id": ..., "attributeName": ..., "values": [...]}"""
    payload = _json_body()
    _repo().remove_values_from_resource(
        _token(), payload.get("id"), payload.get("attributeName"), payload.get("values") or []
    )
    return "", 204


@bp.route("/approve/<object_id>/<decision>", methods=["POST"])
def approve(object_id: str, decision: str):
    """Approve (``true``) or reject (``false``) a request; optional body {"reason": ...}."""
    decision = decision.strip().lower()
    if decision not in {"true", "false"}:
        raise ValidationError("approve must be true or false")

    payload = request.get_json(silent=True) or {}
    reason = payload.get("reason") if isinstance(payload, dict) else None
    _repo().approve(_token(), object_id, decision == "true", reason)
    return "", 204
