"""General service information endpoints."""
from flask import Blueprint, current_app, jsonify, request

bp = Blueprint("general", __name__, url_prefix="/api/general")

DEFAULT_LANGUAGE = "en-US"


@bp.route("/version")
def version():
    """Version of the running service."""
    cfg = current_app.config.get("APP_CONFIG")
    return jsonify(getattr(cfg, "version", None) or "0.0.0")


@bp.route("/language")
def language():
    """First language the browser asks for (Accept-Language), e.g. "en-US"."""
    header = request.headers.get("Accept-Language", "")
    first = header.split(";")[0].split(",")[0].strip()
    return jsonify(first or DEFAULT_LANGUAGE)
