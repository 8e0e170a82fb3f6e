"""Flask application factory and bootstrap.

This module provides the create_app() factory function that wires the
shared caches, the repository and the blueprints together.
"""
from __future__ import annotations
from typing import Optional

from flask import Flask

from dataservice.config import AppConfig, load_settings
from dataservice.core.cryptograph import FernetCryptograph
from dataservice.core.directory import Connector, load_connector
from dataservice.core.repository import ResourceRepository
from dataservice.core.schema import SchemaCache
from dataservice.core.session_cache import SessionCache


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    connector: Optional[Connector] = None,
    repository: Optional[ResourceRepository] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (default: load_settings())
        connector: Directory connector (default: imported from cfg.directory_connector)
        repository: Fully built repository, overrides cfg/connector wiring

    Raises:
        RuntimeError: If no repository or connector can be obtained
    """
    cfg = cfg or load_settings()

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.json.sort_keys = False

    if repository is None:
        repository = build_repository(cfg, connector)
    app.config["REPOSITORY"] = repository

    # Register blueprints
    from dataservice.api import errors, general, health, resources

    app.register_blueprint(health.bp)
    app.register_blueprint(general.bp)
    app.register_blueprint(resources.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    print(f"[flask_app] Resource API registered at /api/resources (version {cfg.version})")
    print(f"[flask_app] Session TTL={cfg.session_ttl_minutes}m, max sessions={cfg.session_max_entries}")

    return app


def build_repository(cfg: AppConfig, connector: Optional[Connector] = None) -> ResourceRepository:
    """Build the repository and its process-wide caches from settings."""
    if connector is None:
        if not cfg.directory_connector:
            raise RuntimeError("DIRECTORY_CONNECTOR is required (format: 'module:callable').")
        connector = load_connector(cfg.directory_connector)

    sessions = SessionCache(ttl_minutes=cfg.session_ttl_minutes, max_entries=cfg.session_max_entries)
    return ResourceRepository(
        sessions=sessions,
        schemas=SchemaCache(sessions),
        cryptograph=FernetCryptograph(default_key=cfg.encryption_key),
        connector=connector,
        encryption_key=cfg.encryption_key,
    )
