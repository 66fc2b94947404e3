from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .clients.controller import register as register_clients
from .common.http import fail, ok
from .container import Container, build_container
from .core.exceptions import DomainError
from .database.bootstrap import apply_indexes, ensure_admin_user, list_collections
from .leads.controller import register as register_leads
from .projects.controller import register as register_projects
from .sales.controller import register as register_sales
from .tasks.controller import register as register_tasks
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return fail(str(e), e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Server Error", 500)


def _register_cors(app: Flask, allowed_origins: str) -> None:
    origins = [o.strip() for o in allowed_origins.split(",") if o.strip()]
    if not origins:
        return
    # The token cookie must ride along on cross-origin calls.
    CORS(app, origins=origins, supports_credentials=True)


def _prepare_database(settings, container: Container) -> None:
    if container.conn is None:
        return
    db = container.conn.db
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_indexes(db)
        logger.info("Indexes ready (collections=%d)", len(list_collections(db)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_admin_user(
            db,
            name=getattr(settings, "SEED_ADMIN_NAME", "Administrator"),
            email=getattr(settings, "SEED_ADMIN_EMAIL"),
            phone=getattr(settings, "SEED_ADMIN_PHONE"),
            password=getattr(settings, "SEED_ADMIN_PASSWORD"),
        )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        container = build_container(settings)
        _prepare_database(settings, container)
    logger.info("crm-backend starting with settings=%s", settings_module)

    _register_error_handlers(app)
    _register_cors(app, str(getattr(settings, "CORS_ORIGINS", "") or ""))

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return ok(message="OK")

    register_users(app, container)
    register_clients(app, container)
    register_projects(app, container)
    register_tasks(app, container)
    register_sales(app, container)
    register_leads(app, container)
    register_attendance(app, container)

    return app
