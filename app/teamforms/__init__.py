import logging

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.teamforms.config import load_config
from app.teamforms.db import db_session, init_db, teardown_db_session
from app.teamforms.errors import ServiceError
from app.teamforms.rbac import build_role_rights
from app.teamforms.routes import bp as routes_bp
from app.teamforms.auth import bp as auth_bp, load_current_user
from app.teamforms.modules.users.admin import bp as users_bp
from app.teamforms.modules.teams.admin import bp as teams_bp
from app.teamforms.modules.questions.admin import bp as questions_bp
from app.teamforms.modules.templates.admin import bp as templates_bp

API_PREFIX = "/v1"


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    app.extensions["role_rights"] = build_role_rights()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(users_bp, url_prefix=API_PREFIX)
    app.register_blueprint(teams_bp, url_prefix=API_PREFIX)
    app.register_blueprint(questions_bp, url_prefix=API_PREFIX)
    app.register_blueprint(templates_bp, url_prefix=API_PREFIX)

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(ServiceError)
    def _service_error(e: ServiceError):  # type: ignore[no-redef]
        if getattr(g, "db_session", None) is not None:
            g.db_session.rollback()
        if e.http_status >= 500:
            app.logger.error("Service error %s: %s (request_id=%s)", e.kind, e.message, getattr(g, "request_id", None))
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_permission", None)
        if missing:
            app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return jsonify({"code": 403, "kind": "Forbidden", "message": "Forbidden"}), 403

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return jsonify({"code": e.code, "kind": e.name.replace(" ", ""), "message": e.description}), e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s path=%s)", getattr(g, "request_id", None), request.path)
        if getattr(g, "db_session", None) is not None:
            db_session().rollback()
        return jsonify({"code": 500, "kind": "InternalServerError", "message": "Internal Server Error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
