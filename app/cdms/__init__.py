import logging

from flask import Flask, jsonify
from dotenv import load_dotenv

from app.cdms.config import load_config
from app.cdms.db import init_db
from app.cdms.errors import DocumentControlError
from app.cdms.identity import IdentityProvider
from app.cdms.routes import bp as routes_bp
from app.cdms.modules.document_control.admin import bp as doc_control_bp
from app.cdms.modules.workflows.admin import bp as workflows_bp, types_bp as document_types_bp
from app.cdms.state import init_state
from app.cdms.storage import StateStore, StorageError, state_store_from_config


def create_app(*, store: StateStore | None = None, ids: IdentityProvider | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    backend = (app.config.get("STATE_BACKEND") or "sql").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if backend == "sql" and str(app.config.get("DATABASE_URL") or "").startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if backend == "memory":
            raise RuntimeError("STATE_BACKEND=memory is not allowed in production.")

    if store is None:
        sm = None
        if backend == "sql":
            init_db(app)
            sm = app.extensions["sqlalchemy_sessionmaker"]
        store = state_store_from_config(app.config, sm)

    # Storage config check (fail loudly on misconfiguration)
    if backend == "s3":
        missing_s3 = [k for k in ("S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY") if not app.config.get(k)]
        if missing_s3:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))

    init_state(app, store, ids=ids)

    app.register_blueprint(routes_bp)
    app.register_blueprint(doc_control_bp, url_prefix="/api/documents")
    app.register_blueprint(workflows_bp, url_prefix="/api/workflows")
    app.register_blueprint(document_types_bp, url_prefix="/api/document-types")

    @app.errorhandler(DocumentControlError)
    def _err_document_control(e: DocumentControlError):  # type: ignore[no-redef]
        app.logger.warning("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(StorageError)
    def _err_storage(e: StorageError):  # type: ignore[no-redef]
        app.logger.exception("Storage failure: %s", e)
        return jsonify({"error": "StorageError", "message": str(e)}), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return jsonify({"error": "NotFound", "message": "Not found."}), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500")
        return jsonify({"error": "InternalServerError", "message": "Internal server error."}), 500

    # Startup logging
    logging.getLogger(__name__).info("create_app() complete; state backend=%s", backend)

    return app
