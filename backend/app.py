import logging
import os
import time
from datetime import datetime, timedelta

from dotenv import load_dotenv
from flask import Flask, current_app, g, jsonify, request, send_from_directory
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from werkzeug.middleware.proxy_fix import ProxyFix

from .auth import auth_bp
from .docs import docs_bp
from .errors import register_error_handlers, register_jwt_callbacks
from .orders import orders_bp
from .products import products_bp
from .security import register_token_checks
from .seed import register_commands
from .storage import DATABASE_EXTENSION_KEY, ensure_indexes, open_database
from .uploads import ensure_upload_directories, upload_directory

load_dotenv()

API_VERSION = "1.0.0"


def create_app(test_config=None, database=None) -> Flask:
    """Create and configure the Flask application.

    ``database`` lets callers supply an already opened MongoDB database handle;
    otherwise one is opened from ``MONGO_URI``.
    """
    app = Flask(__name__)

    # Honor proxy headers when deployed behind a load balancer.
    trusted_proxy_hops_raw = os.getenv("TRUSTED_PROXY_HOPS", "1")
    try:
        trusted_proxy_hops = max(0, int(trusted_proxy_hops_raw))
    except (TypeError, ValueError):
        trusted_proxy_hops = 1
    if trusted_proxy_hops:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=trusted_proxy_hops,
            x_proto=trusted_proxy_hops,
            x_host=trusted_proxy_hops,
            x_port=trusted_proxy_hops,
        )

    # --- Configuration ---
    environment = (
        os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development"
    ).strip().lower()
    app.config["ENVIRONMENT"] = environment
    app.config["API_VERSION"] = API_VERSION
    app.config["JWT_SECRET_KEY"] = os.getenv(
        "JWT_SECRET", "change-me-in-production"
    )
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=1)
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_ERROR_MESSAGE_KEY"] = "message"
    app.config["MONGO_URI"] = os.getenv(
        "MONGO_URI", "mongodb://localhost:27017/ecommerceDB"
    )
    app.config["BCRYPT_ROUNDS"] = int(os.getenv("BCRYPT_ROUNDS", "10"))
    max_upload_mb = int(os.getenv("MAX_UPLOAD_SIZE_MB", "16"))
    app.config["MAX_CONTENT_LENGTH"] = max_upload_mb * 1024 * 1024
    app.config["UPLOAD_FOLDER"] = os.getenv(
        "UPLOAD_FOLDER", os.path.join(app.root_path, "uploads")
    )
    app.config["FRONTEND_URL"] = os.getenv("FRONTEND_URL", "http://localhost:3000")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"], logging.INFO))
    ensure_upload_directories(app)

    # --- Initialize extensions ---
    allowed_origins = [app.config["FRONTEND_URL"].strip()]
    cors_extra = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_extra:
        for origin in cors_extra.split(","):
            trimmed = origin.strip()
            if trimmed:
                allowed_origins.append(trimmed)
    allowed_origins = [origin for origin in allowed_origins if origin]

    CORS(
        app,
        supports_credentials=True,
        origins=allowed_origins or "*",
        methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "x-token"],
        expose_headers=["Content-Range", "X-Content-Range"],
        max_age=86400,
    )

    jwt = JWTManager(app)
    register_jwt_callbacks(jwt)
    register_token_checks(jwt)

    db = database if database is not None else open_database(app)
    app.extensions[DATABASE_EXTENSION_KEY] = db
    ensure_indexes(app, db)

    register_error_handlers(app)
    register_commands(app)

    @app.before_request
    def start_request_timer():
        g.request_started_at = time.perf_counter()

    @app.after_request
    def log_request(response):
        started_at = g.get("request_started_at")
        elapsed_ms = (time.perf_counter() - started_at) * 1000 if started_at else 0.0
        app.logger.info(
            "%s %s %s %.1f ms",
            request.method,
            request.full_path.rstrip("?"),
            response.status_code,
            elapsed_ms,
        )
        return response

    # --- ROUTES ---

    app.register_blueprint(docs_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(orders_bp)

    @app.route("/uploads/products/<path:filename>")
    def serve_product_image(filename: str):
        return send_from_directory(upload_directory("products"), filename)

    @app.route("/uploads/users/<path:filename>")
    def serve_user_image(filename: str):
        return send_from_directory(upload_directory("users"), filename)

    @app.route("/api/health")
    @app.route("/health")
    def health():
        return jsonify(
            {
                "status": "ok",
                "environment": current_app.config["ENVIRONMENT"],
                "timestamp": datetime.utcnow().isoformat() + "Z",
            }
        )

    return app
