from dataclasses import dataclass
import logging
import time

from flask import Flask, g, request
from flasgger import Swagger
from flask_cors import CORS

from .config import check_cors, check_secrets, get_config, parse_origins
from .errors import register_error_handlers
from models import DBStorage, SQLUserStore
from services.credentials import CredentialService, TokenSettings
from services.session_guard import SessionGuard
from utils.security import Argon2SecretHasher, TokenCodec

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Session Auth API",
        "version": "1.0.0",
        "description": "Register, log in, refresh and revoke paired access/refresh sessions.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


@dataclass
class AuthExtension:
    """Collaborators built once per app, reachable as app.extensions["session_auth"]."""
    storage: DBStorage
    store: SQLUserStore
    credentials: CredentialService
    guard: SessionGuard


def init_auth(app: Flask) -> AuthExtension:
    cfg = app.config
    storage = DBStorage(cfg["DATABASE_URL"], timeout=cfg["STORE_TIMEOUT_SECONDS"])
    storage.reload()

    store = SQLUserStore(storage)
    hasher = Argon2SecretHasher(
        time_cost=cfg["ARGON2_TIME_COST"],
        memory_cost=cfg["ARGON2_MEMORY_COST"],
        parallelism=cfg["ARGON2_PARALLELISM"],
    )
    codec = TokenCodec(algorithm=cfg["JWT_ALGORITHM"])
    credentials = CredentialService(store, hasher, codec, TokenSettings.from_config(cfg))
    ext = AuthExtension(
        storage=storage,
        store=store,
        credentials=credentials,
        guard=SessionGuard(credentials, store),
    )
    app.extensions["session_auth"] = ext
    return ext


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (tests use it
    to point DATABASE_URL at a temporary database).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    check_secrets(app.config)
    check_cors(app.config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Cross-Origin Resource Sharing; credentials are needed for the refresh cookie
    CORS(
        app,
        resources={r"/*": {"origins": parse_origins(app.config.get("CORS_ORIGINS", "*"))}},
        supports_credentials=True,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)
    ext = init_auth(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.pop("request_started", None)
        if started is not None:
            logger.info(
                "%s %s -> %s in %.1fms",
                request.method,
                request.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
        return response

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        ext.storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Session Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
