# backend/almacen/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(config: dict | None = None, storage=None) -> Flask:
    """
    Build the Flask app.

    config: overrides applied on top of Config (tests pass TESTING, DB URI, ...)
    storage: injected StoragePort; when omitted it is chosen by ALMACEN_STORAGE
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401
    from .state import InventoryState
    from .storage import MemoryStorage, SqlStorage

    with app.app_context():
        if app.config["ALMACEN_CREATE_TABLES"]:
            db.create_all()

        if storage is None:
            backend = app.config["ALMACEN_STORAGE"]
            if backend == "memory":
                storage = MemoryStorage()
            elif backend == "sql":
                storage = SqlStorage()
            else:
                raise ValueError(f"Unknown ALMACEN_STORAGE backend: {backend}")

        state = InventoryState.load(storage)
        if app.config["ALMACEN_SEED_ON_START"]:
            written = state.seed_missing()
            if written:
                app.logger.info("Seeded collections: %s", ", ".join(written))

    app.extensions["almacen"] = state

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.movements import movements_bp
    from .routes.incidents import incidents_bp
    from .routes.users import users_bp
    from .routes.settings import settings_bp
    from .routes.reports import reports_bp
    from .routes.errors import register_error_handlers

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(movements_bp)
    app.register_blueprint(incidents_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(reports_bp)
    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
