# backend/backoffice/__init__.py
from flask import Flask, request

from .config import AuthSettings, Config
from .extensions import db, migrate
from .logging_config import configure_logging


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Fails fast (RuntimeError) when JWT_SECRET is missing
    app.extensions["auth_settings"] = AuthSettings.from_config(app.config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.dashboard import dashboard_bp
    from .routes.products import products_bp
    from .routes.stock import stock_bp
    from .routes.orders import orders_bp
    from .routes.scan_orders import scan_orders_bp
    from .routes.charges import charges_bp
    from .routes.ads_costs import ads_costs_bp
    from .routes.salaries import salaries_bp
    from .routes.admins import admins_bp
    from .routes.pages import pages_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(scan_orders_bp)
    app.register_blueprint(charges_bp)
    app.register_blueprint(ads_costs_bp)
    app.register_blueprint(salaries_bp)
    app.register_blueprint(admins_bp)
    app.register_blueprint(pages_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)

    allowed_origins = {
        origin.strip()
        for origin in (app.config.get("CORS_ORIGINS") or "").split(",")
        if origin.strip()
    }

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    app.logger.info("Back-office API ready (env=%s)", app.config.get("APP_ENV"))
    return app
