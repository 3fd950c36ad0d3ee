import logging
import os
import sys
from datetime import datetime

# Alembic
from alembic import command
from alembic.config import Config
from dotenv import load_dotenv
from flask import Flask, render_template
from logtail import LogtailHandler

from models import db

# Blueprints
from modules.admin.routes import admin_bp
from modules.auth.routes import auth_bp, login_manager
from modules.common.client import init_client
from modules.portfolio.helpers import register_filters
from modules.portfolio.routes import portfolio_bp

load_dotenv()


def _is_production() -> bool:
    return os.getenv("FLASK_ENV") == "production" or os.getenv("ENV") == "production"


# -------------------- Auto Alembic ---------------------
def run_auto_migrations(app: Flask) -> None:
    from sqlalchemy import create_engine, inspect

    if str(app.config.get("AUTO_MIGRATE", "1")) != "1":
        return

    db_url = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if db_url.startswith("sqlite"):
        app.logger.info("AUTO_MIGRATE skipped (SQLite dev).")
        return

    cfg = Config(os.path.join(app.root_path, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(app.root_path, "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)

    try:
        with app.app_context():
            command.upgrade(cfg, "head")
        app.logger.info("Alembic migrations applied (upgrade head).")
        return
    except Exception as e1:
        msg1 = str(e1) or ""
        app.logger.error(f"Alembic upgrade failed: {msg1}")

    # Tables created before Alembic was wired in: adopt them instead of failing.
    if "already exists" in msg1 or "DuplicateTable" in msg1:
        try:
            existing = set(inspect(create_engine(db_url)).get_table_names())
            if {"profile", "projects"} <= existing:
                with app.app_context():
                    command.stamp(cfg, "head")
                app.logger.warning("Alembic stamped existing schema to head.")
        except Exception as e2:
            app.logger.error(f"Alembic stamp fallback failed: {e2}")


# -------------------- App factory ----------------------
def create_app(config=None):
    app = Flask(__name__, template_folder="templates", static_folder="static")

    # Logging
    handlers = [logging.StreamHandler(sys.stdout)]
    token = os.getenv("LOGTAIL_TOKEN")
    if token:
        handlers.append(LogtailHandler(source_token=token))
    logging.basicConfig(level=logging.INFO, handlers=handlers)
    app.logger.handlers = handlers
    app.logger.setLevel(logging.INFO)

    # Core config
    secret = os.getenv("SECRET_KEY") or os.getenv("FLASK_SECRET_KEY") or "dev-secret-key"
    app.config["SECRET_KEY"] = secret

    db_url = os.getenv("DATABASE_URL") or "sqlite:///portfolio.db"
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    app.config["SQLALCHEMY_DATABASE_URI"] = db_url
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["MAX_CONTENT_LENGTH"] = 5 * 1024 * 1024  # 5MB uploads

    app.config["STORAGE_ROOT"] = os.getenv("STORAGE_ROOT") or os.path.join(app.instance_path, "storage")
    app.config["STORAGE_PUBLIC_URL"] = os.getenv("STORAGE_PUBLIC_URL", "/storage")
    app.config["REDIS_URL"] = os.getenv("REDIS_URL") or None
    app.config["PAGE_CACHE_TTL"] = int(os.getenv("PAGE_CACHE_TTL", "3600"))
    app.config["PORTFOLIO_FETCH_WORKERS"] = int(os.getenv("PORTFOLIO_FETCH_WORKERS", "7"))
    app.config["AUTO_MIGRATE"] = os.getenv("AUTO_MIGRATE", "1")

    if not _is_production():
        app.config["TEMPLATES_AUTO_RELOAD"] = True

    if _is_production():
        app.config.update(
            SESSION_COOKIE_SECURE=True,
            SESSION_COOKIE_SAMESITE="Lax",
            REMEMBER_COOKIE_SECURE=True,
        )
        from werkzeug.middleware.proxy_fix import ProxyFix

        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    if config:
        app.config.update(config)

    # Extensions
    db.init_app(app)
    login_manager.init_app(app)
    init_client(app, app.config.get("PORTFOLIO_CLIENT"))
    register_filters(app)

    # Blueprints
    app.register_blueprint(portfolio_bp)
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(auth_bp, url_prefix="/admin/auth")

    @app.context_processor
    def inject_globals():
        return dict(now=datetime.utcnow())

    @app.errorhandler(404)
    def not_found(e):
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def srv_error(e):
        app.logger.exception("Unhandled 500 error")
        db.session.rollback()
        return render_template("errors/500.html"), 500

    @app.teardown_request
    def _teardown_request(exc):
        if exc:
            db.session.rollback()

    # Dev sqlite quickstart
    with app.app_context():
        is_sqlite = str(app.config["SQLALCHEMY_DATABASE_URI"]).startswith("sqlite")
        if is_sqlite and not _is_production():
            db.create_all()

    run_auto_migrations(app)
    return app
