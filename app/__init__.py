# app/__init__.py
from __future__ import annotations

from flask import Flask, jsonify, render_template, request

from .settings import Config
from .extensions import db, migrate, login_manager, limiter


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # ======================
    # Initialize Extensions
    # ======================
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    # ======================
    # Import Models (CRITICAL)
    # ======================
    from . import models  # noqa: F401

    # ======================
    # Document services (gateway, blob store, renderer, lifecycle)
    # ======================
    from .services.documents import build_document_services

    app.extensions["documents"] = build_document_services(app, db)

    # ======================
    # Global template context (Company identity)
    # ======================
    from .config.company import company_context

    @app.context_processor
    def inject_company():
        return company_context()

    # ======================
    # Register Blueprints
    # ======================
    from .auth import auth
    from .admin import admin_bp
    from .public import public

    app.register_blueprint(auth)
    app.register_blueprint(admin_bp)
    app.register_blueprint(public)

    # ======================
    # Rate limit error handler
    # ======================
    @app.errorhandler(429)
    def ratelimit_handler(e):
        if request.path.startswith("/api/") or request.is_json:
            return jsonify({"success": False, "error": "Too many requests. Please try again later."}), 429
        return "Too many requests. Please try again later.", 429

    # ======================
    # Forbidden handler
    # ======================
    @app.errorhandler(403)
    def forbidden(e):
        return render_template("403.html"), 403

    # ======================
    # Not found handler
    # ======================
    @app.errorhandler(404)
    def not_found(e):
        return render_template("404.html"), 404

    # ======================
    # Upload too large
    # ======================
    @app.errorhandler(413)
    def too_large(e):
        return jsonify({"success": False, "error": "Upload too large."}), 413

    return app
