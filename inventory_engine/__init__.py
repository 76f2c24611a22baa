"""
inventory_engine/__init__.py

Flask application factory for the Inventory Replenishment Engine.

Service surface:
- JSON API blueprint (/api) over the replenishment and landed-cost engine.
- CLI commands for schema creation and demo data.

IMPORTANT:
- Engine components never reach for db.session themselves; routes build a
  repository per request and inject it.
"""

from __future__ import annotations

import click
from flask import Flask, jsonify

from .extensions import csrf, db, migrate
from .logger import configure_logging


def create_app(config_object: str | type = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.inventory import inventory_bp

    app.register_blueprint(inventory_bp)

    # JSON API: clients are not browser forms
    csrf.exempt(inventory_bp)

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed-demo")
    def seed_demo_command():
        """Seed demo suppliers, products and purchase orders."""
        from .seed import seed_demo_data

        seed_demo_data()
        click.echo("Demo data seeded.")

    # ----------------------------------------------------------------------
    # Health
    # ----------------------------------------------------------------------
    @app.route("/")
    def index():
        return jsonify({"service": app.config.get("APP_NAME"), "status": "ok"})

    return app
