import logging

import click
from flask import Flask, request, jsonify
from flask_migrate import Migrate
from sqlalchemy import inspect

from config import Config
from routes import (
    health_bp,
    auth_bp,
    provider_bp,
    service_bp,
    vehicle_bp,
    booking_bp,
    review_bp,
    chat_bp,
    notification_bp,
)
from models import db
from domain.chat import init_chat_feed
from domain.errors import DomainError
from utils.seed import seed_roles
from utils.auth_context import load_current_user
from security.csrf import csrf_protect

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    for bp in (
        health_bp,
        auth_bp,
        provider_bp,
        service_bp,
        vehicle_bp,
        booking_bp,
        review_bp,
        chat_bp,
        notification_bp,
    ):
        app.register_blueprint(bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    init_chat_feed(app)

    # Seed default roles at startup (idempotent); skipped until tables exist
    with app.app_context():
        if inspect(db.engine).has_table("roles"):
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    app.before_request(csrf_protect)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    @app.errorhandler(DomainError)
    def _domain_error(exc):
        logger.info("%s %s -> %s: %s", request.method, request.path, exc.status_code, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables and seed roles (local development)."""
        db.create_all()
        created = seed_roles()
        click.echo(f"Database initialised (new roles: {', '.join(created) or 'none'})")

    @app.cli.command("recompute-ratings")
    def recompute_ratings():
        """Recompute every provider's rating from its reviews."""
        from models.provider import Provider
        from domain.reviews import recompute_provider_rating

        ids = [p.id for p in Provider.query.all()]
        for provider_id in ids:
            recompute_provider_rating(provider_id)
        db.session.commit()
        click.echo(f"Recomputed ratings for {len(ids)} providers")

    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Grant ADMIN to a user by email (bootstrap)."""
        from models.user import User, Role
        from security.rbac import ADMIN

        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name=ADMIN).first()
        if not admin_role:
            admin_role = Role(name=ADMIN)
            db.session.add(admin_role)

        if admin_role not in user.roles:
            user.roles.append(admin_role)
        db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
