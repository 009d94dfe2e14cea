from flask import Flask, jsonify
from flask_migrate import Migrate

from config import Config
from models import db
from routes import (
    health_bp, auth_bp, package_bp, checkout_bp, webhook_bp,
    booking_bp, dashboard_bp, contact_bp, post_bp, audit_bp,
)
from services.gateway import build_gateway
from utils.errors import AppError, ConfigurationError, GatewayError


def create_app(config_object=Config, gateway=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(package_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(post_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Payment gateway: injected by tests, Stripe otherwise
    app.extensions["payment_gateway"] = gateway or build_gateway(app.config)

    @app.errorhandler(AppError)
    def _app_error(exc):
        if isinstance(exc, GatewayError):
            # provider detail stays in the logs
            app.logger.error("Gateway error: %s", exc.message)
            return jsonify(error=GatewayError.PUBLIC_MESSAGE), exc.status_code
        if isinstance(exc, ConfigurationError):
            app.logger.error("Configuration error: %s", exc.message)
            return jsonify(error="Server is not configured"), exc.status_code
        if exc.status_code >= 500:
            app.logger.error("%s: %s", type(exc).__name__, exc.message)
        return jsonify(error=exc.message), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        # JSON API only
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from models.user import User
from security.password import hash_password
from utils.seed import seed_packages

def register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.option("--name", default=None, help="Display name.")
    @click.password_option()
    def create_admin(email, name, password):
        """Create an admin login (or reset its password). The email must also be in ALLOWED_ADMINS."""
        email = email.strip().lower()
        try:
            password_hash = hash_password(password)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="password")

        user = User.query.filter_by(email=email).first()
        if not user:
            user = User(email=email, name=name, password_hash=password_hash)
            db.session.add(user)
        else:
            user.password_hash = password_hash
            if name:
                user.name = name
        db.session.commit()

        allowed = {e.lower() for e in app.config.get("ALLOWED_ADMINS", [])}
        if email not in allowed:
            click.echo(f"Warning: {email} is not in ALLOWED_ADMINS and will get 403 on admin routes")
        click.echo(f"{email} can now log in")

    @app.cli.command("seed-packages")
    def seed_packages_command():
        """Create the default package catalog (idempotent)."""
        created = seed_packages()
        for name in created:
            click.echo(f"Created package: {name}")
        click.echo(f"Seeding finished ({len(created)} new)")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=8080)
