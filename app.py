import click
from flask import Flask, request, g, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import DisconnectionError, OperationalError

from config import Config
from routes import health_bp, auth_bp, admin_bp, booking_bp

from models import db
from services.errors import LedgerError, ServiceUnavailable
from utils.seed import bootstrap
from utils.auth_context import load_current_user
from security.csrf import require_csrf


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(booking_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Roles, admin account and optional demo data (idempotent)
    with app.app_context():
        if app.config.get("CREATE_TABLES_ON_STARTUP"):
            db.create_all()
        bootstrap()

    @app.before_request
    def _load_user():
        load_current_user()

    CSRF_EXEMPT_PATHS = {
        "/auth/login",
        "/auth/register",
        "/health",
    }

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if request.path in CSRF_EXEMPT_PATHS:
                return None

            # Bearer clients are not exposed to cross-site cookie replay
            if getattr(g, "user", None) is not None and g.auth_source == "cookie":
                failure = require_csrf()
                if failure:
                    return failure

    @app.errorhandler(LedgerError)
    def _ledger_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(OperationalError)
    @app.errorhandler(DisconnectionError)
    def _datastore_down(err):
        db.session.rollback()
        app.logger.warning("Datastore unavailable: %s", err)
        return _ledger_error(ServiceUnavailable("Service temporarily unavailable"))

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
from models.user import User, Role
from services.reservation import find_unbooked_reservations
from utils.seed import ensure_demo_data

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name="ADMIN").first()
        if not admin_role:
            admin_role = Role(name="ADMIN")
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Create demo salons, artists and a week of slots on an empty database."""
        created = ensure_demo_data()
        click.echo("Demo data created" if created else "Locations already exist, nothing to do")

    @app.cli.command("ledger-check")
    def ledger_check():
        """List reserved slots that have no booking behind them."""
        orphans = find_unbooked_reservations()
        for o in orphans:
            click.echo(
                f"slot {o['slot_id']}: artist={o['artist_id']} location={o['location_id']} "
                f"{o['date']} {o['time']} reserved without booking"
            )
        if orphans:
            raise SystemExit(1)
        click.echo("Ledger consistent")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
