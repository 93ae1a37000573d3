import logging
import uuid

import click
from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash

from certchain_app import admin_routes, auth_routes, cert_routes
from certchain_app.config import Config
from certchain_app.database import APPROVAL_NONE, ROLE_ADMIN, Account, db
from certchain_app.errors import CertChainError
from certchain_app.logging_config import configure_logging
from certchain_app.services import EXTENSION_KEY, build_services

logger = logging.getLogger(__name__)


def create_app(config=Config, ledger=None, content_store=None, notifier=None):
    # ---------------- FLASK SETUP ----------------
    app = Flask(__name__)
    app.config.from_object(config)

    if not app.testing:
        configure_logging(app.config["LOG_LEVEL"], app.config.get("LOG_FILE"))

    CORS(app, origins=[app.config["FRONTEND_ORIGIN"]], supports_credentials=True)
    db.init_app(app)

    with app.app_context():
        db.create_all()
        app.extensions[EXTENSION_KEY] = build_services(
            app.config, ledger=ledger, content_store=content_store, notifier=notifier
        )

    app.register_blueprint(auth_routes.bp)
    app.register_blueprint(cert_routes.bp)
    app.register_blueprint(admin_routes.bp)

    register_request_logging(app)
    register_error_handlers(app)
    register_commands(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


# ---------------- REQUEST LOGGING ----------------
def register_request_logging(app):
    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def _log_request(response):
        logger.info(
            "%s %s -> %s", request.method, request.path, response.status_code,
            extra={
                "request_id": g.get("request_id"),
                "route": request.url_rule.rule if request.url_rule else request.path,
                "remote_addr": request.remote_addr,
                "status": response.status_code,
            },
        )
        response.headers["X-Request-ID"] = g.get("request_id", "")
        return response


# ---------------- ERRORS ----------------
def register_error_handlers(app):
    @app.errorhandler(CertChainError)
    def _domain_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _http_error(err):
        message = err.description
        if err.code == 404:
            message = f"Route {request.method} {request.path} not found"
        return jsonify({"message": message}), err.code

    @app.errorhandler(Exception)
    def _unexpected(err):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "Internal server error"}), 500


# ---------------- CLI ----------------
def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create database tables."""
        db.create_all()
        click.echo("Database initialised")

    @app.cli.command("create-admin")
    @click.option("--name", prompt=True)
    @click.option("--email", prompt=True)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--organization", default=None)
    def create_admin(name, email, password, organization):
        """Create an admin account without the signup secret."""
        accounts = app.extensions[EXTENSION_KEY].accounts
        if accounts.find_by_email(email) is not None:
            raise click.ClickException(f"{email} already exists")
        accounts.insert(Account(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            organization=organization,
            role=ROLE_ADMIN,
            approval_status=APPROVAL_NONE,
        ))
        click.echo(f"Admin {email} created")


if __name__ == "__main__":
    create_app().run(port=8080, debug=False)
