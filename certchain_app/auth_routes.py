import logging

from flask import Blueprint, current_app, jsonify, request
from werkzeug.security import check_password_hash, generate_password_hash

from certchain_app.approval import initial_status
from certchain_app.auth import current_account, require_account
from certchain_app.crypto_utils import issue_session_token, verify_secret
from certchain_app.database import APPROVAL_NONE, ROLE_ADMIN, ROLE_ISSUER, Account, utcnow
from certchain_app.errors import Conflict, Forbidden, Unauthorized
from certchain_app.schemas import AdminSignupRequest, LoginRequest, SignupRequest, parse
from certchain_app.services import services

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(account, status=200):
    token = issue_session_token(account, services().cipher)
    return jsonify({"token": token, "user": account.to_dict()}), status


def _create_account(data, role, approval_status):
    svc = services()
    if svc.accounts.find_by_email(data.email) is not None:
        raise Conflict("Email already in use")
    account = Account(
        name=data.name,
        email=data.email,
        password_hash=generate_password_hash(data.password),
        organization=data.organization,
        role=role,
        approval_status=approval_status,
        access_requested_at=utcnow() if role == ROLE_ISSUER else None,
    )
    return svc.accounts.insert(account)


# ---------------- SIGNUP ----------------
@bp.route("/signup", methods=["POST"])
def signup():
    data = parse(SignupRequest, request.get_json(silent=True))
    account = _create_account(data, data.role, initial_status(data.role))
    logger.info("New %s account %s", account.role, account.email)
    return _session_response(account, 201)


@bp.route("/admin-signup", methods=["POST"])
def admin_signup():
    data = parse(AdminSignupRequest, request.get_json(silent=True))
    if not verify_secret(data.admin_secret, current_app.config["ADMIN_SECRET_KEY"]):
        logger.warning("Rejected admin signup for %s: bad secret", data.email)
        raise Forbidden("Invalid admin secret key")
    account = _create_account(data, ROLE_ADMIN, APPROVAL_NONE)
    logger.info("New admin account %s", account.email)
    return _session_response(account, 201)


# ---------------- LOGIN ----------------
@bp.route("/login", methods=["POST"])
def login():
    data = parse(LoginRequest, request.get_json(silent=True))
    svc = services()
    account = svc.accounts.find_by_email(data.email)
    if account is None or not check_password_hash(account.password_hash, data.password):
        raise Unauthorized("Invalid credentials")
    if not account.is_active:
        raise Forbidden("Account is inactive")
    account.last_login_at = utcnow()
    svc.accounts.update(account)
    return _session_response(account)


@bp.route("/me")
@require_account()
def me():
    return jsonify({"user": current_account().to_dict()})


# ---------------- ACCESS REQUEST ----------------
@bp.route("/request-access", methods=["POST"])
@require_account()
def request_access():
    account = services().approvals.request_access(current_account())
    return jsonify({"message": "Access requested", "user": account.to_dict()})
