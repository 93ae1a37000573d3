import logging

from flask import Blueprint, jsonify, request

from certchain_app.auth import current_account, require_account
from certchain_app.database import ROLE_ADMIN
from certchain_app.errors import Forbidden, NotFound
from certchain_app.schemas import ActiveUpdateRequest, RoleUpdateRequest, parse
from certchain_app.services import services

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@bp.before_request
@require_account(ROLE_ADMIN)
def _admin_only():
    return None


def _account_or_404(account_id):
    account = services().accounts.get(account_id)
    if account is None:
        raise NotFound("User not found")
    return account


# ---------------- USERS ----------------
@bp.route("/users")
def list_users():
    return jsonify({"users": [a.to_dict() for a in services().accounts.list_all()]})


@bp.route("/users/<int:account_id>/role", methods=["PATCH"])
def update_role(account_id):
    data = parse(RoleUpdateRequest, request.get_json(silent=True))
    account = _account_or_404(account_id)
    account.role = data.role
    services().accounts.update(account)
    logger.info("Admin %s changed role of %s to %s", current_account().email, account.email, data.role)
    return jsonify({"user": account.to_dict()})


@bp.route("/users/<int:account_id>/active", methods=["PATCH"])
def update_active(account_id):
    data = parse(ActiveUpdateRequest, request.get_json(silent=True))
    account = _account_or_404(account_id)
    if account.id == current_account().id and not data.is_active:
        raise Forbidden("Admins cannot deactivate themselves")
    account.is_active = data.is_active
    services().accounts.update(account)
    logger.info("Admin %s set %s active=%s", current_account().email, account.email, data.is_active)
    return jsonify({"user": account.to_dict()})


# ---------------- ISSUER APPROVAL ----------------
@bp.route("/issuers/pending")
def pending_issuers():
    return jsonify({"users": [a.to_dict() for a in services().accounts.list_pending_issuers()]})


@bp.route("/issuers/<int:account_id>/approve", methods=["POST"])
def approve_issuer(account_id):
    account = services().approvals.approve(current_account(), _account_or_404(account_id))
    return jsonify({"user": account.to_dict()})


@bp.route("/issuers/<int:account_id>/reject", methods=["POST"])
def reject_issuer(account_id):
    account = services().approvals.reject(current_account(), _account_or_404(account_id))
    return jsonify({"user": account.to_dict()})
