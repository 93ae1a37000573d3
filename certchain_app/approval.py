"""Issuer approval lifecycle.

    owner  request   none | rejected | approved  -> pending
    admin  approve   pending                     -> approved
    admin  reject    pending                     -> rejected

Owners may only request access, from none, rejected or approved. An approved
issuer who requests again drops back to pending until an admin decides. Only
an active admin may decide a pending request. Admins are implicitly approved
and never pass through this machine.
"""
import logging

from certchain_app.database import (
    APPROVAL_APPROVED,
    APPROVAL_NONE,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    ROLE_ADMIN,
    ROLE_ISSUER,
    utcnow,
)
from certchain_app.errors import Forbidden, InvalidTransition

logger = logging.getLogger(__name__)

REQUESTABLE_FROM = frozenset({APPROVAL_NONE, APPROVAL_REJECTED, APPROVAL_APPROVED})


def initial_status(role: str) -> str:
    return APPROVAL_PENDING if role == ROLE_ISSUER else APPROVAL_NONE


class ApprovalStateMachine:
    def __init__(self, accounts):
        self.accounts = accounts

    def request_access(self, account):
        if account.role != ROLE_ISSUER:
            raise InvalidTransition("Only issuer accounts can request issuing access")
        if account.approval_status not in REQUESTABLE_FROM:
            raise InvalidTransition(
                f"Cannot request access while approval status is '{account.approval_status}'"
            )
        account.approval_status = APPROVAL_PENDING
        account.access_requested_at = utcnow()
        self.accounts.update(account)
        logger.info("Account %s requested issuing access", account.email)
        return account

    def approve(self, admin, account):
        return self._decide(admin, account, APPROVAL_APPROVED)

    def reject(self, admin, account):
        return self._decide(admin, account, APPROVAL_REJECTED)

    def _decide(self, admin, account, decision):
        if admin.role != ROLE_ADMIN or not admin.is_active:
            raise Forbidden("Only an active admin can decide access requests")
        if account.role != ROLE_ISSUER or account.approval_status != APPROVAL_PENDING:
            raise InvalidTransition(
                f"Account {account.id} has no pending access request"
            )
        account.approval_status = decision
        if decision == APPROVAL_APPROVED:
            account.approved_at = utcnow()
        self.accounts.update(account)
        logger.info("Admin %s set %s to %s", admin.email, account.email, decision)
        return account
