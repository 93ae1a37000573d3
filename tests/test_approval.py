import pytest

from certchain_app.approval import initial_status
from certchain_app.database import (
    APPROVAL_APPROVED,
    APPROVAL_NONE,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    ROLE_ADMIN,
    ROLE_ISSUER,
    ROLE_VERIFIER,
)
from certchain_app.errors import Forbidden, InvalidTransition


def test_initial_status_by_role():
    assert initial_status(ROLE_ISSUER) == APPROVAL_PENDING
    assert initial_status(ROLE_VERIFIER) == APPROVAL_NONE
    assert initial_status(ROLE_ADMIN) == APPROVAL_NONE


class TestRequestAccess:
    @pytest.mark.parametrize("start", [APPROVAL_NONE, APPROVAL_REJECTED, APPROVAL_APPROVED])
    def test_moves_to_pending(self, svc, make_account, start):
        account = make_account(ROLE_ISSUER, start)
        svc.approvals.request_access(account)
        assert account.approval_status == APPROVAL_PENDING
        assert account.access_requested_at is not None

    def test_rejected_while_pending(self, svc, make_account):
        account = make_account(ROLE_ISSUER, APPROVAL_PENDING)
        with pytest.raises(InvalidTransition):
            svc.approvals.request_access(account)
        assert account.approval_status == APPROVAL_PENDING

    def test_approved_issuer_re_requesting_loses_issuing_rights(self, svc, make_account, admin):
        account = make_account(ROLE_ISSUER, APPROVAL_APPROVED)
        svc.approvals.request_access(account)
        assert not account.can_issue()
        svc.approvals.approve(admin, account)
        assert account.can_issue()

    def test_only_issuers_can_request(self, svc, make_account):
        verifier = make_account(ROLE_VERIFIER, APPROVAL_NONE)
        with pytest.raises(InvalidTransition):
            svc.approvals.request_access(verifier)


class TestDecisions:
    def test_admin_approves_pending_issuer(self, svc, make_account, admin):
        account = make_account(ROLE_ISSUER, APPROVAL_PENDING)
        svc.approvals.approve(admin, account)
        assert account.approval_status == APPROVAL_APPROVED
        assert account.approved_at is not None
        assert account.can_issue()

    def test_admin_rejects_pending_issuer(self, svc, make_account, admin):
        account = make_account(ROLE_ISSUER, APPROVAL_PENDING)
        svc.approvals.reject(admin, account)
        assert account.approval_status == APPROVAL_REJECTED
        assert not account.can_issue()

    def test_rejected_issuer_can_request_again(self, svc, make_account, admin):
        account = make_account(ROLE_ISSUER, APPROVAL_PENDING)
        svc.approvals.reject(admin, account)
        svc.approvals.request_access(account)
        svc.approvals.approve(admin, account)
        assert account.approval_status == APPROVAL_APPROVED

    @pytest.mark.parametrize("start", [APPROVAL_NONE, APPROVAL_APPROVED, APPROVAL_REJECTED])
    def test_only_pending_requests_can_be_decided(self, svc, make_account, admin, start):
        account = make_account(ROLE_ISSUER, start)
        with pytest.raises(InvalidTransition):
            svc.approvals.approve(admin, account)
        with pytest.raises(InvalidTransition):
            svc.approvals.reject(admin, account)

    def test_non_admin_cannot_decide(self, svc, make_account, issuer):
        account = make_account(ROLE_ISSUER, APPROVAL_PENDING)
        with pytest.raises(Forbidden):
            svc.approvals.approve(issuer, account)
        assert account.approval_status == APPROVAL_PENDING

    def test_inactive_admin_cannot_decide(self, svc, make_account):
        admin = make_account(ROLE_ADMIN, APPROVAL_NONE, is_active=False)
        account = make_account(ROLE_ISSUER, APPROVAL_PENDING)
        with pytest.raises(Forbidden):
            svc.approvals.approve(admin, account)
