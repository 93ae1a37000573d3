"""Pytest fixtures for CertChain tests."""
import hashlib
import uuid

import pytest
from werkzeug.security import generate_password_hash

from certchain_app.app import create_app
from certchain_app.blockchain import InMemoryLedger
from certchain_app.config import TestConfig
from certchain_app.crypto_utils import issue_session_token
from certchain_app.database import (
    APPROVAL_APPROVED,
    APPROVAL_NONE,
    ROLE_ADMIN,
    ROLE_ISSUER,
    Account,
    db,
)
from certchain_app.outcome import Outcome, PinnedContent
from certchain_app.services import services

TEST_PASSWORD = "secret123"


class FakeContentStore:
    def __init__(self):
        self.available = True
        self.pinned = []

    def pin(self, name, blob):
        if not self.available:
            return Outcome.degraded("content store unavailable")
        cid = "Qm" + hashlib.sha256(name.encode()).hexdigest()[:44]
        self.pinned.append((name, blob))
        return Outcome.success(PinnedContent(cid=cid, url=f"https://ipfs.test/ipfs/{cid}"))


class RecordingNotifier:
    def __init__(self):
        self.available = True
        self.sent = []

    def send(self, to_address, subject, html_body):
        if not self.available:
            return Outcome.degraded("smtp unavailable")
        self.sent.append({"to": to_address, "subject": subject, "html": html_body})
        return Outcome.success()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def content_store():
    return FakeContentStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(ledger, content_store, notifier):
    app = create_app(TestConfig, ledger=ledger, content_store=content_store, notifier=notifier)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def svc(app):
    return services()


@pytest.fixture
def make_account(app):
    def _make(role=ROLE_ISSUER, approval_status=APPROVAL_APPROVED, email=None, is_active=True,
              name="Test User", organization="Test University"):
        account = Account(
            name=name,
            email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=generate_password_hash(TEST_PASSWORD),
            organization=organization,
            role=role,
            approval_status=approval_status,
            is_active=is_active,
        )
        db.session.add(account)
        db.session.commit()
        return account

    return _make


@pytest.fixture
def issuer(make_account):
    return make_account(ROLE_ISSUER, APPROVAL_APPROVED)


@pytest.fixture
def admin(make_account):
    return make_account(ROLE_ADMIN, APPROVAL_NONE, name="Admin")


@pytest.fixture
def auth_header(app):
    def _header(account):
        token = issue_session_token(account, services().cipher)
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture
def cert_input():
    def _input(**overrides):
        data = {
            "certificateId": f"CERT-{uuid.uuid4().hex[:8].upper()}",
            "recipientName": "Alice",
            "courseName": "Algorithms 101",
            "issuedOn": "2024-01-01",
        }
        data.update(overrides)
        return data

    return _input
