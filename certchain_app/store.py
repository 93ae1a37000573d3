"""Record stores over the Flask-SQLAlchemy session.

Uniqueness of ``certificate_id``, ``verification_token`` and account email
is enforced by the database; ``insert`` turns a violated constraint into
``Conflict`` so two racing inserts resolve to one success and one conflict.
"""
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from certchain_app.database import (
    APPROVAL_PENDING,
    ROLE_ISSUER,
    Account,
    Certificate,
    db,
)
from certchain_app.errors import Conflict


def _insert(record, conflict_message):
    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(conflict_message)
    return record


class CertificateStore:
    def find_by_certificate_id(self, certificate_id):
        return Certificate.query.filter_by(certificate_id=certificate_id).first()

    def find_by_token(self, token):
        return Certificate.query.filter_by(verification_token=token).first()

    def find_for_issuer(self, certificate_id, issuer_id):
        return Certificate.query.filter_by(
            certificate_id=certificate_id, issuer_id=issuer_id
        ).first()

    def list_by_issuer(self, issuer_id):
        return (
            Certificate.query.filter_by(issuer_id=issuer_id)
            .order_by(Certificate.created_at.desc(), Certificate.id.desc())
            .all()
        )

    def insert(self, certificate):
        return _insert(certificate, "Certificate ID already exists")

    def update(self, certificate):
        db.session.add(certificate)
        db.session.commit()
        return certificate


class AccountStore:
    def get(self, account_id):
        return db.session.get(Account, account_id)

    def find_by_email(self, email):
        return Account.query.filter(func.lower(Account.email) == email.strip().lower()).first()

    def list_all(self):
        return Account.query.order_by(Account.created_at.desc(), Account.id.desc()).all()

    def list_pending_issuers(self):
        return (
            Account.query.filter_by(role=ROLE_ISSUER, approval_status=APPROVAL_PENDING)
            .order_by(Account.access_requested_at)
            .all()
        )

    def insert(self, account):
        account.email = account.email.strip().lower()
        return _insert(account, "Email already in use")

    def update(self, account):
        db.session.add(account)
        db.session.commit()
        return account
