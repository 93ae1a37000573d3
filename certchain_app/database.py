from datetime import date, datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

ROLE_ADMIN = "admin"
ROLE_ISSUER = "issuer"
ROLE_VERIFIER = "verifier"

APPROVAL_NONE = "none"
APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"

STATUS_VALID = "valid"
STATUS_REVOKED = "revoked"

# reserved metadata key holding the content-store {cid, url} pair
CONTENT_METADATA_KEY = "ipfs"


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value is not None else None


class Account(db.Model):
    __tablename__ = "accounts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    organization = db.Column(db.String(200))

    role = db.Column(db.String(20), nullable=False, default=ROLE_VERIFIER, index=True)
    approval_status = db.Column(db.String(20), nullable=False, default=APPROVAL_NONE, index=True)
    access_requested_at = db.Column(db.DateTime)
    approved_at = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    last_login_at = db.Column(db.DateTime)

    certificates = db.relationship("Certificate", back_populates="issuer", lazy="dynamic")

    def is_approved(self) -> bool:
        return self.role == ROLE_ADMIN or self.approval_status == APPROVAL_APPROVED

    def can_issue(self) -> bool:
        if self.role == ROLE_ADMIN:
            return True
        return self.role == ROLE_ISSUER and self.is_approved()

    @property
    def status_label(self) -> str:
        if self.role == ROLE_ADMIN:
            return "Admin"
        if self.role == ROLE_ISSUER:
            return {
                APPROVAL_APPROVED: "Approved Issuer",
                APPROVAL_PENDING: "Pending Approval",
                APPROVAL_REJECTED: "Rejected",
            }.get(self.approval_status, "Issuer")
        return "Verifier"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "organization": self.organization,
            "role": self.role,
            "approvalStatus": self.approval_status,
            "status": self.status_label,
            "isActive": self.is_active,
            "accessRequestedAt": _iso(self.access_requested_at),
            "approvedAt": _iso(self.approved_at),
            "createdAt": _iso(self.created_at),
            "lastLoginAt": _iso(self.last_login_at),
        }

    def __repr__(self):
        return f"<Account {self.email} role={self.role}>"


class Certificate(db.Model):
    __tablename__ = "certificates"

    id = db.Column(db.Integer, primary_key=True)

    certificate_id = db.Column(db.String(100), unique=True, nullable=False, index=True)
    verification_token = db.Column(db.String(36), unique=True, nullable=False, index=True)

    recipient_name = db.Column(db.String(150), nullable=False)
    recipient_email = db.Column(db.String(254))
    course_name = db.Column(db.String(200), nullable=False)
    issued_on = db.Column(db.Date, nullable=False)
    valid_until = db.Column(db.Date)

    issuer_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False)
    issuer = db.relationship("Account", back_populates="certificates")

    content_hash = db.Column(db.String(128), index=True)
    meta = db.Column("metadata", db.JSON, nullable=False, default=dict)

    ledger_tx_hash = db.Column(db.String(80))
    ledger_block_number = db.Column(db.Integer)
    ledger_gas_used = db.Column(db.Integer)
    ledger_revoke_tx_hash = db.Column(db.String(80))

    student_hash = db.Column(db.String(64), index=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_VALID)
    revoke_reason = db.Column(db.Text)
    revoked_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    @property
    def resolved_content_hash(self):
        if self.content_hash:
            return self.content_hash
        pinned = (self.meta or {}).get(CONTENT_METADATA_KEY) or {}
        return pinned.get("cid")

    def is_expired(self, today: date = None) -> bool:
        # inclusive of valid_until; see issuance.epoch_or_zero for the ledger side
        if self.valid_until is None:
            return False
        return self.valid_until < (today or utcnow().date())

    def to_dict(self, include_token: bool = False) -> dict:
        data = {
            "certificateId": self.certificate_id,
            "recipientName": self.recipient_name,
            "recipientEmail": self.recipient_email,
            "courseName": self.course_name,
            "issuedOn": _iso(self.issued_on),
            "validUntil": _iso(self.valid_until),
            "issuer": {
                "id": self.issuer.id,
                "name": self.issuer.name,
                "organization": self.issuer.organization,
            } if self.issuer else None,
            "contentHash": self.content_hash,
            "metadata": self.meta or {},
            "ledgerTxHash": self.ledger_tx_hash,
            "ledgerBlockNumber": self.ledger_block_number,
            "ledgerGasUsed": self.ledger_gas_used,
            "ledgerRevokeTxHash": self.ledger_revoke_tx_hash,
            "studentHash": self.student_hash,
            "status": self.status,
            "revokeReason": self.revoke_reason,
            "revokedAt": _iso(self.revoked_at),
            "createdAt": _iso(self.created_at),
        }
        # the token is a capability; only the issuing side sees it
        if include_token:
            data["verificationToken"] = self.verification_token
        return data

    def __repr__(self):
        return f"<Certificate {self.certificate_id} status={self.status}>"
