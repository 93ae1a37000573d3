"""Certificate verification.

Three independent sources feed a verdict: the record's own status, the
ledger's attestation and the content hash commitment.

``verify`` is the lenient path used by verify links and QR scans. A
certificate whose issuance was recorded on the ledger stays valid while the
ledger is unreachable. ``verify_hash`` and ``verify_qr_payload`` are strict:
the ledger must actively attest, and an unreachable ledger yields an invalid
verdict rather than an error. Integrations with a security decision riding
on the result should use the strict path.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

from certchain_app.database import STATUS_VALID, Certificate
from certchain_app.errors import MalformedPayload, NotFound, UnsupportedType
from certchain_app.qr import QR_TYPE_BATCH, QR_TYPE_CERTIFICATE

logger = logging.getLogger(__name__)

QR_REQUIRED_FIELDS = {
    QR_TYPE_CERTIFICATE: ("certificateId", "recipientName", "courseName", "issuedOn", "hash"),
    QR_TYPE_BATCH: ("merkleRoot", "proof", "leaf"),
}


@dataclass
class Verdict:
    is_valid: bool
    certificate: Certificate
    ledger_attested: bool
    was_issued_on_ledger: bool
    ledger_reachable: bool
    content_hash: Optional[str]
    expired: bool

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "certificate": self.certificate.to_dict(),
            "ledgerVerification": self.ledger_attested,
            "wasIssuedOnLedger": self.was_issued_on_ledger,
            "ledgerReachable": self.ledger_reachable,
            "ipfsHash": self.content_hash,
            "expired": self.expired,
        }


@dataclass
class HashVerdict:
    is_valid: bool
    certificate: Certificate
    hash_match: bool
    stored_hash: Optional[str]
    provided_hash: Optional[str]
    ledger_attested: bool
    payload: Optional[dict] = None

    def to_dict(self) -> dict:
        data = {
            "isValid": self.is_valid,
            "hashMatch": self.hash_match,
            "ledgerVerification": self.ledger_attested,
            "storedHash": self.stored_hash,
            "providedHash": self.provided_hash,
            "certificate": self.certificate.to_dict(),
        }
        if self.payload is not None:
            data["qrData"] = self.payload
        return data


class TrustComposer:
    def __init__(self, certificates, ledger, accept_unanchored=False):
        self.certificates = certificates
        self.ledger = ledger
        # development policy: records never anchored on the ledger still pass `verify`
        self.accept_unanchored = accept_unanchored

    # ---------------- LENIENT ----------------

    def verify(self, lookup_key: str) -> Verdict:
        """Resolve ``lookup_key`` as a verification token, then as a certificate id."""
        certificate = self.certificates.find_by_token(lookup_key)
        if certificate is None:
            certificate = self.certificates.find_by_certificate_id(lookup_key)
        return self._lenient(certificate)

    def verify_token(self, token: str) -> Verdict:
        return self._lenient(self.certificates.find_by_token(token), "Invalid token")

    def verify_certificate_id(self, certificate_id: str) -> Verdict:
        return self._lenient(self.certificates.find_by_certificate_id(certificate_id))

    def _lenient(self, certificate, missing_message="Certificate not found") -> Verdict:
        if certificate is None:
            raise NotFound(missing_message)

        was_issued_on_ledger = certificate.ledger_tx_hash is not None
        attestation = self.ledger.attest(certificate.certificate_id)
        if attestation.ok:
            ledger_attested = bool(attestation.value)
        else:
            logger.warning(
                "Ledger unreachable while verifying %s (%s); falling back to issuance record",
                certificate.certificate_id, attestation.reason,
            )
            ledger_attested = was_issued_on_ledger

        anchored = ledger_attested or was_issued_on_ledger or self.accept_unanchored
        is_valid = certificate.status == STATUS_VALID and anchored
        return Verdict(
            is_valid=is_valid,
            certificate=certificate,
            ledger_attested=ledger_attested,
            was_issued_on_ledger=was_issued_on_ledger,
            ledger_reachable=attestation.ok,
            content_hash=certificate.resolved_content_hash,
            expired=certificate.is_expired(),
        )

    # ---------------- STRICT ----------------

    def verify_hash(self, certificate_id: str, provided_hash: Optional[str], payload=None) -> HashVerdict:
        certificate = self.certificates.find_by_certificate_id(certificate_id)
        if certificate is None:
            raise NotFound("Certificate not found")

        stored_hash = certificate.resolved_content_hash
        hash_match = stored_hash is not None and stored_hash == provided_hash

        attestation = self.ledger.attest(certificate.certificate_id)
        if not attestation.ok:
            logger.warning(
                "Ledger unreachable during strict verification of %s: %s",
                certificate.certificate_id, attestation.reason,
            )
        ledger_attested = attestation.ok and bool(attestation.value)

        return HashVerdict(
            is_valid=certificate.status == STATUS_VALID and ledger_attested and hash_match,
            certificate=certificate,
            hash_match=hash_match,
            stored_hash=stored_hash,
            provided_hash=provided_hash,
            ledger_attested=ledger_attested,
            payload=payload,
        )

    def verify_qr_payload(self, qr_payload) -> HashVerdict:
        payload = parse_qr_payload(qr_payload)
        if payload["type"] != QR_TYPE_CERTIFICATE:
            # batch proofs are shape-checked only; there is no batch verifier
            raise UnsupportedType(f"Unsupported QR type: {payload['type']}")
        return self.verify_hash(payload["certificateId"], payload["hash"], payload=payload)


def parse_qr_payload(qr_payload) -> dict:
    if isinstance(qr_payload, (str, bytes)):
        try:
            payload = json.loads(qr_payload)
        except (ValueError, RecursionError):
            raise MalformedPayload() from None
    else:
        payload = qr_payload

    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        raise MalformedPayload()

    required = QR_REQUIRED_FIELDS.get(payload["type"])
    if required is None:
        raise UnsupportedType(f"Unsupported QR type: {payload['type']}")

    missing = [name for name in required if name not in payload]
    if missing:
        raise MalformedPayload(f"QR payload is missing: {', '.join(missing)}")
    if not isinstance(payload.get("certificateId", ""), str):
        raise MalformedPayload("certificateId must be a string")
    return payload
