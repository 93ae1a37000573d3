import logging

from certchain_app.database import ROLE_ADMIN, STATUS_REVOKED, utcnow
from certchain_app.errors import AlreadyRevoked, NotFound

logger = logging.getLogger(__name__)

DEFAULT_REASON = "No reason provided"


class RevocationWorkflow:
    """Revokes certificates. The local revocation is authoritative.

    Issuers can revoke only certificates they issued; admins can revoke any
    certificate. Revoking twice is an error, not a no-op.
    """

    def __init__(self, certificates, ledger):
        self.certificates = certificates
        self.ledger = ledger

    def revoke(self, actor, certificate_id: str, reason: str = None):
        if actor.role == ROLE_ADMIN:
            certificate = self.certificates.find_by_certificate_id(certificate_id)
        else:
            certificate = self.certificates.find_for_issuer(certificate_id, actor.id)
        if certificate is None:
            raise NotFound("Certificate not found or not authorized")
        if certificate.status == STATUS_REVOKED:
            raise AlreadyRevoked()

        reason = (reason or "").strip() or DEFAULT_REASON
        certificate.status = STATUS_REVOKED
        certificate.revoke_reason = reason
        certificate.revoked_at = utcnow()
        self.certificates.update(certificate)
        logger.info("Certificate %s revoked by %s: %s", certificate_id, actor.email, reason)

        outcome = self.ledger.revoke(certificate_id, reason)
        if outcome.ok:
            certificate.ledger_revoke_tx_hash = outcome.value
            self.certificates.update(certificate)
        else:
            logger.warning("Ledger revocation for %s skipped: %s", certificate_id, outcome.reason)
        return certificate
