import logging
import uuid
from calendar import timegm
from dataclasses import dataclass
from typing import Optional

from certchain_app.crypto_utils import student_hash
from certchain_app.database import CONTENT_METADATA_KEY, STATUS_VALID, Certificate
from certchain_app.errors import Conflict, NotApproved
from certchain_app.mailer import render_certificate_email
from certchain_app.outcome import LedgerReceipt
from certchain_app.qr import certificate_payload, qr_data_url, verification_url
from certchain_app.schemas import IssueCertificateRequest, parse

logger = logging.getLogger(__name__)


def epoch_or_zero(value) -> int:
    # start of the day (UTC midnight): the ledger stops attesting on the
    # validUntil day itself, while Certificate.is_expired only flips the day after
    if value is None:
        return 0
    return timegm(value.timetuple())


@dataclass
class IssuanceResult:
    certificate: Certificate
    qr_payload: dict
    qr_image: str
    verify_url: str
    student_hash: str
    content_hash: Optional[str]
    ledger_receipt: Optional[LedgerReceipt]

    def to_dict(self) -> dict:
        receipt = self.ledger_receipt.to_dict() if self.ledger_receipt else {}
        return {
            "certificate": self.certificate.to_dict(include_token=True),
            "qr": self.qr_image,
            "qrPayload": self.qr_payload,
            "verifyUrl": self.verify_url,
            "studentHash": self.student_hash,
            "ipfsHash": self.content_hash,
            "ledgerTxHash": self.certificate.ledger_tx_hash,
            "ledgerBlockNumber": receipt.get("blockNumber"),
            "ledgerGasUsed": receipt.get("gasUsed"),
        }


class IssuanceWorkflow:
    """Creates a certificate and anchors it wherever the collaborators allow.

    The local record is the only required write. Pinning, ledger
    registration and the recipient email each degrade independently.
    """

    def __init__(self, certificates, ledger, content_store, notifier, base_url):
        self.certificates = certificates
        self.ledger = ledger
        self.content_store = content_store
        self.notifier = notifier
        self.base_url = base_url

    def issue(self, issuer, data) -> IssuanceResult:
        if not issuer.is_active or not issuer.can_issue():
            raise NotApproved()

        if isinstance(data, IssueCertificateRequest):
            request = data
        else:
            request = parse(IssueCertificateRequest, data)

        if self.certificates.find_by_certificate_id(request.certificate_id) is not None:
            raise Conflict("Certificate ID already exists")

        token = str(uuid.uuid4())

        pinned = self.content_store.pin(f"cert-{request.certificate_id}", {
            "certificateId": request.certificate_id,
            "recipientName": request.recipient_name,
            "courseName": request.course_name,
            "issuedOn": request.issued_on.isoformat(),
            "metadata": request.metadata,
        })
        if not pinned.ok:
            logger.warning("Content pin for %s skipped: %s", request.certificate_id, pinned.reason)
        content = pinned.value if pinned.ok else None

        metadata = dict(request.metadata)
        metadata[CONTENT_METADATA_KEY] = content.to_dict() if content else {"cid": None, "url": None}

        certificate = Certificate(
            certificate_id=request.certificate_id,
            verification_token=token,
            recipient_name=request.recipient_name,
            recipient_email=request.recipient_email,
            course_name=request.course_name,
            issued_on=request.issued_on,
            valid_until=request.valid_until,
            issuer=issuer,
            content_hash=content.cid if content else None,
            meta=metadata,
            status=STATUS_VALID,
        )
        self.certificates.insert(certificate)
        logger.info("Certificate %s created by %s", certificate.certificate_id, issuer.email)

        receipt = self._anchor(certificate, request)

        certificate.student_hash = student_hash(
            request.recipient_name, request.course_name, request.issued_on, request.certificate_id
        )
        self.certificates.update(certificate)

        verify_url = verification_url(self.base_url, token)
        qr_image = qr_data_url(verify_url)
        if request.recipient_email:
            self._notify(certificate, verify_url, qr_image)

        return IssuanceResult(
            certificate=certificate,
            qr_payload=certificate_payload(certificate, verify_url),
            qr_image=qr_image,
            verify_url=verify_url,
            student_hash=certificate.student_hash,
            content_hash=certificate.content_hash,
            ledger_receipt=receipt,
        )

    def _anchor(self, certificate, request) -> Optional[LedgerReceipt]:
        if request.ledger_tx_hash:
            # the caller signed and submitted the transaction itself
            certificate.ledger_tx_hash = request.ledger_tx_hash
            self.certificates.update(certificate)
            logger.info("Certificate %s anchored by caller tx %s",
                        certificate.certificate_id, request.ledger_tx_hash)
            return None

        outcome = self.ledger.register(
            certificate.certificate_id,
            certificate.recipient_name,
            certificate.course_name,
            epoch_or_zero(certificate.valid_until),
            certificate.content_hash or "",
        )
        if not outcome.ok:
            logger.warning("Ledger registration for %s skipped: %s",
                           certificate.certificate_id, outcome.reason)
            return None

        receipt = outcome.value
        certificate.ledger_tx_hash = receipt.tx_hash
        certificate.ledger_block_number = receipt.block_number
        certificate.ledger_gas_used = receipt.gas_used
        self.certificates.update(certificate)
        return receipt

    def _notify(self, certificate, verify_url, qr_image):
        html = render_certificate_email(certificate, certificate.student_hash, verify_url, qr_image)
        outcome = self.notifier.send(
            certificate.recipient_email,
            f"Your {certificate.course_name} certificate is ready",
            html,
        )
        if not outcome.ok:
            logger.warning("Certificate email for %s not sent: %s",
                           certificate.certificate_id, outcome.reason)
