import logging
import smtplib
from concurrent.futures import ThreadPoolExecutor
from email.message import EmailMessage
from html import escape

from certchain_app.outcome import Outcome

logger = logging.getLogger(__name__)


class SmtpNotifier:
    def __init__(self, host, port=587, username=None, password=None,
                 sender="no-reply@certchain.local", timeout=15):
        self.host = host
        self.port = int(port)
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def send(self, to_address: str, subject: str, html_body: str) -> Outcome:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to_address
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html_body, subtype="html")
        try:
            if self.port == 465:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with server:
                if self.port != 465:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email to %s failed: %s", to_address, exc)
            return Outcome.degraded(str(exc))
        logger.info("Email sent to %s", to_address)
        return Outcome.success()


class LogNotifier:
    """Stands in for SMTP when no mail server is configured."""

    def send(self, to_address: str, subject: str, html_body: str) -> Outcome:
        logger.info("Email not configured; would send %r to %s (%d bytes)",
                    subject, to_address, len(html_body))
        return Outcome.success()


class BackgroundNotifier:
    """Runs another notifier on a worker pool so callers never wait on mail."""

    def __init__(self, notifier, max_workers=2):
        self.notifier = notifier
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mailer")

    def send(self, to_address: str, subject: str, html_body: str) -> Outcome:
        future = self.executor.submit(self.notifier.send, to_address, subject, html_body)
        future.add_done_callback(self._report)
        return Outcome.success(future)

    @staticmethod
    def _report(future):
        exc = future.exception()
        if exc is not None:
            logger.error("Background email delivery crashed", exc_info=exc)

    def shutdown(self):
        self.executor.shutdown(wait=True)


def render_certificate_email(certificate, student_hash, verify_url, qr_data_url) -> str:
    rows = [
        ("Recipient", certificate.recipient_name),
        ("Course", certificate.course_name),
        ("Certificate ID", certificate.certificate_id),
        ("Issued On", certificate.issued_on.isoformat()),
    ]
    if certificate.valid_until:
        rows.append(("Valid Until", certificate.valid_until.isoformat()))
    details = "".join(
        f"<p><strong>{label}:</strong> {escape(str(value))}</p>" for label, value in rows
    )
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Your certificate has been issued</h2>
  {details}
  <h4>Certificate hash (for manual verification)</h4>
  <p style="font-family: monospace; word-break: break-all;">{student_hash}</p>
  <p><img src="{qr_data_url}" alt="Certificate QR code" style="max-width: 200px;"></p>
  <p><a href="{escape(verify_url)}">Verify certificate online</a></p>
</div>
"""
