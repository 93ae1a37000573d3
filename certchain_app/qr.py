import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H

QR_TYPE_CERTIFICATE = "certificate"
QR_TYPE_BATCH = "batch_certificate"


def verification_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/api/cert/verify?token={token}"


def qr_png(data: str) -> BytesIO:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, box_size=10, border=2)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = BytesIO()
    img.save(buf)
    buf.seek(0)
    return buf


def qr_data_url(data: str) -> str:
    encoded = base64.b64encode(qr_png(data).getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def certificate_payload(certificate, verify_url: str) -> dict:
    return {
        "type": QR_TYPE_CERTIFICATE,
        "certificateId": certificate.certificate_id,
        "recipientName": certificate.recipient_name,
        "courseName": certificate.course_name,
        "issuedOn": certificate.issued_on.isoformat(),
        "hash": certificate.resolved_content_hash,
        "verifyUrl": verify_url,
    }
