from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


def render_certificate_pdf(certificate, is_valid: bool) -> BytesIO:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    pdf.setTitle(f"Certificate {certificate.certificate_id}")
    pdf.setFont("Helvetica-Bold", 22)
    pdf.drawCentredString(width / 2, height - 80, "Certificate of Completion")

    issuer = certificate.issuer
    issuer_line = issuer.name if issuer else ""
    if issuer is not None and issuer.organization:
        issuer_line = f"{issuer.name} ({issuer.organization})"

    lines = [
        f"Recipient: {certificate.recipient_name}",
        f"Course: {certificate.course_name}",
        f"Issued On: {certificate.issued_on.isoformat()}",
        f"Valid Until: {certificate.valid_until.isoformat() if certificate.valid_until else 'No expiry'}",
        f"Certificate ID: {certificate.certificate_id}",
        f"Issuer: {issuer_line}",
        f"Status: {'VALID' if is_valid else 'INVALID'}",
    ]
    pdf.setFont("Helvetica", 14)
    y = height - 140
    for line in lines:
        pdf.drawString(80, y, line)
        y -= 30

    if certificate.student_hash:
        pdf.setFont("Courier", 8)
        pdf.drawString(80, y - 10, f"Hash: {certificate.student_hash}")

    pdf.showPage()
    pdf.save()

    buffer.seek(0)
    return buffer
