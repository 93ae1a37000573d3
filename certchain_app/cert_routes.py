from flask import Blueprint, current_app, jsonify, request, send_file

from certchain_app.auth import current_account, require_account
from certchain_app.database import ROLE_ADMIN, ROLE_ISSUER
from certchain_app.errors import InvalidInput, NotFound
from certchain_app.pdf import render_certificate_pdf
from certchain_app.qr import certificate_payload, qr_data_url, qr_png, verification_url
from certchain_app.schemas import HashVerifyRequest, QrVerifyRequest, RevokeRequest, parse
from certchain_app.services import services

bp = Blueprint("cert", __name__, url_prefix="/api/cert")


def _verify_url(certificate):
    return verification_url(current_app.config["APP_BASE_URL"], certificate.verification_token)


# ---------------- ISSUE ----------------
@bp.route("/issue", methods=["POST"])
@require_account(ROLE_ISSUER, ROLE_ADMIN)
def issue():
    result = services().issuance.issue(current_account(), request.get_json(silent=True))
    return jsonify(result.to_dict()), 201


# ---------------- VERIFY ----------------
@bp.route("/verify")
def verify_by_token():
    token = request.args.get("token", "").strip()
    if not token:
        raise InvalidInput([{"field": "token", "message": "Missing token"}])
    return jsonify(services().composer.verify_token(token).to_dict())


@bp.route("/verify/by-id/<certificate_id>")
def verify_by_id(certificate_id):
    return jsonify(services().composer.verify_certificate_id(certificate_id).to_dict())


@bp.route("/verify/lookup/<lookup_key>")
def verify_lookup(lookup_key):
    return jsonify(services().composer.verify(lookup_key).to_dict())


@bp.route("/verify/hash", methods=["POST"])
def verify_hash():
    data = parse(HashVerifyRequest, request.get_json(silent=True))
    verdict = services().composer.verify_hash(data.certificate_id, data.provided_hash)
    return jsonify(verdict.to_dict())


@bp.route("/verify/qr", methods=["POST"])
def verify_qr():
    data = parse(QrVerifyRequest, request.get_json(silent=True))
    return jsonify(services().composer.verify_qr_payload(data.qr_data).to_dict())


# ---------------- REVOKE ----------------
@bp.route("/revoke/<certificate_id>", methods=["POST"])
@require_account(ROLE_ISSUER, ROLE_ADMIN)
def revoke(certificate_id):
    data = parse(RevokeRequest, request.get_json(silent=True))
    certificate = services().revocation.revoke(current_account(), certificate_id, data.reason)
    return jsonify({
        "message": "Certificate revoked successfully",
        "certificate": certificate.to_dict(include_token=True),
    })


# ---------------- ISSUER VIEWS ----------------
@bp.route("/issuer-certificates")
@require_account(ROLE_ISSUER, ROLE_ADMIN)
def issuer_certificates():
    certificates = services().certificates.list_by_issuer(current_account().id)
    return jsonify({"certificates": [c.to_dict(include_token=True) for c in certificates]})


def _owned_certificate(certificate_id):
    certificate = services().certificates.find_by_certificate_id(certificate_id)
    account = current_account()
    if certificate is None or (account.role != ROLE_ADMIN and certificate.issuer_id != account.id):
        raise NotFound()
    return certificate


@bp.route("/qr/<certificate_id>")
@require_account(ROLE_ISSUER, ROLE_ADMIN)
def qr_code(certificate_id):
    certificate = _owned_certificate(certificate_id)
    return send_file(qr_png(_verify_url(certificate)), mimetype="image/png")


# ---------------- CONTRACT ----------------
@bp.route("/contract/abi")
def contract_abi():
    """ABI for clients that sign the registry transaction themselves and send `ledgerTxHash`."""
    return jsonify(services().contract_abi)


# ---------------- PDF ----------------
@bp.route("/download/<certificate_id>")
def download_certificate(certificate_id):
    verdict = services().composer.verify_certificate_id(certificate_id)
    certificate = verdict.certificate
    buffer = render_certificate_pdf(certificate, verdict.is_valid)
    return send_file(buffer, as_attachment=True,
                     download_name=f"certificate-{certificate.certificate_id}.pdf",
                     mimetype="application/pdf")


# ---------------- CERTIFICATE VIEW ----------------
@bp.route("/<certificate_id>")
@require_account()
def certificate_view(certificate_id):
    certificate = services().certificates.find_by_certificate_id(certificate_id)
    if certificate is None:
        raise NotFound()
    account = current_account()
    owner = account.role == ROLE_ADMIN or certificate.issuer_id == account.id
    body = {"certificate": certificate.to_dict(include_token=owner)}
    if owner:
        verify_url = _verify_url(certificate)
        body.update({
            "verifyUrl": verify_url,
            "qr": qr_data_url(verify_url),
            "qrPayload": certificate_payload(certificate, verify_url),
        })
    return jsonify(body)
