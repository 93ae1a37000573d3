import base64
import hashlib
import hmac
import json
from datetime import date

from cryptography.fernet import Fernet, InvalidToken

from certchain_app.errors import Unauthorized


# ---------- HASHING ----------
def sha256_hash(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def student_hash(name: str, course: str, issued_on: date, certificate_id: str) -> str:
    # key order is part of the digest
    payload = json.dumps(
        {
            "name": name,
            "course": course,
            "issuedOn": issued_on.isoformat(),
            "certificateId": certificate_id,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return sha256_hash(payload)


# ---------- SECRET COMPARISON ----------
def verify_secret(provided: str, expected: str) -> bool:
    if not provided or not expected:
        return False
    return hmac.compare_digest(sha256_hash(provided), sha256_hash(expected))


# ---------- SYMMETRIC ENCRYPTION ----------
def get_cipher(master_key: bytes) -> Fernet:
    key = base64.urlsafe_b64encode(hashlib.sha256(master_key).digest())
    return Fernet(key)


def encrypt(text: str, cipher: Fernet) -> bytes:
    return cipher.encrypt(text.encode("utf-8"))


def decrypt(token: bytes, cipher: Fernet, ttl: int = None) -> str:
    return cipher.decrypt(token, ttl=ttl).decode("utf-8")


# ---------- SESSION TOKENS ----------
def issue_session_token(account, cipher: Fernet) -> str:
    claims = {"sub": account.id, "role": account.role, "email": account.email}
    return encrypt(json.dumps(claims), cipher).decode("ascii")


def read_session_token(token: str, cipher: Fernet, ttl: int) -> dict:
    try:
        return json.loads(decrypt(token.encode("ascii"), cipher, ttl=ttl))
    except (InvalidToken, UnicodeEncodeError, ValueError):
        raise Unauthorized("Invalid token")
