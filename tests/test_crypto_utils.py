import hashlib
import json
import time
from datetime import date
from types import SimpleNamespace

import pytest

from certchain_app.crypto_utils import (
    get_cipher,
    issue_session_token,
    read_session_token,
    sha256_hash,
    student_hash,
    verify_secret,
)
from certchain_app.errors import Unauthorized


def test_sha256_hash_hex_digest():
    assert sha256_hash("abc") == hashlib.sha256(b"abc").hexdigest()


def test_student_hash_uses_compact_json_in_fixed_key_order():
    expected = hashlib.sha256(
        b'{"name":"Alice","course":"Algorithms 101","issuedOn":"2024-01-01","certificateId":"CERT-0001"}'
    ).hexdigest()
    assert student_hash("Alice", "Algorithms 101", date(2024, 1, 1), "CERT-0001") == expected


def test_student_hash_depends_on_every_field():
    base = student_hash("Alice", "Algorithms 101", date(2024, 1, 1), "CERT-0001")
    assert student_hash("Alicia", "Algorithms 101", date(2024, 1, 1), "CERT-0001") != base
    assert student_hash("Alice", "Algorithms 102", date(2024, 1, 1), "CERT-0001") != base
    assert student_hash("Alice", "Algorithms 101", date(2024, 1, 2), "CERT-0001") != base
    assert student_hash("Alice", "Algorithms 101", date(2024, 1, 1), "CERT-0002") != base


def test_student_hash_keeps_non_ascii_characters():
    raw = '{"name":"Zoë","course":"Café","issuedOn":"2024-01-01","certificateId":"CERT-0001"}'
    expected = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    assert student_hash("Zoë", "Café", date(2024, 1, 1), "CERT-0001") == expected


class TestVerifySecret:
    def test_matching_secret(self):
        assert verify_secret("s3cret", "s3cret") is True

    def test_wrong_secret(self):
        assert verify_secret("guess", "s3cret") is False

    def test_unconfigured_secret_never_matches(self):
        assert verify_secret("", "") is False
        assert verify_secret("anything", "") is False


class TestSessionTokens:
    def setup_method(self):
        self.cipher = get_cipher(b"unit-test-key")
        self.account = SimpleNamespace(id=7, role="issuer", email="ada@example.com")

    def test_round_trip(self):
        token = issue_session_token(self.account, self.cipher)
        claims = read_session_token(token, self.cipher, ttl=60)
        assert claims == {"sub": 7, "role": "issuer", "email": "ada@example.com"}

    def test_token_from_other_key_is_rejected(self):
        token = issue_session_token(self.account, get_cipher(b"another-key"))
        with pytest.raises(Unauthorized):
            read_session_token(token, self.cipher, ttl=60)

    def test_garbage_token_is_rejected(self):
        with pytest.raises(Unauthorized):
            read_session_token("not-a-token", self.cipher, ttl=60)

    def test_expired_token_is_rejected(self):
        claims = json.dumps({"sub": 7, "role": "issuer", "email": "ada@example.com"})
        token = self.cipher.encrypt_at_time(claims.encode(), int(time.time()) - 3600).decode()
        with pytest.raises(Unauthorized):
            read_session_token(token, self.cipher, ttl=60)
