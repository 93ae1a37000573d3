import requests

from certchain_app.ipfs import PINATA_PIN_JSON_URL, PinataContentStore


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body if body is not None else {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def _store(session, **kwargs):
    return PinataContentStore(api_key="key", secret_api_key="secret",
                              gateway_url="https://gw.example/ipfs/", session=session, **kwargs)


def test_pin_posts_content_and_returns_cid():
    session = FakeSession(FakeResponse(body={"IpfsHash": "QmAbc"}))
    outcome = _store(session).pin("cert-CERT-0001", {"certificateId": "CERT-0001"})

    assert outcome.ok
    assert outcome.value.cid == "QmAbc"
    assert outcome.value.url == "https://gw.example/ipfs/QmAbc"

    url, kwargs = session.calls[0]
    assert url == PINATA_PIN_JSON_URL
    assert kwargs["json"] == {
        "pinataContent": {"certificateId": "CERT-0001"},
        "pinataMetadata": {"name": "cert-CERT-0001"},
    }
    assert kwargs["headers"]["pinata_api_key"] == "key"
    assert kwargs["headers"]["pinata_secret_api_key"] == "secret"


def test_missing_credentials_degrade_without_calling_out():
    session = FakeSession(FakeResponse(body={"IpfsHash": "QmAbc"}))
    store = PinataContentStore(session=session)
    assert not store.configured
    assert not store.pin("cert-x", {}).ok
    assert session.calls == []


def test_http_error_degrades():
    outcome = _store(FakeSession(FakeResponse(status_code=401))).pin("cert-x", {})
    assert not outcome.ok
    assert "401" in outcome.reason


def test_network_error_degrades():
    outcome = _store(FakeSession(error=requests.ConnectionError("refused"))).pin("cert-x", {})
    assert not outcome.ok


def test_unexpected_body_degrades():
    outcome = _store(FakeSession(FakeResponse(body={"error": "nope"}))).pin("cert-x", {})
    assert not outcome.ok
