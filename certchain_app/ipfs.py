import logging

import requests

from certchain_app.outcome import Outcome, PinnedContent

logger = logging.getLogger(__name__)

PINATA_PIN_JSON_URL = "https://api.pinata.cloud/pinning/pinJSONToIPFS"
DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs"


class PinataContentStore:
    def __init__(self, api_key=None, secret_api_key=None, gateway_url=DEFAULT_GATEWAY_URL,
                 timeout=15, session=None):
        self.api_key = api_key
        self.secret_api_key = secret_api_key
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.secret_api_key)

    def pin(self, name: str, blob: dict) -> Outcome:
        if not self.configured:
            return Outcome.degraded("content store credentials not configured")
        try:
            resp = self.session.post(
                PINATA_PIN_JSON_URL,
                json={"pinataContent": blob, "pinataMetadata": {"name": name}},
                headers={
                    "pinata_api_key": self.api_key,
                    "pinata_secret_api_key": self.secret_api_key,
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            cid = resp.json()["IpfsHash"]
        except (requests.RequestException, ValueError, KeyError) as exc:
            logger.warning("Pinning %s failed: %s", name, exc)
            return Outcome.degraded(str(exc))
        logger.info("Pinned %s as %s", name, cid)
        return Outcome.success(PinnedContent(cid=cid, url=f"{self.gateway_url}/{cid}"))
