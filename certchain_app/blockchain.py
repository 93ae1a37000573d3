import json
import logging
import time

from eth_account import Account as EthAccount
from web3 import Web3
from web3.exceptions import Web3Exception

from certchain_app.outcome import LedgerReceipt, Outcome

logger = logging.getLogger(__name__)

# Minimal interface of the certificate registry contract.
CERTIFICATE_REGISTRY_ABI = [
    {
        "type": "function",
        "name": "isValid",
        "stateMutability": "view",
        "inputs": [{"name": "certId", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "issueCertificate",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "certId", "type": "bytes32"},
            {"name": "holderName", "type": "string"},
            {"name": "course", "type": "string"},
            {"name": "validUntil", "type": "uint256"},
            {"name": "ipfsHash", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "revokeCertificate",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "certId", "type": "bytes32"},
            {"name": "reason", "type": "string"},
        ],
        "outputs": [],
    },
]

LEDGER_ERRORS = (Web3Exception, OSError, ValueError, TimeoutError)


def certificate_key(certificate_id: str) -> bytes:
    return bytes(Web3.keccak(text=certificate_id))


def load_abi(path: str) -> list:
    with open(path, "r", encoding="utf-8") as fh:
        artifact = json.load(fh)
    # hardhat/truffle artifacts wrap the ABI
    if isinstance(artifact, dict):
        return artifact["abi"]
    return artifact


class InMemoryLedger:
    """Process-local registry with the same semantics as the contract.

    Used for development and tests. Setting ``online`` to False makes every
    call degrade as if the RPC endpoint were unreachable.
    """

    def __init__(self, clock=time.time):
        self.entries = {}
        self.online = True
        self._clock = clock
        self._block = 0

    def _next_tx(self, certificate_id, action):
        self._block += 1
        digest = Web3.keccak(text=f"{action}:{certificate_id}:{self._block}")
        return Web3.to_hex(digest), self._block

    def attest(self, certificate_id: str) -> Outcome:
        if not self.online:
            return Outcome.degraded("ledger offline")
        entry = self.entries.get(certificate_key(certificate_id))
        if entry is None or entry["revoked"]:
            return Outcome.success(False)
        valid_until = entry["valid_until"]
        return Outcome.success(valid_until == 0 or self._clock() <= valid_until)

    def register(self, certificate_id, name, course, valid_until, content_hash) -> Outcome:
        if not self.online:
            return Outcome.degraded("ledger offline")
        key = certificate_key(certificate_id)
        if key in self.entries:
            return Outcome.degraded("certificate already exists on ledger")
        tx_hash, block = self._next_tx(certificate_id, "issue")
        self.entries[key] = {
            "holder_name": name,
            "course": course,
            "valid_until": int(valid_until),
            "content_hash": content_hash,
            "timestamp": self._clock(),
            "revoked": False,
            "revoke_reason": None,
        }
        return Outcome.success(LedgerReceipt(tx_hash=tx_hash, block_number=block, gas_used=0))

    def revoke(self, certificate_id: str, reason: str) -> Outcome:
        if not self.online:
            return Outcome.degraded("ledger offline")
        entry = self.entries.get(certificate_key(certificate_id))
        if entry is None:
            return Outcome.degraded("certificate not registered on ledger")
        entry["revoked"] = True
        entry["revoke_reason"] = reason
        tx_hash, _ = self._next_tx(certificate_id, "revoke")
        return Outcome.success(tx_hash)


class Web3LedgerClient:
    """Certificate registry contract reached over JSON-RPC.

    Reads need only an RPC endpoint. Writes are signed locally with
    ``private_key``; without one they degrade instead of raising.
    """

    def __init__(self, rpc_url, contract_address, abi=None, private_key=None, timeout=30):
        self.timeout = timeout
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=abi or CERTIFICATE_REGISTRY_ABI,
        )
        self.signer = EthAccount.from_key(private_key) if private_key else None
        logger.info("Ledger client configured for contract %s via %s", contract_address, rpc_url)

    def attest(self, certificate_id: str) -> Outcome:
        try:
            result = self.contract.functions.isValid(certificate_key(certificate_id)).call()
        except LEDGER_ERRORS as exc:
            logger.warning("Ledger attestation for %s failed: %s", certificate_id, exc)
            return Outcome.degraded(str(exc))
        return Outcome.success(bool(result))

    def register(self, certificate_id, name, course, valid_until, content_hash) -> Outcome:
        fn = self.contract.functions.issueCertificate(
            certificate_key(certificate_id), name, course, int(valid_until), content_hash or ""
        )
        outcome = self._transact(fn, f"issue {certificate_id}")
        if not outcome.ok:
            return outcome
        receipt = outcome.value
        return Outcome.success(
            LedgerReceipt(
                tx_hash=Web3.to_hex(receipt["transactionHash"]),
                block_number=receipt["blockNumber"],
                gas_used=receipt["gasUsed"],
            )
        )

    def revoke(self, certificate_id: str, reason: str) -> Outcome:
        fn = self.contract.functions.revokeCertificate(
            certificate_key(certificate_id), reason or "No reason provided"
        )
        outcome = self._transact(fn, f"revoke {certificate_id}")
        if not outcome.ok:
            return outcome
        return Outcome.success(Web3.to_hex(outcome.value["transactionHash"]))

    def _transact(self, fn, label) -> Outcome:
        if self.signer is None:
            return Outcome.degraded("no signing key configured")
        try:
            tx = fn.build_transaction({
                "from": self.signer.address,
                "nonce": self.w3.eth.get_transaction_count(self.signer.address),
            })
            signed = self.signer.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        except LEDGER_ERRORS as exc:
            logger.warning("Ledger transaction (%s) failed: %s", label, exc)
            return Outcome.degraded(str(exc))
        if receipt["status"] != 1:
            logger.warning("Ledger transaction (%s) reverted in block %s", label, receipt["blockNumber"])
            return Outcome.degraded("transaction reverted")
        logger.info(
            "Ledger transaction (%s) confirmed: tx=%s block=%s gas=%s",
            label, Web3.to_hex(receipt["transactionHash"]), receipt["blockNumber"], receipt["gasUsed"],
        )
        return Outcome.success(receipt)
