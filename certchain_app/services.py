import logging
from dataclasses import dataclass

from flask import current_app

from certchain_app.approval import ApprovalStateMachine
from certchain_app.blockchain import CERTIFICATE_REGISTRY_ABI, InMemoryLedger, Web3LedgerClient, load_abi
from certchain_app.crypto_utils import get_cipher
from certchain_app.ipfs import PinataContentStore
from certchain_app.issuance import IssuanceWorkflow
from certchain_app.mailer import BackgroundNotifier, LogNotifier, SmtpNotifier
from certchain_app.revocation import RevocationWorkflow
from certchain_app.store import AccountStore, CertificateStore
from certchain_app.verification import TrustComposer

logger = logging.getLogger(__name__)

EXTENSION_KEY = "certchain"


@dataclass
class Services:
    accounts: AccountStore
    certificates: CertificateStore
    ledger: object
    content_store: object
    notifier: object
    composer: TrustComposer
    issuance: IssuanceWorkflow
    revocation: RevocationWorkflow
    approvals: ApprovalStateMachine
    cipher: object
    contract_abi: list


def contract_abi(config) -> list:
    abi_path = config.get("CONTRACT_ABI_JSON_PATH")
    return load_abi(abi_path) if abi_path else CERTIFICATE_REGISTRY_ABI


def build_ledger(config, abi=None):
    if config["LEDGER_BACKEND"] == "memory":
        logger.warning("Using the in-memory ledger; attestations do not survive a restart")
        return InMemoryLedger()
    return Web3LedgerClient(
        rpc_url=config["CHAIN_RPC_URL"],
        contract_address=config["CONTRACT_ADDRESS"],
        abi=abi,
        private_key=config.get("WALLET_PRIVATE_KEY"),
        timeout=config["LEDGER_TIMEOUT"],
    )


def build_content_store(config):
    return PinataContentStore(
        api_key=config.get("PINATA_API_KEY"),
        secret_api_key=config.get("PINATA_SECRET_API_KEY"),
        gateway_url=config["PINATA_GATEWAY_URL"],
    )


def build_notifier(config):
    if not config.get("SMTP_HOST"):
        logger.warning("SMTP_HOST not set; certificate emails will only be logged")
        return LogNotifier()
    return BackgroundNotifier(SmtpNotifier(
        host=config["SMTP_HOST"],
        port=config["SMTP_PORT"],
        username=config.get("SMTP_USER"),
        password=config.get("SMTP_PASS"),
        sender=config["EMAIL_FROM"],
    ))


def build_services(config, ledger=None, content_store=None, notifier=None) -> Services:
    if not config.get("MASTER_KEY"):
        raise RuntimeError("MASTER_KEY must be set")

    accounts = AccountStore()
    certificates = CertificateStore()
    abi = contract_abi(config)
    if ledger is None:
        ledger = build_ledger(config, abi)
    if content_store is None:
        content_store = build_content_store(config)
    if notifier is None:
        notifier = build_notifier(config)

    return Services(
        accounts=accounts,
        certificates=certificates,
        ledger=ledger,
        content_store=content_store,
        notifier=notifier,
        composer=TrustComposer(certificates, ledger, config.get("ACCEPT_UNANCHORED_CERTIFICATES", False)),
        issuance=IssuanceWorkflow(certificates, ledger, content_store, notifier, config["APP_BASE_URL"]),
        revocation=RevocationWorkflow(certificates, ledger),
        approvals=ApprovalStateMachine(accounts),
        cipher=get_cipher(config["MASTER_KEY"].encode()),
        contract_abi=abi,
    )


def services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
