import os

from dotenv import load_dotenv

# ---------------- LOAD SECRETS ----------------
load_dotenv()


def _int(name, default):
    return int(os.getenv(name, default))


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///certchain.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MASTER_KEY = os.getenv("MASTER_KEY", "")
    ADMIN_SECRET_KEY = os.getenv("ADMIN_SECRET_KEY", "")
    SESSION_TOKEN_TTL = _int("SESSION_TOKEN_TTL", 7 * 24 * 3600)

    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:8080")
    FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

    # "web3" talks to the deployed contract, "memory" keeps a local registry
    LEDGER_BACKEND = os.getenv("LEDGER_BACKEND", "web3")
    CHAIN_RPC_URL = os.getenv("CHAIN_RPC_URL", "http://127.0.0.1:8545")
    CONTRACT_ADDRESS = os.getenv("CONTRACT_ADDRESS", "0x5FbDB2315678afecb367f032d93F642f64180aa3")
    CONTRACT_ABI_JSON_PATH = os.getenv("CONTRACT_ABI_JSON_PATH")
    WALLET_PRIVATE_KEY = os.getenv("WALLET_PRIVATE_KEY")
    LEDGER_TIMEOUT = _int("LEDGER_TIMEOUT", 30)
    # lets `verify` pass certificates whose ledger registration never happened
    ACCEPT_UNANCHORED_CERTIFICATES = os.getenv("ACCEPT_UNANCHORED_CERTIFICATES", "false").lower() == "true"

    PINATA_API_KEY = os.getenv("PINATA_API_KEY")
    PINATA_SECRET_API_KEY = os.getenv("PINATA_SECRET_API_KEY")
    PINATA_GATEWAY_URL = os.getenv("PINATA_GATEWAY_URL", "https://gateway.pinata.cloud/ipfs")

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = _int("SMTP_PORT", 587)
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    EMAIL_FROM = os.getenv("EMAIL_FROM", "no-reply@certchain.local")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MASTER_KEY = "test-master-key"
    ADMIN_SECRET_KEY = "test-admin-secret"
    APP_BASE_URL = "http://certchain.test"
    LEDGER_BACKEND = "memory"
    CONTRACT_ABI_JSON_PATH = None
    PINATA_API_KEY = None
    PINATA_SECRET_API_KEY = None
    SMTP_HOST = None
    LOG_FILE = None
