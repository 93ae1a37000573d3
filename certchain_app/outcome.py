"""Result type for best-effort collaborator calls.

Ledger, content-store and mail calls never raise into the workflows. They
return an ``Outcome`` that is either a success carrying a value or a
degraded result carrying the reason the call could not complete.
"""
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Outcome:
    ok: bool
    value: Any = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def degraded(cls, reason: str) -> "Outcome":
        return cls(ok=False, reason=reason)


@dataclass(frozen=True)
class LedgerReceipt:
    tx_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
        }


@dataclass(frozen=True)
class PinnedContent:
    cid: str
    url: str

    def to_dict(self) -> dict:
        return {"cid": self.cid, "url": self.url}
