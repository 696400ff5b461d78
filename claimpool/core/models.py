"""
claimpool/core/models.py

Shared constants, payout arithmetic and event records.

ARITHMETIC CONTRACT
    rate   = floor(balance * RATE_SCALE / floating_supply)   (0 if supply == 0)
    payout = floor(amount * rate / RATE_SCALE)

    Both steps round down, so the sum of all holders' payouts against one
    rate snapshot can never exceed the balance the snapshot was taken from.
    Only Python ints are used; no float ever touches an amount.

EVENT CONTRACT
    Every event is a frozen dataclass with an `event_name` and a
    `to_payload()` that returns a JSON-safe dict. Amounts are serialized as
    decimal strings because canonical JSON would otherwise route them
    through IEEE doubles.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from eth_utils import keccak

RATE_SCALE   = 10 ** 18
NATIVE_ASSET = "0x0000000000000000000000000000000000000000"
ZERO_ADDRESS = NATIVE_ASSET

# Return value of a successful contract signature check (ERC-1271).
ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")
ERC1271_INVALID     = bytes.fromhex("ffffffff")

TERMS_HASH_LENGTH = 32


def compute_rate(balance: int, floating_supply: int) -> int:
    """Asset units per claim-token unit, scaled by RATE_SCALE."""
    if floating_supply <= 0:
        return 0
    return (balance * RATE_SCALE) // floating_supply


def compute_payout(amount: int, rate: int) -> int:
    return (amount * rate) // RATE_SCALE


def terms_fingerprint(text: str) -> bytes:
    """keccak-256 of the UTF-8 terms document."""
    return keccak(text.encode("utf-8"))


# ─────────────────────────────────────────────────────────────
# Rate table
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RateEntry:
    asset: str
    rate:  int

    def to_dict(self) -> Dict[str, str]:
        return {"asset": self.asset, "rate": str(self.rate)}


def _amounts(mapping: Dict[str, int]) -> Dict[str, str]:
    return {asset: str(value) for asset, value in mapping.items()}


# ─────────────────────────────────────────────────────────────
# Events
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RedemptionReceipt:
    """One successful redeem/admin_redeem. The durable audit trail."""

    event_name = "redemption"

    pool:        str
    holder:      str
    beneficiary: str
    amount:      int
    payouts:     Tuple[Tuple[str, int], ...]
    admin:       bool = False

    def payout_of(self, asset: str) -> int:
        return dict(self.payouts).get(asset, 0)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "pool":        self.pool,
            "holder":      self.holder,
            "beneficiary": self.beneficiary,
            "amount":      str(self.amount),
            "payouts":     _amounts(dict(self.payouts)),
            "admin":       self.admin,
        }


@dataclass(frozen=True)
class RatesUpdated:
    event_name = "rates_updated"

    pool:            str
    floating_supply: int
    rates:           Tuple[RateEntry, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "pool":            self.pool,
            "floating_supply": str(self.floating_supply),
            "rates":           {e.asset: str(e.rate) for e in self.rates},
        }


@dataclass(frozen=True)
class FundsRecovered:
    event_name = "funds_recovered"

    pool:        str
    asset:       str
    amount:      int
    destination: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "pool":        self.pool,
            "asset":       self.asset,
            "amount":      str(self.amount),
            "destination": self.destination,
        }


@dataclass(frozen=True)
class OwnershipTransferProposed:
    event_name = "ownership_transfer_proposed"

    pool:      str
    owner:     str
    successor: str

    def to_payload(self) -> Dict[str, Any]:
        return {"pool": self.pool, "owner": self.owner, "successor": self.successor}


@dataclass(frozen=True)
class OwnershipTransferred:
    event_name = "ownership_transferred"

    pool:           str
    previous_owner: str
    new_owner:      str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "pool":           self.pool,
            "previous_owner": self.previous_owner,
            "new_owner":      self.new_owner,
        }


@dataclass(frozen=True)
class OwnershipTransferRejected:
    event_name = "ownership_transfer_rejected"

    pool:      str
    owner:     str
    successor: str

    def to_payload(self) -> Dict[str, Any]:
        return {"pool": self.pool, "owner": self.owner, "successor": self.successor}
