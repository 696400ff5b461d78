"""
claimpool/__init__.py

ClaimPool: consent-gated pro-rata redemption of a frozen asset pool.

Holders of a claim token redeem it for their share of the pool's native
currency and token balances, after signing the pool's terms. Every
committed redemption lands in a hash-chained audit event log.
"""

__version__ = "0.1.0"

from claimpool.chain import ContractWallet, FungibleToken, HostLedger
from claimpool.consent import ConsentGate, ConsentScheme, acceptance_token
from claimpool.core.crypto import AuditKeyManager, ConsentSigner
from claimpool.core.models import (
    NATIVE_ASSET,
    RATE_SCALE,
    RateEntry,
    RedemptionReceipt,
    compute_payout,
    compute_rate,
    terms_fingerprint,
)
from claimpool.ledger import EventLog, EventReplay
from claimpool.pool import RateMode, RedemptionPool

__all__ = [
    # Pools
    "RedemptionPool",
    "RateMode",
    "ConsentGate",
    "ConsentScheme",
    # Host ledger
    "HostLedger",
    "FungibleToken",
    "ContractWallet",
    # Keys
    "ConsentSigner",
    "AuditKeyManager",
    # Audit
    "EventLog",
    "EventReplay",
    # Records and math
    "RateEntry",
    "RedemptionReceipt",
    "compute_rate",
    "compute_payout",
    "terms_fingerprint",
    "acceptance_token",
    # Constants
    "NATIVE_ASSET",
    "RATE_SCALE",
]
