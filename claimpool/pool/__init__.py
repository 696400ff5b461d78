"""
ClaimPool redemption pools.

Holders redeem claim tokens for a pro-rata slice of a frozen pool of
native currency and tokens. Rates are either snapshotted by the
administrator (cached) or recomputed from live balances on every call.

Critical invariants:
- Rates are floor(balance * 1e18 / floating_supply), zero on zero supply
- Payouts are floor(amount * rate / 1e18); dust stays in the pool
- Self-service and administrator redemptions share one payout routine
- No redemption can re-enter another on the same pool
- Every entry point is all-or-nothing
"""

from claimpool.pool.admin import AdminControl
from claimpool.pool.engine import (
    CachedRateEngine,
    LiveRateEngine,
    ReentrancyGuard,
    RedemptionEngine,
)
from claimpool.pool.ownership import AdminCap, Ownership
from claimpool.pool.pool import RateMode, RedemptionPool
from claimpool.pool.rates import RateLedger

__all__ = [
    "RedemptionPool",
    "RateMode",
    "RateLedger",
    "RedemptionEngine",
    "CachedRateEngine",
    "LiveRateEngine",
    "ReentrancyGuard",
    "AdminControl",
    "AdminCap",
    "Ownership",
]
