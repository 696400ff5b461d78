"""
claimpool/pool/engine.py

Redemption engine: converts a claim-token amount into per-asset payouts.

Protocol for every redemption, self-service or administrator proxy:

    1. Acquire the pool's reentrancy guard (nested calls fail at once)
    2. Consent check (self-service only)
    3. payout[a] = floor(amount * rate[a] / 1e18) for every asset
    4. Pull the claim tokens into the pool (unless proxy without pull)
    5. Push every non-zero payout
    6. Emit a RedemptionReceipt
    7. Release the guard (on every path)

Payouts are computed before any transfer, and both redemption paths share
one settlement routine, so the same amount against the same rate state
always yields the same payout vector.

Variants differ only in where rates come from:

    CachedRateEngine   the RateLedger snapshot from the last update_rates()
    LiveRateEngine     recomputed per call from current balances and the
                       live floating supply  totalSupply - balanceOf(pool)
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Sequence

from claimpool.chain.host import HostLedger, checksum
from claimpool.chain.token import FungibleToken
from claimpool.consent.gate import ConsentGate
from claimpool.core.exceptions import ReentrancyError, UnsupportedOperation, ValidationError
from claimpool.core.models import RedemptionReceipt, compute_payout, compute_rate
from claimpool.pool.assets import asset_balance, push_asset
from claimpool.pool.ownership import AdminCap, Ownership
from claimpool.pool.rates import RateLedger

log = logging.getLogger(__name__)


def floating_supply(claim_token: FungibleToken, pool: str) -> int:
    """Claim tokens in circulation outside the pool."""
    return claim_token.total_supply() - claim_token.balance_of(pool)


class ReentrancyGuard:
    """Call-depth flag owned by a pool. Set on entry, cleared on every exit."""

    def __init__(self) -> None:
        self._entered = False

    @property
    def locked(self) -> bool:
        return self._entered

    @contextmanager
    def hold(self, entry_point: str) -> Iterator[None]:
        if self._entered:
            raise ReentrancyError(
                "Re-entrant call rejected", {"entry_point": entry_point}
            )
        self._entered = True
        try:
            yield
        finally:
            self._entered = False


class RedemptionEngine(ABC):

    def __init__(
        self,
        host:        HostLedger,
        pool:        str,
        claim_token: FungibleToken,
        assets:      Sequence[str],
        gate:        ConsentGate,
        ownership:   Ownership,
    ) -> None:
        self.host        = host
        self.pool        = pool
        self.claim_token = claim_token
        self.assets      = tuple(assets)
        self.gate        = gate
        self.ownership   = ownership
        self.guard       = ReentrancyGuard()

    @abstractmethod
    def current_rates(self) -> Dict[str, int]:
        """Rate per listed asset, scaled by RATE_SCALE."""

    def quote(self, amount: int) -> Dict[str, int]:
        """Per-asset payout for `amount` under the current rate state."""
        rates = self.current_rates()
        return {asset: compute_payout(amount, rates[asset]) for asset in self.assets}

    # ── Entry points ──────────────────────────────────────────

    def redeem(self, holder: str, amount: int, proof: bytes) -> Dict[str, int]:
        holder = checksum(holder)
        with self.guard.hold("redeem"):
            self.gate.require(holder, proof)
            return self._settle(
                holder=holder,
                beneficiary=holder,
                amount=amount,
                pull_from=holder,
                admin=False,
            )

    def admin_redeem(
        self,
        cap:         AdminCap,
        amount:      int,
        beneficiary: str,
        pull:        bool = True,
    ) -> Dict[str, int]:
        """
        Redeem on behalf of a holder who handed claim tokens to the
        administrator out-of-band. With pull=False the claim tokens are
        assumed to be accounted for already and are not moved.
        """
        self.ownership.require(cap)
        with self.guard.hold("admin_redeem"):
            return self._settle(
                holder=cap.holder,
                beneficiary=checksum(beneficiary),
                amount=amount,
                pull_from=cap.holder if pull else None,
                admin=True,
            )

    # ── Settlement ────────────────────────────────────────────

    def _settle(
        self,
        holder:      str,
        beneficiary: str,
        amount:      int,
        pull_from:   Optional[str],
        admin:       bool,
    ) -> Dict[str, int]:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("Redemption amount must be a positive int", {"amount": amount})

        payouts = self.quote(amount)

        if pull_from is not None:
            self.claim_token.transfer_from(self.pool, pull_from, self.pool, amount)

        for asset, payout in payouts.items():
            if payout:
                push_asset(self.host, asset, self.pool, beneficiary, payout)

        self.host.emit(self.pool, RedemptionReceipt(
            pool=self.pool,
            holder=holder,
            beneficiary=beneficiary,
            amount=amount,
            payouts=tuple(payouts.items()),
            admin=admin,
        ))
        log.info(
            "pool %s: %s redeemed %d for %s%s",
            self.pool, holder, amount, beneficiary, " (admin)" if admin else "",
        )
        return payouts


class CachedRateEngine(RedemptionEngine):

    def __init__(self, *args, rate_ledger: RateLedger, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rate_ledger = rate_ledger

    def current_rates(self) -> Dict[str, int]:
        return self.rate_ledger.as_dict()


class LiveRateEngine(RedemptionEngine):

    def floating_supply(self) -> int:
        return floating_supply(self.claim_token, self.pool)

    def current_rates(self) -> Dict[str, int]:
        floating = self.floating_supply()
        return {
            asset: compute_rate(asset_balance(self.host, asset, self.pool), floating)
            for asset in self.assets
        }

    def admin_redeem(
        self,
        cap:         AdminCap,
        amount:      int,
        beneficiary: str,
        pull:        bool = True,
    ) -> Dict[str, int]:
        """
        Live rates divide by the claim tokens outside the pool, so the
        redeemed tokens must land in the pool. pull=False is rejected.
        """
        self.ownership.require(cap)
        if not pull:
            raise UnsupportedOperation(
                "Live-rate pools only redeem claim tokens pulled into the pool",
                {"pool": self.pool, "amount": amount},
            )
        return super().admin_redeem(cap, amount, beneficiary, pull=True)
