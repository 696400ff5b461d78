"""
claimpool/pool/pool.py

RedemptionPool — one deployed redemption instance.

Composes the four parts of a pool and is the only object callers touch:

    ConsentGate        holder consent to the terms fingerprint
    RateLedger         cached rate table (cached pools only)
    RedemptionEngine   payout math and transfers
    AdminControl       ownership, snapshots, recovery, proxy redemption

Every state-changing entry point runs inside HostLedger.atomic(): a call
either completes or leaves every balance, rate and owner field untouched.
The set of redeemable assets is fixed here and never changes.
"""

from typing import Any, Dict, List, Optional, Sequence

from claimpool.chain.host import HostLedger, checksum
from claimpool.chain.token import FungibleToken
from claimpool.consent.gate import ConsentGate, ConsentScheme
from claimpool.core.exceptions import ValidationError
from claimpool.core.models import NATIVE_ASSET, RateEntry
from claimpool.pool.admin import AdminControl
from claimpool.pool.engine import (
    CachedRateEngine,
    LiveRateEngine,
    RedemptionEngine,
    floating_supply,
)
from claimpool.pool.ownership import Ownership
from claimpool.pool.rates import RateLedger


class RateMode:
    CACHED = "cached"
    LIVE   = "live"


_VALID_RATE_MODES = {RateMode.CACHED, RateMode.LIVE}


class RedemptionPool:

    def __init__(
        self,
        host:           HostLedger,
        claim_token:    FungibleToken,
        assets:         Sequence[str],
        owner:          str,
        terms_hash:     bytes,
        rate_mode:      str = RateMode.CACHED,
        consent_scheme: str = ConsentScheme.SIGNATURE,
    ) -> None:
        if rate_mode not in _VALID_RATE_MODES:
            raise ValidationError(
                f"Unknown rate mode '{rate_mode}'",
                {"valid": sorted(_VALID_RATE_MODES)},
            )
        assets = tuple(checksum(a) for a in assets)
        if not assets:
            raise ValidationError("A pool needs at least one redeemable asset")
        if len(set(assets)) != len(assets):
            raise ValidationError("Duplicate redeemable asset", {"assets": assets})
        if claim_token.address in assets:
            raise ValidationError(
                "The claim token cannot be a redeemable asset",
                {"claim_token": claim_token.address},
            )
        for asset in assets:
            if asset != NATIVE_ASSET and host.contract_at(asset) is None:
                raise ValidationError("Unknown asset contract", {"asset": asset})

        self.host        = host
        self.claim_token = claim_token
        self.assets      = assets
        self.rate_mode   = rate_mode
        self.address     = host.deploy(self)

        self.gate      = ConsentGate(host, terms_hash, consent_scheme)
        self.ownership = Ownership(host, self.address, owner)

        engine_args = (host, self.address, claim_token, assets, self.gate, self.ownership)
        self.rate_ledger: Optional[RateLedger] = None
        if rate_mode == RateMode.CACHED:
            self.rate_ledger = RateLedger(host, self.address, assets, self.ownership)
            self.engine: RedemptionEngine = CachedRateEngine(
                *engine_args, rate_ledger=self.rate_ledger,
            )
        else:
            self.engine = LiveRateEngine(*engine_args)

        self.admin = AdminControl(
            host, self.address, self.ownership, self.engine, self.rate_ledger,
        )

    # ── Queries ───────────────────────────────────────────────

    @property
    def terms_hash(self) -> bytes:
        return self.gate.terms_hash

    @property
    def consent_scheme(self) -> str:
        return self.gate.scheme

    @property
    def owner(self) -> str:
        return self.ownership.owner

    @property
    def pending_owner(self) -> Optional[str]:
        return self.ownership.pending_owner

    def rates(self) -> List[RateEntry]:
        current = self.engine.current_rates()
        return [RateEntry(asset, current[asset]) for asset in self.assets]

    def rate_of(self, asset: str) -> int:
        asset = checksum(asset)
        if asset not in self.assets:
            raise ValidationError("Asset is not redeemable from this pool", {"asset": asset})
        return self.engine.current_rates()[asset]

    def quote(self, amount: int) -> Dict[str, int]:
        return self.engine.quote(amount)

    def floating_supply(self) -> int:
        """Live model: claim tokens in circulation outside the pool."""
        return floating_supply(self.claim_token, self.address)

    def is_locked(self) -> bool:
        return self.engine.guard.locked

    # ── Public entry points ───────────────────────────────────

    def redeem(self, caller: str, amount: int, proof: bytes) -> Dict[str, int]:
        with self.host.atomic():
            return self.engine.redeem(caller, amount, proof)

    # ── Administrator entry points ────────────────────────────

    def update_rates(self, caller: str, floating_supply: int) -> List[RateEntry]:
        with self.host.atomic():
            return self.admin.update_rates(caller, floating_supply)

    def admin_recover(self, caller: str, asset: str, amount: int, destination: str) -> None:
        with self.host.atomic():
            self.admin.admin_recover(caller, asset, amount, destination)

    def admin_redeem(
        self,
        caller:      str,
        amount:      int,
        beneficiary: str,
        pull:        bool = True,
    ) -> Dict[str, int]:
        with self.host.atomic():
            return self.admin.admin_redeem(caller, amount, beneficiary, pull=pull)

    def propose_owner(self, caller: str, successor: str) -> None:
        with self.host.atomic():
            self.admin.propose_owner(caller, successor)

    def accept_ownership(self, caller: str) -> None:
        with self.host.atomic():
            self.admin.accept_ownership(caller)

    def reject_ownership(self, caller: str) -> None:
        with self.host.atomic():
            self.admin.reject_ownership(caller)

    # ── Rollback ──────────────────────────────────────────────

    def snapshot_state(self) -> Any:
        rates = self.rate_ledger.snapshot_state() if self.rate_ledger else None
        return (self.ownership.snapshot_state(), rates)

    def restore_state(self, state: Any) -> None:
        ownership, rates = state
        self.ownership.restore_state(ownership)
        if self.rate_ledger is not None:
            self.rate_ledger.restore_state(rates)

    def __repr__(self) -> str:
        return f"RedemptionPool({self.address}, {self.rate_mode}, assets={len(self.assets)})"
