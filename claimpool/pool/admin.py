"""
claimpool/pool/admin.py

Administrator surface of a pool.

Every method takes the raw caller, converts it to an AdminCap exactly once
via Ownership.authorize(), and passes the cap down. Nothing below this
layer looks at who the caller is.

Rate updates and recoveries carry no lock. The administrator is expected to
call update_rates() after admin_recover(); until then the cached table
still quotes the pre-recovery balances.
"""

import logging
from typing import Dict, List, Optional

from claimpool.chain.host import HostLedger, checksum
from claimpool.core.exceptions import UnsupportedOperation, ValidationError
from claimpool.core.models import FundsRecovered, RateEntry
from claimpool.pool.assets import push_asset
from claimpool.pool.engine import RedemptionEngine
from claimpool.pool.ownership import Ownership
from claimpool.pool.rates import RateLedger

log = logging.getLogger(__name__)


class AdminControl:

    def __init__(
        self,
        host:        HostLedger,
        pool:        str,
        ownership:   Ownership,
        engine:      RedemptionEngine,
        rate_ledger: Optional[RateLedger] = None,
    ) -> None:
        self.host        = host
        self.pool        = pool
        self.ownership   = ownership
        self.engine      = engine
        self.rate_ledger = rate_ledger

    def update_rates(self, caller: str, floating_supply: int) -> List[RateEntry]:
        cap = self.ownership.authorize(caller)
        if self.rate_ledger is None:
            raise UnsupportedOperation(
                "Live-rate pools have no rate snapshot", {"pool": self.pool}
            )
        return self.rate_ledger.update_rates(cap, floating_supply)

    def admin_recover(self, caller: str, asset: str, amount: int, destination: str) -> None:
        """Unconditionally move `amount` of `asset` out of the pool."""
        cap = self.ownership.authorize(caller)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValidationError("Recovery amount must be a non-negative int", {"amount": amount})
        asset       = checksum(asset)
        destination = checksum(destination)

        push_asset(self.host, asset, self.pool, destination, amount)
        self.host.emit(self.pool, FundsRecovered(
            pool=self.pool, asset=asset, amount=amount, destination=destination,
        ))
        log.info(
            "pool %s: %s recovered %d of %s to %s",
            self.pool, cap.holder, amount, asset, destination,
        )
        if amount and self.rate_ledger is not None and asset in self.rate_ledger.assets:
            log.warning(
                "pool %s: cached rate for %s now exceeds holdings until update_rates()",
                self.pool, asset,
            )

    def admin_redeem(
        self,
        caller:      str,
        amount:      int,
        beneficiary: str,
        pull:        bool = True,
    ) -> Dict[str, int]:
        cap = self.ownership.authorize(caller)
        return self.engine.admin_redeem(cap, amount, beneficiary, pull=pull)

    def propose_owner(self, caller: str, successor: str) -> None:
        cap = self.ownership.authorize(caller)
        self.ownership.propose(cap, successor)

    def accept_ownership(self, caller: str) -> None:
        self.ownership.accept(caller)

    def reject_ownership(self, caller: str) -> None:
        self.ownership.reject(caller)
