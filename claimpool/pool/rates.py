"""
claimpool/pool/rates.py

Cached per-asset exchange rates for one pool.

Rates are only ever written by update_rates(). Between snapshots they are
deliberately sticky: redemptions and recoveries move balances but leave the
table alone, so every redemption against one snapshot is priced against
the same floating supply.
"""

import logging
from typing import Any, Dict, List, Sequence

from claimpool.chain.host import HostLedger
from claimpool.core.exceptions import ValidationError
from claimpool.core.models import RateEntry, RatesUpdated, compute_rate
from claimpool.pool.assets import asset_balance
from claimpool.pool.ownership import AdminCap, Ownership

log = logging.getLogger(__name__)


class RateLedger:

    def __init__(
        self,
        host:      HostLedger,
        pool:      str,
        assets:    Sequence[str],
        ownership: Ownership,
    ) -> None:
        self.host      = host
        self.pool      = pool
        self.assets    = tuple(assets)
        self.ownership = ownership

        self._rates: Dict[str, int] = {asset: 0 for asset in self.assets}
        self.floating_supply: int   = 0

    def rate_of(self, asset: str) -> int:
        return self._rates[asset]

    def rates(self) -> List[RateEntry]:
        return [RateEntry(asset, self._rates[asset]) for asset in self.assets]

    def as_dict(self) -> Dict[str, int]:
        return dict(self._rates)

    def update_rates(self, cap: AdminCap, floating_supply: int) -> List[RateEntry]:
        """
        Snapshot rate = floor(balance * 1e18 / floating_supply) for every asset.

        A zero floating supply zeroes the table instead of dividing by zero;
        the pool is simply not actionable until the next snapshot.
        """
        self.ownership.require(cap)
        if (
            not isinstance(floating_supply, int)
            or isinstance(floating_supply, bool)
            or floating_supply < 0
        ):
            raise ValidationError(
                "floating_supply must be a non-negative int",
                {"floating_supply": floating_supply},
            )

        for asset in self.assets:
            if floating_supply == 0:
                self._rates[asset] = 0
            else:
                balance = asset_balance(self.host, asset, self.pool)
                self._rates[asset] = compute_rate(balance, floating_supply)
        self.floating_supply = floating_supply

        entries = self.rates()
        self.host.emit(self.pool, RatesUpdated(
            pool=self.pool,
            floating_supply=floating_supply,
            rates=tuple(entries),
        ))
        log.info(
            "pool %s: rates updated (floating_supply=%d) %s",
            self.pool, floating_supply,
            ", ".join(f"{e.asset}={e.rate}" for e in entries),
        )
        return entries

    def snapshot_state(self) -> Any:
        return (dict(self._rates), self.floating_supply)

    def restore_state(self, state: Any) -> None:
        rates, self.floating_supply = state
        self._rates = dict(rates)
