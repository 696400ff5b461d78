"""
claimpool/pool/ownership.py

Administrator identity and the two-step transfer handshake.

    Owner ──propose(successor)──▶ Proposed ──accept()──▶ Accepted
                                      │
                                      ├──reject()─────▶ (pending cleared)
                                      └──propose(x)───▶ replaced / cancelled

authorize(caller) is the single entry-boundary check. It hands back an
AdminCap, and privileged internals accept nothing else. A cap is tied to
the owner epoch it was minted in; once ownership moves, old caps are dead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from claimpool.chain.host import HostLedger, checksum
from claimpool.core.exceptions import AccessDenied, OwnershipError
from claimpool.core.models import (
    ZERO_ADDRESS,
    OwnershipTransferProposed,
    OwnershipTransferRejected,
    OwnershipTransferred,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminCap:
    """Proof that `holder` was the administrator of `pool` at `epoch`."""
    pool:   str
    holder: str
    epoch:  int


class Ownership:

    def __init__(self, host: HostLedger, pool: str, owner: str) -> None:
        self.host  = host
        self.pool  = pool
        self.owner: str                   = checksum(owner)
        self.pending_owner: Optional[str] = None
        self.epoch: int                   = 0

    def authorize(self, caller: str) -> AdminCap:
        caller = checksum(caller)
        if caller != self.owner:
            raise AccessDenied(
                "Caller is not the pool administrator",
                {"pool": self.pool, "caller": caller},
            )
        return AdminCap(pool=self.pool, holder=caller, epoch=self.epoch)

    def require(self, cap: AdminCap) -> AdminCap:
        if (
            not isinstance(cap, AdminCap)
            or cap.pool != self.pool
            or cap.epoch != self.epoch
            or cap.holder != self.owner
        ):
            raise AccessDenied("Stale or foreign admin capability", {"pool": self.pool})
        return cap

    def propose(self, cap: AdminCap, successor: str) -> None:
        """Start a transfer. Proposing the zero address cancels a pending one."""
        self.require(cap)
        successor = checksum(successor)
        self.pending_owner = None if successor == ZERO_ADDRESS else successor
        self.host.emit(self.pool, OwnershipTransferProposed(
            pool=self.pool, owner=self.owner, successor=successor,
        ))
        log.info("pool %s: ownership proposed to %s", self.pool, successor)

    def accept(self, caller: str) -> None:
        caller = self._require_pending(caller)
        previous = self.owner
        self.owner         = caller
        self.pending_owner = None
        self.epoch        += 1
        self.host.emit(self.pool, OwnershipTransferred(
            pool=self.pool, previous_owner=previous, new_owner=caller,
        ))
        log.info("pool %s: ownership transferred %s -> %s", self.pool, previous, caller)

    def reject(self, caller: str) -> None:
        caller = self._require_pending(caller)
        self.pending_owner = None
        self.host.emit(self.pool, OwnershipTransferRejected(
            pool=self.pool, owner=self.owner, successor=caller,
        ))
        log.info("pool %s: ownership transfer rejected by %s", self.pool, caller)

    def _require_pending(self, caller: str) -> str:
        caller = checksum(caller)
        if self.pending_owner is None or caller != self.pending_owner:
            raise OwnershipError(
                "Caller is not the pending owner",
                {"pool": self.pool, "caller": caller, "pending": self.pending_owner},
            )
        return caller

    def snapshot_state(self) -> Any:
        return (self.owner, self.pending_owner, self.epoch)

    def restore_state(self, state: Any) -> None:
        self.owner, self.pending_owner, self.epoch = state
