"""
claimpool/chain/host.py

In-process host ledger.

Provides exactly the guarantees the pools rely on:

    1. Serialized execution       one call at a time, no threads inside
    2. Native-currency balances   with receive hooks on contract recipients
    3. Contract registry          deterministic addresses, is_contract()
    4. Atomic transactions        atomic() savepoints roll back every
                                  registered contract and the native
                                  balances when the block raises
    5. Events                     buffered per transaction, discarded on
                                  rollback, written to sinks as the last
                                  step of the outermost transaction

A "contract" is any object with an `address` attribute. Contracts that own
mutable state implement snapshot_state() / restore_state(state) and are
rolled back with the transaction.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from eth_utils import is_address, keccak, to_checksum_address

from claimpool.core.exceptions import InsufficientFunds, ValidationError

log = logging.getLogger(__name__)


class EventSink(Protocol):
    """
    Receives committed events. Sinks may also implement
    append_many(entries) to take a whole transaction at once, and
    snapshot_state() / restore_state(state) to be rolled back when a later
    sink fails.
    """

    def append(self, emitter: str, event: Any) -> Any: ...


def checksum(address: str) -> str:
    """Normalize an address, raising ValidationError if it is not one."""
    if not isinstance(address, str) or not is_address(address):
        raise ValidationError("Not an address", {"address": address})
    return to_checksum_address(address)


class HostLedger:
    """
    Single-threaded host ledger with savepoint semantics.

    Usage:
        host = HostLedger()
        token = FungibleToken(host, "Claim", "CLM", minter=admin)
        host.mint_native(pool.address, 1000)
        with host.atomic():
            ...   # any raise restores every contract's state
    """

    def __init__(self) -> None:
        self._native:    Dict[str, int]            = {}
        self._contracts: Dict[str, Any]            = {}
        self._nonce:     int                       = 0
        self._depth:     int                       = 0
        self._pending:   List[Tuple[str, Any]]     = []
        self._sinks:     List[EventSink]           = []
        self.events:     List[Tuple[str, Any]]     = []

    # ── Contracts ─────────────────────────────────────────────

    def deploy(self, contract: Any, salt: bytes = b"") -> str:
        """Register a contract and return its deterministic address."""
        self._nonce += 1
        digest  = keccak(b"claimpool-deploy" + self._nonce.to_bytes(8, "big") + salt)
        address = to_checksum_address(digest[-20:])
        self._contracts[address] = contract
        log.debug("deployed %s at %s", type(contract).__name__, address)
        return address

    def is_contract(self, address: str) -> bool:
        return checksum(address) in self._contracts

    def contract_at(self, address: str) -> Optional[Any]:
        return self._contracts.get(checksum(address))

    # ── Native currency ───────────────────────────────────────

    def balance_of(self, address: str) -> int:
        return self._native.get(checksum(address), 0)

    def mint_native(self, address: str, amount: int) -> None:
        """Credit native currency out of thin air. Bootstrap and tests only."""
        if amount < 0:
            raise ValidationError("Negative mint", {"amount": amount})
        address = checksum(address)
        self._native[address] = self._native.get(address, 0) + amount

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        """
        Move native currency, then run the recipient's receive hook.

        The hook runs after balances are updated, exactly like a value call
        on the host chain, so receiving code can observe and re-enter.
        """
        sender = checksum(sender)
        to     = checksum(to)
        if amount < 0:
            raise ValidationError("Negative transfer", {"amount": amount})
        with self.atomic():
            balance = self._native.get(sender, 0)
            if balance < amount:
                raise InsufficientFunds(
                    "Native balance too low",
                    {"sender": sender, "balance": balance, "amount": amount},
                )
            self._native[sender] = balance - amount
            self._native[to]     = self._native.get(to, 0) + amount

            receiver = self._contracts.get(to)
            hook = getattr(receiver, "on_native_received", None)
            if hook is not None:
                hook(sender, amount)

    # ── Events ────────────────────────────────────────────────

    def subscribe(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, emitter: str, event: Any) -> None:
        if self._depth == 0:
            with self.atomic():
                self._pending.append((emitter, event))
        else:
            self._pending.append((emitter, event))

    def events_of(self, event_type: type) -> List[Any]:
        return [e for _, e in self.events if isinstance(e, event_type)]

    # ── Transactions ──────────────────────────────────────────

    @contextmanager
    def atomic(self) -> Iterator["HostLedger"]:
        """
        Savepoint. Nested blocks roll back only their own changes; the
        outermost block publishes buffered events to every sink before it
        commits. A sink that raises rolls the whole transaction back,
        including records other sinks already accepted.
        """
        outermost      = self._depth == 0
        native_before  = dict(self._native)
        pending_before = len(self._pending)
        contracts      = list(self._contracts.values())
        states = [
            (c, c.snapshot_state())
            for c in contracts
            if hasattr(c, "snapshot_state")
        ]
        if outermost:
            states += [
                (s, s.snapshot_state())
                for s in self._sinks
                if hasattr(s, "snapshot_state")
            ]

        self._depth += 1
        try:
            yield self
            if outermost:
                self._publish()
        except BaseException:
            self._native = native_before
            del self._pending[pending_before:]
            for target, state in states:
                target.restore_state(state)
            raise
        finally:
            self._depth -= 1

    def _publish(self) -> None:
        pending = list(self._pending)
        if not pending:
            return
        for sink in self._sinks:
            append_many = getattr(sink, "append_many", None)
            if append_many is not None:
                append_many(pending)
            else:
                for emitter, event in pending:
                    sink.append(emitter, event)
        self.events.extend(pending)
        self._pending.clear()
