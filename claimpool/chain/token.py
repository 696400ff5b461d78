"""
claimpool/chain/token.py

Fungible token with ERC-20 transfer semantics.

Amounts are integer base units. transfer_from consumes allowance unless the
allowance is the unlimited sentinel. When notify_receivers is set, contract
recipients get on_token_received(token, sender, amount) after the balance
moves (ERC-777 style), which gives recipient code a chance to re-enter.
"""

from typing import Any, Dict, Optional, Tuple

from claimpool.chain.host import HostLedger, checksum
from claimpool.core.exceptions import (
    AccessDenied,
    InsufficientAllowance,
    InsufficientFunds,
    ValidationError,
)

MAX_ALLOWANCE = 2 ** 256 - 1


class FungibleToken:

    def __init__(
        self,
        host:             HostLedger,
        name:             str,
        symbol:           str,
        minter:           Optional[str] = None,
        decimals:         int = 18,
        notify_receivers: bool = False,
    ) -> None:
        self.host             = host
        self.name             = name
        self.symbol           = symbol
        self.decimals         = decimals
        self.notify_receivers = notify_receivers
        self.minter           = checksum(minter) if minter else None

        self._balances:   Dict[str, int]             = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._supply:     int                        = 0

        self.address = host.deploy(self, salt=symbol.encode("utf-8"))

    # ── Views ─────────────────────────────────────────────────

    def total_supply(self) -> int:
        return self._supply

    def balance_of(self, owner: str) -> int:
        return self._balances.get(checksum(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((checksum(owner), checksum(spender)), 0)

    # ── Mutations ─────────────────────────────────────────────

    def mint(self, caller: str, to: str, amount: int) -> None:
        """Create supply. Only the configured minter; used at bootstrap."""
        if self.minter is None or checksum(caller) != self.minter:
            raise AccessDenied("Only the minter can mint", {"caller": caller})
        _require_amount(amount)
        to = checksum(to)
        with self.host.atomic():
            self._balances[to] = self._balances.get(to, 0) + amount
            self._supply += amount

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        _require_amount(amount)
        self._allowances[(checksum(caller), checksum(spender))] = amount
        return True

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        with self.host.atomic():
            self._move(checksum(caller), checksum(to), amount)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        caller = checksum(caller)
        owner  = checksum(owner)
        with self.host.atomic():
            allowed = self._allowances.get((owner, caller), 0)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance too low",
                    {"owner": owner, "spender": caller,
                     "allowance": allowed, "amount": amount},
                )
            if allowed != MAX_ALLOWANCE:
                self._allowances[(owner, caller)] = allowed - amount
            self._move(owner, checksum(to), amount)
        return True

    def _move(self, sender: str, to: str, amount: int) -> None:
        _require_amount(amount)
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientFunds(
                f"{self.symbol}: balance too low",
                {"sender": sender, "balance": balance, "amount": amount},
            )
        self._balances[sender] = balance - amount
        self._balances[to]     = self._balances.get(to, 0) + amount

        if self.notify_receivers:
            receiver = self.host.contract_at(to)
            hook = getattr(receiver, "on_token_received", None)
            if hook is not None:
                hook(self, sender, amount)

    # ── Rollback ──────────────────────────────────────────────

    def snapshot_state(self) -> Any:
        return (dict(self._balances), dict(self._allowances), self._supply)

    def restore_state(self, state: Any) -> None:
        balances, allowances, supply = state
        self._balances   = dict(balances)
        self._allowances = dict(allowances)
        self._supply     = supply

    def __repr__(self) -> str:
        return f"FungibleToken({self.symbol} @ {self.address})"


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValidationError("Amount must be a non-negative int", {"amount": amount})
