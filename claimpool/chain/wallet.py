"""
claimpool/chain/wallet.py

Smart-contract wallet (multisig stand-in).

Implements the contract signature-validation standard (ERC-1271):

    is_valid_signature(hash, signature) → ERC1271_MAGIC_VALUE | ERC1271_INVALID

A hash is valid when the wallet has pre-approved it on-chain (the signature
may then be empty bytes) or when the signature recovers to one of the
wallet's owner keys. Owners drive the wallet through execute(), which
relays a call with the wallet's own address as caller.
"""

from typing import Any, Callable, Iterable, Set

from claimpool.chain.host import HostLedger, checksum
from claimpool.core.crypto import ConsentSigner
from claimpool.core.exceptions import AccessDenied
from claimpool.core.models import ERC1271_INVALID, ERC1271_MAGIC_VALUE


class ContractWallet:

    def __init__(self, host: HostLedger, owners: Iterable[str]) -> None:
        self.host    = host
        self.owners: Set[str] = {checksum(o) for o in owners}
        self._approved: Set[bytes] = set()
        self.address = host.deploy(self)

    def _require_owner(self, caller: str) -> None:
        if checksum(caller) not in self.owners:
            raise AccessDenied(
                "Caller is not a wallet owner",
                {"wallet": self.address, "caller": caller},
            )

    def approve_hash(self, caller: str, message_hash: bytes) -> None:
        """Record on-chain consent to message_hash."""
        self._require_owner(caller)
        self._approved.add(bytes(message_hash))

    def is_valid_signature(self, message_hash: bytes, signature: bytes) -> bytes:
        if bytes(message_hash) in self._approved:
            return ERC1271_MAGIC_VALUE
        if signature:
            signer = ConsentSigner.recover(message_hash, signature)
            if signer is not None and signer in self.owners:
                return ERC1271_MAGIC_VALUE
        return ERC1271_INVALID

    def execute(self, caller: str, target: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Relay target(wallet_address, *args) on behalf of an owner."""
        self._require_owner(caller)
        return target(self.address, *args, **kwargs)

    def snapshot_state(self) -> Any:
        return (set(self.owners), set(self._approved))

    def restore_state(self, state: Any) -> None:
        owners, approved = state
        self.owners    = set(owners)
        self._approved = set(approved)

    def __repr__(self) -> str:
        return f"ContractWallet({self.address}, owners={len(self.owners)})"
