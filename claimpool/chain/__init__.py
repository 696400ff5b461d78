"""
ClaimPool host ledger simulation.

Serialized, atomic execution with native balances, fungible tokens and
contract wallets. Pools are deployed onto a HostLedger.
"""

from claimpool.chain.host import HostLedger, checksum
from claimpool.chain.token import FungibleToken, MAX_ALLOWANCE
from claimpool.chain.wallet import ContractWallet

__all__ = [
    "HostLedger",
    "FungibleToken",
    "ContractWallet",
    "MAX_ALLOWANCE",
    "checksum",
]
