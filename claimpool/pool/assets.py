"""
Balance reads and outbound transfers for redeemable assets.

The native currency is addressed by NATIVE_ASSET (the zero address); every
other asset is the address of a token contract deployed on the host.
"""

from claimpool.chain.host import HostLedger, checksum
from claimpool.core.exceptions import ValidationError
from claimpool.core.models import NATIVE_ASSET


def token_at(host: HostLedger, asset: str):
    token = host.contract_at(asset)
    if token is None or not hasattr(token, "balance_of"):
        raise ValidationError("Asset is not a token contract", {"asset": asset})
    return token


def asset_balance(host: HostLedger, asset: str, holder: str) -> int:
    if checksum(asset) == NATIVE_ASSET:
        return host.balance_of(holder)
    return token_at(host, asset).balance_of(holder)


def push_asset(host: HostLedger, asset: str, sender: str, to: str, amount: int) -> None:
    if checksum(asset) == NATIVE_ASSET:
        host.transfer_native(sender, to, amount)
    else:
        token_at(host, asset).transfer(sender, to, amount)
