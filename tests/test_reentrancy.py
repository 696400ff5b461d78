"""
tests/test_reentrancy.py

Re-entry through the host's callback points.

  REE-01  A native receive hook re-entering redeem() is rejected
  REE-02  An escaped rejection rolls the whole outer call back
  REE-03  A swallowed rejection still leaves exactly one payout
  REE-04  Token receive hooks are covered the same way
  REE-05  An owner contract re-entering admin_redeem() is rejected
  REE-06  Re-entry from the consent callback reads as invalid consent
  REE-07  The guard is released on every exit path
"""

import pytest

from claimpool import NATIVE_ASSET, FungibleToken, RedemptionReceipt
from claimpool.core.exceptions import InvalidSignature, ReentrancyError
from claimpool.core.models import ERC1271_MAGIC_VALUE
from claimpool.pool.engine import ReentrancyGuard

from conftest import make_pool


class ReentrantHolder:
    """Contract holder that tries to redeem again whenever the pool pays it."""

    def __init__(self, host, swallow=False):
        self.host     = host
        self.swallow  = swallow
        self.pool     = None
        self.attempts = []
        self.address  = host.deploy(self)

    def is_valid_signature(self, message_hash, signature):
        return ERC1271_MAGIC_VALUE

    def _reenter(self):
        try:
            self.pool.redeem(self.address, 1, b"")
        except ReentrancyError as exc:
            self.attempts.append(exc)
            if not self.swallow:
                raise

    def on_native_received(self, sender, amount):
        if self.pool is not None and sender == self.pool.address:
            self._reenter()

    def on_token_received(self, token, sender, amount):
        if self.pool is not None and sender == self.pool.address:
            self._reenter()


class ReentrantOwner:
    """Administrator contract that re-enters admin_redeem on payment."""

    def __init__(self, host):
        self.host    = host
        self.pool    = None
        self.address = host.deploy(self)

    def on_native_received(self, sender, amount):
        if self.pool is not None and sender == self.pool.address:
            self.pool.admin_redeem(self.address, 1, self.address, pull=False)


class ConsentReentrant:
    """Contract holder whose signature check calls back into the pool."""

    def __init__(self, host):
        self.host    = host
        self.pool    = None
        self.address = host.deploy(self)

    def is_valid_signature(self, message_hash, signature):
        self.pool.redeem(self.address, 1, b"")
        return ERC1271_MAGIC_VALUE


def native_pool(host, admin, claim, token_a, terms_hash, holder):
    pool = make_pool(host, claim, [NATIVE_ASSET, token_a], admin, terms_hash)
    host.mint_native(pool.address, 1000)
    token_a.mint(admin.address, pool.address, 500)
    claim.mint(admin.address, holder.address, 60)
    claim.mint(admin.address, admin.address, 40)
    pool.update_rates(admin.address, 100)
    holder.pool = pool
    claim.approve(holder.address, pool.address, 20)
    return pool


class TestReceiveHookReentry:

    def test_REE01_REE02_escaped_error_rolls_back(self, host, admin, claim, token_a, terms_hash):
        holder = ReentrantHolder(host)
        pool = native_pool(host, admin, claim, token_a, terms_hash, holder)

        with pytest.raises(ReentrancyError):
            pool.redeem(holder.address, 10, b"")

        assert len(holder.attempts) == 1
        assert host.balance_of(holder.address) == 0
        assert host.balance_of(pool.address) == 1000
        assert token_a.balance_of(holder.address) == 0
        assert claim.balance_of(holder.address) == 60
        assert claim.allowance(holder.address, pool.address) == 20
        assert host.events_of(RedemptionReceipt) == []
        assert not pool.is_locked()

    def test_REE03_swallowed_error_single_payout(self, host, admin, claim, token_a, terms_hash):
        holder = ReentrantHolder(host, swallow=True)
        pool = native_pool(host, admin, claim, token_a, terms_hash, holder)

        payouts = pool.redeem(holder.address, 10, b"")

        assert payouts == {NATIVE_ASSET: 100, token_a.address: 50}
        assert len(holder.attempts) == 1
        assert host.balance_of(holder.address) == 100
        assert token_a.balance_of(holder.address) == 50
        assert claim.balance_of(pool.address) == 10
        assert len(host.events_of(RedemptionReceipt)) == 1

    def test_REE04_token_hook(self, host, admin, claim, terms_hash):
        hooked = FungibleToken(host, "Hooked", "HKD", minter=admin.address, notify_receivers=True)
        holder = ReentrantHolder(host)
        pool = make_pool(host, claim, [hooked], admin, terms_hash)
        hooked.mint(admin.address, pool.address, 1000)
        claim.mint(admin.address, holder.address, 100)
        pool.update_rates(admin.address, 100)
        holder.pool = pool
        claim.approve(holder.address, pool.address, 10)

        with pytest.raises(ReentrancyError):
            pool.redeem(holder.address, 10, b"")

        assert hooked.balance_of(pool.address) == 1000
        assert claim.balance_of(holder.address) == 100

    def test_REE05_owner_contract(self, host, admin, claim, terms_hash):
        owner = ReentrantOwner(host)
        pool = make_pool(host, claim, [NATIVE_ASSET], owner, terms_hash)
        host.mint_native(pool.address, 1000)
        claim.mint(admin.address, admin.address, 100)
        pool.update_rates(owner.address, 100)
        owner.pool = pool

        with pytest.raises(ReentrancyError):
            pool.admin_redeem(owner.address, 10, owner.address, pull=False)

        assert host.balance_of(pool.address) == 1000
        assert not pool.is_locked()


class TestConsentCallbackReentry:

    def test_REE06_reads_as_invalid_consent(self, host, admin, claim, token_a, terms_hash):
        holder = ConsentReentrant(host)
        pool = native_pool(host, admin, claim, token_a, terms_hash, holder)

        with pytest.raises(InvalidSignature):
            pool.redeem(holder.address, 10, b"")

        assert host.balance_of(pool.address) == 1000
        assert claim.balance_of(holder.address) == 60


class TestGuardRelease:

    def test_REE07_pool_usable_after_rejection(self, host, admin, alice, claim, token_a, terms_hash):
        holder = ReentrantHolder(host)
        pool = native_pool(host, admin, claim, token_a, terms_hash, holder)
        with pytest.raises(ReentrancyError):
            pool.redeem(holder.address, 10, b"")

        claim.transfer(admin.address, alice.address, 10)
        claim.approve(alice.address, pool.address, 10)
        payouts = pool.redeem(alice.address, 10, alice.sign_terms(terms_hash))

        assert payouts == {NATIVE_ASSET: 100, token_a.address: 50}

    def test_guard_unit(self):
        guard = ReentrancyGuard()
        assert not guard.locked

        with guard.hold("outer"):
            assert guard.locked
            with pytest.raises(ReentrancyError) as exc_info:
                with guard.hold("inner"):
                    pass
            assert exc_info.value.details["entry_point"] == "inner"
            assert guard.locked
        assert not guard.locked

    def test_guard_released_after_exception(self):
        guard = ReentrancyGuard()
        with pytest.raises(ValueError):
            with guard.hold("redeem"):
                raise ValueError("boom")
        assert not guard.locked
