"""
Shared fixtures.

The reference pool mirrors the canonical scenario: 1000 units of asset A,
500 units of asset B, 100 claim tokens in circulation (alice 60, bob 40).
"""

from types import SimpleNamespace

import pytest

from claimpool import (
    ConsentSigner,
    EventLog,
    FungibleToken,
    HostLedger,
    RedemptionPool,
    terms_fingerprint,
)

TERMS = "I accept the wind-down terms and release all further claims."


@pytest.fixture
def terms_hash():
    return terms_fingerprint(TERMS)


@pytest.fixture
def host():
    return HostLedger()


@pytest.fixture
def admin():
    return ConsentSigner.generate()


@pytest.fixture
def alice():
    return ConsentSigner.generate()


@pytest.fixture
def bob():
    return ConsentSigner.generate()


@pytest.fixture
def carol():
    return ConsentSigner.generate()


@pytest.fixture
def claim(host, admin):
    return FungibleToken(host, "Claim", "CLM", minter=admin.address)


@pytest.fixture
def token_a(host, admin):
    return FungibleToken(host, "Asset A", "AAA", minter=admin.address)


@pytest.fixture
def token_b(host, admin):
    return FungibleToken(host, "Asset B", "BBB", minter=admin.address)


@pytest.fixture
def events(host):
    log = EventLog()
    host.subscribe(log)
    return log


def make_pool(host, claim, assets, admin, terms_hash, **kwargs):
    return RedemptionPool(
        host,
        claim,
        [getattr(a, "address", a) for a in assets],
        owner=admin.address,
        terms_hash=terms_hash,
        **kwargs,
    )


def seed(host, admin, claim, token_a, token_b, pool, alice, bob):
    token_a.mint(admin.address, pool.address, 1000)
    token_b.mint(admin.address, pool.address, 500)
    claim.mint(admin.address, alice.address, 60)
    claim.mint(admin.address, bob.address, 40)


@pytest.fixture
def world(host, admin, alice, bob, carol, claim, token_a, token_b, terms_hash, events):
    """Cached-rate pool over tokens A and B, funded and distributed."""
    pool = make_pool(host, claim, [token_a, token_b], admin, terms_hash)
    seed(host, admin, claim, token_a, token_b, pool, alice, bob)
    return SimpleNamespace(
        host=host, pool=pool, claim=claim, a=token_a, b=token_b,
        admin=admin, alice=alice, bob=bob, carol=carol,
        terms_hash=terms_hash, events=events,
    )


@pytest.fixture
def live_world(host, admin, alice, bob, carol, claim, token_a, token_b, terms_hash, events):
    """Live-rate pool, same funding."""
    pool = make_pool(host, claim, [token_a, token_b], admin, terms_hash, rate_mode="live")
    seed(host, admin, claim, token_a, token_b, pool, alice, bob)
    return SimpleNamespace(
        host=host, pool=pool, claim=claim, a=token_a, b=token_b,
        admin=admin, alice=alice, bob=bob, carol=carol,
        terms_hash=terms_hash, events=events,
    )


def redeem(world, signer, amount):
    """Approve and redeem with a valid consent signature."""
    world.claim.approve(signer.address, world.pool.address, amount)
    return world.pool.redeem(signer.address, amount, signer.sign_terms(world.terms_hash))
