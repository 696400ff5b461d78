"""
ClaimPool: Basic Redemption Example

Demonstrates:
- Deploying a cached-rate pool over native currency and one token
- Snapshotting rates
- Holder consent and self-service redemption
- Auditing the signed event log
"""

from pathlib import Path

from claimpool import (
    NATIVE_ASSET,
    AuditKeyManager,
    ConsentSigner,
    EventLog,
    EventReplay,
    FungibleToken,
    HostLedger,
    RedemptionPool,
    terms_fingerprint,
)

TERMS = "I accept the wind-down terms and release all further claims."


def main():
    """Basic ClaimPool usage."""

    print("=" * 60)
    print("ClaimPool: Basic Redemption Example")
    print("=" * 60)
    print()

    host   = HostLedger()
    admin  = ConsentSigner.generate()
    holder = ConsentSigner.generate()

    log_dir = Path(".claimpool") / "example"
    events  = EventLog(log_dir, key_manager=AuditKeyManager.generate())
    host.subscribe(events)

    # 1️⃣ Deploy tokens and pool
    print("1️⃣ Deploying pool...")
    claim = FungibleToken(host, "Claim", "CLM", minter=admin.address)
    usdc  = FungibleToken(host, "USD Coin", "USDC", minter=admin.address, decimals=6)
    terms_hash = terms_fingerprint(TERMS)
    pool = RedemptionPool(
        host, claim, [NATIVE_ASSET, usdc.address],
        owner=admin.address, terms_hash=terms_hash,
    )
    print(f"  ✅ Pool: {pool.address}")
    print(f"  ✅ Terms: 0x{terms_hash.hex()}")
    print()

    # 2️⃣ Fund and distribute
    print("2️⃣ Funding pool and distributing claims...")
    host.mint_native(pool.address, 1000)
    usdc.mint(admin.address, pool.address, 500)
    claim.mint(admin.address, holder.address, 60)
    claim.mint(admin.address, admin.address, 40)
    print()

    # 3️⃣ Snapshot rates
    print("3️⃣ Snapshotting rates...")
    for entry in pool.update_rates(admin.address, claim.total_supply()):
        print(f"  {entry.asset}  {entry.rate}")
    print()

    # 4️⃣ Redeem
    print("4️⃣ Holder redeems 10 claim tokens...")
    claim.approve(holder.address, pool.address, 10)
    payouts = pool.redeem(holder.address, 10, holder.sign_terms(terms_hash))
    for asset, amount in payouts.items():
        print(f"  ✅ {amount} of {asset}")
    print()

    # 5️⃣ Audit
    print("5️⃣ Auditing event log...")
    replay = EventReplay()
    replay.load(events.path)
    summary = replay.verify()
    print(f"  Records: {summary.total_records}")
    print(f"  Signed:  {summary.valid_signatures} valid")
    print(f"  Valid:   {summary.valid}")
    print()

    print("=" * 60)
    print("✅ Basic redemption complete!")
    print("=" * 60)
    print()
    print("Next steps:")
    print(f"  - Audit from the shell: claimpool audit {events.path}")
    print("  - Fingerprint your own terms: claimpool terms-hash terms.txt")


if __name__ == "__main__":
    main()
