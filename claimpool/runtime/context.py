"""
Runtime context: a configured pool wired to its audit event log.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from claimpool.chain.host import HostLedger
from claimpool.chain.token import FungibleToken
from claimpool.config import NATIVE_SYMBOL, PoolConfig, configure_logging
from claimpool.core.crypto import AuditKeyManager
from claimpool.core.exceptions import ConfigError
from claimpool.core.models import NATIVE_ASSET
from claimpool.ledger.events import EventLog
from claimpool.pool.pool import RedemptionPool


@dataclass
class RuntimeContext:
    config:     PoolConfig
    host:       HostLedger
    pool:       RedemptionPool
    events:     EventLog
    audit_key:  Optional[AuditKeyManager] = None

    @classmethod
    def from_config(
        cls,
        config:      PoolConfig,
        host:        HostLedger,
        claim_token: FungibleToken,
        tokens:      Mapping[str, FungibleToken],
        owner:       str,
    ) -> "RuntimeContext":
        """
        Deploy the configured pool. `tokens` maps config asset symbols to
        deployed token contracts; the symbol "native" is the native currency.
        """
        configure_logging(config.log_level)

        assets = []
        for symbol in config.assets:
            if symbol.lower() == NATIVE_SYMBOL:
                assets.append(NATIVE_ASSET)
            elif symbol in tokens:
                assets.append(tokens[symbol].address)
            else:
                raise ConfigError(f"No token deployed for asset '{symbol}'")

        audit_key = None
        if config.audit_key:
            audit_key = AuditKeyManager.load_or_create(Path(config.audit_key))

        events = EventLog(config.event_log, key_manager=audit_key)
        host.subscribe(events)

        pool = RedemptionPool(
            host,
            claim_token,
            assets,
            owner=          owner,
            terms_hash=     config.terms_hash,
            rate_mode=      config.rate_mode,
            consent_scheme= config.consent_scheme,
        )
        return cls(config=config, host=host, pool=pool, events=events, audit_key=audit_key)

    def __repr__(self) -> str:
        return (
            f"RuntimeContext("
            f"pool={self.config.name!r}, "
            f"address={self.pool.address}, "
            f"events={len(self.events.records)})"
        )
