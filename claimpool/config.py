"""
Pool configuration.

A pool is described by a small YAML file:

    name: series-a-wind-down
    rate_mode: cached              # cached | live
    consent_scheme: signature      # signature | acceptance_token
    terms_text: |
      I accept the wind-down terms ...
    assets: [native, USDC, WETH]
    event_log: .claimpool/series-a
    audit_key: .claimpool/keys/audit.pem
    log_level: INFO

Either terms_text or terms_hash (0x-prefixed, 32 bytes) must be given.
CLAIMPOOL_LOG_LEVEL overrides log_level.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import yaml

from claimpool.consent.gate import ConsentScheme
from claimpool.core.exceptions import ConfigError
from claimpool.core.models import TERMS_HASH_LENGTH, terms_fingerprint
from claimpool.pool.pool import RateMode

NATIVE_SYMBOL = "native"

_RATE_MODES      = {RateMode.CACHED, RateMode.LIVE}
_CONSENT_SCHEMES = {ConsentScheme.SIGNATURE, ConsentScheme.ACCEPTANCE_TOKEN}
_LOG_LEVELS      = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class PoolConfig:
    name:           str
    rate_mode:      str
    consent_scheme: str
    terms_hash:     bytes
    assets:         Tuple[str, ...]
    event_log:      Optional[str] = None
    audit_key:      Optional[str] = None
    log_level:      str = "INFO"

    @classmethod
    def from_yaml(cls, path: Path) -> "PoolConfig":
        path = Path(path)
        if not path.exists():
            raise ConfigError("Config file not found", {"path": str(path)})
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML: {exc}", {"path": str(path)}) from exc
        if not isinstance(raw, dict):
            raise ConfigError("Config root must be a mapping", {"path": str(path)})
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> "PoolConfig":
        rate_mode = str(raw.get("rate_mode", RateMode.CACHED)).strip().lower()
        if rate_mode not in _RATE_MODES:
            raise ConfigError(f"Unknown rate_mode '{rate_mode}'", {"valid": sorted(_RATE_MODES)})

        scheme = str(raw.get("consent_scheme", ConsentScheme.SIGNATURE)).strip().lower()
        if scheme not in _CONSENT_SCHEMES:
            raise ConfigError(
                f"Unknown consent_scheme '{scheme}'", {"valid": sorted(_CONSENT_SCHEMES)}
            )

        assets = raw.get("assets") or []
        if not isinstance(assets, list) or not assets:
            raise ConfigError("assets must be a non-empty list")

        log_level = os.environ.get("CLAIMPOOL_LOG_LEVEL", raw.get("log_level", "INFO"))
        log_level = str(log_level).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log_level '{log_level}'")

        return cls(
            name=           str(raw.get("name", "pool")),
            rate_mode=      rate_mode,
            consent_scheme= scheme,
            terms_hash=     _terms_hash(raw),
            assets=         tuple(str(a) for a in assets),
            event_log=      raw.get("event_log"),
            audit_key=      raw.get("audit_key"),
            log_level=      log_level,
        )


def _terms_hash(raw: dict) -> bytes:
    if raw.get("terms_hash"):
        value = str(raw["terms_hash"])
        try:
            digest = bytes.fromhex(value[2:] if value.startswith("0x") else value)
        except ValueError as exc:
            raise ConfigError("terms_hash is not hex") from exc
        if len(digest) != TERMS_HASH_LENGTH:
            raise ConfigError(f"terms_hash must be {TERMS_HASH_LENGTH} bytes")
        return digest
    if raw.get("terms_text"):
        return terms_fingerprint(str(raw["terms_text"]))
    raise ConfigError("Either terms_text or terms_hash is required")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
