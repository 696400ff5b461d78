"""
claimpool/ledger/records.py

EventRecord — the single audit log entry type.

CONTRACT 1 — Chain
    causal_hash = SHA-256(JCS(prev.to_chain_dict()))
    first entry = GENESIS_HASH ("0" * 64)
    payload is IN the chain dict, so editing a past payload breaks every
    later record.

CONTRACT 2 — Signing (optional)
    bytes_signed = JCS(record.to_chain_dict())
    algorithm    = Ed25519, base64url without padding
    A log is either fully signed or fully unsigned.

CONTRACT 3 — Timestamp
    YYYY-MM-DDTHH:MM:SS.mmmZ, produced only by core.time.event_timestamp()
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from claimpool.core.canonical import canonical_bytes, chain_digest
from claimpool.core.crypto import AuditKeyManager
from claimpool.core.time import TIMESTAMP_RE, event_timestamp

GENESIS_HASH = "0" * 64


@dataclass
class SchemaValidationResult:
    """Returned, not raised, so callers choose hard fail vs report."""
    valid:  bool
    errors: List[str]

    def __bool__(self) -> bool:
        return self.valid


@dataclass
class EventRecord:
    sequence:          int
    record_id:         str
    event:             str
    emitter:           str
    timestamp:         str
    causal_hash:       str
    payload:           Dict[str, Any]
    signer_public_key: Optional[str] = None
    signature:         Optional[str] = None

    @classmethod
    def create(
        cls,
        sequence: int,
        event:    str,
        emitter:  str,
        payload:  Dict[str, Any],
        prev:     Optional["EventRecord"] = None,
    ) -> "EventRecord":
        if not isinstance(payload, dict):
            raise TypeError(f"payload must be dict, got {type(payload).__name__}")
        if not isinstance(sequence, int) or sequence < 0:
            raise ValueError(f"sequence must be non-negative int, got {sequence!r}")
        return cls(
            sequence=    sequence,
            record_id=   f"evt-{uuid.uuid4()}",
            event=       event,
            emitter=     emitter,
            timestamp=   event_timestamp(),
            causal_hash= cls.expected_causal_hash(prev),
            payload=     payload,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventRecord":
        """Trusts persisted data. Call validate_schema() before relying on it."""
        return cls(
            sequence=          data["sequence"],
            record_id=         data["record_id"],
            event=             data["event"],
            emitter=           data["emitter"],
            timestamp=         data["timestamp"],
            causal_hash=       data["causal_hash"],
            payload=           data.get("payload", {}),
            signer_public_key= data.get("signer_public_key"),
            signature=         data.get("signature"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_chain_dict()
        if self.signature is not None:
            data["signature"] = self.signature
        return data

    def to_chain_dict(self) -> Dict[str, Any]:
        data = {
            "sequence":    self.sequence,
            "record_id":   self.record_id,
            "event":       self.event,
            "emitter":     self.emitter,
            "timestamp":   self.timestamp,
            "causal_hash": self.causal_hash,
            "payload":     self.payload,
        }
        if self.signer_public_key is not None:
            data["signer_public_key"] = self.signer_public_key
        return data

    # ── Chain ─────────────────────────────────────────────────

    @staticmethod
    def expected_causal_hash(prev: Optional["EventRecord"]) -> str:
        if prev is None:
            return GENESIS_HASH
        return chain_digest(prev.to_chain_dict())

    def verify_chain(self, prev: Optional["EventRecord"]) -> bool:
        return self.causal_hash == self.expected_causal_hash(prev)

    # ── Signing ───────────────────────────────────────────────

    def sign(self, key_manager: AuditKeyManager) -> "EventRecord":
        self.signer_public_key = key_manager.public_key_hex
        self.signature = key_manager.sign(canonical_bytes(self.to_chain_dict()))
        return self

    def is_signed(self) -> bool:
        return bool(self.signature)

    def verify_signature(self) -> bool:
        if not self.signature or not self.signer_public_key:
            return False
        return AuditKeyManager.verify_detached(
            canonical_bytes(self.to_chain_dict()),
            self.signature,
            self.signer_public_key,
        )

    # ── Schema ────────────────────────────────────────────────

    def validate_schema(self) -> SchemaValidationResult:
        errors: List[str] = []

        if not isinstance(self.sequence, int) or self.sequence < 0:
            errors.append(f"sequence must be non-negative int, got {self.sequence!r}")
        if not isinstance(self.record_id, str) or not self.record_id.startswith("evt-"):
            errors.append(f"record_id must start with 'evt-', got {self.record_id!r}")
        if not isinstance(self.event, str) or not self.event:
            errors.append("event must be a non-empty string")
        if not isinstance(self.timestamp, str) or not TIMESTAMP_RE.match(self.timestamp):
            errors.append(f"timestamp {self.timestamp!r} is not YYYY-MM-DDTHH:MM:SS.mmmZ")
        if not isinstance(self.causal_hash, str) or len(self.causal_hash) != 64:
            errors.append("causal_hash must be 64 hex chars")
        else:
            try:
                bytes.fromhex(self.causal_hash)
            except ValueError:
                errors.append(f"causal_hash is not valid hex: {self.causal_hash!r}")
        if not isinstance(self.payload, dict):
            errors.append(f"payload must be dict, got {type(self.payload).__name__}")

        return SchemaValidationResult(valid=not errors, errors=errors)
