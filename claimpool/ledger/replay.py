"""
claimpool/ledger/replay.py

Event log replay and audit.

Laws enforced here:
    1. Load     → EventRecord.from_dict(line) then validate_schema()
    2. Sequence → records are numbered 0, 1, 2, ... with no gaps
    3. Chain    → record.verify_chain(prev)
    4. Sig      → record.verify_signature(), when the log is signed
    5. Signing  → a log is fully signed or fully unsigned

Besides integrity, replay totals what the log says happened: claim tokens
redeemed and assets paid out or recovered, per pool. Those totals are the
off-chain view auditors reconcile against pool balances.
"""

import json
from collections import defaultdict
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from claimpool.ledger.records import EventRecord


@dataclass
class ChainViolation:
    at_sequence:    int
    record_id:      str
    violation_type: str   # chain_break | sequence_gap | invalid_signature | mixed_signing | malformed_payload
    detail:         str


@dataclass
class AuditSummary:
    total_records:      int
    chain_valid:        bool
    violations:         List[ChainViolation]
    signed:             bool
    valid_signatures:   int
    invalid_signatures: int
    event_counts:       Dict[str, int]
    redeemed:           Dict[str, int]
    paid_out:           Dict[str, Dict[str, int]]
    recovered:          Dict[str, Dict[str, int]]
    first_timestamp:    Optional[str] = None
    last_timestamp:     Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["valid"] = self.valid
        # amounts can exceed JSON-safe integers
        data["redeemed"]  = {k: str(v) for k, v in self.redeemed.items()}
        data["paid_out"]  = _stringify(self.paid_out)
        data["recovered"] = _stringify(self.recovered)
        return data


def _stringify(nested: Dict[str, Dict[str, int]]) -> Dict[str, Dict[str, str]]:
    return {k: {a: str(v) for a, v in inner.items()} for k, inner in nested.items()}


class EventReplay:
    """
    Usage:
        replay = EventReplay()
        replay.load(Path(".claimpool/events.jsonl"))
        summary = replay.verify()
    """

    def __init__(self) -> None:
        self.records:    List[EventRecord]    = []
        self.violations: List[ChainViolation] = []

    def load(self, log_path: Path) -> None:
        """
        Raises:
            FileNotFoundError — log file does not exist
            ValueError        — malformed JSON or schema violation
        """
        log_path = Path(log_path)
        if not log_path.exists():
            raise FileNotFoundError(f"Event log not found: {log_path}")

        records: List[EventRecord] = []
        with open(log_path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = EventRecord.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError) as exc:
                    raise ValueError(f"Line {line_no}: unreadable record: {exc}") from exc
                schema = record.validate_schema()
                if not schema:
                    raise ValueError(f"Line {line_no}: schema violation: {schema.errors}")
                records.append(record)

        self.records = records

    def verify(self) -> AuditSummary:
        self.violations = []
        signed = bool(self.records) and self.records[0].signer_public_key is not None
        valid_sigs = invalid_sigs = 0

        event_counts: Dict[str, int]            = defaultdict(int)
        redeemed:     Dict[str, int]            = defaultdict(int)
        paid_out:     Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        recovered:    Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))

        prev: Optional[EventRecord] = None
        for index, record in enumerate(self.records):
            if record.sequence != index:
                self._violation(record, "sequence_gap",
                                f"expected sequence {index}, got {record.sequence}")
            if not record.verify_chain(prev):
                self._violation(record, "chain_break",
                                "causal_hash does not match previous record")

            if (record.signer_public_key is not None) != signed:
                self._violation(record, "mixed_signing",
                                "log mixes signed and unsigned records")
            elif signed:
                if record.verify_signature():
                    valid_sigs += 1
                else:
                    invalid_sigs += 1
                    self._violation(record, "invalid_signature",
                                    "Ed25519 signature does not verify")

            event_counts[record.event] += 1
            self._tally(record, redeemed, paid_out, recovered)
            prev = record

        chain_valid = not any(
            v.violation_type in ("chain_break", "sequence_gap") for v in self.violations
        )
        return AuditSummary(
            total_records=      len(self.records),
            chain_valid=        chain_valid,
            violations=         list(self.violations),
            signed=             signed,
            valid_signatures=   valid_sigs,
            invalid_signatures= invalid_sigs,
            event_counts=       dict(event_counts),
            redeemed=           dict(redeemed),
            paid_out=           {k: dict(v) for k, v in paid_out.items()},
            recovered=          {k: dict(v) for k, v in recovered.items()},
            first_timestamp=    self.records[0].timestamp if self.records else None,
            last_timestamp=     self.records[-1].timestamp if self.records else None,
        )

    def _tally(self, record, redeemed, paid_out, recovered) -> None:
        payload = record.payload
        pool = payload.get("pool", record.emitter)
        try:
            if record.event == "redemption":
                redeemed[pool] += int(payload["amount"])
                for asset, amount in payload.get("payouts", {}).items():
                    paid_out[pool][asset] += int(amount)
            elif record.event == "funds_recovered":
                recovered[pool][payload["asset"]] += int(payload["amount"])
        except (KeyError, TypeError, ValueError) as exc:
            self._violation(record, "malformed_payload", f"cannot total amounts: {exc!r}")

    def _violation(self, record: EventRecord, kind: str, detail: str) -> None:
        self.violations.append(ChainViolation(
            at_sequence=    record.sequence,
            record_id=      record.record_id,
            violation_type= kind,
            detail=         detail,
        ))

    def export_json(self, out_path: Path) -> None:
        summary = self.verify()
        Path(out_path).write_text(json.dumps(summary.to_dict(), indent=2), encoding="utf-8")
