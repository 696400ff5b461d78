"""
claimpool/ledger/events.py

EventLog — append-only, hash-chained audit log of pool events.

Subscribed to a HostLedger, it receives each transaction's events as one
batch while that transaction is closing. A rolled-back redemption never
appears here, and a failed write rolls the redemption back.

append_many() MUST, in this order:
  1. Acquire lock
  2. Build each record via EventRecord.create(..., prev=previous_record)
  3. Sign them if an audit key is configured
  4. Write the batch as JSON lines in one call (skipped for in-memory logs)
  5. Advance sequence and last record, only after the write succeeded

snapshot_state() / restore_state() let the host undo an accepted batch
when a later sink fails, truncating the file back to its earlier size.
"""

import json
import logging
import threading
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from claimpool.core.crypto import AuditKeyManager
from claimpool.core.exceptions import EventLogError
from claimpool.ledger.records import GENESIS_HASH, EventRecord

log = logging.getLogger(__name__)

LOG_FILENAME = "events.jsonl"


class EventLog:
    """
    Usage:
        events = EventLog(".claimpool", key_manager=AuditKeyManager.generate())
        host.subscribe(events)

    With log_dir=None the log lives in memory only. State survives process
    restart by reading the last line of an existing file on __init__.
    """

    def __init__(
        self,
        log_dir:     Optional[Union[str, Path]] = None,
        key_manager: Optional[AuditKeyManager]  = None,
    ) -> None:
        self.key_manager = key_manager

        self._lock:        threading.Lock        = threading.Lock()
        self._sequence:    int                   = 0
        self._last:        Optional[EventRecord] = None
        self.records:      List[EventRecord]     = []

        self._file: Optional[Path] = None
        if log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            self._file = log_dir / LOG_FILENAME
            self._restore_state()

    @property
    def path(self) -> Optional[Path]:
        return self._file

    # ── Public API ────────────────────────────────────────────

    def append(self, emitter: str, event: Any) -> EventRecord:
        """Record one committed pool event."""
        return self.append_many([(emitter, event)])[0]

    def append_many(self, entries: Sequence[Tuple[str, Any]]) -> List[EventRecord]:
        """
        Record every event of one transaction with a single write.
        Nothing advances unless the whole batch reached the file.
        """
        with self._lock:
            batch: List[EventRecord] = []
            prev = self._last
            for offset, (emitter, event) in enumerate(entries):
                record = EventRecord.create(
                    sequence= self._sequence + offset,
                    event=    event.event_name,
                    emitter=  emitter,
                    payload=  event.to_payload(),
                    prev=     prev,
                )
                if self.key_manager is not None:
                    record.sign(self.key_manager)
                batch.append(record)
                prev = record

            if self._file is not None and batch:
                self._write(batch)

            self._sequence += len(batch)
            self._last      = prev
            self.records.extend(batch)
            return batch

    def get_stats(self) -> Dict[str, Any]:
        return {
            "next_sequence":    self._sequence,
            "last_record_id":   self._last.record_id if self._last else None,
            "last_causal_hash": (
                EventRecord.expected_causal_hash(self._last)
                if self._last else GENESIS_HASH
            ),
            "log_file":         str(self._file) if self._file else None,
            "signed":           self.key_manager is not None,
        }

    # ── Rollback ──────────────────────────────────────────────

    def snapshot_state(self) -> Any:
        size = None
        if self._file is not None and self._file.is_file():
            size = self._file.stat().st_size
        return (self._sequence, self._last, len(self.records), size)

    def restore_state(self, state: Any) -> None:
        """Forget records of a rolled-back transaction, on disk as well."""
        sequence, last, count, size = state
        with self._lock:
            if self._file is not None and self._file.is_file():
                with open(self._file, "r+b") as f:
                    f.truncate(size or 0)
            self._sequence = sequence
            self._last     = last
            del self.records[count:]

    # ── Internal ──────────────────────────────────────────────

    def _write(self, batch: List[EventRecord]) -> None:
        lines = "".join(
            json.dumps(record.to_dict(), separators=(",", ":")) + "\n"
            for record in batch
        )
        try:
            with open(self._file, "a", encoding="utf-8") as f:
                f.write(lines)
        except OSError as exc:
            raise EventLogError(
                f"Event log write failed: {exc}", {"path": str(self._file)}
            ) from exc

    def _restore_state(self) -> None:
        """
        Resume sequence and chain head from the last line of an existing file.
        A corrupt last line leaves state at genesis and warns; run
        `claimpool audit` before trusting further appends.
        """
        if not self._file.exists():
            return

        last_line = None
        with open(self._file, "r", encoding="utf-8") as f:
            for line in f:
                stripped = line.strip()
                if stripped:
                    last_line = stripped
        if not last_line:
            return

        try:
            record = EventRecord.from_dict(json.loads(last_line))
            schema = record.validate_schema()
            if not schema:
                raise ValueError(f"Schema violation in last log line: {schema.errors}")
        except (ValueError, KeyError) as exc:
            warnings.warn(
                f"EventLog: could not restore state from {self._file}: {exc}. "
                "Last line may be corrupted.",
                RuntimeWarning,
                stacklevel=3,
            )
            return

        self._sequence = record.sequence + 1
        self._last     = record
        log.debug("event log resumed at sequence %d", self._sequence)
