"""
ClaimPool audit event log.

The redemption history of a pool exists nowhere else: the log is the
durable audit trail of every committed redemption, rate snapshot,
recovery and ownership change.
"""

from claimpool.ledger.events import EventLog
from claimpool.ledger.records import GENESIS_HASH, EventRecord
from claimpool.ledger.replay import AuditSummary, ChainViolation, EventReplay

__all__ = [
    "EventLog",
    "EventRecord",
    "EventReplay",
    "AuditSummary",
    "ChainViolation",
    "GENESIS_HASH",
]
