"""
tests/test_event_log.py

Audit event log and replay.

  LOG-01  Only committed transactions reach the log
  LOG-02  The file log resumes sequence and chain head across restarts
  LOG-03  A signed log verifies end to end
  LOG-04  Editing any past record is detected
  LOG-05  Replay totals match what the pool actually paid
  LOG-06  A sink that fails to record a transaction rolls that transaction back
"""

import json

import pytest

from claimpool import AuditKeyManager, EventLog, EventReplay
from claimpool.core.canonical import canonical_bytes, chain_digest
from claimpool.core.exceptions import EventLogError, InvalidSignature
from claimpool.core.models import RatesUpdated, RedemptionReceipt
from claimpool.ledger.records import GENESIS_HASH

from conftest import redeem


def attach(world, log_dir, key_manager=None):
    log = EventLog(log_dir, key_manager=key_manager)
    world.host.subscribe(log)
    return log


def activity(world):
    world.pool.update_rates(world.admin.address, 100)
    redeem(world, world.alice, 10)
    redeem(world, world.bob, 20)
    world.pool.admin_recover(world.admin.address, world.a.address, 100, world.carol.address)


def replay_of(path):
    replay = EventReplay()
    replay.load(path)
    return replay.verify()


def rewrite(path, mutate):
    lines = [json.loads(l) for l in path.read_text(encoding="utf-8").splitlines() if l.strip()]
    lines = mutate(lines)
    path.write_text("".join(json.dumps(l) + "\n" for l in lines), encoding="utf-8")


class TestCommitVisibility:

    def test_LOG01_buffered_until_commit(self, world):
        with world.host.atomic():
            world.pool.update_rates(world.admin.address, 100)
            assert world.events.records == []
        assert [r.event for r in world.events.records] == ["rates_updated"]

    def test_LOG01_rollback_discards(self, world):
        with pytest.raises(RuntimeError):
            with world.host.atomic():
                world.pool.update_rates(world.admin.address, 100)
                raise RuntimeError("abort")

        assert world.events.records == []
        assert [e.rate for e in world.pool.rates()] == [0, 0]

    def test_failed_redemption_not_logged(self, world):
        world.pool.update_rates(world.admin.address, 100)
        with pytest.raises(InvalidSignature):
            world.pool.redeem(world.alice.address, 10, b"")
        assert [r.event for r in world.events.records] == ["rates_updated"]

    def test_chain_links(self, world):
        activity(world)
        records = world.events.records
        assert records[0].causal_hash == GENESIS_HASH
        for prev, record in zip(records, records[1:]):
            assert record.verify_chain(prev)
        assert [r.sequence for r in records] == list(range(len(records)))


class TestFileLog:

    def test_LOG02_resume(self, world, tmp_path):
        log = attach(world, tmp_path)
        activity(world)
        written = log.get_stats()

        resumed = EventLog(tmp_path)
        stats = resumed.get_stats()
        assert stats["next_sequence"] == written["next_sequence"] == 4
        assert stats["last_causal_hash"] == written["last_causal_hash"]

        resumed.append(world.pool.address, RatesUpdated(pool=world.pool.address, floating_supply=70))

        summary = replay_of(resumed.path)
        assert summary.valid
        assert summary.total_records == 5

    def test_corrupt_last_line_warns(self, tmp_path, world):
        log = attach(world, tmp_path)
        activity(world)
        with open(log.path, "a", encoding="utf-8") as f:
            f.write("{not json\n")

        with pytest.warns(RuntimeWarning):
            resumed = EventLog(tmp_path)
        assert resumed.get_stats()["next_sequence"] == 0

    def test_LOG03_signed_log(self, world, tmp_path):
        key = AuditKeyManager.generate()
        log = attach(world, tmp_path, key_manager=key)
        activity(world)

        summary = replay_of(log.path)
        assert summary.valid
        assert summary.signed
        assert summary.valid_signatures == 4
        assert all(r.signer_public_key == key.public_key_hex for r in log.records)

    def test_mixed_signing_detected(self, world, tmp_path):
        attach(world, tmp_path, key_manager=AuditKeyManager.generate())
        world.pool.update_rates(world.admin.address, 100)

        unsigned = EventLog(tmp_path)
        unsigned.append(world.pool.address, RatesUpdated(pool=world.pool.address, floating_supply=90))

        summary = replay_of(unsigned.path)
        assert "mixed_signing" in {v.violation_type for v in summary.violations}


class BrokenSink:

    def append(self, emitter, event):
        raise EventLogError("disk full")


class TestSinkFailure:

    def test_LOG06_unwritable_log_undoes_redemption(self, world, tmp_path):
        log = attach(world, tmp_path)
        world.pool.update_rates(world.admin.address, 100)
        log.path.unlink()
        log.path.mkdir()

        with pytest.raises(EventLogError):
            redeem(world, world.alice, 10)

        assert world.a.balance_of(world.alice.address) == 0
        assert world.b.balance_of(world.alice.address) == 0
        assert world.a.balance_of(world.pool.address) == 1000
        assert world.claim.balance_of(world.alice.address) == 60
        assert world.claim.allowance(world.alice.address, world.pool.address) == 10
        assert world.host.events_of(RedemptionReceipt) == []
        assert [r.event for r in world.events.records] == ["rates_updated"]
        assert log.get_stats()["next_sequence"] == 1

    def test_LOG06_later_sink_failure_truncates_file(self, world, tmp_path):
        log = attach(world, tmp_path)
        world.pool.update_rates(world.admin.address, 100)
        written = log.path.read_bytes()
        world.host.subscribe(BrokenSink())

        with pytest.raises(EventLogError):
            redeem(world, world.alice, 10)

        assert log.path.read_bytes() == written
        assert [r.event for r in log.records] == ["rates_updated"]
        assert world.claim.balance_of(world.alice.address) == 60
        assert world.a.balance_of(world.pool.address) == 1000

        summary = replay_of(log.path)
        assert summary.valid
        assert summary.total_records == 1

    def test_transaction_written_as_one_batch(self, world, tmp_path):
        log = attach(world, tmp_path)
        with world.host.atomic():
            world.pool.update_rates(world.admin.address, 100)
            redeem(world, world.alice, 10)
            assert not log.path.exists()

        assert [r.sequence for r in log.records] == [0, 1]
        assert replay_of(log.path).valid


class TestTamperDetection:

    def test_LOG04_edited_payload_breaks_chain(self, world, tmp_path):
        log = attach(world, tmp_path)
        activity(world)

        def inflate(lines):
            lines[1]["payload"]["amount"] = "1000"
            return lines
        rewrite(log.path, inflate)

        summary = replay_of(log.path)
        assert not summary.valid
        assert not summary.chain_valid
        assert [(v.at_sequence, v.violation_type) for v in summary.violations] == [
            (2, "chain_break"),
        ]

    def test_LOG04_edited_signed_record(self, world, tmp_path):
        log = attach(world, tmp_path, key_manager=AuditKeyManager.generate())
        activity(world)

        def inflate(lines):
            lines[-1]["payload"]["amount"] = "999"
            return lines
        rewrite(log.path, inflate)

        summary = replay_of(log.path)
        assert summary.chain_valid
        assert summary.invalid_signatures == 1
        assert summary.violations[0].violation_type == "invalid_signature"

    def test_LOG04_dropped_record(self, world, tmp_path):
        log = attach(world, tmp_path)
        activity(world)
        rewrite(log.path, lambda lines: lines[:1] + lines[2:])

        kinds = {v.violation_type for v in replay_of(log.path).violations}
        assert kinds == {"sequence_gap", "chain_break"}

    def test_unreadable_line(self, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text("not json\n", encoding="utf-8")
        with pytest.raises(ValueError):
            EventReplay().load(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EventReplay().load(tmp_path / "absent.jsonl")


class TestReplayTotals:

    def test_LOG05_totals(self, world, tmp_path):
        log = attach(world, tmp_path)
        activity(world)

        summary = replay_of(log.path)
        pool, a, b = world.pool.address, world.a.address, world.b.address

        assert summary.redeemed == {pool: 30}
        assert summary.paid_out[pool] == {a: 300, b: 150}
        assert summary.recovered[pool] == {a: 100}
        assert summary.event_counts == {
            "rates_updated": 1, "redemption": 2, "funds_recovered": 1,
        }
        assert world.a.balance_of(pool) == 1000 - 300 - 100

    def test_export(self, world, tmp_path):
        log = attach(world, tmp_path)
        activity(world)

        replay = EventReplay()
        replay.load(log.path)
        out = tmp_path / "report.json"
        replay.export_json(out)

        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["valid"] is True
        assert report["redeemed"] == {world.pool.address: "30"}


class TestCanonicalEncoding:

    def test_amounts_must_be_strings(self):
        with pytest.raises(ValueError):
            canonical_bytes({"payload": {"amount": 10 ** 18}})
        assert chain_digest({"payload": {"amount": str(10 ** 18)}})

    def test_key_order_irrelevant(self):
        assert chain_digest({"a": "1", "b": "2"}) == chain_digest({"b": "2", "a": "1"})
