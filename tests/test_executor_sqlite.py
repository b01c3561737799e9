from __future__ import annotations

import sqlite3
from dataclasses import replace
from pathlib import Path

import pytest

from ubiledger.ledger.store import MemoryLedgerStore
from ubiledger.runtime import metrics
from ubiledger.runtime.clock import FixedClock
from ubiledger.runtime.errors import ApplyError, InvalidAmount, InvalidPayload, Overdrawn
from ubiledger.runtime.events import CLAIM_EVENT, TRANSFER_EVENT, RecordingNotifier
from ubiledger.runtime.executor import ExecutorError, LedgerExecutor
from ubiledger.runtime.ledger_config import default_ledger_config
from ubiledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from ubiledger.runtime.tx_schema import validate_payload


def _cfg(tmp_path: Path, **overrides):
    base = replace(default_ledger_config(), mode="dev", ledger_id="ubi-test", db_path=str(tmp_path / "ledger.db"))
    return replace(base, **overrides)


def _pragma(con: sqlite3.Connection, name: str) -> int | str:
    row = con.execute(f"PRAGMA {name};").fetchone()
    if row is None:
        raise AssertionError(f"missing pragma: {name}")
    return row[0]


def test_sqlite_operational_pragmas_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UBI_MODE", "prod")
    monkeypatch.delenv("UBI_SQLITE_SYNCHRONOUS", raising=False)
    monkeypatch.setenv("UBI_SQLITE_BUSY_TIMEOUT_MS", "1234")

    db = SqliteDB(path=str(tmp_path / "ubiledger.db"))
    db.init_schema()

    with db.connection() as con:
        assert str(_pragma(con, "journal_mode")).lower() == "wal"
        # FULL is the prod default.
        assert int(_pragma(con, "synchronous")) == 2
        assert int(_pragma(con, "foreign_keys")) == 1
        assert int(_pragma(con, "temp_store")) == 2
        assert int(_pragma(con, "busy_timeout")) == 1234


def test_state_and_receipts_survive_restart(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path)
    clock = FixedClock(100)

    ex = LedgerExecutor.from_config(cfg, clock=clock, notifier=RecordingNotifier())
    ex.create(cfg.operator_account, "1000000.0000 WUBI")
    ex.open("alice", "4,WUBI", "alice")
    clock.set_day(101)
    ex.transfer("alice", "bob", "5.0000 WUBI", "hi")

    ex2 = LedgerExecutor.from_config(cfg, clock=clock, notifier=RecordingNotifier())
    assert str(ex2.get_balance("alice", "WUBI")) == "26.0000 WUBI"
    assert str(ex2.get_balance("bob", "WUBI")) == "5.0000 WUBI"
    assert str(ex2.get_supply("WUBI")) == "31.0000 WUBI"

    events = [r["event"] for r in ex2.receipts(limit=10)]
    assert events == [CLAIM_EVENT, TRANSFER_EVENT]
    assert ex2.receipts(limit=1)[0]["recipients"] == ["alice", "bob"]


def test_rejected_tx_writes_nothing(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path)
    clock = FixedClock(100)
    notifier = RecordingNotifier()
    ex = LedgerExecutor.from_config(cfg, clock=clock, notifier=notifier)
    ex.create(cfg.operator_account, "1000000.0000 WUBI")
    ex.open("alice", "4,WUBI", "alice")
    clock.set_day(101)
    before = ex.read_state()

    with pytest.raises(Overdrawn):
        ex.transfer("alice", "bob", "99.0000 WUBI")

    assert ex.read_state() == before
    assert ex.receipts() == []
    assert notifier.delivered == []


def test_ledger_id_mismatch_refuses_to_start(tmp_path: Path) -> None:
    LedgerExecutor.from_config(_cfg(tmp_path))
    with pytest.raises(ExecutorError):
        LedgerExecutor.from_config(_cfg(tmp_path, ledger_id="other-ledger"))


def test_store_update_rolls_back_on_error(tmp_path: Path) -> None:
    store = SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "s.db")), ledger_id="x")
    store.write({"ledger_id": "x", "n": 1})

    def _boom(st):
        st["n"] = 2
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.update(_boom, receipts=lambda: [{"event": "never"}])

    assert store.read()["n"] == 1
    assert store.receipts() == []


def test_unknown_tx_type_and_bad_payload() -> None:
    cfg = replace(default_ledger_config(), mode="dev", ledger_id="ubi-test")
    ex = LedgerExecutor(store=MemoryLedgerStore(), config=cfg, clock=FixedClock(100))

    with pytest.raises(ApplyError) as ei:
        ex.submit({"tx_type": "TOKEN_MINT", "signer": "alice", "payload": {}})
    assert ei.value.code == "tx_unimplemented"

    with pytest.raises(InvalidPayload):
        ex.submit(
            {
                "tx_type": "TOKEN_TRANSFER",
                "signer": "alice",
                "payload": {"from": "alice", "to": "bob", "quantity": "1.0000 WUBI", "extra": 1},
            }
        )
    with pytest.raises(InvalidPayload):
        ex.submit({"tx_type": "ACCOUNT_OPEN", "signer": "alice", "payload": {"owner": "alice"}})


def test_counters_track_applied_rejected_and_claims() -> None:
    metrics.reset()
    cfg = replace(default_ledger_config(), mode="dev", ledger_id="ubi-test")
    clock = FixedClock(100)
    ex = LedgerExecutor(store=MemoryLedgerStore(), config=cfg, clock=clock, notifier=RecordingNotifier())
    ex.create(cfg.operator_account, "1000000.0000 WUBI")
    ex.open("alice", "4,WUBI", "alice")
    clock.set_day(101)
    ex.transfer("alice", "bob", "1.0000 WUBI")
    with pytest.raises(Overdrawn):
        ex.transfer("bob", "alice", "99.0000 WUBI")

    counters = metrics.snapshot()["counters"]
    assert counters["tx_applied"] == 3
    assert counters["tx_rejected"] == 1
    # bob's rejected claim never reached the counters.
    assert counters["ubi_claims"] == 1
    assert counters["ubi_claimed_units"] == 310_000

    text = metrics.format_prometheus()
    assert "ubiledger_tx_applied 3" in text


def test_validate_payload_reports_reason() -> None:
    ok, reason = validate_payload("TOKEN_TRANSFER", {"from": "alice", "to": "bob", "quantity": "1.0000 WUBI"})
    assert ok and reason == ""

    ok, reason = validate_payload("TOKEN_TRANSFER", {"to": "bob", "quantity": "1.0000 WUBI"})
    assert not ok
    assert reason.startswith("schema_invalid:")

    assert validate_payload("TOKEN_MINT", {}) == (False, "unknown_tx_type:TOKEN_MINT")
    assert validate_payload("TOKEN_RETIRE", ["1.0000 WUBI"]) == (False, "payload_not_object")


def test_non_ascii_digits_are_a_counted_rejection() -> None:
    metrics.reset()
    cfg = replace(default_ledger_config(), mode="dev", ledger_id="ubi-test")
    ex = LedgerExecutor(store=MemoryLedgerStore(), config=cfg, clock=FixedClock(100))
    ex.create(cfg.operator_account, "1000.0000 WUBI")
    ex.open("alice", "4,WUBI", "alice")

    with pytest.raises(InvalidAmount):
        ex.transfer("alice", "bob", "1.000² WUBI")

    assert metrics.snapshot()["counters"]["tx_rejected"] == 1
