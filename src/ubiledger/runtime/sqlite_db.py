# src/ubiledger/runtime/sqlite_db.py
from __future__ import annotations

import json
import os
import random
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

from ubiledger.ledger.store import ReceiptSource

Json = Dict[str, Any]
T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _canon_json(obj: Any) -> str:
    """Canonical JSON encoding for persisted state.

    Unknown types must fail here rather than be coerced (no default=str).
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except Exception:
        return int(default)


class SqliteDB:
    """SQLite manager for the ledger.

    - single durable DB file for the state snapshot + receipts
    - cross-process safe (SQLite locks)
    - cross-thread safe by never sharing connections

    SQLite allows only one writer at a time; BEGIN IMMEDIATE can transiently
    fail with "database is locked", so write_tx() retries within a deadline.
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    @staticmethod
    def _sqlite_synchronous_pragma() -> str:
        """Return a safe PRAGMA synchronous value.

        Defaults:
          - prod        -> FULL
          - dev/testnet -> NORMAL

        Override with UBI_SQLITE_SYNCHRONOUS in {OFF,NORMAL,FULL,EXTRA}.
        """
        mode = (os.environ.get("UBI_MODE") or "prod").strip().lower()
        default = "FULL" if mode == "prod" else "NORMAL"
        raw = (os.environ.get("UBI_SQLITE_SYNCHRONOUS") or default).strip().upper()

        if raw not in {"OFF", "NORMAL", "FULL", "EXTRA"}:
            raw = default
        return raw

    def ensure_parent_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()

        connect_timeout_s = float(_env_int("UBI_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0

        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # we manage BEGIN/COMMIT ourselves
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        # Production requires WAL; rollback-journal mode contends far more.
        allow_non_wal = (os.environ.get("UBI_SQLITE_ALLOW_NON_WAL") or "").strip() in {"1", "true", "TRUE"}
        try:
            row = con.execute("PRAGMA journal_mode=WAL;").fetchone()
            mode = str(row[0]).strip().lower() if row is not None else ""
            if mode and mode != "wal" and not allow_non_wal:
                raise RuntimeError(f"sqlite journal_mode is '{mode}', expected 'wal'")
        except Exception:
            if not allow_non_wal:
                con.close()
                raise

        con.execute(f"PRAGMA synchronous={self._sqlite_synchronous_pragma()};")
        con.execute("PRAGMA foreign_keys=ON;")
        con.execute("PRAGMA temp_store=MEMORY;")

        busy_ms = max(0, _env_int("UBI_SQLITE_BUSY_TIMEOUT_MS", int(connect_timeout_s * 1000)))
        con.execute(f"PRAGMA busy_timeout={busy_ms};")

        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )

            con.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger_state (
                  id INTEGER PRIMARY KEY CHECK (id = 1),
                  ledger_id TEXT NOT NULL,
                  state_json TEXT NOT NULL,
                  updated_ts_ms INTEGER NOT NULL
                );
                """
            )

            con.execute(
                """
                CREATE TABLE IF NOT EXISTS receipts (
                  seq INTEGER PRIMARY KEY AUTOINCREMENT,
                  event TEXT NOT NULL,
                  receipt_json TEXT NOT NULL,
                  created_ts_ms INTEGER NOT NULL
                );
                """
            )
            con.execute("CREATE INDEX IF NOT EXISTS idx_receipts_event ON receipts(event);")

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
            else:
                try:
                    v = int(str(row["value"]))
                except Exception:
                    v = 0
                if v != self.SCHEMA_VERSION:
                    raise RuntimeError(
                        f"sqlite schema_version mismatch: have={v} want={self.SCHEMA_VERSION}. "
                        "Refuse to start to avoid corrupting data."
                    )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return ("database is locked" in msg) or ("database is busy" in msg)

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction with bounded retry on writer-lock contention.

        Policy:
          - retry BEGIN IMMEDIATE until a deadline
          - exponential backoff with jitter
          - then raise (fail closed)
        """
        deadline_ms = max(250, _env_int("UBI_SQLITE_WRITE_DEADLINE_MS", 30_000))
        deadline_ts = _now_ms() + deadline_ms

        base_sleep = max(0.001, float(_env_int("UBI_SQLITE_WRITE_BACKOFF_BASE_MS", 5)) / 1000.0)
        max_sleep = max(base_sleep, float(_env_int("UBI_SQLITE_WRITE_BACKOFF_MAX_MS", 250)) / 1000.0)

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
                    time.sleep(sleep_s * (0.5 + random.random()))
                    attempt += 1

            try:
                yield con
                con.execute("COMMIT;")
            except BaseException:
                con.execute("ROLLBACK;")
                raise


class SqliteLedgerStore:
    """Ledger snapshot store persisted in SQLite.

    The authoritative state is a single JSON row; update() performs the
    read-modify-write and the receipt inserts inside one write transaction.
    """

    def __init__(self, *, db: SqliteDB, ledger_id: str = "") -> None:
        self._db = db
        self._ledger_id = str(ledger_id)
        self._db.init_schema()

    @property
    def db(self) -> SqliteDB:
        return self._db

    def exists(self) -> bool:
        with self._db.connection() as con:
            return con.execute("SELECT 1 FROM ledger_state WHERE id=1;").fetchone() is not None

    @staticmethod
    def _load(con: sqlite3.Connection) -> Json:
        row = con.execute("SELECT state_json FROM ledger_state WHERE id=1;").fetchone()
        if row is None:
            raise FileNotFoundError("sqlite ledger_state is missing")
        st = json.loads(str(row["state_json"]))
        if not isinstance(st, dict):
            raise ValueError("ledger_state is not a JSON object")
        return st

    def read(self) -> Json:
        with self._db.connection() as con:
            return self._load(con)

    def write(self, st: Json) -> None:
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        ledger_id = str(st.get("ledger_id") or self._ledger_id)
        with self._db.write_tx() as con:
            con.execute(
                """
                INSERT INTO ledger_state(id, ledger_id, state_json, updated_ts_ms)
                VALUES(1, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                  ledger_id=excluded.ledger_id,
                  state_json=excluded.state_json,
                  updated_ts_ms=excluded.updated_ts_ms;
                """,
                (ledger_id, _canon_json(st), _now_ms()),
            )

    def update(self, mut: Callable[[Json], T], *, receipts: Optional[ReceiptSource] = None) -> T:
        with self._db.write_tx() as con:
            st = self._load(con)

            out = mut(st)

            now = _now_ms()
            con.execute(
                "UPDATE ledger_state SET state_json=?, updated_ts_ms=? WHERE id=1;",
                (_canon_json(st), now),
            )
            for rec in list(receipts()) if receipts is not None else []:
                con.execute(
                    "INSERT INTO receipts(event, receipt_json, created_ts_ms) VALUES(?, ?, ?);",
                    (str(rec.get("event") or ""), _canon_json(rec), now),
                )
            return out

    def receipts(self, *, limit: int = 100) -> List[Json]:
        n = max(0, int(limit))
        if not n:
            return []
        with self._db.connection() as con:
            rows = con.execute(
                "SELECT receipt_json FROM receipts ORDER BY seq DESC LIMIT ?;",
                (n,),
            ).fetchall()
        return [json.loads(str(r["receipt_json"])) for r in reversed(rows)]
