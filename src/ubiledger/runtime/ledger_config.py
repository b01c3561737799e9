from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ubiledger.ledger.constants import (
    ACCOUNT_GRACE_DAYS,
    CLAIM_DAYS,
    MAX_PAST_CLAIM_DAYS,
    MEMO_MAX_BYTES,
    OPERATOR_ACCOUNT_ID,
)

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class LedgerConfig:
    ledger_id: str
    operator_account: str
    mode: str  # "dev" | "testnet" | "prod"

    db_path: str

    claim_days: int
    max_past_claim_days: int

    # Permissionless deployments: delay a new account's first claim by grace_days.
    unbounded_account_creation: bool
    grace_days: int

    memo_max_bytes: int

    api_host: str
    api_port: int

    allow_unsigned_txs: bool

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.ledger_id, str) or not cfg.ledger_id.strip():
        raise ValueError("ledger_id must be a non-empty string")

    if not isinstance(cfg.operator_account, str) or not cfg.operator_account.strip():
        raise ValueError("operator_account must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    if int(cfg.claim_days) <= 0:
        raise ValueError(f"claim_days must be > 0; got: {cfg.claim_days}")

    if int(cfg.max_past_claim_days) < 0:
        raise ValueError(f"max_past_claim_days must be >= 0; got: {cfg.max_past_claim_days}")

    if int(cfg.grace_days) < 0:
        raise ValueError(f"grace_days must be >= 0; got: {cfg.grace_days}")

    if int(cfg.memo_max_bytes) <= 0:
        raise ValueError(f"memo_max_bytes must be > 0; got: {cfg.memo_max_bytes}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if mode == "prod" and bool(cfg.allow_unsigned_txs):
        raise ValueError("allow_unsigned_txs is not permitted in prod mode")


def default_ledger_config() -> LedgerConfig:
    return LedgerConfig(
        ledger_id="ubi-dev",
        operator_account=OPERATOR_ACCOUNT_ID,
        mode="prod",
        db_path="./data/ubiledger.db",
        claim_days=CLAIM_DAYS,
        max_past_claim_days=MAX_PAST_CLAIM_DAYS,
        unbounded_account_creation=False,
        grace_days=ACCOUNT_GRACE_DAYS,
        memo_max_bytes=MEMO_MAX_BYTES,
        api_host="127.0.0.1",
        api_port=8080,
        allow_unsigned_txs=False,
        log_level="INFO",
    )


def ledger_config_from_dict(raw: Any) -> LedgerConfig:
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a JSON object")

    d = default_ledger_config()

    cfg = LedgerConfig(
        ledger_id=_as_str(raw.get("ledger_id"), d.ledger_id),
        operator_account=_as_str(raw.get("operator_account"), d.operator_account),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), d.db_path),
        claim_days=_as_int(raw.get("claim_days"), d.claim_days),
        max_past_claim_days=_as_int(raw.get("max_past_claim_days"), d.max_past_claim_days),
        unbounded_account_creation=_as_bool(raw.get("unbounded_account_creation"), d.unbounded_account_creation),
        grace_days=_as_int(raw.get("grace_days"), d.grace_days),
        memo_max_bytes=_as_int(raw.get("memo_max_bytes"), d.memo_max_bytes),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        allow_unsigned_txs=_as_bool(raw.get("allow_unsigned_txs"), d.allow_unsigned_txs),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )

    validate_ledger_config(cfg)
    return cfg


def read_ledger_config_file(path: str) -> LedgerConfig:
    p = Path(path)
    return ledger_config_from_dict(json.loads(p.read_text(encoding="utf-8")))


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    p = config_path or os.environ.get("UBI_LEDGER_CONFIG_PATH")
    if p:
        return read_ledger_config_file(p)

    cfg = default_ledger_config()
    validate_ledger_config(cfg)
    return cfg


def apply_ledger_config_to_env(cfg: LedgerConfig) -> None:
    validate_ledger_config(cfg)
    os.environ["UBI_LEDGER_ID"] = cfg.ledger_id
    os.environ["UBI_OPERATOR_ACCOUNT"] = cfg.operator_account
    os.environ["UBI_MODE"] = (cfg.mode or "prod").strip().lower()
    os.environ["UBI_DB_PATH"] = cfg.db_path
    os.environ["UBI_API_HOST"] = cfg.api_host
    os.environ["UBI_API_PORT"] = str(int(cfg.api_port))
    os.environ["UBI_LOG_LEVEL"] = cfg.log_level
    os.environ["UBI_ALLOW_UNSIGNED_TXS"] = "1" if cfg.allow_unsigned_txs else "0"
