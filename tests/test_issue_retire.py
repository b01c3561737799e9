from __future__ import annotations

from dataclasses import replace

import pytest

from ubiledger.ledger.store import MemoryLedgerStore
from ubiledger.runtime.clock import FixedClock
from ubiledger.runtime.errors import (
    AlreadyExists,
    InsufficientSupply,
    InvalidAmount,
    InvalidSymbol,
    Overdrawn,
    SupplyOverflow,
    Unauthorized,
)
from ubiledger.runtime.events import RecordingNotifier
from ubiledger.runtime.executor import LedgerExecutor
from ubiledger.runtime.ledger_config import default_ledger_config

OPERATOR = "ubi.token"


def _mk_executor(day: int = 100) -> LedgerExecutor:
    cfg = replace(default_ledger_config(), mode="dev", ledger_id="ubi-test", operator_account=OPERATOR)
    return LedgerExecutor(store=MemoryLedgerStore(), config=cfg, clock=FixedClock(day), notifier=RecordingNotifier())


def test_create_currency_records_zero_supply() -> None:
    ex = _mk_executor()
    out = ex.create("central", "1000.0000 CEN")

    assert out["maximum_supply"] == "1000.0000 CEN"
    st = ex.view().get_stats("CEN")
    assert st["issuer"] == "central"
    assert str(ex.get_supply("CEN")) == "0.0000 CEN"
    assert str(ex.view().get_max_supply("CEN")) == "1000.0000 CEN"


def test_create_requires_operator_and_unique_code() -> None:
    ex = _mk_executor()
    with pytest.raises(Unauthorized):
        ex.submit(
            {
                "tx_type": "TOKEN_CREATE",
                "signer": "central",
                "payload": {"issuer": "central", "maximum_supply": "1000.0000 CEN"},
            }
        )

    ex.create("central", "1000.0000 CEN")
    with pytest.raises(AlreadyExists):
        ex.create("other", "5.00 CEN")


def test_create_rejects_bad_maximum_supply() -> None:
    ex = _mk_executor()
    with pytest.raises(InvalidAmount):
        ex.create("central", "0.0000 CEN")
    with pytest.raises(InvalidAmount):
        ex.create("central", "-5.0000 CEN")
    with pytest.raises(InvalidSymbol):
        ex.create("central", "5.0000 cen")
    with pytest.raises(InvalidSymbol):
        ex.create("central", "5.0000 TOOLONGX")


def test_issue_to_third_party_routes_through_issuer() -> None:
    ex = _mk_executor()
    ex.create("central", "1000.0000 CEN")

    ex.issue("alice", "100.0000 CEN", "grant", signer="central")

    # The internal transfer lets the issuer's brand-new entry claim 30 days.
    assert str(ex.get_supply("CEN")) == "130.0000 CEN"
    assert str(ex.get_balance("central", "CEN")) == "30.0000 CEN"
    assert str(ex.get_balance("alice", "CEN")) == "100.0000 CEN"


def test_issue_to_issuer_does_not_claim() -> None:
    ex = _mk_executor()
    ex.create("central", "1000.0000 CEN")

    ex.issue("central", "7.0000 CEN", signer="central")

    assert str(ex.get_supply("CEN")) == "7.0000 CEN"
    assert str(ex.get_balance("central", "CEN")) == "7.0000 CEN"


def test_issue_over_ceiling_is_all_or_nothing() -> None:
    ex = _mk_executor()
    ex.create("central", "1000.0000 CEN")

    with pytest.raises(SupplyOverflow):
        ex.issue("central", "1000.0001 CEN", signer="central")
    assert ex.get_supply("CEN").amount == 0


def test_issue_requires_issuer_authority() -> None:
    ex = _mk_executor()
    ex.create("central", "1000.0000 CEN")
    with pytest.raises(Unauthorized):
        ex.issue("alice", "1.0000 CEN", signer="alice")


def test_retire_burns_from_issuer_balance() -> None:
    ex = _mk_executor()
    ex.create("central", "1000.0000 CEN")
    ex.issue("central", "50.0000 CEN", signer="central")

    ex.retire("20.0000 CEN", "burn", signer="central")

    assert str(ex.get_supply("CEN")) == "30.0000 CEN"
    assert str(ex.get_balance("central", "CEN")) == "30.0000 CEN"


def test_retire_failures_leave_state_untouched() -> None:
    ex = _mk_executor()
    ex.create("central", "1000.0000 CEN")
    ex.issue("alice", "100.0000 CEN", signer="central")
    before = ex.read_state()

    # Supply covers it but the issuer's own balance does not.
    with pytest.raises(Overdrawn):
        ex.retire("50.0000 CEN", signer="central")
    with pytest.raises(InsufficientSupply):
        ex.retire("500.0000 CEN", signer="central")
    with pytest.raises(Unauthorized):
        ex.retire("1.0000 CEN", signer="alice")

    assert ex.read_state() == before


def test_operator_owned_currency_can_be_retired_by_anyone() -> None:
    ex = _mk_executor()
    ex.create(OPERATOR, "1000.0000 WUBI")
    ex.issue(OPERATOR, "10.0000 WUBI", signer=OPERATOR)

    ex.retire("4.0000 WUBI", signer="bob")

    assert str(ex.get_supply("WUBI")) == "6.0000 WUBI"
    assert str(ex.get_balance(OPERATOR, "WUBI")) == "6.0000 WUBI"
