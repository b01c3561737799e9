from __future__ import annotations

import pytest

from ubiledger.ledger.balances import Ledger
from ubiledger.ledger.supply import SupplyRegistry
from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.runtime.claim_engine import ClaimEngine, compute_claim
from ubiledger.runtime.clock import FixedClock
from ubiledger.runtime.errors import NotFound
from ubiledger.runtime.events import CLAIM_EVENT, EventBuffer

WUBI = Symbol("WUBI", 4)
OPERATOR = "ubi.token"


def _engine(clock: FixedClock, *, max_whole: int = 1_000_000, can_claim=lambda owner: True):
    state: dict = {}
    supply = SupplyRegistry(state)
    supply.create_currency(Asset(max_whole * WUBI.multiplier, WUBI), OPERATOR)
    ledger = Ledger(state, clock=clock)
    events = EventBuffer()
    engine = ClaimEngine(
        supply=supply,
        ledger=ledger,
        clock=clock,
        events=events,
        operator_account=OPERATOR,
        can_claim=can_claim,
    )
    return state, supply, ledger, events, engine


def test_first_claim_pays_elapsed_days_plus_advance_window() -> None:
    clock = FixedClock(100)
    state, supply, ledger, events, engine = _engine(clock)
    ledger.open_account("alice", WUBI, "alice")
    assert ledger.entry("alice", WUBI)["last_claim_day"] == 99

    clock.set_day(101)
    res = engine.try_claim("alice", WUBI, "alice")

    assert res.issued == 31 * 10_000
    assert res.last_claim_day == 130
    assert res.lost_days == 0
    assert ledger.balance("alice", WUBI).amount == 310_000
    assert supply.supply(WUBI).amount == 310_000

    [(event, recipients, record)] = events.items
    assert event == CLAIM_EVENT
    assert recipients == ("alice",)
    assert record["quantity"] == "31.0000 WUBI"
    assert record["memo"] == "[UBI] alice +31.0000 WUBI (next: 12-05-1970)"


def test_second_claim_same_day_issues_nothing() -> None:
    clock = FixedClock(100)
    _, supply, ledger, events, engine = _engine(clock)
    ledger.open_account("alice", WUBI, "alice")
    clock.set_day(101)

    assert engine.try_claim("alice", WUBI, "alice").issued == 310_000
    again = engine.try_claim("alice", WUBI, "alice")

    assert again.issued == 0
    assert again.skipped == "already_claimed"
    assert supply.supply(WUBI).amount == 310_000
    assert len(events.items) == 1


def test_claim_is_noop_while_cursor_covers_today() -> None:
    clock = FixedClock(100)
    _, _, ledger, _, engine = _engine(clock)
    ledger.open_account("alice", WUBI, "alice")
    clock.set_day(101)
    engine.try_claim("alice", WUBI, "alice")

    # Paid through day 130 inclusive.
    clock.set_day(130)
    assert engine.try_claim("alice", WUBI, "alice").issued == 0

    clock.set_day(131)
    res = engine.try_claim("alice", WUBI, "alice")
    assert res.issued == 30 * 10_000
    assert res.last_claim_day == 160


def test_forfeiture_cap_records_lost_days() -> None:
    clock = FixedClock(1000)
    _, _, ledger, events, engine = _engine(clock)
    ledger.open_account("alice", WUBI, "alice")
    ledger.entry("alice", WUBI)["last_claim_day"] = 600

    res = engine.try_claim("alice", WUBI, "alice")

    # 399 unpaid days: 360 paid back, 39 lost, plus 30 in advance.
    assert res.lost_days == 39
    assert res.issued == 390 * 10_000
    assert res.last_claim_day == 600 + 39 + 390
    assert "(lost: 39 days of income)" in events.items[0][2]["memo"]


def test_supply_ceiling_truncates_claim_and_cursor() -> None:
    clock = FixedClock(100)
    _, supply, ledger, _, engine = _engine(clock, max_whole=20)
    supply.increase_supply(Asset(45_000, WUBI))  # 4.5 tokens already out
    ledger.open_account("alice", WUBI, "alice")
    clock.set_day(101)

    res = engine.try_claim("alice", WUBI, "alice")

    assert res.issued == 155_000
    # Only the 15 whole days actually paid move the cursor.
    assert res.last_claim_day == 99 + 15
    assert supply.available_headroom(WUBI) == 0


def test_exhausted_supply_changes_nothing() -> None:
    clock = FixedClock(100)
    _, supply, ledger, events, engine = _engine(clock, max_whole=1)
    supply.increase_supply(Asset(10_000, WUBI))
    ledger.open_account("alice", WUBI, "alice")
    clock.set_day(500)

    res = engine.try_claim("alice", WUBI, "alice")

    assert res.issued == 0
    assert res.skipped == "supply_exhausted"
    assert ledger.entry("alice", WUBI)["last_claim_day"] == 99
    assert events.items == []


def test_ineligible_owner_and_operator_never_claim() -> None:
    clock = FixedClock(100)
    _, supply, ledger, _, engine = _engine(clock, can_claim=lambda owner: owner != "bot")
    ledger.open_account("bot", WUBI, "bot")
    ledger.open_account(OPERATOR, WUBI, OPERATOR)
    clock.set_day(101)

    assert engine.try_claim("bot", WUBI, "bot").skipped == "not_eligible"
    assert engine.try_claim(OPERATOR, WUBI, OPERATOR).skipped == "operator_account"
    assert supply.supply(WUBI).amount == 0


def test_claim_without_ledger_entry_is_not_found() -> None:
    _, _, _, _, engine = _engine(FixedClock(100))
    with pytest.raises(NotFound):
        engine.try_claim("ghost", WUBI, "ghost")


def test_compute_claim_combines_cap_and_ceiling() -> None:
    plan = compute_claim(today=1000, last_claim_day=600, multiplier=10_000, headroom=50 * 10_000)
    assert plan is not None
    assert plan.claim_amount == 500_000
    assert plan.lost_days == 39
    assert plan.cursor_delta == 39 + 50


def test_compute_claim_partial_token_headroom_pays_without_moving_paid_days() -> None:
    plan = compute_claim(today=101, last_claim_day=99, multiplier=10_000, headroom=5_000)
    assert plan is not None
    assert plan.claim_amount == 5_000
    assert plan.cursor_delta == 0


def test_compute_claim_honours_custom_windows() -> None:
    plan = compute_claim(
        today=50,
        last_claim_day=10,
        multiplier=1,
        headroom=10**9,
        claim_days=7,
        max_past_claim_days=20,
    )
    assert plan is not None
    assert plan.lost_days == 19
    assert plan.claim_amount == 27
    assert plan.cursor_delta == 46
