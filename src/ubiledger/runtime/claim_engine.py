# src/ubiledger/runtime/claim_engine.py
from __future__ import annotations

"""Basic-income claim computation.

Every account earns one whole token per day. A claim pays, in one issuance:

  - the unpaid days strictly between the cursor and today, capped at
    max_past_claim_days (older days are forfeited and counted as lost), plus
  - claim_days days in advance, starting today.

The issuance is then truncated to the symbol's remaining supply headroom. The
cursor advances by the lost days plus the whole days actually paid, so a
ceiling-truncated claim does not mark the unpaid remainder as lost.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ubiledger.ledger.balances import Ledger
from ubiledger.ledger.constants import CLAIM_DAYS, MAX_PAST_CLAIM_DAYS
from ubiledger.ledger.supply import SupplyRegistry
from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.runtime.clock import Clock
from ubiledger.runtime.events import ClaimRecord, EventBuffer, claim_memo

log = logging.getLogger("ubiledger.claims")

EligibilityPolicy = Callable[[str], bool]


def allow_all(owner: str) -> bool:
    return True


@dataclass(frozen=True)
class ClaimResult:
    issued: int
    last_claim_day: int
    lost_days: int = 0
    skipped: str = ""

    @property
    def paid(self) -> bool:
        return self.issued > 0


@dataclass(frozen=True)
class ClaimPlan:
    """Pure outcome of the claim arithmetic, before any state is touched."""

    claim_amount: int
    lost_days: int
    cursor_delta: int


def compute_claim(
    *,
    today: int,
    last_claim_day: int,
    multiplier: int,
    headroom: int,
    claim_days: int = CLAIM_DAYS,
    max_past_claim_days: int = MAX_PAST_CLAIM_DAYS,
) -> Optional[ClaimPlan]:
    """Return the claim for a cursor, or None when nothing is payable."""
    if int(last_claim_day) >= int(today):
        return None

    # Unpaid days before today; yesterday's claim leaves this at zero.
    raw_elapsed = int(today) - int(last_claim_day) - 1

    lost_days = 0
    if raw_elapsed > int(max_past_claim_days):
        lost_days = raw_elapsed - int(max_past_claim_days)
        raw_elapsed = int(max_past_claim_days)

    days = raw_elapsed + int(claim_days)
    amount = min(days * int(multiplier), int(headroom))
    if amount <= 0:
        return None

    days_covered = amount // int(multiplier)
    return ClaimPlan(claim_amount=amount, lost_days=lost_days, cursor_delta=lost_days + days_covered)


class ClaimEngine:
    def __init__(
        self,
        *,
        supply: SupplyRegistry,
        ledger: Ledger,
        clock: Clock,
        events: EventBuffer,
        operator_account: str,
        can_claim: EligibilityPolicy = allow_all,
        claim_days: int = CLAIM_DAYS,
        max_past_claim_days: int = MAX_PAST_CLAIM_DAYS,
    ) -> None:
        self._supply = supply
        self._ledger = ledger
        self._clock = clock
        self._events = events
        self._operator = str(operator_account)
        self._can_claim = can_claim
        self._claim_days = int(claim_days)
        self._max_past = int(max_past_claim_days)

    def try_claim(self, owner: str, symbol: Symbol, payer: str) -> ClaimResult:
        if not self._can_claim(owner):
            return ClaimResult(issued=0, last_claim_day=-1, skipped="not_eligible")

        # The ledger's own account never earns income.
        if owner == self._operator:
            return ClaimResult(issued=0, last_claim_day=-1, skipped="operator_account")

        entry = self._ledger.entry(owner, symbol)
        last = int(entry.get("last_claim_day", 0))
        today = int(self._clock.today())

        plan = compute_claim(
            today=today,
            last_claim_day=last,
            multiplier=symbol.multiplier,
            headroom=self._supply.available_headroom(symbol),
            claim_days=self._claim_days,
            max_past_claim_days=self._max_past,
        )
        if plan is None:
            reason = "already_claimed" if last >= today else "supply_exhausted"
            return ClaimResult(issued=0, last_claim_day=last, skipped=reason)

        quantity = Asset(amount=plan.claim_amount, symbol=symbol)
        self._supply.increase_supply(quantity)
        new_last = self._ledger.advance_cursor(owner, symbol, plan.cursor_delta)
        self._ledger.credit(owner, quantity, payer)

        self._events.emit_claim(
            ClaimRecord(
                owner=owner,
                quantity=str(quantity),
                amount=plan.claim_amount,
                last_claim_day=new_last,
                lost_days=plan.lost_days,
                memo=claim_memo(owner, str(quantity), new_last, plan.lost_days),
            )
        )
        log.debug("claim computed owner=%s amount=%d cursor=%d", owner, plan.claim_amount, new_last)
        return ClaimResult(issued=plan.claim_amount, last_claim_day=new_last, lost_days=plan.lost_days)


__all__ = ["ClaimEngine", "ClaimPlan", "ClaimResult", "EligibilityPolicy", "allow_all", "compute_claim"]
