# src/ubiledger/ledger/balances.py
from __future__ import annotations

from typing import Any, Dict, Optional

from ubiledger.ledger.constants import ACCOUNT_GRACE_DAYS
from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.ledger.tables import Table
from ubiledger.runtime.clock import Clock
from ubiledger.runtime.errors import BalanceNotZero, ClaimPending, InvalidAmount, InvalidSymbol, Overdrawn

Json = Dict[str, Any]

ACCOUNTS_ROOT = "accounts"


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


class Ledger:
    """Per-(owner, symbol) balances and claim cursors.

    Shape: state["accounts"][owner][CODE] = {balance, precision, last_claim_day, ram_payer}

    The claim cursor lives in the balance record itself; creating or erasing
    an entry always creates or erases its cursor with it.
    """

    def __init__(
        self,
        state: Json,
        *,
        clock: Clock,
        unbounded_account_creation: bool = False,
        grace_days: int = ACCOUNT_GRACE_DAYS,
    ) -> None:
        self._state = state
        self._clock = clock
        self._unbounded = bool(unbounded_account_creation)
        self._grace_days = int(grace_days)

    def _table(self, owner: str) -> Table:
        return Table(self._state, ACCOUNTS_ROOT, scope=str(owner))

    def _initial_cursor(self) -> int:
        # Yesterday, so the first claim starts paying from today.
        cursor = int(self._clock.today()) - 1
        if self._unbounded:
            cursor += self._grace_days
        return cursor

    def _new_entry(self, owner: str, symbol: Symbol, balance: int, ram_payer: str) -> Json:
        return self._table(owner).emplace(
            symbol.code,
            {
                "balance": int(balance),
                "precision": int(symbol.precision),
                "last_claim_day": self._initial_cursor(),
                "ram_payer": str(ram_payer or owner),
            },
        )

    def find(self, owner: str, symbol: Symbol) -> Optional[Json]:
        rec = self._table(owner).find(symbol.code)
        if rec is not None and _as_int(rec.get("precision"), -1) != int(symbol.precision):
            raise InvalidSymbol("symbol_precision_mismatch", {"owner": owner, "symbol": str(symbol)})
        return rec

    def entry(self, owner: str, symbol: Symbol) -> Json:
        rec = self.find(owner, symbol)
        if rec is None:
            return self._table(owner).get(symbol.code, "no_balance_object_found")
        return rec

    def balance(self, owner: str, symbol: Symbol) -> Asset:
        rec = self.find(owner, symbol)
        return Asset(amount=_as_int(rec.get("balance")) if rec else 0, symbol=symbol)

    def credit(self, owner: str, value: Asset, ram_payer: str = "") -> Json:
        amt = int(value.amount)
        if amt <= 0:
            raise InvalidAmount("credit_must_be_positive", {"owner": owner, "amount": amt})

        rec = self.find(owner, value.symbol)
        if rec is None:
            return self._new_entry(owner, value.symbol, amt, ram_payer)
        rec["balance"] = _as_int(rec.get("balance")) + amt
        return rec

    def debit(self, owner: str, value: Asset) -> Json:
        amt = int(value.amount)
        if amt <= 0:
            raise InvalidAmount("debit_must_be_positive", {"owner": owner, "amount": amt})

        rec = self.entry(owner, value.symbol)
        bal = _as_int(rec.get("balance"))
        if bal < amt:
            raise Overdrawn("overdrawn_balance", {"owner": owner, "balance": bal, "amount": amt})
        rec["balance"] = bal - amt
        return rec

    def advance_cursor(self, owner: str, symbol: Symbol, delta: int) -> int:
        rec = self.entry(owner, symbol)
        rec["last_claim_day"] = _as_int(rec.get("last_claim_day")) + int(delta)
        return int(rec["last_claim_day"])

    def open_account(self, owner: str, symbol: Symbol, ram_payer: str) -> Json:
        rec = self.find(owner, symbol)
        if rec is not None:
            return rec
        return self._new_entry(owner, symbol, 0, ram_payer)

    def close_account(self, owner: str, symbol: Symbol) -> None:
        rec = self.entry(owner, symbol)
        bal = _as_int(rec.get("balance"))
        if bal != 0:
            raise BalanceNotZero("cannot_close_nonzero_balance", {"owner": owner, "balance": bal})

        # Closing after today's income was paid would let a reopen reset the
        # cursor and pay the same days again.
        today = int(self._clock.today())
        last = _as_int(rec.get("last_claim_day"))
        if last >= today:
            raise ClaimPending(
                "income_already_claimed_for_today",
                {"owner": owner, "last_claim_day": last, "today": today},
            )
        self._table(owner).erase(symbol.code)


__all__ = ["ACCOUNTS_ROOT", "Ledger"]
