from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict

from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.runtime.errors import NotFound

Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


@dataclass(frozen=True, slots=True)
class LedgerView:
    """
    Immutable read-only ledger view used by queries and the HTTP API.
    """

    stats: Dict[str, Any] = field(default_factory=dict)
    accounts: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_ledger(cls, state: Dict[str, Any]) -> "LedgerView":
        stats = state.get("stats")
        accounts = state.get("accounts")
        return cls(
            stats=copy.deepcopy(stats) if isinstance(stats, dict) else {},
            accounts=copy.deepcopy(accounts) if isinstance(accounts, dict) else {},
        )

    def get_stats(self, code: str) -> Json:
        st = self.stats.get(str(code))
        if not isinstance(st, dict):
            raise NotFound("token_with_symbol_does_not_exist", {"symbol": str(code)})
        return st

    def symbol(self, code: str) -> Symbol:
        return Symbol(code=str(code), precision=_as_int(self.get_stats(code).get("precision")))

    def get_supply(self, code: str) -> Asset:
        st = self.get_stats(code)
        return Asset(amount=_as_int(st.get("supply")), symbol=self.symbol(code))

    def get_max_supply(self, code: str) -> Asset:
        st = self.get_stats(code)
        return Asset(amount=_as_int(st.get("max_supply")), symbol=self.symbol(code))

    def get_account(self, owner: str, code: str) -> Json:
        rows = self.accounts.get(str(owner))
        rec = rows.get(str(code)) if isinstance(rows, dict) else None
        if not isinstance(rec, dict):
            raise NotFound("no_balance_object_found", {"owner": str(owner), "symbol": str(code)})
        return rec

    def get_balance(self, owner: str, code: str) -> Asset:
        rec = self.get_account(owner, code)
        return Asset(amount=_as_int(rec.get("balance")), symbol=self.symbol(code))

    def total_balances(self, code: str) -> int:
        total = 0
        for rows in self.accounts.values():
            if not isinstance(rows, dict):
                continue
            rec = rows.get(str(code))
            if isinstance(rec, dict):
                total += _as_int(rec.get("balance"))
        return total
