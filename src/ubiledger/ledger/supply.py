# src/ubiledger/ledger/supply.py
from __future__ import annotations

from typing import Any, Dict

from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.ledger.tables import Table
from ubiledger.runtime.errors import InsufficientSupply, InvalidAmount, InvalidSymbol, SupplyOverflow

Json = Dict[str, Any]

STATS_ROOT = "stats"


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


class SupplyRegistry:
    """Per-symbol supply and max-supply records.

    Shape: state["stats"][CODE] = {supply, max_supply, precision, issuer}
    """

    def __init__(self, state: Json) -> None:
        self._stats = Table(state, STATS_ROOT)

    def create_currency(self, maximum_supply: Asset, issuer: str) -> Json:
        sym = maximum_supply.symbol.require_valid()
        maximum_supply.require_valid()
        if int(maximum_supply.amount) <= 0:
            raise InvalidAmount("max_supply_must_be_positive", {"max_supply": str(maximum_supply)})

        return self._stats.emplace(
            sym.code,
            {
                "supply": 0,
                "max_supply": int(maximum_supply.amount),
                "precision": int(sym.precision),
                "issuer": str(issuer),
            },
        )

    def get(self, symbol: Symbol) -> Json:
        """Stats record for `symbol`, checking its precision matches."""
        st = self._stats.get(symbol.code, "token_with_symbol_does_not_exist")
        if _as_int(st.get("precision"), -1) != int(symbol.precision):
            raise InvalidSymbol(
                "symbol_precision_mismatch",
                {"symbol": str(symbol), "precision": _as_int(st.get("precision"), -1)},
            )
        return st

    def issuer(self, symbol: Symbol) -> str:
        return str(self.get(symbol).get("issuer") or "")

    def supply(self, symbol: Symbol) -> Asset:
        return Asset(amount=_as_int(self.get(symbol).get("supply")), symbol=symbol)

    def available_headroom(self, symbol: Symbol) -> int:
        st = self.get(symbol)
        return _as_int(st.get("max_supply")) - _as_int(st.get("supply"))

    def increase_supply(self, quantity: Asset) -> None:
        st = self.get(quantity.symbol)
        amt = int(quantity.amount)
        supply = _as_int(st.get("supply"))
        max_supply = _as_int(st.get("max_supply"))
        if amt > max_supply - supply:
            raise SupplyOverflow(
                "quantity_exceeds_available_supply",
                {"quantity": str(quantity), "headroom": max_supply - supply},
            )
        self._stats.modify(quantity.symbol.code, lambda rec: rec.update(supply=supply + amt))

    def decrease_supply(self, quantity: Asset) -> None:
        st = self.get(quantity.symbol)
        amt = int(quantity.amount)
        supply = _as_int(st.get("supply"))
        if amt > supply:
            raise InsufficientSupply("retire_exceeds_supply", {"quantity": str(quantity), "supply": supply})
        self._stats.modify(quantity.symbol.code, lambda rec: rec.update(supply=supply - amt))


__all__ = ["STATS_ROOT", "SupplyRegistry"]
