"""ubiledger.ledger.symbols

Currency identity and fixed-point amounts.

A Symbol is a code (1-7 uppercase letters) plus a decimal precision. An Asset is
an integer amount scaled by 10**precision, tagged with its Symbol. Both have a
canonical text form used in tx payloads and receipts:

    Symbol: "4,WUBI"
    Asset:  "31.0000 WUBI"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ubiledger.ledger.constants import MAX_ASSET_AMOUNT, MAX_SYMBOL_CODE_LEN, MAX_SYMBOL_PRECISION
from ubiledger.runtime.errors import InvalidAmount, InvalidSymbol


def _ascii_digits(s: str) -> bool:
    return bool(s) and s.isascii() and s.isdecimal()


def _valid_code(code: str) -> bool:
    if not code or len(code) > MAX_SYMBOL_CODE_LEN:
        return False
    return all("A" <= ch <= "Z" for ch in code)


@dataclass(frozen=True, slots=True)
class Symbol:
    code: str
    precision: int

    @property
    def multiplier(self) -> int:
        return 10 ** int(self.precision)

    def is_valid(self) -> bool:
        return _valid_code(self.code) and 0 <= int(self.precision) <= MAX_SYMBOL_PRECISION

    def require_valid(self) -> "Symbol":
        if not self.is_valid():
            raise InvalidSymbol("invalid_symbol_name", {"symbol": str(self)})
        return self

    @classmethod
    def parse(cls, raw: Any) -> "Symbol":
        if isinstance(raw, Symbol):
            return raw
        s = str(raw or "").strip()
        prec_s, sep, code = s.partition(",")
        if not sep:
            raise InvalidSymbol("malformed_symbol", {"symbol": s})
        prec_s = prec_s.strip()
        if not _ascii_digits(prec_s):
            raise InvalidSymbol("malformed_symbol", {"symbol": s})
        return cls(code=code.strip(), precision=int(prec_s)).require_valid()

    def __str__(self) -> str:
        return f"{self.precision},{self.code}"


@dataclass(frozen=True, slots=True)
class Asset:
    amount: int
    symbol: Symbol

    def is_valid(self) -> bool:
        return -MAX_ASSET_AMOUNT <= int(self.amount) <= MAX_ASSET_AMOUNT and self.symbol.is_valid()

    def require_valid(self) -> "Asset":
        if not self.symbol.is_valid():
            raise InvalidSymbol("invalid_symbol_name", {"symbol": str(self.symbol)})
        if not self.is_valid():
            raise InvalidAmount("invalid_quantity", {"amount": int(self.amount)})
        return self

    def require_positive(self, action: str) -> "Asset":
        self.require_valid()
        if int(self.amount) <= 0:
            raise InvalidAmount(f"must_{action}_positive_quantity", {"amount": int(self.amount)})
        return self

    @classmethod
    def parse(cls, raw: Any) -> "Asset":
        """Parse "12.3400 WUBI" into Asset(123400, Symbol("WUBI", 4))."""
        if isinstance(raw, Asset):
            return raw
        s = str(raw or "").strip()
        num, sep, code = s.partition(" ")
        if not sep or not num:
            raise InvalidAmount("malformed_asset", {"asset": s})

        negative = num.startswith("-")
        digits = num[1:] if negative else num
        whole, dot, frac = digits.partition(".")
        # int() would accept non-ASCII digits and "_" separators; the wire form does not.
        if not _ascii_digits(whole) or (dot and not _ascii_digits(frac)):
            raise InvalidAmount("malformed_asset", {"asset": s})

        precision = len(frac)
        amount = int(whole + frac)
        if negative:
            amount = -amount
        return cls(amount=amount, symbol=Symbol(code=code.strip(), precision=precision)).require_valid()

    def __str__(self) -> str:
        prec = int(self.symbol.precision)
        mag = abs(int(self.amount))
        sign = "-" if int(self.amount) < 0 else ""
        if prec == 0:
            return f"{sign}{mag} {self.symbol.code}"
        whole, frac = divmod(mag, self.symbol.multiplier)
        return f"{sign}{whole}.{frac:0{prec}d} {self.symbol.code}"


def whole_units(count: int, symbol: Symbol) -> Asset:
    """Asset worth `count` whole tokens of `symbol`."""
    return Asset(amount=int(count) * symbol.multiplier, symbol=symbol)


__all__ = ["Asset", "Symbol", "whole_units"]
