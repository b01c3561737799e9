from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ApplyError(Exception):
    """Canonical error type for ledger apply failures.

    Every precondition failure aborts the whole operation; the executor
    discards the working copy of the state when one of these escapes.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class InvalidPayload(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("invalid_payload", reason, details)


class InvalidAmount(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("invalid_amount", reason, details)


class InvalidSymbol(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("invalid_symbol", reason, details)


class AlreadyExists(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("already_exists", reason, details)


class NotFound(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("not_found", reason, details)


# Debit against a missing ledger entry.
NoSuchAccount = NotFound


class Overdrawn(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("overdrawn", reason, details)


class SupplyOverflow(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("supply_overflow", reason, details)


class InsufficientSupply(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("insufficient_supply", reason, details)


class SelfTransfer(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("self_transfer", reason, details)


class BalanceNotZero(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("balance_not_zero", reason, details)


class ClaimPending(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("claim_pending", reason, details)


class MemoTooLong(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("memo_too_long", reason, details)


class Unauthorized(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("unauthorized", reason, details)


__all__ = [
    "AlreadyExists",
    "ApplyError",
    "BalanceNotZero",
    "ClaimPending",
    "InsufficientSupply",
    "InvalidAmount",
    "InvalidPayload",
    "InvalidSymbol",
    "MemoTooLong",
    "NoSuchAccount",
    "NotFound",
    "Overdrawn",
    "SelfTransfer",
    "SupplyOverflow",
    "Unauthorized",
]
