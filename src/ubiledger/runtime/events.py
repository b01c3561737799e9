# src/ubiledger/runtime/events.py
from __future__ import annotations

"""Ledger notifications.

Operations never deliver notifications directly. They append to an EventBuffer
owned by the executor, which hands the buffered records to the Notifier only
after the state commit succeeded. A rejected operation therefore notifies
nobody.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Protocol, Tuple

from ubiledger.runtime.clock import days_to_string
from ubiledger.runtime.ledger_logging import log_event

Json = Dict[str, Any]

CLAIM_EVENT = "ubi_claim"
TRANSFER_EVENT = "transfer"


@dataclass(frozen=True)
class ClaimRecord:
    owner: str
    quantity: str
    amount: int
    last_claim_day: int
    lost_days: int
    memo: str


def claim_memo(owner: str, quantity: str, last_claim_day: int, lost_days: int) -> str:
    """Human-readable claim line, e.g. "[UBI] alice +31.0000 WUBI (next: 11-05-1970)".

    "next" is the first day not yet paid for.
    """
    memo = f"[UBI] {owner} +{quantity} (next: {days_to_string(int(last_claim_day) + 1)})"
    if int(lost_days) > 0:
        memo += f" (lost: {int(lost_days)} days of income)"
    return memo


class Notifier(Protocol):
    def notify(self, event: str, recipients: Tuple[str, ...], record: Json) -> None: ...


class EventBuffer:
    """Per-operation buffer of (event, recipients, record)."""

    def __init__(self) -> None:
        self._items: List[Tuple[str, Tuple[str, ...], Json]] = []

    def emit(self, event: str, recipients: Tuple[str, ...], record: Json) -> None:
        self._items.append((str(event), tuple(recipients), dict(record)))

    def emit_claim(self, rec: ClaimRecord) -> None:
        self.emit(CLAIM_EVENT, (rec.owner,), asdict(rec))

    @property
    def items(self) -> List[Tuple[str, Tuple[str, ...], Json]]:
        return list(self._items)

    def flush(self, notifier: "Notifier") -> int:
        n = 0
        for event, recipients, record in self._items:
            notifier.notify(event, recipients, record)
            n += 1
        self._items.clear()
        return n


class LogNotifier:
    """Deliver notifications as structured log lines."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("ubiledger.claims")

    def notify(self, event: str, recipients: Tuple[str, ...], record: Json) -> None:
        log_event(self._logger, event, recipients=list(recipients), **record)


class RecordingNotifier:
    """Keeps delivered notifications in memory (API read-back, tests)."""

    def __init__(self) -> None:
        self.delivered: List[Tuple[str, Tuple[str, ...], Json]] = []

    def notify(self, event: str, recipients: Tuple[str, ...], record: Json) -> None:
        self.delivered.append((event, tuple(recipients), dict(record)))

    def of(self, event: str) -> List[Json]:
        return [r for e, _, r in self.delivered if e == event]


__all__ = [
    "CLAIM_EVENT",
    "TRANSFER_EVENT",
    "ClaimRecord",
    "EventBuffer",
    "LogNotifier",
    "Notifier",
    "RecordingNotifier",
    "claim_memo",
]
