# src/ubiledger/ledger/store.py
from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

Json = Dict[str, Any]
T = TypeVar("T")

ReceiptSource = Callable[[], List[Json]]


class LedgerStore(Protocol):
    """Transactional snapshot store for the ledger state.

    update(mut) is the only write path: mut runs against a private copy of
    the state, and the copy replaces the stored state only if mut returns
    normally. Receipt rows produced by the call are persisted in the same
    transaction.
    """

    def exists(self) -> bool: ...

    def read(self) -> Json: ...

    def write(self, st: Json) -> None: ...

    def update(self, mut: Callable[[Json], T], *, receipts: Optional[ReceiptSource] = None) -> T: ...

    def receipts(self, *, limit: int = 100) -> List[Json]: ...


class MemoryLedgerStore:
    """Process-local store. Writers are serialized by a lock."""

    def __init__(self, initial: Optional[Json] = None) -> None:
        self._lock = threading.Lock()
        self._state: Optional[Json] = copy.deepcopy(initial) if isinstance(initial, dict) else None
        self._receipts: List[Json] = []

    def exists(self) -> bool:
        with self._lock:
            return self._state is not None

    def read(self) -> Json:
        with self._lock:
            if self._state is None:
                raise FileNotFoundError("memory ledger state is missing")
            return copy.deepcopy(self._state)

    def write(self, st: Json) -> None:
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        with self._lock:
            self._state = copy.deepcopy(st)

    def update(self, mut: Callable[[Json], T], *, receipts: Optional[ReceiptSource] = None) -> T:
        with self._lock:
            if self._state is None:
                raise FileNotFoundError("memory ledger state is missing")
            working = copy.deepcopy(self._state)
            out = mut(working)
            rows = list(receipts()) if receipts is not None else []
            self._state = working
            self._receipts.extend(copy.deepcopy(rows))
            return out

    def receipts(self, *, limit: int = 100) -> List[Json]:
        with self._lock:
            n = max(0, int(limit))
            return copy.deepcopy(self._receipts[-n:]) if n else []


__all__ = ["LedgerStore", "MemoryLedgerStore", "ReceiptSource"]
