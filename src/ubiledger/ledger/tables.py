# src/ubiledger/ledger/tables.py
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from ubiledger.runtime.errors import AlreadyExists, NotFound

Json = Dict[str, Any]


class Table:
    """Keyed record table over the JSON ledger state.

    Records live at state[root][key], or state[root][scope][key] for scoped
    tables (one scope per account owner). Records are plain dicts so the
    whole state stays JSON-serializable for the SQLite snapshot.

    Atomicity is not handled here: callers run against a working copy of the
    state that the executor commits or discards as a unit.
    """

    def __init__(self, state: Json, root: str, *, scope: Optional[str] = None) -> None:
        self._state = state
        self._root = str(root)
        self._scope = None if scope is None else str(scope)

    def _rows(self, *, create: bool) -> Optional[Json]:
        root = self._state.get(self._root)
        if not isinstance(root, dict):
            if not create:
                return None
            root = {}
            self._state[self._root] = root
        if self._scope is None:
            return root
        rows = root.get(self._scope)
        if not isinstance(rows, dict):
            if not create:
                return None
            rows = {}
            root[self._scope] = rows
        return rows

    def find(self, key: str) -> Optional[Json]:
        rows = self._rows(create=False)
        if rows is None:
            return None
        rec = rows.get(str(key))
        return rec if isinstance(rec, dict) else None

    def get(self, key: str, reason: str = "record_not_found") -> Json:
        rec = self.find(key)
        if rec is None:
            raise NotFound(reason, {"table": self._root, "scope": self._scope, "key": str(key)})
        return rec

    def emplace(self, key: str, record: Json) -> Json:
        rows = self._rows(create=True)
        assert rows is not None
        k = str(key)
        if isinstance(rows.get(k), dict):
            raise AlreadyExists("record_exists", {"table": self._root, "scope": self._scope, "key": k})
        rows[k] = dict(record)
        return rows[k]

    def modify(self, key: str, mut: Callable[[Json], Any]) -> Json:
        rec = self.get(key)
        mut(rec)
        return rec

    def erase(self, key: str) -> None:
        rows = self._rows(create=False)
        k = str(key)
        if rows is None or not isinstance(rows.get(k), dict):
            raise NotFound("record_not_found", {"table": self._root, "scope": self._scope, "key": k})
        del rows[k]

        # Drop empty owner scopes so closed accounts leave no trace.
        if self._scope is not None and not rows:
            root = self._state.get(self._root)
            if isinstance(root, dict):
                root.pop(self._scope, None)


__all__ = ["Json", "Table"]
