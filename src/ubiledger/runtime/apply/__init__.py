# src/ubiledger/runtime/apply/__init__.py
"""Domain-specific apply modules.

These modules implement deterministic ledger state transitions for the
supported tx types. Keep this package import-safe (no executor imports).
"""

from __future__ import annotations

__all__ = [
    "token",
]
