# src/ubiledger/runtime/authority.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from ubiledger.runtime.errors import Unauthorized


@dataclass(frozen=True, slots=True)
class AuthorityContext:
    """Principals that authorised the current call.

    Signature checking happens before a context is built; the ledger only
    asks whether a principal is in it.
    """

    principals: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, *principals: str) -> "AuthorityContext":
        return cls(principals=frozenset(str(p).strip() for p in principals if str(p or "").strip()))

    def has_auth(self, principal: str) -> bool:
        return str(principal or "").strip() in self.principals

    def require_auth(self, principal: str) -> None:
        if not self.has_auth(principal):
            raise Unauthorized("missing_authority", {"principal": str(principal)})

    def with_principal(self, principal: str) -> "AuthorityContext":
        return AuthorityContext(principals=self.principals | {str(principal).strip()})


__all__ = ["AuthorityContext"]
