# src/ubiledger/runtime/coordinator.py
from __future__ import annotations

from typing import Any, Callable, Dict

from ubiledger.ledger.balances import Ledger
from ubiledger.ledger.constants import MEMO_MAX_BYTES
from ubiledger.ledger.supply import SupplyRegistry
from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.runtime.authority import AuthorityContext
from ubiledger.runtime.claim_engine import ClaimEngine
from ubiledger.runtime.errors import MemoTooLong, NotFound, SelfTransfer
from ubiledger.runtime.events import TRANSFER_EVENT, EventBuffer

Json = Dict[str, Any]

AccountDirectory = Callable[[str], bool]


def any_account(account: str) -> bool:
    return bool(str(account or "").strip())


def check_memo(memo: str, max_bytes: int = MEMO_MAX_BYTES) -> None:
    n = len(str(memo or "").encode("utf-8"))
    if n > int(max_bytes):
        raise MemoTooLong("memo_has_more_than_max_bytes", {"bytes": n, "max_bytes": int(max_bytes)})


class TransferCoordinator:
    """Sequences claim, debit and credit for transfers, plus issue and retire.

    Every method mutates the working state handed to the components; the
    executor commits the whole call or nothing.
    """

    def __init__(
        self,
        *,
        supply: SupplyRegistry,
        ledger: Ledger,
        claims: ClaimEngine,
        events: EventBuffer,
        operator_account: str,
        account_exists: AccountDirectory = any_account,
        memo_max_bytes: int = MEMO_MAX_BYTES,
    ) -> None:
        self._supply = supply
        self._ledger = ledger
        self._claims = claims
        self._events = events
        self._operator = str(operator_account)
        self._account_exists = account_exists
        self._memo_max = int(memo_max_bytes)

    def transfer(self, auth: AuthorityContext, frm: str, to: str, quantity: Asset, memo: str = "") -> Json:
        if frm == to:
            raise SelfTransfer("cannot_transfer_to_self", {"account": frm})

        auth.require_auth(frm)
        if not self._account_exists(to):
            raise NotFound("to_account_does_not_exist", {"to": to})

        self._supply.get(quantity.symbol)
        quantity.require_positive("transfer")
        check_memo(memo, self._memo_max)

        # The receiver pays for its own new record only if it signed too.
        payer = to if auth.has_auth(to) else frm

        # Claim first: pending income may be what covers the debit.
        claim = self._claims.try_claim(frm, quantity.symbol, payer)
        self._ledger.debit(frm, quantity)
        self._ledger.credit(to, quantity, payer)

        self._events.emit(
            TRANSFER_EVENT,
            (frm, to),
            {"from": frm, "to": to, "quantity": str(quantity), "memo": str(memo or "")},
        )
        return {
            "applied": "TOKEN_TRANSFER",
            "from": frm,
            "to": to,
            "quantity": str(quantity),
            "claimed": claim.issued,
        }

    def issue(self, auth: AuthorityContext, to: str, quantity: Asset, memo: str = "") -> Json:
        quantity.symbol.require_valid()
        check_memo(memo, self._memo_max)

        issuer = self._supply.issuer(quantity.symbol)
        auth.require_auth(issuer)
        quantity.require_positive("issue")

        # Explicit issuance is all-or-nothing; only claims truncate at the ceiling.
        self._supply.increase_supply(quantity)
        self._ledger.credit(issuer, quantity, issuer)

        if to != issuer:
            self.transfer(auth.with_principal(issuer), issuer, to, quantity, memo)

        return {"applied": "TOKEN_ISSUE", "issuer": issuer, "to": to, "quantity": str(quantity)}

    def retire(self, auth: AuthorityContext, quantity: Asset, memo: str = "") -> Json:
        quantity.symbol.require_valid()
        check_memo(memo, self._memo_max)

        issuer = self._supply.issuer(quantity.symbol)
        # An operator-owned currency has no private issuer; anyone may burn.
        if issuer != self._operator:
            auth.require_auth(issuer)
        quantity.require_positive("retire")

        self._supply.decrease_supply(quantity)
        self._ledger.debit(issuer, quantity)
        return {"applied": "TOKEN_RETIRE", "issuer": issuer, "quantity": str(quantity)}


class AccountLifecycle:
    """Open and close (owner, symbol) ledger entries.

    Opening never pays income; the account's first transfer triggers its
    first claim.
    """

    def __init__(self, *, supply: SupplyRegistry, ledger: Ledger) -> None:
        self._supply = supply
        self._ledger = ledger

    def open(self, auth: AuthorityContext, owner: str, symbol: Symbol, ram_payer: str) -> Json:
        auth.require_auth(ram_payer)
        symbol.require_valid()
        self._supply.get(symbol)

        rec = self._ledger.open_account(owner, symbol, ram_payer)
        return {
            "applied": "ACCOUNT_OPEN",
            "owner": owner,
            "symbol": str(symbol),
            "last_claim_day": int(rec.get("last_claim_day", 0)),
        }

    def close(self, auth: AuthorityContext, owner: str, symbol: Symbol) -> Json:
        auth.require_auth(owner)
        self._ledger.close_account(owner, symbol)
        return {"applied": "ACCOUNT_CLOSE", "owner": owner, "symbol": str(symbol)}


__all__ = ["AccountDirectory", "AccountLifecycle", "TransferCoordinator", "any_account", "check_memo"]
