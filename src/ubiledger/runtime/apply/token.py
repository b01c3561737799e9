# src/ubiledger/runtime/apply/token.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ubiledger.ledger.balances import Ledger
from ubiledger.ledger.supply import SupplyRegistry
from ubiledger.ledger.symbols import Asset, Symbol
from ubiledger.runtime.claim_engine import ClaimEngine, EligibilityPolicy, allow_all
from ubiledger.runtime.clock import Clock
from ubiledger.runtime.coordinator import AccountDirectory, AccountLifecycle, TransferCoordinator, any_account
from ubiledger.runtime.errors import InvalidPayload
from ubiledger.runtime.events import EventBuffer
from ubiledger.runtime.ledger_config import LedgerConfig
from ubiledger.runtime.tx_schema import (
    AccountClosePayload,
    AccountOpenPayload,
    TokenCreatePayload,
    TokenIssuePayload,
    TokenRetirePayload,
    TokenTransferPayload,
    parse_payload,
)
from ubiledger.runtime.tx_types import (
    SUPPORTED_TX_TYPES,
    TX_ACCOUNT_CLOSE,
    TX_ACCOUNT_OPEN,
    TX_TOKEN_CREATE,
    TX_TOKEN_ISSUE,
    TX_TOKEN_RETIRE,
    TX_TOKEN_TRANSFER,
    TxEnvelope,
)

Json = Dict[str, Any]


@dataclass(frozen=True)
class LedgerRuntime:
    """External collaborators shared by every operation."""

    config: LedgerConfig
    clock: Clock
    can_claim: EligibilityPolicy = allow_all
    account_exists: AccountDirectory = any_account


@dataclass(frozen=True)
class Components:
    supply: SupplyRegistry
    ledger: Ledger
    claims: ClaimEngine
    transfers: TransferCoordinator
    accounts: AccountLifecycle


def build_components(state: Json, rt: LedgerRuntime, events: EventBuffer) -> Components:
    """Wire the ledger components over one working copy of the state."""
    cfg = rt.config
    supply = SupplyRegistry(state)
    ledger = Ledger(
        state,
        clock=rt.clock,
        unbounded_account_creation=cfg.unbounded_account_creation,
        grace_days=cfg.grace_days,
    )
    claims = ClaimEngine(
        supply=supply,
        ledger=ledger,
        clock=rt.clock,
        events=events,
        operator_account=cfg.operator_account,
        can_claim=rt.can_claim,
        claim_days=cfg.claim_days,
        max_past_claim_days=cfg.max_past_claim_days,
    )
    transfers = TransferCoordinator(
        supply=supply,
        ledger=ledger,
        claims=claims,
        events=events,
        operator_account=cfg.operator_account,
        account_exists=rt.account_exists,
        memo_max_bytes=cfg.memo_max_bytes,
    )
    return Components(
        supply=supply,
        ledger=ledger,
        claims=claims,
        transfers=transfers,
        accounts=AccountLifecycle(supply=supply, ledger=ledger),
    )


def _apply_token_create(c: Components, env: TxEnvelope, p: TokenCreatePayload, rt: LedgerRuntime) -> Json:
    # Only the ledger operator defines currencies.
    env.authority().require_auth(rt.config.operator_account)
    max_supply = Asset.parse(p.maximum_supply)
    c.supply.create_currency(max_supply, p.issuer)
    return {"applied": TX_TOKEN_CREATE, "issuer": p.issuer, "maximum_supply": str(max_supply)}


def _apply_token_issue(c: Components, env: TxEnvelope, p: TokenIssuePayload) -> Json:
    return c.transfers.issue(env.authority(), p.to, Asset.parse(p.quantity), p.memo)


def _apply_token_retire(c: Components, env: TxEnvelope, p: TokenRetirePayload) -> Json:
    return c.transfers.retire(env.authority(), Asset.parse(p.quantity), p.memo)


def _apply_token_transfer(c: Components, env: TxEnvelope, p: TokenTransferPayload) -> Json:
    return c.transfers.transfer(env.authority(), p.from_, p.to, Asset.parse(p.quantity), p.memo)


def _apply_account_open(c: Components, env: TxEnvelope, p: AccountOpenPayload) -> Json:
    return c.accounts.open(env.authority(), p.owner, Symbol.parse(p.symbol), p.ram_payer)


def _apply_account_close(c: Components, env: TxEnvelope, p: AccountClosePayload) -> Json:
    return c.accounts.close(env.authority(), p.owner, Symbol.parse(p.symbol))


def apply_token(state: Json, env: TxEnvelope, rt: LedgerRuntime, events: EventBuffer) -> Optional[Json]:
    """
    Returns:
      - dict: applied result (receipt convenience)
      - None: tx_type not in the token domain
    """
    t = str(env.tx_type or "").strip().upper()
    if t not in SUPPORTED_TX_TYPES:
        return None

    try:
        p = parse_payload(t, env.payload)
    except ValueError as e:
        raise InvalidPayload("schema_invalid", {"tx_type": t, "error": str(e)}) from None

    c = build_components(state, rt, events)

    if t == TX_TOKEN_CREATE:
        return _apply_token_create(c, env, p, rt)  # type: ignore[arg-type]

    if t == TX_TOKEN_ISSUE:
        return _apply_token_issue(c, env, p)  # type: ignore[arg-type]

    if t == TX_TOKEN_RETIRE:
        return _apply_token_retire(c, env, p)  # type: ignore[arg-type]

    if t == TX_TOKEN_TRANSFER:
        return _apply_token_transfer(c, env, p)  # type: ignore[arg-type]

    if t == TX_ACCOUNT_OPEN:
        return _apply_account_open(c, env, p)  # type: ignore[arg-type]

    if t == TX_ACCOUNT_CLOSE:
        return _apply_account_close(c, env, p)  # type: ignore[arg-type]

    return None


__all__ = ["Components", "LedgerRuntime", "apply_token", "build_components"]
