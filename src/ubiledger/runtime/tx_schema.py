from __future__ import annotations

"""Transaction payload schemas.

Shape checks (types, required keys, unknown keys rejected) run before apply.
Apply-layer code still enforces the ledger semantics: asset parsing, symbol
validity, balances, supply and authority.
"""

from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ubiledger.runtime.tx_types import (
    TX_ACCOUNT_CLOSE,
    TX_ACCOUNT_OPEN,
    TX_TOKEN_CREATE,
    TX_TOKEN_ISSUE,
    TX_TOKEN_RETIRE,
    TX_TOKEN_TRANSFER,
)

Json = Dict[str, Any]


class _StrictModel(BaseModel):
    """Strict model: reject unknown keys."""

    model_config = ConfigDict(extra="forbid")


class TokenCreatePayload(_StrictModel):
    issuer: str = Field(..., min_length=1)
    maximum_supply: str = Field(..., min_length=3, description='e.g. "1000000.0000 WUBI"')


class TokenIssuePayload(_StrictModel):
    to: str = Field(..., min_length=1)
    quantity: str = Field(..., min_length=3)
    memo: str = ""


class TokenRetirePayload(_StrictModel):
    quantity: str = Field(..., min_length=3)
    memo: str = ""


class TokenTransferPayload(_StrictModel):
    # "from" is a keyword; accept it on the wire through an alias.
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_: str = Field(..., min_length=1, alias="from")
    to: str = Field(..., min_length=1)
    quantity: str = Field(..., min_length=3)
    memo: str = ""


class AccountOpenPayload(_StrictModel):
    owner: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=3, description='e.g. "4,WUBI"')
    ram_payer: str = Field(..., min_length=1)


class AccountClosePayload(_StrictModel):
    owner: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=3)


_SCHEMAS: Dict[str, Type[BaseModel]] = {
    TX_TOKEN_CREATE: TokenCreatePayload,
    TX_TOKEN_ISSUE: TokenIssuePayload,
    TX_TOKEN_RETIRE: TokenRetirePayload,
    TX_TOKEN_TRANSFER: TokenTransferPayload,
    TX_ACCOUNT_OPEN: AccountOpenPayload,
    TX_ACCOUNT_CLOSE: AccountClosePayload,
}


def schema_for(tx_type: str) -> Optional[Type[BaseModel]]:
    return _SCHEMAS.get(str(tx_type or "").strip().upper())


def parse_payload(tx_type: str, payload: Any) -> BaseModel:
    """Validate and return the typed payload. Raises ValueError on failure."""
    model = schema_for(tx_type)
    if model is None:
        raise ValueError(f"unknown_tx_type:{tx_type}")
    if not isinstance(payload, dict):
        raise ValueError("payload_not_object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ValueError(_summarize(e)) from e


def validate_payload(tx_type: str, payload: Any) -> Tuple[bool, str]:
    try:
        parse_payload(tx_type, payload)
    except ValueError as e:
        return False, str(e)
    return True, ""


def _summarize(e: ValidationError) -> str:
    parts = []
    for err in e.errors()[:5]:
        loc = ".".join(str(x) for x in err.get("loc", ()))
        parts.append(f"{loc}:{err.get('type', 'invalid')}")
    return "schema_invalid:" + ",".join(parts)


__all__ = [
    "AccountClosePayload",
    "AccountOpenPayload",
    "TokenCreatePayload",
    "TokenIssuePayload",
    "TokenRetirePayload",
    "TokenTransferPayload",
    "parse_payload",
    "schema_for",
    "validate_payload",
]
