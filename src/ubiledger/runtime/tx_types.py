from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from ubiledger.runtime.authority import AuthorityContext

TX_TOKEN_CREATE = "TOKEN_CREATE"
TX_TOKEN_ISSUE = "TOKEN_ISSUE"
TX_TOKEN_RETIRE = "TOKEN_RETIRE"
TX_TOKEN_TRANSFER = "TOKEN_TRANSFER"
TX_ACCOUNT_OPEN = "ACCOUNT_OPEN"
TX_ACCOUNT_CLOSE = "ACCOUNT_CLOSE"

SUPPORTED_TX_TYPES: Tuple[str, ...] = (
    TX_TOKEN_CREATE,
    TX_TOKEN_ISSUE,
    TX_TOKEN_RETIRE,
    TX_TOKEN_TRANSFER,
    TX_ACCOUNT_OPEN,
    TX_ACCOUNT_CLOSE,
)


@dataclass(frozen=True)
class TxEnvelope:
    tx_type: str
    signer: str
    payload: Dict[str, Any]
    cosigners: Tuple[str, ...] = field(default_factory=tuple)

    @staticmethod
    def from_json(j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)  # type: ignore[arg-type]
        cos = j.get("cosigners") or ()
        # A lone principal, not a sequence of characters.
        if isinstance(cos, str):
            cos = (cos,)
        return TxEnvelope(
            tx_type=str(j.get("tx_type", "")).strip().upper(),
            signer=str(j.get("signer", "")).strip(),
            payload=dict(j.get("payload", {}) or {}),
            cosigners=tuple(str(c).strip() for c in cos if str(c or "").strip()),
        )

    def authority(self) -> AuthorityContext:
        return AuthorityContext.of(self.signer, *self.cosigners)
