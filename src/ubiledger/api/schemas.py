from __future__ import annotations

"""Pydantic request schemas for the public API.

Payload shapes per tx type live in ubiledger.runtime.tx_schema; this module
only validates the outer envelope.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class TxSubmitRequest(BaseModel):
    tx_type: str = Field(..., min_length=1, description="e.g. TOKEN_TRANSFER")
    signer: str = Field(..., min_length=1, description="Principal that authorised the tx")
    cosigners: List[str] = Field(default_factory=list)
    payload: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}
