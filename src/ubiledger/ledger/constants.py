# src/ubiledger/ledger/constants.py
from __future__ import annotations

"""Basic-income monetary constants.

- One whole token per account per elapsed day
- Each claim pays the next 30 days in advance (counting today)
- Unclaimed income older than 360 days is forfeited
"""

# Advance-payment window: days paid ahead by a single claim.
CLAIM_DAYS: int = 30

# Forfeiture cap: days of past income that can still be claimed.
MAX_PAST_CLAIM_DAYS: int = 360

# Grace offset added to a new claim cursor on permissionless deployments.
ACCOUNT_GRACE_DAYS: int = 2

SECONDS_PER_DAY: int = 86_400

# Largest representable asset amount (62 bits, sign excluded).
MAX_ASSET_AMOUNT: int = (1 << 62) - 1

MAX_SYMBOL_PRECISION: int = 18
MAX_SYMBOL_CODE_LEN: int = 7

MEMO_MAX_BYTES: int = 256

# Default operating identity of the ledger itself.
OPERATOR_ACCOUNT_ID: str = "ubi.token"
