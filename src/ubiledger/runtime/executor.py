from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ubiledger.ledger.state import LedgerView
from ubiledger.ledger.store import LedgerStore
from ubiledger.ledger.symbols import Asset
from ubiledger.runtime.apply.token import LedgerRuntime, apply_token
from ubiledger.runtime.claim_engine import EligibilityPolicy, allow_all
from ubiledger.runtime.clock import Clock, SystemClock
from ubiledger.runtime.coordinator import AccountDirectory, any_account
from ubiledger.runtime.errors import ApplyError
from ubiledger.runtime.events import CLAIM_EVENT, EventBuffer, LogNotifier, Notifier
from ubiledger.runtime.ledger_config import LedgerConfig, load_ledger_config
from ubiledger.runtime.ledger_logging import log_event
from ubiledger.runtime.metrics import inc_counter
from ubiledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from ubiledger.runtime.tx_types import TxEnvelope

Json = Dict[str, Any]

STATE_VERSION = 1

log = logging.getLogger("ubiledger.executor")


class ExecutorError(RuntimeError):
    pass


class LedgerExecutor:
    """Runs each ledger operation as one atomic unit against a LedgerStore.

    submit() applies the tx to a working copy inside the store's write
    transaction. Notifications buffered during apply are delivered only after
    the commit; a rejected tx changes nothing and notifies nobody.
    """

    def __init__(
        self,
        *,
        store: LedgerStore,
        config: LedgerConfig,
        clock: Optional[Clock] = None,
        notifier: Optional[Notifier] = None,
        can_claim: EligibilityPolicy = allow_all,
        account_exists: AccountDirectory = any_account,
    ) -> None:
        self.config = config
        self._store = store
        self._notifier: Notifier = notifier or LogNotifier()
        self._rt = LedgerRuntime(
            config=config,
            clock=clock or SystemClock(),
            can_claim=can_claim,
            account_exists=account_exists,
        )

        if not self._store.exists():
            self._store.write(self._initial_state())

        st = self._store.read()
        st_ledger_id = str(st.get("ledger_id") or "").strip()
        if st_ledger_id and st_ledger_id != config.ledger_id:
            raise ExecutorError(
                f"ledger_id mismatch: db={st_ledger_id!r} executor={config.ledger_id!r}. Refuse to start."
            )

    def _initial_state(self) -> Json:
        return {
            "state_version": STATE_VERSION,
            "ledger_id": self.config.ledger_id,
            "operator_account": self.config.operator_account,
            "stats": {},
            "accounts": {},
        }

    @property
    def clock(self) -> Clock:
        return self._rt.clock

    @property
    def store(self) -> LedgerStore:
        return self._store

    # ----------------------------
    # Operations
    # ----------------------------

    def submit(self, env: Any) -> Json:
        """Apply one tx envelope atomically. Raises ApplyError on rejection."""
        tx = TxEnvelope.from_json(env)
        events = EventBuffer()

        def _mut(st: Json) -> Json:
            out = apply_token(st, tx, self._rt, events)
            if out is None:
                raise ApplyError("tx_unimplemented", "tx_type_not_implemented", {"tx_type": tx.tx_type})
            return out

        def _receipts() -> List[Json]:
            return [
                {"event": event, "recipients": list(recipients), **record}
                for event, recipients, record in events.items
            ]

        try:
            result = self._store.update(_mut, receipts=_receipts)
        except ApplyError as e:
            inc_counter("tx_rejected")
            log_event(
                log,
                "tx_rejected",
                tx_type=tx.tx_type,
                signer=tx.signer,
                code=e.code,
                reason=e.reason,
                details=e.details,
            )
            raise

        inc_counter("tx_applied")
        for event, _, record in events.items:
            if event == CLAIM_EVENT:
                inc_counter("ubi_claims")
                inc_counter("ubi_claimed_units", int(record.get("amount", 0)))
        log_event(log, "tx_applied", tx_type=tx.tx_type, signer=tx.signer, result=result)

        events.flush(self._notifier)
        return result

    def create(self, issuer: str, maximum_supply: str) -> Json:
        return self.submit(
            {
                "tx_type": "TOKEN_CREATE",
                "signer": self.config.operator_account,
                "payload": {"issuer": issuer, "maximum_supply": maximum_supply},
            }
        )

    def issue(self, to: str, quantity: str, memo: str = "", *, signer: str) -> Json:
        return self.submit(
            {"tx_type": "TOKEN_ISSUE", "signer": signer, "payload": {"to": to, "quantity": quantity, "memo": memo}}
        )

    def retire(self, quantity: str, memo: str = "", *, signer: str) -> Json:
        return self.submit(
            {"tx_type": "TOKEN_RETIRE", "signer": signer, "payload": {"quantity": quantity, "memo": memo}}
        )

    def transfer(
        self, frm: str, to: str, quantity: str, memo: str = "", *, cosigners: Union[str, Tuple[str, ...]] = ()
    ) -> Json:
        return self.submit(
            {
                "tx_type": "TOKEN_TRANSFER",
                "signer": frm,
                "cosigners": [cosigners] if isinstance(cosigners, str) else list(cosigners),
                "payload": {"from": frm, "to": to, "quantity": quantity, "memo": memo},
            }
        )

    def open(self, owner: str, symbol: str, ram_payer: str) -> Json:
        return self.submit(
            {
                "tx_type": "ACCOUNT_OPEN",
                "signer": ram_payer,
                "payload": {"owner": owner, "symbol": symbol, "ram_payer": ram_payer},
            }
        )

    def close(self, owner: str, symbol: str) -> Json:
        return self.submit(
            {"tx_type": "ACCOUNT_CLOSE", "signer": owner, "payload": {"owner": owner, "symbol": symbol}}
        )

    # ----------------------------
    # Queries
    # ----------------------------

    def read_state(self) -> Json:
        return self._store.read()

    def view(self) -> LedgerView:
        return LedgerView.from_ledger(self._store.read())

    def get_supply(self, code: str) -> Asset:
        return self.view().get_supply(code)

    def get_balance(self, owner: str, code: str) -> Asset:
        return self.view().get_balance(owner, code)

    def receipts(self, *, limit: int = 100) -> List[Json]:
        return self._store.receipts(limit=limit)

    # ----------------------------
    # Construction
    # ----------------------------

    @classmethod
    def from_config(cls, cfg: LedgerConfig, **kwargs: Any) -> "LedgerExecutor":
        store = SqliteLedgerStore(db=SqliteDB(path=cfg.db_path), ledger_id=cfg.ledger_id)
        return cls(store=store, config=cfg, **kwargs)

    @classmethod
    def from_env(cls) -> "LedgerExecutor":
        return cls.from_config(load_ledger_config())
