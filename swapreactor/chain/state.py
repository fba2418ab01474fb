"""
Journaled chain state.

Holds three kinds of value:
    token balances   (token, holder) → int     read via token_balance()
    native balances  holder → int              read via native_balance()
    storage slots    (namespace, key) → value  read via sload()

Every write records the previous value in an undo journal. snapshot()
returns a journal position; revert(position) replays the inverse writes
back to it. atomic() wraps a block so that any exception reverts every
write made inside it before propagating.

Native balances are kept apart from token balances on purpose: a token
transfer can never move native value and vice versa, and balance reads
for NATIVE never go through the token table.
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple

from swapreactor.core.exceptions import InsufficientBalance, ValidationError
from swapreactor.core.models import NATIVE


_MISSING = object()

_TOKEN  = "token"
_NATIVE = "native"
_SLOT   = "slot"


class ChainState:
    """
    In-memory ledger of balances and contract storage with undo journal.

    Thread-safe via internal re-entrant lock (single-process only).
    """

    def __init__(self) -> None:
        self._lock:    threading.RLock                   = threading.RLock()
        self._tokens:  Dict[Tuple[str, str], int]        = {}
        self._native:  Dict[str, int]                    = {}
        self._storage: Dict[Tuple[str, Any], Any]        = {}
        self._journal: List[Tuple[str, Any, Any]]        = []

    # ── Reads ─────────────────────────────────────────────────

    def token_balance(self, token: str, holder: str) -> int:
        """Balance as reported by the token's own accounting."""
        return self._tokens.get((token, holder), 0)

    def native_balance(self, holder: str) -> int:
        """Native asset balance held directly by an address."""
        return self._native.get(holder, 0)

    def balance_of(self, token: str, holder: str) -> int:
        """Route NATIVE to the address balance, anything else to the token table."""
        if token == NATIVE:
            return self.native_balance(holder)
        return self.token_balance(token, holder)

    def sload(self, namespace: str, key: Any, default: Any = None) -> Any:
        return self._storage.get((namespace, key), default)

    # ── Writes ────────────────────────────────────────────────

    def mint(self, token: str, holder: str, amount: int) -> None:
        """Create `amount` of token (or native value) at holder."""
        self._check_amount(amount)
        with self._lock:
            self._set_balance(token, holder, self.balance_of(token, holder) + amount)

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move amount from sender to recipient.

        Raises InsufficientBalance if sender holds less than amount.
        A zero-amount transfer always succeeds.
        """
        self._check_amount(amount)
        with self._lock:
            available = self.balance_of(token, sender)
            if available < amount:
                raise InsufficientBalance(
                    "Insufficient balance for transfer",
                    {
                        "token":     token,
                        "sender":    sender,
                        "available": available,
                        "amount":    amount,
                    },
                )
            if amount == 0 or sender == recipient:
                return
            self._set_balance(token, sender, available - amount)
            self._set_balance(token, recipient, self.balance_of(token, recipient) + amount)

    def sstore(self, namespace: str, key: Any, value: Any) -> None:
        with self._lock:
            slot = (namespace, key)
            self._journal.append((_SLOT, slot, self._storage.get(slot, _MISSING)))
            self._storage[slot] = value

    # ── Journal ───────────────────────────────────────────────

    def snapshot(self) -> int:
        """Return the current journal position."""
        with self._lock:
            return len(self._journal)

    def revert(self, snapshot_id: int) -> None:
        """Undo every write made after snapshot_id, newest first."""
        with self._lock:
            if snapshot_id < 0 or snapshot_id > len(self._journal):
                raise ValidationError(
                    "Unknown snapshot", {"snapshot_id": snapshot_id}
                )
            while len(self._journal) > snapshot_id:
                kind, key, previous = self._journal.pop()
                table = self._table(kind)
                if previous is _MISSING:
                    table.pop(key, None)
                else:
                    table[key] = previous

    @contextmanager
    def locked(self) -> Iterator["ChainState"]:
        """
        Hold the state lock for a block. Any snapshot/revert pair that must
        not undo another thread's writes runs inside one of these.
        """
        with self._lock:
            yield self

    @contextmanager
    def atomic(self) -> Iterator["ChainState"]:
        """
        All-or-nothing block.

            with state.atomic():
                state.transfer(...)
                state.transfer(...)   # raises → first transfer undone too
        """
        with self._lock:
            snapshot_id = self.snapshot()
            try:
                yield self
            except BaseException:
                self.revert(snapshot_id)
                raise

    # ── Internal ──────────────────────────────────────────────

    def _set_balance(self, token: str, holder: str, value: int) -> None:
        if token == NATIVE:
            self._journal.append((_NATIVE, holder, self._native.get(holder, _MISSING)))
            self._native[holder] = value
        else:
            key = (token, holder)
            self._journal.append((_TOKEN, key, self._tokens.get(key, _MISSING)))
            self._tokens[key] = value

    def _table(self, kind: str) -> Dict:
        if kind == _TOKEN:
            return self._tokens
        if kind == _NATIVE:
            return self._native
        return self._storage

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValidationError(
                "amount must be a non-negative int", {"amount": repr(amount)}
            )

    def __repr__(self) -> str:
        return (
            f"ChainState(token_balances={len(self._tokens)}, "
            f"native_balances={len(self._native)}, "
            f"slots={len(self._storage)})"
        )
