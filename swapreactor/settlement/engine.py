"""
Reactor: settles signed orders against a filler.

Every execute* call runs these steps, in this exact order, inside one
ChainState.atomic() block:

  1. Resolve      order-type resolver → ResolvedOrder; reactor address
                  check; additional validation hook
  2. Fees         protocol fees (controller) then skim fee
  3. Snapshot     BalanceInvariantChecker.snapshot()
  4. Collect      custody pulls each input into the reactor
  5. Fill         inputs released to the filler, then either
                    direct:   reactor pulls outputs from the filler's balances
                    callback: filler.reactor_callback(orders, filler_data)
  6. Verify       BalanceInvariantChecker.verify()
  7. Finalize     one SettlementRecord per order (after commit)

Any exception in 1-6 reverts every balance, nonce and fee ledger write
of the call and propagates unchanged. No partial batch is ever committed.

Step 7 never raises. Once the state has committed, the call returns its
records: every record is added to reactor.fills first, then journaled.
A journal write failure is logged at ERROR and leaves that record out of
the journal only.
"""

import logging
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from swapreactor.chain.custody import CustodyTransfer
from swapreactor.chain.state import ChainState
from swapreactor.core.exceptions import (
    InvalidReactor,
    LedgerError,
    ReactorError,
    ValidationError,
    ValidationFailed,
)
from swapreactor.core.models import ResolvedOrder, SettlementRecord, SignedOrder
from swapreactor.core.time import Clock, block_timestamp
from swapreactor.fees.protocol import ProtocolFees
from swapreactor.fees.skim import InterfaceFeeSkimmer
from swapreactor.ledger.journal import FillJournal
from swapreactor.reactors.resolvers import resolve
from swapreactor.reactors.validation import OrderValidator
from swapreactor.settlement.checker import BalanceInvariantChecker

logger = logging.getLogger(__name__)


class Filler(Protocol):
    """A fill contract. Only post-state balances are trusted, never its return."""

    address: str

    def reactor_callback(self, orders: Sequence[ResolvedOrder], filler_data: bytes) -> None:
        ...


class Reactor:
    """
    Settlement engine bound to one address and one chain state.
    """

    def __init__(
        self,
        address:       str,
        state:         ChainState,
        custody:       CustodyTransfer,
        protocol_fees: Optional[ProtocolFees] = None,
        skimmer:       Optional[InterfaceFeeSkimmer] = None,
        clock:         Clock = block_timestamp,
        validators:    Optional[Dict[str, OrderValidator]] = None,
        journal:       Optional[FillJournal] = None,
    ) -> None:
        self.address       = address
        self.state         = state
        self.custody       = custody
        self.protocol_fees = protocol_fees
        self.skimmer       = skimmer
        self.clock         = clock
        self.validators:   Dict[str, OrderValidator] = dict(validators or {})
        self.journal       = journal
        self.fills:        List[SettlementRecord] = []

    def register_validator(self, address: str, validator: OrderValidator) -> None:
        self.validators[address] = validator

    # ── Public API ────────────────────────────────────────────

    def execute(self, order: SignedOrder, filler: str) -> List[SettlementRecord]:
        """Fill one order directly from the filler's own balances."""
        return self.execute_batch([order], filler)

    def execute_batch(
        self, orders: Sequence[SignedOrder], filler: str
    ) -> List[SettlementRecord]:
        """Fill a batch directly from the filler's own balances."""
        def fill(resolved: List[ResolvedOrder]) -> None:
            for order in resolved:
                for output in order.outputs:
                    self.state.transfer(output.token, filler, output.recipient, output.amount)

        return self._settle(orders, filler, fill)

    def execute_with_callback(
        self, order: SignedOrder, filler: Filler, filler_data: bytes = b""
    ) -> List[SettlementRecord]:
        """Fill one order through the filler's callback."""
        return self.execute_batch_with_callback([order], filler, filler_data)

    def execute_batch_with_callback(
        self,
        orders:      Sequence[SignedOrder],
        filler:      Filler,
        filler_data: bytes = b"",
    ) -> List[SettlementRecord]:
        """Fill a batch with a single call to filler.reactor_callback()."""
        def fill(resolved: List[ResolvedOrder]) -> None:
            filler.reactor_callback(list(resolved), filler_data)

        return self._settle(orders, filler.address, fill)

    def quote(self, order: SignedOrder, filler: Optional[str] = None) -> ResolvedOrder:
        """
        Resolve and apply fees without moving anything.
        Fee ledger accrual from the skim step is reverted. The state lock is
        held throughout, so the revert can only undo this quote's writes.
        """
        now = self.clock()
        with self.state.locked():
            snapshot_id = self.state.snapshot()
            try:
                return self._prepare(order, filler or self.address, now)
            finally:
                self.state.revert(snapshot_id)

    # ── Pipeline ──────────────────────────────────────────────

    def _settle(
        self,
        orders: Sequence[SignedOrder],
        filler: str,
        fill:   Callable[[List[ResolvedOrder]], None],
    ) -> List[SettlementRecord]:
        if not orders:
            raise ValidationError("Batch must contain at least one order")

        now = self.clock()
        try:
            with self.state.atomic():
                resolved = [self._prepare(order, filler, now) for order in orders]

                checker = BalanceInvariantChecker(self.state, resolved, self.address)
                checker.snapshot()

                for order in resolved:
                    self.custody.collect(order, self.address, now)
                for order in resolved:
                    self.state.transfer(
                        order.input.token, self.address, filler, order.input.amount
                    )

                fill(resolved)
                checker.verify()
        except ReactorError as exc:
            logger.warning(
                "Settlement of %d order(s) by %s reverted: %s", len(orders), filler, exc
            )
            raise

        records = [
            SettlementRecord(
                order_hash=order.hash,
                filler=filler,
                offerer=order.info.offerer,
                nonce=order.info.nonce,
            )
            for order in resolved
        ]
        self._finalize(records)
        return records

    def _prepare(self, signed: SignedOrder, filler: str, now: int) -> ResolvedOrder:
        order = resolve(signed, now)

        if order.info.reactor != self.address:
            raise InvalidReactor(
                "Order is for a different reactor",
                {"order_hash": order.hash, "reactor": order.info.reactor},
            )

        self._validate_additional(order, filler, now)

        real_outputs = len(order.outputs)
        if self.protocol_fees is not None:
            order = self.protocol_fees.inject_fees(order)
        if self.skimmer is not None:
            order = self.skimmer.take_fees(order, real_outputs)
        return order

    def _validate_additional(self, order: ResolvedOrder, filler: str, now: int) -> None:
        contract = order.info.additional_validation_contract
        if contract is None:
            return
        validator = self.validators.get(contract)
        if validator is None:
            raise ValidationFailed(
                "Unknown additional validation contract",
                {"order_hash": order.hash, "contract": contract},
            )
        validator.validate(filler, order, now)

    def _finalize(self, records: List[SettlementRecord]) -> None:
        self.fills.extend(records)
        for record in records:
            logger.info(
                "Fill order=%s filler=%s offerer=%s nonce=%d",
                record.order_hash, record.filler, record.offerer, record.nonce,
            )
            if self.journal is None:
                continue
            try:
                self.journal.append(record)
            except LedgerError as exc:
                logger.error(
                    "Fill order=%s committed but not journaled: %s", record.order_hash, exc
                )
