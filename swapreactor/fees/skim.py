"""
Interface / protocol skim fee.

Convention: the order's LAST own output is an interface fee naming the
interface as recipient. take_fees() splits that output:

    protocol_share  = amount * split_bps // 10000   → protocol_fee_recipient
    interface_share = amount - protocol_share       → the output's recipient

Both shares accrue in a claim ledger keyed by (token, recipient), and the
output is redirected to the engine so the tokens land in engine custody.
The output amount is unchanged. Orders with at most one output are
returned as-is.

The ledger is chain-state storage: accrual made during a reverted
settlement is reverted with it. Ledger keys are the recipient address at
accrual time; rotating protocol_fee_recipient never moves old balances.
"""

import logging
from typing import Optional

from swapreactor.chain.custody import CustodyTransfer
from swapreactor.chain.state import ChainState
from swapreactor.core.exceptions import InvalidFee, Unauthorized
from swapreactor.core.models import BPS, OutputToken, ResolvedOrder

logger = logging.getLogger(__name__)

FEE_LEDGER_SLOT = "fees.claimable"


class InterfaceFeeSkimmer:

    def __init__(
        self,
        state:                  ChainState,
        custody:                CustodyTransfer,
        engine_address:         str,
        split_bps:              int,
        protocol_fee_recipient: str,
    ) -> None:
        if not 0 <= split_bps <= BPS:
            raise InvalidFee("split_bps must be within 0..10000", {"split_bps": split_bps})
        self.state                  = state
        self.custody                = custody
        self.engine_address         = engine_address
        self._split_bps             = split_bps
        self.protocol_fee_recipient = protocol_fee_recipient

    @property
    def split_bps(self) -> int:
        return self._split_bps

    # ── Ledger ────────────────────────────────────────────────

    def claimable(self, token: str, recipient: str) -> int:
        return self.state.sload(FEE_LEDGER_SLOT, (token, recipient), 0)

    def _accrue(self, token: str, recipient: str, amount: int) -> None:
        self.state.sstore(
            FEE_LEDGER_SLOT, (token, recipient), self.claimable(token, recipient) + amount
        )

    # ── Fee taking ────────────────────────────────────────────

    def take_fees(self, order: ResolvedOrder, real_outputs: Optional[int] = None) -> ResolvedOrder:
        """
        Split the interface fee output.

        real_outputs is the number of outputs the order itself carries; the
        interface fee is the last of those. Defaults to every output. The
        reactor passes it when protocol fees were appended first, so that a
        protocol fee output is never mistaken for the interface fee.
        """
        count = len(order.outputs) if real_outputs is None else real_outputs
        if count <= 1:
            return order

        index           = count - 1
        fee_output      = order.outputs[index]
        protocol_share  = fee_output.amount * self._split_bps // BPS
        interface_share = fee_output.amount - protocol_share

        self._accrue(fee_output.token, self.protocol_fee_recipient, protocol_share)
        self._accrue(fee_output.token, fee_output.recipient, interface_share)

        logger.debug(
            "Skimmed %d %s from %s: protocol=%d interface=%d (%s)",
            fee_output.amount, fee_output.token, order.hash,
            protocol_share, interface_share, fee_output.recipient,
        )

        redirected = OutputToken(
            token=fee_output.token,
            amount=fee_output.amount,
            recipient=self.engine_address,
        )
        outputs = list(order.outputs)
        outputs[index] = redirected
        return order.with_outputs(outputs)

    # ── Claims ────────────────────────────────────────────────

    def claim(self, caller: str, token: str) -> int:
        """
        Transfer the caller's whole claimable balance of token to the caller.
        Returns the amount transferred; zero balance transfers zero.
        """
        with self.state.atomic():
            amount = self.claimable(token, caller)
            self.state.sstore(FEE_LEDGER_SLOT, (token, caller), 0)
            self.custody.transfer_out(token, self.engine_address, caller, amount)
        logger.info("Fee claim: %s claimed %d of %s", caller, amount, token)
        return amount

    # ── Role ──────────────────────────────────────────────────

    def set_protocol_fee_recipient(self, caller: str, new_recipient: str) -> None:
        """Hand the protocol fee recipient role on. Current holder only."""
        if caller != self.protocol_fee_recipient:
            raise Unauthorized(
                "Caller is not the protocol fee recipient",
                {"caller": caller, "recipient": self.protocol_fee_recipient},
            )
        logger.info(
            "Protocol fee recipient rotated: %s -> %s",
            self.protocol_fee_recipient, new_recipient,
        )
        self.protocol_fee_recipient = new_recipient
