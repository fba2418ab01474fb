"""
Controller-driven protocol fees.

inject_fees() validation order (cheapest first):
    1. controller unset          → order unchanged
    2. duplicate fee token       → DuplicateFeeOutput
    3. token absent from outputs → InvalidFeeToken
    4. amount above ceiling      → FeeTooLarge

Ceiling per fee output:
    sum(real outputs of the same token) * max_fee_bps // 10000

Accepted fee outputs are appended after the real outputs, in the order
the controller returned them. Nothing already in the order is modified.
"""

import logging
from typing import Optional, Set

from swapreactor.core.exceptions import (
    DuplicateFeeOutput,
    FeeTooLarge,
    InvalidFee,
    InvalidFeeToken,
    Unauthorized,
)
from swapreactor.core.models import BPS, ResolvedOrder
from swapreactor.fees.controller import FeeController

logger = logging.getLogger(__name__)

DEFAULT_MAX_FEE_BPS = 5


class ProtocolFees:
    """
    Owner-governed fee controller registration plus fee injection.
    """

    def __init__(
        self,
        owner:          str,
        max_fee_bps:    int = DEFAULT_MAX_FEE_BPS,
        fee_controller: Optional[FeeController] = None,
    ) -> None:
        if not 0 <= max_fee_bps <= BPS:
            raise InvalidFee(
                "max_fee_bps must be within 0..10000", {"max_fee_bps": max_fee_bps}
            )
        self.owner          = owner
        self.max_fee_bps    = max_fee_bps
        self.fee_controller = fee_controller

    # ── Governance ────────────────────────────────────────────

    def _only_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(
                "Caller is not the owner", {"caller": caller, "owner": self.owner}
            )

    def set_fee_controller(self, caller: str, controller: Optional[FeeController]) -> None:
        """Replace (or unset with None) the fee controller. Owner only."""
        self._only_owner(caller)
        logger.info(
            "Protocol fee controller changed: %r -> %r", self.fee_controller, controller
        )
        self.fee_controller = controller

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._only_owner(caller)
        logger.info("Protocol fee ownership transferred: %s -> %s", self.owner, new_owner)
        self.owner = new_owner

    # ── Fee injection ─────────────────────────────────────────

    def inject_fees(self, order: ResolvedOrder) -> ResolvedOrder:
        """Return order with validated controller fee outputs appended."""
        if self.fee_controller is None:
            return order

        fees = list(self.fee_controller.get_fee_outputs(order))
        seen: Set[str] = set()

        for fee in fees:
            if fee.token in seen:
                raise DuplicateFeeOutput(
                    "Fee controller returned duplicate fee token",
                    {"order_hash": order.hash, "token": fee.token},
                )
            seen.add(fee.token)

            same_token = [o.amount for o in order.outputs if o.token == fee.token]
            if not same_token:
                raise InvalidFeeToken(
                    "Fee token is not an output of the order",
                    {"order_hash": order.hash, "token": fee.token},
                )

            ceiling = sum(same_token) * self.max_fee_bps // BPS
            if fee.amount > ceiling:
                raise FeeTooLarge(
                    "Fee output exceeds ceiling",
                    {
                        "order_hash": order.hash,
                        "token":      fee.token,
                        "amount":     fee.amount,
                        "ceiling":    ceiling,
                    },
                )

        if fees:
            logger.debug("Injected %d protocol fee output(s) into %s", len(fees), order.hash)
        return order.append_outputs(fees)
