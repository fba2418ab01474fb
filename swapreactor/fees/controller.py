"""
Fee controller capability.

A fee controller proposes fee outputs for a resolved order. The reactor
treats the proposal as untrusted: ProtocolFees caps and de-duplicates it.
"""

from typing import Dict, List, Protocol, Sequence

from swapreactor.core.exceptions import InvalidFee
from swapreactor.core.models import BPS, OutputToken, ResolvedOrder


class FeeController(Protocol):
    def get_fee_outputs(self, order: ResolvedOrder) -> Sequence[OutputToken]:
        ...


class BpsFeeController:
    """
    Charge fee_bps of each output token's total, paid to recipient.

    One fee output per distinct output token, in first-seen order.
    Zero fees are omitted.
    """

    def __init__(self, fee_bps: int, recipient: str) -> None:
        if not 0 <= fee_bps <= BPS:
            raise InvalidFee("fee_bps must be within 0..10000", {"fee_bps": fee_bps})
        self.fee_bps   = fee_bps
        self.recipient = recipient

    def get_fee_outputs(self, order: ResolvedOrder) -> List[OutputToken]:
        totals: Dict[str, int] = {}
        for output in order.outputs:
            totals[output.token] = totals.get(output.token, 0) + output.amount

        fees = []
        for token, total in totals.items():
            amount = total * self.fee_bps // BPS
            if amount:
                fees.append(OutputToken(token=token, amount=amount, recipient=self.recipient))
        return fees

    def __repr__(self) -> str:
        return f"BpsFeeController(fee_bps={self.fee_bps}, recipient={self.recipient})"
