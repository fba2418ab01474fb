"""
Balance-invariant checker.

Trusts nothing the filler says; only balances.

    snapshot() : before custody moves: balance of every distinct
                  (token, recipient) across the batch, plus the engine's
                  balance of every input token.
    verify()   : after the fill: for every pair,
                      after - before >= sum of expected amounts for that pair
                  and the engine holds no less of any input token than before.

Repeated pairs share one snapshot slot and their expected amounts are
summed across the whole batch. Overpayment is fine; underpayment raises.

NATIVE pairs are read from the address balance, never from a token table,
so a filler cannot satisfy a native output with token accounting.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from swapreactor.chain.state import ChainState
from swapreactor.core.exceptions import InsufficientOutput, ValidationError
from swapreactor.core.models import NATIVE, ResolvedOrder

Pair = Tuple[str, str]


class BalanceInvariantChecker:

    def __init__(
        self,
        state:          ChainState,
        orders:         Sequence[ResolvedOrder],
        engine_address: str,
    ) -> None:
        self.state          = state
        self.engine_address = engine_address

        self.expected: Dict[Pair, int] = {}
        for order in orders:
            for output in order.outputs:
                pair = (output.token, output.recipient)
                self.expected[pair] = self.expected.get(pair, 0) + output.amount

        self.input_tokens: List[str] = []
        for order in orders:
            if order.input.token not in self.input_tokens:
                self.input_tokens.append(order.input.token)

        self._before:        Optional[Dict[Pair, int]] = None
        self._engine_before: Optional[Dict[str, int]]  = None

    def _balance(self, token: str, holder: str) -> int:
        if token == NATIVE:
            return self.state.native_balance(holder)
        return self.state.token_balance(token, holder)

    def snapshot(self) -> Dict[Pair, int]:
        self._before = {pair: self._balance(*pair) for pair in self.expected}
        self._engine_before = {
            token: self._balance(token, self.engine_address) for token in self.input_tokens
        }
        return dict(self._before)

    def verify(self) -> None:
        """Raise InsufficientOutput on the first shortfall found."""
        if self._before is None:
            raise ValidationError("verify() called before snapshot()")

        for (token, recipient), expected in self.expected.items():
            delta = self._balance(token, recipient) - self._before[(token, recipient)]
            if delta < expected:
                raise InsufficientOutput(
                    "Recipient received less than expected",
                    {
                        "token":     token,
                        "recipient": recipient,
                        "expected":  expected,
                        "received":  delta,
                    },
                )

        for token, before in self._engine_before.items():
            after = self._balance(token, self.engine_address)
            if after < before:
                raise InsufficientOutput(
                    "Engine custody decreased during settlement",
                    {"token": token, "before": before, "after": after},
                )
