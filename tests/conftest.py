"""
Shared fixtures for the swapreactor test suite.

Addresses are fixed, readable hex patterns. Offerer addresses come from
freshly generated Ed25519 keys registered with custody.
"""

import logging
from typing import List, Sequence

import pytest

from swapreactor.chain.custody import SignatureTransfer
from swapreactor.chain.state import ChainState
from swapreactor.core.crypto import Ed25519KeyManager
from swapreactor.core.models import (
    DutchInput,
    DutchOrder,
    DutchOutput,
    OrderInfo,
    ResolvedOrder,
    SignedOrder,
)
from swapreactor.core.time import FixedClock
from swapreactor.settlement.engine import Reactor


REACTOR   = "0x" + "ae" * 20
OWNER     = "0x" + "0e" * 20
FILLER    = "0x" + "f1" * 20
RECIPIENT = "0x" + "c1" * 20
INTERFACE = "0x" + "1f" * 20
PROTOCOL  = "0x" + "9f" * 20

TOKEN_IN  = "0x" + "11" * 20
TOKEN_OUT = "0x" + "22" * 20
TOKEN_ALT = "0x" + "33" * 20

START = 1_700_000_000


# ─────────────────────────────────────────────────────────────
# Fillers
# ─────────────────────────────────────────────────────────────

class PayingFiller:
    """Pays every output in full from its own balances."""

    def __init__(self, state: ChainState, address: str = FILLER) -> None:
        self.state   = state
        self.address = address
        self.calls: List[Sequence[ResolvedOrder]] = []

    def reactor_callback(self, orders, filler_data):
        self.calls.append(orders)
        for order in orders:
            for output in order.outputs:
                self.state.transfer(output.token, self.address, output.recipient, output.amount)


class ShortPayingFiller(PayingFiller):
    """Pays every output except one: order `order_index`, output `output_index` is short by `short`."""

    def __init__(self, state, short=1, order_index=0, output_index=0, address=FILLER):
        super().__init__(state, address)
        self.short        = short
        self.order_index  = order_index
        self.output_index = output_index

    def reactor_callback(self, orders, filler_data):
        self.calls.append(orders)
        for i, order in enumerate(orders):
            for j, output in enumerate(order.outputs):
                amount = output.amount
                if (i, j) == (self.order_index, self.output_index):
                    amount -= self.short
                self.state.transfer(output.token, self.address, output.recipient, amount)


# ─────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_package_logger():
    """configure_logging() mutates the package logger; undo it after each test."""
    logger   = logging.getLogger("swapreactor")
    handlers = list(logger.handlers)
    level    = logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def state():
    return ChainState()


@pytest.fixture
def custody(state):
    return SignatureTransfer(state)


@pytest.fixture
def offerer_key(custody):
    """A fresh offerer key, registered with custody."""
    key = Ed25519KeyManager.generate()
    custody.register(key)
    return key


@pytest.fixture
def reactor(state, custody, clock):
    return Reactor(address=REACTOR, state=state, custody=custody, clock=clock)


@pytest.fixture
def filler(state):
    return PayingFiller(state)


# ─────────────────────────────────────────────────────────────
# Order builders
# ─────────────────────────────────────────────────────────────

def make_info(offerer: str, nonce: int = 0, deadline: int = START + 100, **kwargs) -> OrderInfo:
    return OrderInfo(reactor=REACTOR, offerer=offerer, nonce=nonce, deadline=deadline, **kwargs)


def make_dutch_order(
    offerer:      str,
    nonce:        int = 0,
    input_amount  = (100, 100),
    outputs       = ((TOKEN_OUT, 1000, 900, RECIPIENT),),
    start_time:   int = START,
    deadline:     int = START + 100,
    input_token:  str = TOKEN_IN,
    **info_kwargs,
) -> DutchOrder:
    """Dutch order with decay window [start_time, deadline]."""
    return DutchOrder.create(
        info=make_info(offerer, nonce, deadline, **info_kwargs),
        decay_start_time=start_time,
        input=DutchInput(input_token, input_amount[0], input_amount[1]),
        outputs=[DutchOutput(t, s, e, r) for t, s, e, r in outputs],
    )


def sign(order, key: Ed25519KeyManager) -> SignedOrder:
    return SignedOrder.sign(order, key)
