"""
swapreactor/__init__.py

swapreactor: Settlement engine for signed, intent-based token swap orders.

Signed orders are resolved into a canonical form (linear price decay for
Dutch orders), amended with protocol and interface fee outputs, and
filled atomically by a third-party filler. Post-fill balances are the
only thing trusted: any shortfall reverts the whole batch.
"""

__version__ = "0.3.0"

from swapreactor.chain.custody import SignatureTransfer
from swapreactor.chain.state import ChainState
from swapreactor.core.crypto import Ed25519KeyManager
from swapreactor.core.exceptions import ReactorError
from swapreactor.core.models import (
    BPS,
    NATIVE,
    DutchInput,
    DutchOrder,
    DutchOutput,
    InputToken,
    LimitOrder,
    OrderInfo,
    OutputToken,
    ResolvedOrder,
    SettlementRecord,
    SignedOrder,
)
from swapreactor.fees.controller import BpsFeeController
from swapreactor.fees.protocol import ProtocolFees
from swapreactor.fees.skim import InterfaceFeeSkimmer
from swapreactor.settlement.engine import Reactor

__all__ = [
    # Order model
    "OrderInfo",
    "InputToken",
    "OutputToken",
    "ResolvedOrder",
    "DutchInput",
    "DutchOutput",
    "DutchOrder",
    "LimitOrder",
    "SignedOrder",
    "SettlementRecord",
    # Engine
    "Reactor",
    "ChainState",
    "SignatureTransfer",
    "Ed25519KeyManager",
    # Fees
    "ProtocolFees",
    "BpsFeeController",
    "InterfaceFeeSkimmer",
    # Errors
    "ReactorError",
    # Constants
    "BPS",
    "NATIVE",
]
