"""
swapreactor Fee Composition

Two stackable fee mechanisms, applied in this order:
- ProtocolFees: controller-proposed fee outputs, capped and de-duplicated
- InterfaceFeeSkimmer: fixed split of the interface fee output into a claim ledger
"""

from swapreactor.fees.controller import BpsFeeController, FeeController
from swapreactor.fees.protocol import ProtocolFees
from swapreactor.fees.skim import InterfaceFeeSkimmer

__all__ = [
    "FeeController",
    "BpsFeeController",
    "ProtocolFees",
    "InterfaceFeeSkimmer",
]
