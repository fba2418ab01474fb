"""
swapreactor Chain: journaled balances/storage and token custody.
"""

from swapreactor.chain.custody import CustodyTransfer, SignatureTransfer
from swapreactor.chain.state import ChainState

__all__ = ["ChainState", "CustodyTransfer", "SignatureTransfer"]
