"""
swapreactor Settlement Engine

The Reactor settles signed orders against a filler:
- resolve → fees → snapshot → collect → fill → verify → finalize
- whole-batch atomic: any failure reverts every transfer of the call
- only post-fill balances are trusted, never the filler
"""

from swapreactor.settlement.checker import BalanceInvariantChecker
from swapreactor.settlement.engine import Filler, Reactor

__all__ = ["Reactor", "Filler", "BalanceInvariantChecker"]
