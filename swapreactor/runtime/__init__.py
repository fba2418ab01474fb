"""
swapreactor Runtime - configuration-driven wiring of a reactor.
"""

from swapreactor.runtime.context import RuntimeContext

__all__ = ["RuntimeContext"]
