"""
swapreactor Libraries: pure functions shared by order types.
"""

from swapreactor.lib.decay import (
    decay,
    decay_input,
    decay_output,
    decay_outputs,
    validate_dutch_order,
)

__all__ = [
    "decay",
    "decay_input",
    "decay_output",
    "decay_outputs",
    "validate_dutch_order",
]
