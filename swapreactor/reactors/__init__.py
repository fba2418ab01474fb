"""
swapreactor Order Types

Each order type resolves into a ResolvedOrder through a resolver keyed
by its order type tag. Additional validation hooks run after resolution.
"""

from swapreactor.reactors.resolvers import (
    get_resolver,
    register_resolver,
    registered_order_types,
    resolve,
)
from swapreactor.reactors.validation import (
    ExclusiveFillerValidation,
    OrderValidator,
    encode_exclusivity,
)

__all__ = [
    "resolve",
    "register_resolver",
    "get_resolver",
    "registered_order_types",
    "OrderValidator",
    "ExclusiveFillerValidation",
    "encode_exclusivity",
]
