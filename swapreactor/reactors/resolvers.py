"""
Order-type resolvers.

A resolver turns (encoded order bytes, signature, now) into a
ResolvedOrder. Resolvers are pure: same bytes and same `now` give the
same ResolvedOrder. They are keyed by the order type tag carried in
SignedOrder.order_type.

Adding an order type:
    @register_resolver("my_type")
    def resolve_my_type(encoded: bytes, sig: str, now: int) -> ResolvedOrder:
        ...
"""

import json
from typing import Any, Callable, Dict

from swapreactor.core.canonical import hash_bytes
from swapreactor.core.exceptions import MalformedOrder, UnknownOrderType, ValidationError
from swapreactor.core.models import DutchOrder, LimitOrder, ResolvedOrder, SignedOrder
from swapreactor.lib.decay import decay_input, decay_outputs, validate_dutch_order

Resolver = Callable[[bytes, str, int], ResolvedOrder]

_RESOLVERS: Dict[str, Resolver] = {}


def register_resolver(order_type: str) -> Callable[[Resolver], Resolver]:
    """Decorator: register `func` as the resolver for order_type."""
    def decorator(func: Resolver) -> Resolver:
        _RESOLVERS[order_type] = func
        return func
    return decorator


def get_resolver(order_type: str) -> Resolver:
    try:
        return _RESOLVERS[order_type]
    except KeyError:
        raise UnknownOrderType(
            f"No resolver registered for order type '{order_type}'",
            {"known": sorted(_RESOLVERS)},
        ) from None


def registered_order_types():
    return sorted(_RESOLVERS)


def resolve(signed: SignedOrder, now: int) -> ResolvedOrder:
    """Dispatch a signed order to its resolver."""
    return get_resolver(signed.order_type)(signed.order, signed.sig, now)


def _decode(encoded: bytes, order_type: str, factory) -> Any:
    """
    Decode canonical JSON bytes into an order object.
    Any decoding or shape failure surfaces as MalformedOrder.
    """
    try:
        data = json.loads(encoded.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedOrder(f"Order bytes are not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or data.get("order_type") != order_type:
        raise MalformedOrder(
            "Order type tag mismatch",
            {"expected": order_type, "got": data.get("order_type") if isinstance(data, dict) else None},
        )

    try:
        return factory(data)
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        raise MalformedOrder(f"Order fields invalid: {exc}") from exc


@register_resolver(DutchOrder.ORDER_TYPE)
def resolve_dutch(encoded: bytes, sig: str, now: int) -> ResolvedOrder:
    """Validate the decay structure, then decay every leg at `now`."""
    order = _decode(encoded, DutchOrder.ORDER_TYPE, DutchOrder.from_dict)
    validate_dutch_order(order)

    start, end = order.decay_start_time, order.decay_end_time
    return ResolvedOrder(
        info=order.info,
        input=decay_input(order.input, start, end, now),
        outputs=decay_outputs(order.outputs, start, end, now),
        sig=sig,
        hash=hash_bytes(encoded),
    )


@register_resolver(LimitOrder.ORDER_TYPE)
def resolve_limit(encoded: bytes, sig: str, now: int) -> ResolvedOrder:
    """Limit orders resolve to their signed amounts."""
    order = _decode(encoded, LimitOrder.ORDER_TYPE, LimitOrder.from_dict)
    return ResolvedOrder(
        info=order.info,
        input=order.input,
        outputs=order.outputs,
        sig=sig,
        hash=hash_bytes(encoded),
    )
