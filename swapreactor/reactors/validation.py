"""
Additional order validation hooks.

An order may name a validator in info.additional_validation_contract.
The reactor looks the address up in its validator registry and calls
validate(filler, order, now) after resolution, before any custody
movement. A validator rejects by raising ValidationFailed.
"""

import json
from typing import Protocol

from swapreactor.core.canonical import canonicalize
from swapreactor.core.exceptions import ValidationFailed
from swapreactor.core.models import ResolvedOrder


class OrderValidator(Protocol):
    def validate(self, filler: str, order: ResolvedOrder, now: int) -> None:
        ...


def encode_exclusivity(filler: str, last_exclusive_timestamp: int) -> bytes:
    """Build additional_validation_data for ExclusiveFillerValidation."""
    return canonicalize({
        "filler": filler,
        "last_exclusive_timestamp": last_exclusive_timestamp,
    })


class ExclusiveFillerValidation:
    """
    Only the named filler may fill until last_exclusive_timestamp
    (inclusive). After that anyone may fill.
    """

    def validate(self, filler: str, order: ResolvedOrder, now: int) -> None:
        try:
            data = json.loads(order.info.additional_validation_data.decode("utf-8"))
            exclusive_filler = data["filler"]
            until            = data["last_exclusive_timestamp"]
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            raise ValidationFailed(
                f"Malformed exclusivity data: {exc}", {"order_hash": order.hash}
            ) from exc

        if now <= until and filler != exclusive_filler:
            raise ValidationFailed(
                "Order is exclusive to another filler",
                {
                    "order_hash": order.hash,
                    "filler":     filler,
                    "exclusive":  exclusive_filler,
                    "until":      until,
                },
            )
