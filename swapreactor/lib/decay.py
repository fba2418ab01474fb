"""
Linear decay of order amounts over a time window.

Rounding rule: the decayed delta is always floor-divided, so an output
never resolves below what the exact interpolation allows the offerer to
receive, and an increasing input never resolves above what the offerer
signed for at that instant.

    decreasing:  start - (start - end) * elapsed // duration
    increasing:  start + (end - start) * elapsed // duration
"""

from typing import Iterable, Tuple

from swapreactor.core.exceptions import (
    DeadlineBeforeEndTime,
    IncorrectAmounts,
    InputAndOutputDecay,
    InvalidDecayWindow,
)
from swapreactor.core.models import (
    DutchInput,
    DutchOrder,
    DutchOutput,
    InputToken,
    OutputToken,
)


def decay(
    start_amount: int,
    end_amount:   int,
    start_time:   int,
    end_time:     int,
    now:          int,
) -> int:
    """
    Resolve one leg's amount at time `now`.

    Boundaries are checked in this order:
        now >= end_time          → end_amount
        start_amount == end_amount → end_amount
        now <= start_time        → start_amount
    otherwise linear interpolation by elapsed fraction, floor-rounded.
    """
    if now >= end_time:
        return end_amount
    if start_amount == end_amount:
        return end_amount
    if now <= start_time:
        return start_amount

    elapsed  = now - start_time
    duration = end_time - start_time
    if start_amount > end_amount:
        return start_amount - (start_amount - end_amount) * elapsed // duration
    return start_amount + (end_amount - start_amount) * elapsed // duration


def decay_output(
    output:     DutchOutput,
    start_time: int,
    end_time:   int,
    now:        int,
) -> OutputToken:
    """Decay a single output leg into a concrete OutputToken."""
    return OutputToken(
        token=output.token,
        amount=decay(output.start_amount, output.end_amount, start_time, end_time, now),
        recipient=output.recipient,
    )


def decay_outputs(
    outputs:    Iterable[DutchOutput],
    start_time: int,
    end_time:   int,
    now:        int,
) -> Tuple[OutputToken, ...]:
    """Decay every output leg independently, preserving order."""
    return tuple(decay_output(o, start_time, end_time, now) for o in outputs)


def decay_input(
    input:      DutchInput,
    start_time: int,
    end_time:   int,
    now:        int,
) -> InputToken:
    """
    Decay the input leg. max_amount is the largest amount the input can
    ever reach, which is end_amount for a valid (non-decreasing) input.
    """
    return InputToken(
        token=input.token,
        amount=decay(input.start_amount, input.end_amount, start_time, end_time, now),
        max_amount=max(input.start_amount, input.end_amount),
    )


def validate_dutch_order(order: DutchOrder) -> None:
    """
    Structural checks, independent of the evaluation time.

    Raises:
        InvalidDecayWindow    : decay_end_time <= decay_start_time
        DeadlineBeforeEndTime : info.deadline < decay_end_time
        IncorrectAmounts      : input decreasing, or any output increasing
        InputAndOutputDecay   : input decays and any output decays too
    """
    if order.decay_end_time <= order.decay_start_time:
        raise InvalidDecayWindow(
            "Decay end time must be after decay start time",
            {
                "decay_start_time": order.decay_start_time,
                "decay_end_time":   order.decay_end_time,
            },
        )

    if order.info.deadline < order.decay_end_time:
        raise DeadlineBeforeEndTime(
            "Order deadline is before decay end time",
            {"deadline": order.info.deadline, "decay_end_time": order.decay_end_time},
        )

    if order.input.start_amount > order.input.end_amount:
        raise IncorrectAmounts(
            "Input amount may not decrease",
            {
                "start_amount": order.input.start_amount,
                "end_amount":   order.input.end_amount,
            },
        )

    input_decays = order.input.start_amount != order.input.end_amount

    for index, output in enumerate(order.outputs):
        if output.start_amount < output.end_amount:
            raise IncorrectAmounts(
                "Output amount may not increase",
                {
                    "output":       index,
                    "start_amount": output.start_amount,
                    "end_amount":   output.end_amount,
                },
            )
        if input_decays and output.start_amount != output.end_amount:
            raise InputAndOutputDecay(
                "Input and output may not both decay",
                {"output": index},
            )
