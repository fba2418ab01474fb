"""
swapreactor quote: resolve an order file at a timestamp.

Usage:
    swapreactor quote <order.json>                  Resolve at current time
    swapreactor quote <order.json> --at 1700000060  Resolve at a timestamp
    swapreactor quote <order.json> --format json    Machine-readable JSON

ORDER FILE is the order's dict form (DutchOrder.to_dict(), LimitOrder.to_dict()),
including its "order_type" tag. The quote is unsigned: no custody checks.

Exit codes:
    0  Order resolved
    2  Error  (file missing, malformed JSON, invalid order)
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from swapreactor.core.canonical import canonicalize
from swapreactor.core.exceptions import ReactorError
from swapreactor.core.models import ResolvedOrder, SignedOrder
from swapreactor.core.time import block_timestamp
from swapreactor.reactors.resolvers import resolve


def _emit_error(message: str, fmt: str) -> None:
    if fmt == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"  ❌  {message}", err=True)


def _output_human(order: ResolvedOrder, at: int) -> None:
    click.echo()
    click.echo(f"  Order     {order.hash}")
    click.echo(f"  Offerer   {order.info.offerer}")
    click.echo(f"  At        {at}  (deadline {order.info.deadline})")
    click.echo()
    click.echo(f"  Input     {order.input.amount:>24}  {order.input.token}"
               f"  (max {order.input.max_amount})")
    for index, output in enumerate(order.outputs):
        click.echo(f"  Output {index:<2} {output.amount:>24}  {output.token}"
                   f"  → {output.recipient}")
    click.echo()


@click.command(name="quote")
@click.argument("order_file", type=click.Path(exists=False))
@click.option(
    "--at",
    type=int,
    default=None,
    metavar="TIMESTAMP",
    help="UNIX timestamp to resolve at. Defaults to now.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
def quote_command(order_file: str, at: Optional[int], fmt: str) -> None:
    """
    Resolve ORDER_FILE and print input and output amounts.
    """
    path = Path(order_file)
    if not path.exists():
        _emit_error(f"Order file not found: {order_file}", fmt)
        sys.exit(2)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        _emit_error(f"Invalid JSON in {order_file}: {e}", fmt)
        sys.exit(2)

    if not isinstance(data, dict) or "order_type" not in data:
        _emit_error("Order file must be an object with an 'order_type' field", fmt)
        sys.exit(2)

    now = block_timestamp() if at is None else at
    try:
        signed   = SignedOrder(order_type=data["order_type"], order=canonicalize(data), sig="")
        resolved = resolve(signed, now)
    except ReactorError as e:
        _emit_error(f"{type(e).__name__}: {e}", fmt)
        sys.exit(2)

    if fmt == "json":
        click.echo(json.dumps({"at": now, "order": resolved.to_dict()}, indent=2))
    else:
        _output_human(resolved, now)
