"""
swapreactor journal: fill journal commands.

Usage:
    swapreactor journal verify <journal>                  Human output (default)
    swapreactor journal verify <journal> --format json    Machine-readable JSON
    swapreactor journal verify <journal> --quiet          Exit code only

Exit codes (POSIX-standard, shell-scriptable):
    0  Journal fully valid  (sequence + chain + signatures)
    1  Journal has violations
    2  Error  (file missing, malformed JSON)
"""

import json
import sys

import click

from swapreactor.core.exceptions import LedgerError
from swapreactor.ledger.journal import verify_journal_file


@click.group(name="journal")
def journal_group() -> None:
    """Inspect and verify fill journals."""
    pass


@journal_group.command(name="verify")
@click.argument("journal", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default), json (CI/automation).",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
def verify_command(journal: str, fmt: str, quiet: bool) -> None:
    """
    Verify a fill journal: sequence, chain linkage, signatures.

    JOURNAL is the path to a .jsonl fill journal.
    """
    try:
        report = verify_journal_file(journal)
    except (FileNotFoundError, LedgerError) as e:
        if not quiet:
            if fmt == "json":
                click.echo(json.dumps({"error": str(e)}))
            else:
                click.echo(f"  ❌  {e}", err=True)
        sys.exit(2)

    if quiet:
        sys.exit(0 if report.valid else 1)

    if fmt == "json":
        click.echo(json.dumps({
            "journal":       journal,
            "valid":         report.valid,
            "total_entries": report.total_entries,
            "head_hash":     report.head_hash,
            "violations":    report.violations,
        }, indent=2))
    else:
        click.echo()
        click.echo(f"  Journal   {journal}")
        click.echo(f"  Entries   {report.total_entries:,}")
        click.echo(f"  Head      {report.head_hash or '-'}")
        if report.valid:
            click.echo("  ✅  Journal valid: chain intact, all signatures verify")
        else:
            click.echo(f"  ❌  {len(report.violations)} violation(s)")
            for violation in report.violations:
                click.echo(f"      • {violation}")
        click.echo()

    sys.exit(0 if report.valid else 1)
