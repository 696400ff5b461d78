"""
claimpool/cli/audit.py

claimpool audit — replay and verify a pool event log.

Usage:
    claimpool audit <events.jsonl>                  Human output (default)
    claimpool audit <events.jsonl> --format json    Machine-readable JSON
    claimpool audit <events.jsonl> --export r.json  Export full audit report
    claimpool audit <events.jsonl> --quiet          Exit code only

Exit codes:
    0  Log fully valid  (sequence + chain + signatures)
    1  Log has violations
    2  Error  (file missing, malformed JSON, schema failure)
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from claimpool.ledger.replay import AuditSummary, EventReplay


def _emit_error(message: str, fmt: str, quiet: bool) -> None:
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({"valid": False, "error": message}))
    else:
        click.echo(f"  Error: {message}", err=True)


@click.command(name="audit")
@click.argument("log", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--export",
    "export_path",
    type=click.Path(),
    default=None,
    metavar="PATH",
    help="Export the full audit report to a JSON file.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
def audit_command(log: str, fmt: str, export_path: Optional[str], quiet: bool) -> None:
    """
    Verify a pool event log and total its redemptions.

    LOG is the path to an events.jsonl file.
    """
    fmt    = fmt.lower()
    replay = EventReplay()

    try:
        replay.load(Path(log))
    except (FileNotFoundError, ValueError) as e:
        _emit_error(str(e), fmt, quiet)
        sys.exit(2)

    summary = replay.verify()

    if export_path:
        Path(export_path).write_text(
            json.dumps(summary.to_dict(), indent=2), encoding="utf-8"
        )

    if quiet:
        sys.exit(0 if summary.valid else 1)

    if fmt == "json":
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _output_human(summary, Path(log))

    sys.exit(0 if summary.valid else 1)


def _output_human(summary: AuditSummary, log_path: Path) -> None:
    click.echo()
    click.echo(f"  ClaimPool audit  ·  {log_path}")
    click.echo()
    click.echo(f"  {'Records':<16}  {summary.total_records}")
    click.echo(f"  {'Chain':<16}  {'intact' if summary.chain_valid else 'BROKEN'}")
    if summary.signed:
        click.echo(
            f"  {'Signatures':<16}  {summary.valid_signatures} valid, "
            f"{summary.invalid_signatures} invalid"
        )
    else:
        click.echo(f"  {'Signatures':<16}  unsigned log")
    for event, count in sorted(summary.event_counts.items()):
        click.echo(f"  {event:<16}  {count}")

    pools = set(summary.redeemed) | set(summary.paid_out) | set(summary.recovered)
    for pool in sorted(pools):
        click.echo()
        click.echo(f"  Pool {pool}")
        click.echo(f"    {'redeemed':<14}  {summary.redeemed.get(pool, 0)}")
        for asset, paid in sorted(summary.paid_out.get(pool, {}).items()):
            click.echo(f"    {'paid':<14}  {paid}  {asset}")
        for asset, taken in sorted(summary.recovered.get(pool, {}).items()):
            click.echo(f"    {'recovered':<14}  {taken}  {asset}")

    if summary.violations:
        click.echo()
        for v in summary.violations:
            click.echo(f"  [{v.at_sequence}] {v.violation_type}: {v.detail}")
    click.echo()
    click.echo("  VALID" if summary.valid else "  INVALID")
