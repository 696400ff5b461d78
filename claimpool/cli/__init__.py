"""
claimpool/cli/__init__.py

ClaimPool CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    claimpool = "claimpool.cli:cli"
"""

import click

from claimpool.cli.audit import audit_command
from claimpool.cli.terms import terms_hash_command


@click.group()
@click.version_option(package_name="claimpool")
def cli() -> None:
    """
    ClaimPool — redemption pool tooling.

    \b
    Commands:
      audit       Verify a pool event log and total its redemptions.
      terms-hash  Fingerprint a terms document.
    """
    pass


cli.add_command(audit_command)
cli.add_command(terms_hash_command)
