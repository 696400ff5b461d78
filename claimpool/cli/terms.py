"""
claimpool terms-hash — fingerprint a terms document.
"""

from pathlib import Path

import click

from claimpool.core.models import terms_fingerprint


@click.command(name="terms-hash")
@click.argument("terms_file", type=click.Path(exists=True, dir_okay=False))
def terms_hash_command(terms_file: str) -> None:
    """Print the keccak-256 fingerprint holders sign for TERMS_FILE."""
    text = Path(terms_file).read_text(encoding="utf-8")
    click.echo("0x" + terms_fingerprint(text).hex())
