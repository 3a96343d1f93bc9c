"""
capdrop/cli/journal.py

capdrop journal — inspect the signed audit journal.

Usage:
    capdrop journal verify                     Verify the journal inside the state file
    capdrop journal verify --file audit.jsonl  Verify an exported journal
    capdrop journal verify --public-key HEX    Require entries signed by HEX
    capdrop journal export audit.jsonl         Write the journal as JSONL

Exit codes:
    0  Journal fully valid
    1  Journal has violations
    2  Error (file missing, malformed JSON, corrupt state or key file)
"""

import sys
from pathlib import Path
from typing import Optional

import click

from capdrop.cli.ledger import open_contract
from capdrop.cli.output import EXIT_ERROR, EXIT_FAILURE, EXIT_OK, Color, emit, row
from capdrop.core.crypto import JournalSigner
from capdrop.core.exceptions import StorageError
from capdrop.journal.journal import EventJournal, load_jsonl, verify_entries


def _key_file_public_key(ctx: click.Context) -> Optional[str]:
    """Public key of the configured journal key file, or None if there is none."""
    key_path = Path(ctx.obj["settings"].key_path)
    if not key_path.exists():
        return None
    return JournalSigner.from_file(key_path).public_key_hex


@click.group(name="journal")
def journal_group() -> None:
    """Inspect the signed audit journal."""


@journal_group.command(name="verify")
@click.option(
    "--file", "file_path",
    type=click.Path(),
    default=None,
    metavar="PATH",
    help="Verify an exported JSONL journal instead of the state file.",
)
@click.option(
    "--public-key",
    default=None,
    metavar="HEX",
    help="Expected signer key. Defaults to the public key of the journal key file.",
)
@click.option("--quiet", is_flag=True, default=False, help="Exit code only.")
@click.pass_context
def verify_command(ctx, file_path: Optional[str], public_key: Optional[str], quiet: bool) -> None:
    """Check sequence, hash chain, signature and signer of every journal entry."""
    fmt = ctx.obj["format"]

    try:
        if file_path is not None:
            path = Path(file_path)
            if not path.exists():
                click.echo(f"  Journal not found: {path}", err=True)
                sys.exit(EXIT_ERROR)
            report = verify_entries(load_jsonl(path), public_key or _key_file_public_key(ctx))
        else:
            contract = open_contract(ctx)
            report = contract.journal.verify(contract.storage, public_key)
    except (StorageError, OSError, ValueError) as e:
        click.echo(f"  {e}", err=True)
        sys.exit(EXIT_ERROR)

    if quiet:
        sys.exit(EXIT_OK if report.valid else EXIT_FAILURE)

    if fmt == "json":
        emit(fmt, report)
    else:
        status = Color.green("intact") if report.valid else Color.red(
            f"{len(report.violations)} violation(s)"
        )
        click.echo(row("Entries", report.total_entries))
        click.echo(row("Journal", status))
        if report.head_hash:
            click.echo(row("Head hash", report.head_hash))
        for v in report.violations:
            click.echo(row(f"seq {v.sequence}", f"{v.violation_type}: {v.detail}"))

    sys.exit(EXIT_OK if report.valid else EXIT_FAILURE)


@journal_group.command(name="export")
@click.argument("output", type=click.Path())
@click.pass_context
def export_command(ctx, output: str) -> None:
    """Write the journal to OUTPUT as JSON lines."""
    fmt = ctx.obj["format"]
    contract = open_contract(ctx)
    try:
        count = EventJournal.export_jsonl(contract.storage, Path(output))
    except (StorageError, OSError) as e:
        click.echo(f"  Cannot export journal: {e}", err=True)
        sys.exit(EXIT_ERROR)
    emit(fmt, {"exported": count, "path": output}, [("Exported", count), ("Path", output)])
