"""
Output helpers shared by CLI commands.

Human output is aligned label/value rows. JSON output is one document
on stdout. Errors go to stderr in human mode and to stdout as
{"error": {...}} in JSON mode.
"""

import json
import sys
from typing import Any, Dict, Iterable, Tuple

import click

from capdrop.core.exceptions import CapDropError

EXIT_OK      = 0
EXIT_FAILURE = 1
EXIT_ERROR   = 2


class Color:
    """Auto-disables when stdout is not a TTY or --no-color is passed."""
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled and sys.stdout.isatty()

    @classmethod
    def green(cls, s: str) -> str:
        return click.style(s, fg="green") if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return click.style(s, fg="red") if cls._on else s

    @classmethod
    def dim(cls, s: str) -> str:
        return click.style(s, dim=True) if cls._on else s


def row(label: str, value: Any) -> str:
    return f"  {Color.dim(f'{label:<18}')}  {value}"


def jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, bool)):
        return value
    if isinstance(value, list):
        return [jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    return value.to_dict()


def emit(fmt: str, payload: Any, rows: Iterable[Tuple[str, Any]] = ()) -> None:
    if fmt == "json":
        click.echo(json.dumps(jsonable(payload), indent=2, sort_keys=True))
        return
    for label, value in rows:
        click.echo(row(label, value))


def emit_response(fmt: str, response) -> None:
    if fmt == "json":
        emit(fmt, response)
        return
    click.echo(Color.green("  ok"))
    for key, value in response.attributes:
        click.echo(row(key, value))
    for message in response.messages:
        click.echo(row(
            "transfer",
            f"{message.amount} of {message.token_reference} → {message.recipient}",
        ))


def fail(fmt: str, error: CapDropError) -> None:
    """Report a ledger error and exit 1."""
    if fmt == "json":
        click.echo(json.dumps({"error": error.to_dict()}, indent=2, sort_keys=True))
    else:
        click.echo(Color.red(f"  {error.kind.value}: {error}"), err=True)
    sys.exit(EXIT_FAILURE)


def record_rows(record: Dict[str, Any]) -> Iterable[Tuple[str, Any]]:
    return list(record.items())
