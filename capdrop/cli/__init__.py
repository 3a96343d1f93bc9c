"""
capdrop/cli/__init__.py

capdrop CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    capdrop = "capdrop.cli:cli"

Adding a new command:
    1. Create capdrop/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

from pathlib import Path
from typing import Optional

import click

from capdrop.cli.journal import journal_group
from capdrop.cli.ledger import (
    change_admin_command,
    claim_command,
    execute_command,
    init_command,
    migrate_command,
    query_group,
    update_config_command,
    withdraw_command,
)
from capdrop.cli.output import Color
from capdrop.core.exceptions import ConfigInvalid
from capdrop.settings import Settings

DEFAULT_SETTINGS_FILE = "capdrop.yaml"


@click.group()
@click.version_option(package_name="capdrop")
@click.option(
    "--settings", "settings_path",
    type=click.Path(),
    default=None,
    metavar="PATH",
    help=f"YAML settings file. Defaults to ./{DEFAULT_SETTINGS_FILE} when present.",
)
@click.option("--state", type=click.Path(), default=None, help="Override the state file path.")
@click.option("--key", type=click.Path(), default=None, help="Override the journal key path.")
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI color output.")
@click.pass_context
def cli(
    ctx,
    settings_path: Optional[str],
    state:         Optional[str],
    key:           Optional[str],
    fmt:           str,
    no_color:      bool,
) -> None:
    """
    capdrop — capped token airdrop ledger.

    \b
    Quick start:
      capdrop init admin tok 10000 100
      capdrop claim --caller user1
      capdrop query sale
      capdrop withdraw --caller admin
      capdrop journal verify
    """
    Color.configure(not no_color)

    try:
        if settings_path is not None:
            settings = Settings.from_yaml(Path(settings_path))
        elif Path(DEFAULT_SETTINGS_FILE).exists():
            settings = Settings.from_yaml(Path(DEFAULT_SETTINGS_FILE))
        else:
            settings = Settings()
    except (ConfigInvalid, OSError) as e:
        raise click.UsageError(f"Cannot load settings: {e}")

    if state is not None:
        settings.state_path = Path(state)
    if key is not None:
        settings.key_path = Path(key)

    ctx.obj = {"settings": settings, "format": fmt.lower()}


cli.add_command(init_command)
cli.add_command(claim_command)
cli.add_command(change_admin_command)
cli.add_command(update_config_command)
cli.add_command(withdraw_command)
cli.add_command(execute_command)
cli.add_command(migrate_command)
cli.add_command(query_group)
cli.add_command(journal_group)
