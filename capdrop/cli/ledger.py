"""
capdrop/cli/ledger.py

Ledger commands: init, claim, change-admin, update-config, withdraw,
execute, migrate, and the query group.

Exit codes:
    0  Operation committed / query answered
    1  Ledger refused the operation (unauthorized, already claimed, ...)
    2  Usage or I/O error
"""

import json
import sys
from typing import Optional

import click

from capdrop.cli.output import EXIT_ERROR, emit, emit_response, fail, record_rows
from capdrop.core.exceptions import CapDropError, StorageError
from capdrop.core.models import Config
from capdrop.messages import (
    ChangeAdmin,
    Claim,
    GetConfig,
    GetContractVersion,
    GetSaleInfo,
    GetUserInfo,
    InstantiateMsg,
    ListUserInfos,
    MigrateMsg,
    UpdateConfig,
    WithdrawByAdmin,
    parse_execute_msg,
)

caller_option = click.option(
    "--caller", "-c",
    required=True,
    metavar="ADDRESS",
    help="Address invoking the operation.",
)


def open_contract(ctx: click.Context):
    try:
        return ctx.obj["settings"].build_contract()
    except (OSError, ValueError, RuntimeError, StorageError) as e:
        click.echo(f"  Cannot open ledger: {e}", err=True)
        sys.exit(EXIT_ERROR)


@click.command(name="init")
@click.argument("admin")
@click.argument("token_reference")
@click.argument("total_supply", type=int)
@click.argument("claim_amount", type=int)
@click.pass_context
def init_command(ctx, admin, token_reference, total_supply, claim_amount) -> None:
    """
    Initialize the ledger.

    \b
    Example:
      capdrop init admin tok 10000 100
    """
    fmt = ctx.obj["format"]
    try:
        response = open_contract(ctx).instantiate(InstantiateMsg(
            admin=           admin,
            token_reference= token_reference,
            total_supply=    total_supply,
            claim_amount=    claim_amount,
        ))
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


@click.command(name="claim")
@caller_option
@click.pass_context
def claim_command(ctx, caller: str) -> None:
    """Claim the fixed allotment for CALLER."""
    fmt = ctx.obj["format"]
    try:
        response = open_contract(ctx).execute(caller, Claim())
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


@click.command(name="change-admin")
@click.argument("new_admin")
@caller_option
@click.pass_context
def change_admin_command(ctx, new_admin: str, caller: str) -> None:
    """Hand the admin role to NEW_ADMIN."""
    fmt = ctx.obj["format"]
    try:
        response = open_contract(ctx).execute(caller, ChangeAdmin(address=new_admin))
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


@click.command(name="update-config")
@caller_option
@click.option("--admin", default=None, help="New admin address.")
@click.option("--token-reference", default=None, help="New token reference.")
@click.option("--total-supply", type=int, default=None, help="New supply cap.")
@click.option("--claim-amount", type=int, default=None, help="New per-claim amount.")
@click.pass_context
def update_config_command(
    ctx,
    caller:          str,
    admin:           Optional[str],
    token_reference: Optional[str],
    total_supply:    Optional[int],
    claim_amount:    Optional[int],
) -> None:
    """
    Overwrite the configuration.

    Fields not given keep their current value; the record is still
    written as a whole.
    """
    fmt = ctx.obj["format"]
    try:
        contract = open_contract(ctx)
        current = contract.query(GetConfig())
        new_config = Config(
            admin=           admin if admin is not None else current.admin,
            token_reference= token_reference if token_reference is not None else current.token_reference,
            total_supply=    total_supply if total_supply is not None else current.total_supply,
            claim_amount=    claim_amount if claim_amount is not None else current.claim_amount,
        )
        response = contract.execute(caller, UpdateConfig(config=new_config))
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


@click.command(name="withdraw")
@caller_option
@click.pass_context
def withdraw_command(ctx, caller: str) -> None:
    """Send every unclaimed token to the admin."""
    fmt = ctx.obj["format"]
    try:
        response = open_contract(ctx).execute(caller, WithdrawByAdmin())
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


@click.command(name="execute")
@click.argument("message")
@caller_option
@click.pass_context
def execute_command(ctx, message: str, caller: str) -> None:
    """
    Execute a raw JSON MESSAGE.

    \b
    Example:
      capdrop execute '{"change_admin": {"address": "ops"}}' --caller admin
    """
    fmt = ctx.obj["format"]
    try:
        data = json.loads(message)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="MESSAGE")
    try:
        response = open_contract(ctx).execute(caller, parse_execute_msg(data))
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


@click.command(name="migrate")
@click.option(
    "--previous-version",
    default=None,
    metavar="VERSION",
    help="Refuse unless the stored version equals VERSION.",
)
@click.pass_context
def migrate_command(ctx, previous_version: Optional[str]) -> None:
    """Migrate state written by an earlier version of this ledger."""
    fmt = ctx.obj["format"]
    try:
        response = open_contract(ctx).migrate(MigrateMsg(previous_version=previous_version))
    except CapDropError as e:
        fail(fmt, e)
    emit_response(fmt, response)


# ── Queries ───────────────────────────────────────────────────

@click.group(name="query")
def query_group() -> None:
    """Read committed state."""


@query_group.command(name="user")
@click.argument("address")
@click.pass_context
def query_user(ctx, address: str) -> None:
    """Show the claim record of ADDRESS, if any."""
    fmt = ctx.obj["format"]
    try:
        record = open_contract(ctx).query(GetUserInfo(address=address))
    except CapDropError as e:
        fail(fmt, e)
    if record is None:
        emit(fmt, None, [("address", address), ("claimed", False)])
    else:
        emit(fmt, record, record_rows(record.to_dict()))


@query_group.command(name="sale")
@click.pass_context
def query_sale(ctx) -> None:
    """Show the total distributed so far."""
    fmt = ctx.obj["format"]
    try:
        info = open_contract(ctx).query(GetSaleInfo())
    except CapDropError as e:
        fail(fmt, e)
    emit(fmt, info, record_rows(info.to_dict()))


@query_group.command(name="config")
@click.pass_context
def query_config(ctx) -> None:
    """Show the current configuration."""
    fmt = ctx.obj["format"]
    try:
        config = open_contract(ctx).query(GetConfig())
    except CapDropError as e:
        fail(fmt, e)
    emit(fmt, config, record_rows(config.to_dict()))


@query_group.command(name="users")
@click.option("--start-after", default=None, metavar="ADDRESS", help="Page after this address.")
@click.option("--limit", type=int, default=None, help="Page size.")
@click.pass_context
def query_users(ctx, start_after: Optional[str], limit: Optional[int]) -> None:
    """List claim records in address order."""
    fmt = ctx.obj["format"]
    try:
        records = open_contract(ctx).query(ListUserInfos(start_after=start_after, limit=limit))
    except CapDropError as e:
        fail(fmt, e)
    emit(fmt, records, [(r.address, r.amount) for r in records])


@query_group.command(name="version")
@click.pass_context
def query_version(ctx) -> None:
    """Show the stored contract identity and version."""
    fmt = ctx.obj["format"]
    try:
        version = open_contract(ctx).query(GetContractVersion())
    except CapDropError as e:
        fail(fmt, e)
    emit(fmt, version, record_rows(version.to_dict()))
