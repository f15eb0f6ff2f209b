"""Bank account management commands."""

import click
from agencyledger.cli.account_resolution import resolve_account_or_exit
from agencyledger.cli.error_handling import handle_domain_error
from agencyledger.domain.account import AccountService
from agencyledger.domain.entities import AccountType
from agencyledger.utils.amount_parser import parse_amount

ACCOUNT_TYPES = [t.value for t in AccountType]


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("reference_name", metavar="REFERENCE_NAME")
@click.option("--bank", required=True, help="Bank name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    default=AccountType.DEBIT.value,
    show_default=True,
    help="Account type",
)
@click.option("--initial-balance", default="0", help="Opening balance (e.g., 15000 or $15,000.00)")
@click.pass_context
def create_account(ctx, reference_name: str, bank: str, account_type: str, initial_balance: str):
    """Create a new bank account.

    Examples:
        agencyledger account create "BBVA Operativa" --bank BBVA
        agencyledger account create "Ahorro" --bank Banorte --type SAVINGS --initial-balance 15000
    """
    service = AccountService(ctx.obj["db"])

    try:
        balance = parse_amount(initial_balance)
        account_id = service.create_account(
            bank_name=bank,
            reference_name=reference_name,
            account_type=AccountType(account_type.upper()),
            initial_balance=balance,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{reference_name}' (ID: {account_id})")
    click.echo(f"  Opening balance: ${balance:,.2f}")


@account_group.command("list")
@click.option("--all", "include_archived", is_flag=True, help="Include archived accounts")
@click.option("--search", help="Match reference or bank name")
@click.pass_context
def list_accounts(ctx, include_archived: bool, search: str | None):
    """List bank accounts with their current balances."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(include_archived=include_archived, search=search)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        archived = " (archived)" if acc.is_archived else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.reference_name:20s} | {acc.bank_name:12s} | "
            f"{acc.account_type.value:7s} | ${acc.current_balance:>14,.2f}{archived}"
        )


@account_group.command("edit")
@click.argument("account", metavar="ACCOUNT")
@click.option("--reference-name", help="New reference name")
@click.option("--bank", help="New bank name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    help="New account type",
)
@click.pass_context
def edit_account(ctx, account: str, reference_name: str | None, bank: str | None, account_type: str | None):
    """Edit an account's descriptive fields.

    ACCOUNT can be a reference name or ID. Balances are never edited directly.

    Examples:
        agencyledger account edit 1 --reference-name "BBVA Nomina"
        agencyledger account edit "Ahorro" --type DEBIT
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.edit_account(
            account_id=account_id,
            bank_name=bank,
            reference_name=reference_name,
            account_type=AccountType(account_type.upper()) if account_type else None,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated account {account_id}")


@account_group.command("archive")
@click.argument("account", metavar="ACCOUNT")
@click.option("--transfer-to", help="Account (reference name or ID) that receives the remaining balance")
@click.pass_context
def archive_account(ctx, account: str, transfer_to: str | None):
    """Archive an account.

    A positive balance must be moved to another account first; --transfer-to
    does that in the same step. Archived accounts keep their history.

    Examples:
        agencyledger account archive "Caja chica" --transfer-to "BBVA Operativa"
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    target_id = resolve_account_or_exit(ctx, service, transfer_to) if transfer_to else None

    try:
        archived = service.archive_account(account_id, transfer_to_account_id=target_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Archived account '{archived.reference_name}'")
    if target_id is not None:
        click.echo(f"  Remaining balance transferred to account {target_id}")


@account_group.command("verify")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def verify_account(ctx, account: str):
    """Recompute an account balance from the ledger and compare it."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    check = service.ledger.verify_balance(account_id)
    click.echo(f"Stored balance:   ${check.stored:,.2f}")
    click.echo(f"Computed balance: ${check.computed:,.2f}")
    if check.is_consistent:
        click.echo("Balance is consistent.")
    else:
        click.echo("Balance drift detected. Run 'account reconcile' to repair it.", err=True)
        ctx.exit(1)


@account_group.command("reconcile")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def reconcile_account(ctx, account: str):
    """Overwrite the stored balance with the one computed from the ledger."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    check = service.ledger.reconcile_balance(account_id)
    if check.is_consistent:
        click.echo("Balance already consistent; nothing to do.")
    else:
        click.echo(f"Balance corrected from ${check.stored:,.2f} to ${check.computed:,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
