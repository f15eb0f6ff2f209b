"""Bank transaction commands."""

import click
from agencyledger.cli.account_resolution import resolve_account_or_exit
from agencyledger.cli.error_handling import handle_domain_error
from agencyledger.domain.account import AccountService
from agencyledger.domain.entities import RecordStatus, TransactionKind
from agencyledger.domain.ledger import LedgerService
from agencyledger.utils.amount_parser import parse_amount
from agencyledger.utils.date_parser import parse_date

KINDS = [k.value.lower() for k in TransactionKind]


@click.group()
def transaction_group():
    """Manage bank transactions."""
    pass


@transaction_group.command("add")
@click.option("--type", "kind", type=click.Choice(KINDS, case_sensitive=False), required=True, help="Movement type")
@click.option("--account", required=True, help="Account reference name or ID (source for transfers)")
@click.option("--to", "destination", help="Destination account for transfers")
@click.option("--amount", required=True, help="Positive amount (e.g., 1500 or $1,500.00)")
@click.option("--description", required=True, help="Transaction description")
@click.option("--reference", help="Reference number")
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD or 'today', 'yesterday'); defaults to today")
@click.pass_context
def add_transaction(
    ctx,
    kind: str,
    account: str,
    destination: str | None,
    amount: str,
    description: str,
    reference: str | None,
    txn_date: str | None,
):
    """Record an income, expense or transfer.

    Examples:
        agencyledger transaction add --type income --account 1 --amount 2500 --description "Deposit"
        agencyledger transaction add --type transfer --account 1 --to 2 --amount 1000 --description "Move to savings"
    """
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    account_service = AccountService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    destination_id = resolve_account_or_exit(ctx, account_service, destination) if destination else None

    try:
        txn_amount = parse_amount(amount)
        parsed_date = parse_date(txn_date) if txn_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid input: {e}", err=True)
        ctx.exit(1)

    kind = TransactionKind(kind.upper())
    try:
        if kind == TransactionKind.TRANSFER:
            txn = ledger.apply_transfer(
                source_id=account_id,
                destination_id=destination_id,
                amount=txn_amount,
                description=description,
                reference=reference,
                date=parsed_date,
            )
        elif kind == TransactionKind.INCOME:
            txn = ledger.apply_income(
                account_id, txn_amount, description, reference=reference, date=parsed_date
            )
        else:
            txn = ledger.apply_expense(
                account_id, txn_amount, description, reference=reference, date=parsed_date
            )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Type: {txn.kind.value}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: ${txn.amount:,.2f}")
    source = account_service.get_account(account_id)
    click.echo(f"  Balance of '{source.reference_name}': ${source.current_balance:,.2f}")


@transaction_group.command("list")
@click.option("--account", help="Account reference name or ID")
@click.option("--type", "kind", type=click.Choice(KINDS, case_sensitive=False), help="Movement type")
@click.option(
    "--status",
    type=click.Choice([s.value.lower() for s in RecordStatus], case_sensitive=False),
    help="Only active or only cancelled transactions",
)
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--search", help="Text to find in description or reference")
@click.option("--page", type=int, default=1, show_default=True, help="Page number")
@click.option("--limit", type=int, default=20, show_default=True, help="Transactions per page")
@click.pass_context
def list_transactions(
    ctx,
    account: str | None,
    kind: str | None,
    status: str | None,
    start_date: str | None,
    end_date: str | None,
    search: str | None,
    page: int,
    limit: int,
):
    """View transactions newest first, with optional filters."""
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    account_service = AccountService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None
    try:
        start = parse_date(start_date) if start_date else None
        end = parse_date(end_date) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    try:
        result = ledger.list_transactions(
            account_id=account_id,
            kind=TransactionKind(kind.upper()) if kind else None,
            status=RecordStatus(status.upper()) if status else None,
            start_date=start,
            end_date=end,
            search=search,
            page=page,
            limit=limit,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not result.items:
        click.echo("No transactions found.")
        return

    accounts = {
        acc.id: acc.reference_name for acc in account_service.list_accounts(include_archived=True)
    }
    click.echo(f"\nPage {result.page} of {result.total_pages} ({result.total} transaction(s)):")
    click.echo("-" * 110)
    for txn in result.items:
        target = accounts.get(txn.account_id, "Unknown")
        if txn.destination_account_id is not None:
            target = f"{target} -> {accounts.get(txn.destination_account_id, 'Unknown')}"
        cancelled = " [CANCELLED]" if not txn.is_active else ""
        click.echo(
            f"ID: {txn.id:4d} | {txn.date} | {txn.kind.value:8s} | ${txn.amount:>12,.2f} | "
            f"{target:30s} | {txn.description}{cancelled}"
        )


@transaction_group.command("cancel")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def cancel_transaction(ctx, transaction_id: int, yes: bool):
    """Cancel a transaction and restore the balances it moved.

    Installment and supplier payments are cancelled with
    'sale cancel-payment' and 'supplier cancel-payment'.
    """
    ledger = LedgerService(ctx.obj["db"])

    if not yes and not click.confirm(f"Cancel transaction {transaction_id}?"):
        click.echo("Cancellation aborted.")
        return

    try:
        txn = ledger.cancel(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled transaction {txn.id} (${txn.amount:,.2f})")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
