"""Sale and installment payment commands."""

import click
from agencyledger.cli.account_resolution import resolve_account_or_exit, resolve_supplier_or_exit
from agencyledger.cli.error_handling import handle_domain_error
from agencyledger.domain.account import AccountService
from agencyledger.domain.entities import (
    InstallmentStatus,
    PaymentFrequency,
    PaymentType,
    SaleItemInput,
)
from agencyledger.domain.payments import PaymentAllocator
from agencyledger.domain.sale import SaleService
from agencyledger.domain.supplier import SupplierDebtService
from agencyledger.utils.amount_parser import parse_amount
from agencyledger.utils.date_parser import parse_date


@click.group()
def sale_group():
    """Manage sales and their installment plans."""
    pass


def _parse_item(ctx, supplier_service: SupplierDebtService, raw: str) -> SaleItemInput:
    """Parse 'DESCRIPTION;COST[;SUPPLIER[;DEADLINE]]'."""
    parts = [part.strip() for part in raw.split(";")]
    if len(parts) < 2 or len(parts) > 4 or not parts[0]:
        click.echo(f"Error: Invalid item '{raw}' (expected DESCRIPTION;COST[;SUPPLIER[;DEADLINE]])", err=True)
        ctx.exit(1)
    try:
        cost = parse_amount(parts[1])
        deadline = parse_date(parts[3]) if len(parts) == 4 and parts[3] else None
    except ValueError as e:
        click.echo(f"Error: Invalid item '{raw}': {e}", err=True)
        ctx.exit(1)
    supplier_id = None
    if len(parts) >= 3 and parts[2]:
        supplier_id = resolve_supplier_or_exit(ctx, supplier_service, parts[2])
    return SaleItemInput(
        description=parts[0], cost=cost, supplier_id=supplier_id, supplier_deadline=deadline
    )


@sale_group.command("create")
@click.argument("client_name", metavar="CLIENT_NAME")
@click.option("--total", required=True, help="Total price charged to the client")
@click.option(
    "--type",
    "payment_type",
    type=click.Choice([t.value.lower() for t in PaymentType], case_sensitive=False),
    default="credit",
    show_default=True,
    help="Cash sale or credit sale with installments",
)
@click.option("--destination", help="Destination or package name")
@click.option("--down-payment", default="0", show_default=True, help="Amount paid up front")
@click.option("--installments", "installment_count", type=int, default=1, show_default=True, help="Number of installments (1-24)")
@click.option(
    "--frequency",
    type=click.Choice([f.value.lower() for f in PaymentFrequency], case_sensitive=False),
    default="quincenal",
    show_default=True,
    help="quincenal: 15th and month end; mensual: month end",
)
@click.option("--start-date", help="Date installments are stepped from (defaults to the sale date)")
@click.option("--sale-date", help="Date of the sale (defaults to today)")
@click.option("--net-cost", help="Cost owed to suppliers when no items are given")
@click.option("--item", "items", multiple=True, help="Service item: 'DESCRIPTION;COST[;SUPPLIER[;DEADLINE]]'")
@click.option("--supplier", help="Sale-level supplier name or ID")
@click.option("--supplier-deadline", help="Deadline to pay the sale-level supplier")
@click.option("--account", help="Account receiving the down payment")
@click.pass_context
def create_sale(
    ctx,
    client_name: str,
    total: str,
    payment_type: str,
    destination: str | None,
    down_payment: str,
    installment_count: int,
    frequency: str,
    start_date: str | None,
    sale_date: str | None,
    net_cost: str | None,
    items: tuple[str, ...],
    supplier: str | None,
    supplier_deadline: str | None,
    account: str | None,
):
    """Record a sale and, for credit sales, generate its installment plan.

    Examples:
        agencyledger sale create "Ana Lopez" --total 12000 --down-payment 2000 --installments 5
        agencyledger sale create "Luis Perez" --total 9000 --type cash --account 1 \\
            --item "Hotel;6000;Hotel Riu;2026-11-01"
    """
    db = ctx.obj["db"]
    sale_service = SaleService(db)
    supplier_service = SupplierDebtService(db)
    account_service = AccountService(db)

    try:
        total_price = parse_amount(total)
        down = parse_amount(down_payment)
        cost = parse_amount(net_cost) if net_cost else None
        start = parse_date(start_date) if start_date else None
        sold_on = parse_date(sale_date) if sale_date else None
        deadline = parse_date(supplier_deadline) if supplier_deadline else None
    except ValueError as e:
        click.echo(f"Error: Invalid input: {e}", err=True)
        ctx.exit(1)

    parsed_items = [_parse_item(ctx, supplier_service, raw) for raw in items]
    supplier_id = resolve_supplier_or_exit(ctx, supplier_service, supplier) if supplier else None
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None

    try:
        sale_id = sale_service.create_sale(
            client_name=client_name,
            destination=destination,
            total_price=total_price,
            payment_type=PaymentType(payment_type.upper()),
            down_payment=down,
            installment_count=installment_count,
            frequency=PaymentFrequency(frequency.upper()),
            start_date=start,
            sale_date=sold_on,
            net_cost=cost,
            items=parsed_items,
            supplier_id=supplier_id,
            supplier_deadline=deadline,
            bank_account_id=account_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created sale {sale_id} for '{client_name}'")
    for view in sale_service.list_installments(sale_id):
        inst = view.installment
        click.echo(f"  #{inst.payment_number:2d} | {inst.due_date} | ${inst.amount:>12,.2f}")


@sale_group.command("show")
@click.argument("sale_id", type=int)
@click.pass_context
def show_sale(ctx, sale_id: int):
    """Show a sale with its plan summary."""
    sale_service = SaleService(ctx.obj["db"])

    try:
        sale = sale_service.require_sale(sale_id)
        summary = sale_service.plan_summary(sale_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nSale {sale.id}: {sale.client_name}")
    if sale.destination:
        click.echo(f"  Destination: {sale.destination}")
    click.echo(f"  Date: {sale.sale_date}")
    click.echo(f"  Type: {sale.payment_type.value} | Status: {sale.status.value}")
    click.echo(f"  Total price: ${summary.total_price:,.2f}")
    click.echo(f"  Net cost: ${sale.net_cost:,.2f}")
    if sale.payment_type == PaymentType.CREDIT:
        click.echo(f"  Down payment: ${summary.down_payment:,.2f}")
        click.echo(f"  Paid so far: ${summary.total_paid:,.2f}")
        click.echo(f"  Remaining: ${summary.remaining:,.2f}")
        click.echo(f"  Overdue installments: {summary.overdue_count}")
        if summary.next_due is not None:
            click.echo(
                f"  Next due: #{summary.next_due.payment_number} on {summary.next_due.due_date} "
                f"(${summary.next_due.pending_amount:,.2f})"
            )
    for item in sale.items:
        click.echo(f"  Item: {item.description} (${item.cost:,.2f})")


@sale_group.command("installments")
@click.argument("sale_id", type=int)
@click.pass_context
def list_installments(ctx, sale_id: int):
    """List a sale's installments with their current status."""
    sale_service = SaleService(ctx.obj["db"])

    try:
        views = sale_service.list_installments(sale_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not views:
        click.echo("No installments (cash sale).")
        return

    click.echo(f"\nInstallments of sale {sale_id}:")
    click.echo("-" * 90)
    for view in views:
        inst = view.installment
        paid_on = f" on {inst.paid_date}" if view.status == InstallmentStatus.PAID and inst.paid_date else ""
        click.echo(
            f"ID: {inst.id:4d} | #{inst.payment_number:2d} | {inst.due_date} | "
            f"${inst.amount:>10,.2f} | paid ${inst.paid_amount:>10,.2f} | {view.status.value}{paid_on}"
        )


@sale_group.command("pay")
@click.argument("installment_id", type=int)
@click.option("--amount", required=True, help="Amount received")
@click.option("--account", required=True, help="Account the money is deposited into")
@click.option("--notes", help="Note stored on the touched installments")
@click.option("--date", "payment_date", help="Payment date (defaults to today)")
@click.pass_context
def pay_installment(ctx, installment_id: int, amount: str, account: str, notes: str | None, payment_date: str | None):
    """Register a client payment starting at INSTALLMENT_ID.

    Amounts larger than the installment cascade into the next ones.
    """
    db = ctx.obj["db"]
    allocator = PaymentAllocator(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        paid = parse_amount(amount)
        paid_on = parse_date(payment_date) if payment_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid input: {e}", err=True)
        ctx.exit(1)

    try:
        result = allocator.register_payment(
            installment_id=installment_id,
            amount=paid,
            bank_account_id=account_id,
            notes=notes,
            payment_date=paid_on,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Registered payment of ${result.transaction.amount:,.2f} (transaction {result.transaction.id})")
    for inst in result.updated_installments:
        click.echo(
            f"  #{inst.payment_number:2d}: paid ${inst.paid_amount:,.2f} of ${inst.amount:,.2f} ({inst.status.value})"
        )
    click.echo(f"Remaining on plan: ${result.remaining:,.2f}")


@sale_group.command("payments")
@click.argument("sale_id", type=int)
@click.pass_context
def list_payments(ctx, sale_id: int):
    """List a sale's installment payments and how each was applied."""
    allocator = PaymentAllocator(ctx.obj["db"])

    try:
        records = allocator.list_payments(sale_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not records:
        click.echo("No payments found.")
        return

    for record in records:
        txn = record.transaction
        cancelled = " [CANCELLED]" if not txn.is_active else ""
        click.echo(f"Transaction {txn.id} | {txn.date} | ${txn.amount:,.2f}{cancelled}")
        for allocation in record.allocations:
            click.echo(f"    installment {allocation.installment_id}: ${allocation.amount:,.2f}")


@sale_group.command("cancel-payment")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def cancel_payment(ctx, transaction_id: int, yes: bool):
    """Cancel an installment payment and reopen the installments it paid."""
    allocator = PaymentAllocator(ctx.obj["db"])

    if not yes and not click.confirm(f"Cancel payment {transaction_id}?"):
        click.echo("Cancellation aborted.")
        return

    try:
        txn = allocator.cancel_payment(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled payment {txn.id} (${txn.amount:,.2f})")


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
