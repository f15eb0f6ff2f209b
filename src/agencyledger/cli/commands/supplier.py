"""Supplier and supplier debt commands."""

import click
from agencyledger.cli.account_resolution import resolve_account_or_exit, resolve_supplier_or_exit
from agencyledger.cli.error_handling import handle_domain_error
from agencyledger.domain.account import AccountService
from agencyledger.domain.supplier import SupplierDebtService
from agencyledger.utils.amount_parser import parse_amount
from agencyledger.utils.date_parser import parse_date


@click.group()
def supplier_group():
    """Manage suppliers and what the agency owes them."""
    pass


@supplier_group.command("create")
@click.argument("name")
@click.option("--phone", help="Contact phone")
@click.option("--service-type", help="Kind of service (hotel, airline, tours...)")
@click.pass_context
def create_supplier(ctx, name: str, phone: str | None, service_type: str | None):
    """Create a supplier."""
    service = SupplierDebtService(ctx.obj["db"])

    try:
        supplier_id = service.create_supplier(name=name, phone=phone, service_type=service_type)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created supplier '{name}' (ID: {supplier_id})")


@supplier_group.command("list")
@click.pass_context
def list_suppliers(ctx):
    """List suppliers."""
    service = SupplierDebtService(ctx.obj["db"])

    suppliers = service.list_suppliers()
    if not suppliers:
        click.echo("No suppliers found.")
        return

    click.echo("\nSuppliers:")
    click.echo("-" * 60)
    for sup in suppliers:
        click.echo(f"ID: {sup.id:3d} | {sup.name:25s} | {sup.service_type or '-'}")


@supplier_group.command("debts")
@click.pass_context
def list_debts(ctx):
    """Show what is owed to each supplier."""
    service = SupplierDebtService(ctx.obj["db"])

    overview = service.list_supplier_debts()
    if not overview.suppliers:
        click.echo("No supplier debts.")
        return

    click.echo("\nSupplier debts:")
    click.echo("-" * 100)
    for summary in overview.suppliers:
        totals = summary.totals
        click.echo(
            f"ID: {summary.supplier.id:3d} | {summary.supplier.name:25s} | "
            f"debt ${totals.total_debt:>11,.2f} | paid ${totals.total_paid:>11,.2f} | "
            f"remaining ${totals.total_remaining:>11,.2f} | {summary.sales_count} sale(s), "
            f"{summary.overdue_count} overdue"
        )
    click.echo("-" * 100)
    click.echo(f"Total remaining: ${overview.totals.total_remaining:,.2f}")


@supplier_group.command("sales")
@click.argument("supplier")
@click.pass_context
def list_supplier_sales(ctx, supplier: str):
    """Show the per-sale debts of one SUPPLIER (name or ID)."""
    service = SupplierDebtService(ctx.obj["db"])
    supplier_id = resolve_supplier_or_exit(ctx, service, supplier)

    statement = service.list_supplier_sales(supplier_id)
    if not statement.sales:
        click.echo(f"No sales owe anything to '{statement.supplier.name}'.")
        return

    click.echo(f"\nSales with {statement.supplier.name}:")
    click.echo("-" * 110)
    for row in statement.sales:
        deadline = str(row.deadline) if row.deadline else "no deadline"
        click.echo(
            f"Sale {row.sale.id:4d} | {row.sale.client_name:20s} | debt ${row.debt:>10,.2f} | "
            f"paid ${row.paid:>10,.2f} | remaining ${row.remaining:>10,.2f} | "
            f"{deadline} | {row.traffic_light.value}"
        )
    click.echo("-" * 110)
    click.echo(f"Total remaining: ${statement.totals.total_remaining:,.2f}")


@supplier_group.command("pay")
@click.argument("supplier")
@click.option("--sale", "sale_id", type=int, required=True, help="Sale the payment is for")
@click.option("--account", required=True, help="Account the money leaves")
@click.option("--amount", required=True, help="Amount paid")
@click.option("--notes", help="Optional note")
@click.option("--date", "payment_date", help="Payment date (defaults to today)")
@click.pass_context
def pay_supplier(
    ctx, supplier: str, sale_id: int, account: str, amount: str, notes: str | None, payment_date: str | None
):
    """Pay SUPPLIER (name or ID) for a sale from a bank account."""
    db = ctx.obj["db"]
    service = SupplierDebtService(db)
    supplier_id = resolve_supplier_or_exit(ctx, service, supplier)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        paid = parse_amount(amount)
        paid_on = parse_date(payment_date) if payment_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid input: {e}", err=True)
        ctx.exit(1)

    try:
        payment = service.register_payment(
            supplier_id=supplier_id,
            sale_id=sale_id,
            bank_account_id=account_id,
            amount=paid,
            notes=notes,
            payment_date=paid_on,
        )
        remaining = service.sale_debt(sale_id, supplier_id).remaining
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Registered supplier payment {payment.id} (${payment.amount:,.2f})")
    click.echo(f"  Remaining for sale {sale_id}: ${remaining:,.2f}")


@supplier_group.command("cancel-payment")
@click.argument("payment_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def cancel_payment(ctx, payment_id: int, yes: bool):
    """Cancel a supplier payment and restore the account balance."""
    service = SupplierDebtService(ctx.obj["db"])

    if not yes and not click.confirm(f"Cancel supplier payment {payment_id}?"):
        click.echo("Cancellation aborted.")
        return

    try:
        payment = service.cancel_payment(payment_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled supplier payment {payment.id} (${payment.amount:,.2f})")


def register_commands(cli):
    """Register supplier commands with main CLI."""
    cli.add_command(supplier_group, name="supplier")
