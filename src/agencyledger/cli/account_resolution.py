"""CLI helpers for account and supplier resolution."""

from __future__ import annotations

import click
from agencyledger.cli.error_handling import handle_domain_error
from agencyledger.domain.account import AccountService
from agencyledger.domain.errors import NotFoundError
from agencyledger.domain.supplier import SupplierDebtService
from agencyledger.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account reference name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_supplier_or_exit(
    ctx: click.Context, supplier_service: SupplierDebtService, supplier: str
) -> int:
    """Resolve supplier name or ID, or exit with a CLI error."""
    try:
        if supplier.isdigit():
            return supplier_service.require_supplier(int(supplier)).id
        supplier_obj = supplier_service.get_supplier_by_name(supplier.strip())
        if supplier_obj is None:
            raise NotFoundError(f"Supplier '{supplier}' not found")
        return supplier_obj.id
    except ValueError as exc:
        handle_domain_error(ctx, exc)
