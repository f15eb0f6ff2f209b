"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic so the services never see ORM rows.
"""

from decimal import Decimal
from typing import Optional

from agencyledger.domain import entities as domain
from agencyledger.utils.money import to_money
from agencyledger.database.models import (
    BankAccount as ORMBankAccount,
    BankTransaction as ORMBankTransaction,
    Supplier as ORMSupplier,
    Sale as ORMSale,
    SaleItem as ORMSaleItem,
    Installment as ORMInstallment,
    InstallmentAllocation as ORMInstallmentAllocation,
    SupplierPayment as ORMSupplierPayment,
)


def _money(value: Optional[Decimal]) -> Decimal:
    # SQLite hands back Decimals built from floats
    return to_money(value if value is not None else Decimal("0"))


def account_to_domain(orm_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_account.id,
        bank_name=orm_account.bank_name,
        reference_name=orm_account.reference_name,
        account_type=domain.AccountType(orm_account.account_type),
        initial_balance=_money(orm_account.initial_balance),
        current_balance=_money(orm_account.current_balance),
        is_archived=bool(orm_account.is_archived),
        created_at=orm_account.created_at,
        archived_at=orm_account.archived_at,
    )


def transaction_to_domain(orm_transaction: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        kind=domain.TransactionKind(orm_transaction.kind),
        amount=_money(orm_transaction.amount),
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        date=orm_transaction.date,
        status=domain.RecordStatus(orm_transaction.status),
        destination_account_id=orm_transaction.destination_account_id,
        sale_id=orm_transaction.sale_id,
        created_at=orm_transaction.created_at,
        cancelled_at=orm_transaction.cancelled_at,
    )


def supplier_to_domain(orm_supplier: ORMSupplier) -> domain.Supplier:
    """Convert SQLAlchemy Supplier model to domain Supplier entity."""
    return domain.Supplier(
        id=orm_supplier.id,
        name=orm_supplier.name,
        phone=orm_supplier.phone,
        service_type=orm_supplier.service_type,
        created_at=orm_supplier.created_at,
    )


def sale_item_to_domain(orm_item: ORMSaleItem) -> domain.SaleItem:
    """Convert SQLAlchemy SaleItem model to domain SaleItem entity."""
    return domain.SaleItem(
        id=orm_item.id,
        sale_id=orm_item.sale_id,
        description=orm_item.description,
        supplier_id=orm_item.supplier_id,
        cost=_money(orm_item.cost),
        supplier_deadline=orm_item.supplier_deadline,
    )


def sale_to_domain(orm_sale: ORMSale) -> domain.Sale:
    """Convert SQLAlchemy Sale model (with its items) to domain Sale entity."""
    return domain.Sale(
        id=orm_sale.id,
        client_name=orm_sale.client_name,
        destination=orm_sale.destination,
        total_price=_money(orm_sale.total_price),
        net_cost=_money(orm_sale.net_cost),
        payment_type=domain.PaymentType(orm_sale.payment_type),
        down_payment=_money(orm_sale.down_payment),
        installment_count=orm_sale.installment_count,
        frequency=domain.PaymentFrequency(orm_sale.frequency),
        sale_date=orm_sale.sale_date,
        status=domain.SaleStatus(orm_sale.status),
        supplier_id=orm_sale.supplier_id,
        supplier_deadline=orm_sale.supplier_deadline,
        created_at=orm_sale.created_at,
        items=tuple(sale_item_to_domain(item) for item in orm_sale.items),
    )


def installment_to_domain(orm_installment: ORMInstallment) -> domain.Installment:
    """Convert SQLAlchemy Installment model to domain Installment entity."""
    return domain.Installment(
        id=orm_installment.id,
        sale_id=orm_installment.sale_id,
        payment_number=orm_installment.payment_number,
        due_date=orm_installment.due_date,
        amount=_money(orm_installment.amount),
        paid_amount=_money(orm_installment.paid_amount),
        status=domain.InstallmentStatus(orm_installment.status),
        paid_date=orm_installment.paid_date,
        notes=orm_installment.notes,
    )


def allocation_to_domain(orm_allocation: ORMInstallmentAllocation) -> domain.InstallmentAllocation:
    """Convert SQLAlchemy InstallmentAllocation model to domain entity."""
    return domain.InstallmentAllocation(
        id=orm_allocation.id,
        transaction_id=orm_allocation.transaction_id,
        installment_id=orm_allocation.installment_id,
        amount=_money(orm_allocation.amount),
        previous_paid_date=orm_allocation.previous_paid_date,
    )


def supplier_payment_to_domain(orm_payment: ORMSupplierPayment) -> domain.SupplierPayment:
    """Convert SQLAlchemy SupplierPayment model to domain SupplierPayment entity."""
    return domain.SupplierPayment(
        id=orm_payment.id,
        supplier_id=orm_payment.supplier_id,
        sale_id=orm_payment.sale_id,
        bank_account_id=orm_payment.bank_account_id,
        bank_transaction_id=orm_payment.bank_transaction_id,
        amount=_money(orm_payment.amount),
        date=orm_payment.date,
        notes=orm_payment.notes,
        status=domain.RecordStatus(orm_payment.status),
        created_at=orm_payment.created_at,
    )
