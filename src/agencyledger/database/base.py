"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Iterable
from datetime import date
from decimal import Decimal

# Import entities directly; domain services import this module
from agencyledger.domain.entities import (
    BankAccount,
    BankTransaction,
    Supplier,
    Sale,
    Installment,
    InstallmentAllocation,
    SupplierPayment,
    AccountType,
    TransactionKind,
    RecordStatus,
    InstallmentStatus,
    SaleStatus,
    PaymentType,
    PaymentFrequency,
)


class Database(ABC):
    """Abstract database interface for agencyledger.

    Write methods commit immediately when called on their own. Inside
    ``unit_of_work()`` they only flush, and the block commits once at the end
    or rolls everything back if an exception escapes.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Run the enclosed writes as one atomic transaction.

        Nested blocks join the outermost one.
        """
        pass

    # Bank account operations
    @abstractmethod
    def create_account(
        self,
        bank_name: str,
        reference_name: str,
        account_type: AccountType,
        initial_balance: Decimal,
    ) -> int:
        """Create a bank account with current balance = initial balance. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, for_update: bool = False) -> Optional[BankAccount]:
        """Get account by ID, optionally locking the row for the current unit of work."""
        pass

    @abstractmethod
    def get_account_by_reference(self, reference_name: str) -> Optional[BankAccount]:
        """Get account by its reference name."""
        pass

    @abstractmethod
    def list_accounts(
        self, include_archived: bool = False, search: Optional[str] = None
    ) -> list[BankAccount]:
        """List accounts ordered by reference name."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        bank_name: Optional[str] = None,
        reference_name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
    ) -> None:
        """Update descriptive account fields."""
        pass

    @abstractmethod
    def adjust_account_balance(self, account_id: int, delta: Decimal) -> Decimal:
        """Add delta to the stored current balance. Returns the new balance."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Overwrite the stored current balance."""
        pass

    @abstractmethod
    def archive_account(self, account_id: int) -> None:
        """Mark an account archived."""
        pass

    # Bank transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        kind: TransactionKind,
        amount: Decimal,
        description: str,
        date: date,
        reference: Optional[str] = None,
        destination_account_id: Optional[int] = None,
        sale_id: Optional[int] = None,
    ) -> int:
        """Create an ACTIVE transaction row. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int, for_update: bool = False) -> Optional[BankTransaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def set_transaction_status(self, transaction_id: int, status: RecordStatus) -> None:
        """Change transaction status, stamping cancelled_at on cancellation."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        kind: Optional[TransactionKind] = None,
        status: Optional[RecordStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        sale_id: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[BankTransaction]:
        """List transactions newest first.

        Args:
            account_id: Only transactions touching this account (source or destination)
            kind: Optional kind filter
            status: Optional status filter
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            search: Case-insensitive text matched against description and reference
            sale_id: Only transactions linked to this sale
            offset: Number of rows to skip
            limit: Maximum number of rows (None for all)
        """
        pass

    @abstractmethod
    def count_transactions(
        self,
        account_id: Optional[int] = None,
        kind: Optional[TransactionKind] = None,
        status: Optional[RecordStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        sale_id: Optional[int] = None,
    ) -> int:
        """Count transactions matching the same filters as list_transactions."""
        pass

    # Supplier operations
    @abstractmethod
    def create_supplier(
        self, name: str, phone: Optional[str] = None, service_type: Optional[str] = None
    ) -> int:
        """Create a supplier. Returns supplier ID."""
        pass

    @abstractmethod
    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        """Get supplier by ID."""
        pass

    @abstractmethod
    def get_supplier_by_name(self, name: str) -> Optional[Supplier]:
        """Get supplier by name."""
        pass

    @abstractmethod
    def list_suppliers(self) -> list[Supplier]:
        """List suppliers ordered by name."""
        pass

    # Sale operations
    @abstractmethod
    def create_sale(
        self,
        client_name: str,
        destination: Optional[str],
        total_price: Decimal,
        net_cost: Decimal,
        payment_type: PaymentType,
        down_payment: Decimal,
        installment_count: int,
        frequency: PaymentFrequency,
        sale_date: date,
        status: SaleStatus,
        supplier_id: Optional[int] = None,
        supplier_deadline: Optional[date] = None,
    ) -> int:
        """Create a sale. Returns sale ID."""
        pass

    @abstractmethod
    def add_sale_item(
        self,
        sale_id: int,
        description: str,
        cost: Decimal,
        supplier_id: Optional[int] = None,
        supplier_deadline: Optional[date] = None,
    ) -> int:
        """Add a service item to a sale. Returns item ID."""
        pass

    @abstractmethod
    def get_sale(self, sale_id: int, for_update: bool = False) -> Optional[Sale]:
        """Get sale (with items) by ID, optionally locking its row."""
        pass

    @abstractmethod
    def list_sales(self, statuses: Optional[Iterable[SaleStatus]] = None) -> list[Sale]:
        """List sales newest first, optionally filtered by status."""
        pass

    @abstractmethod
    def update_sale_status(self, sale_id: int, status: SaleStatus) -> None:
        """Change sale status."""
        pass

    # Installment operations
    @abstractmethod
    def create_installment(
        self, sale_id: int, payment_number: int, due_date: date, amount: Decimal
    ) -> int:
        """Create a PENDING installment. Returns installment ID."""
        pass

    @abstractmethod
    def get_installment(self, installment_id: int) -> Optional[Installment]:
        """Get installment by ID."""
        pass

    @abstractmethod
    def list_installments(self, sale_id: int, for_update: bool = False) -> list[Installment]:
        """List a sale's installments ordered by payment number."""
        pass

    @abstractmethod
    def update_installment_payment(
        self,
        installment_id: int,
        paid_amount: Decimal,
        status: InstallmentStatus,
        paid_date: Optional[date],
        notes: Optional[str] = None,
    ) -> None:
        """Store new paid amount, status cache and paid date (notes only if given)."""
        pass

    # Installment allocation operations
    @abstractmethod
    def create_allocation(
        self,
        transaction_id: int,
        installment_id: int,
        amount: Decimal,
        previous_paid_date: Optional[date],
    ) -> int:
        """Record the portion of a payment applied to an installment. Returns allocation ID."""
        pass

    @abstractmethod
    def list_allocations(self, transaction_id: int) -> list[InstallmentAllocation]:
        """List the allocations of one payment transaction."""
        pass

    @abstractmethod
    def list_active_allocations_for_installments(
        self, installment_ids: Iterable[int]
    ) -> list[InstallmentAllocation]:
        """List allocations on the given installments whose transaction is ACTIVE."""
        pass

    @abstractmethod
    def list_payment_transactions(self, sale_id: int) -> list[BankTransaction]:
        """List transactions of a sale that carry installment allocations, oldest first."""
        pass

    # Supplier payment operations
    @abstractmethod
    def create_supplier_payment(
        self,
        supplier_id: int,
        sale_id: int,
        bank_account_id: int,
        bank_transaction_id: int,
        amount: Decimal,
        date: date,
        notes: Optional[str] = None,
    ) -> int:
        """Create an ACTIVE supplier payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_supplier_payment(self, payment_id: int, for_update: bool = False) -> Optional[SupplierPayment]:
        """Get supplier payment by ID."""
        pass

    @abstractmethod
    def get_supplier_payment_by_transaction(self, transaction_id: int) -> Optional[SupplierPayment]:
        """Get the supplier payment backed by a bank transaction."""
        pass

    @abstractmethod
    def list_supplier_payments(
        self,
        sale_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        status: Optional[RecordStatus] = None,
    ) -> list[SupplierPayment]:
        """List supplier payments newest first."""
        pass

    @abstractmethod
    def set_supplier_payment_status(self, payment_id: int, status: RecordStatus) -> None:
        """Change supplier payment status."""
        pass
