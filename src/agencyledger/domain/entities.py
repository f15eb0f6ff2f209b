"""Domain model entities for agencyledger.

These are pure data classes representing business concepts, independent of
the database schema. Services receive and return these; the ORM models never
leave the database layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    """Kind of bank account."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    SAVINGS = "SAVINGS"


class TransactionKind(str, Enum):
    """Kind of ledger movement."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class RecordStatus(str, Enum):
    """Soft-cancel status shared by transactions and supplier payments."""

    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class PaymentType(str, Enum):
    """How a sale is paid."""

    CASH = "CASH"
    CREDIT = "CREDIT"


class PaymentFrequency(str, Enum):
    """Due-date cadence of a payment plan."""

    QUINCENAL = "QUINCENAL"
    MENSUAL = "MENSUAL"


class SaleStatus(str, Enum):
    """Lifecycle of a sale."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class InstallmentStatus(str, Enum):
    """Installment status. OVERDUE is only ever derived on read."""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class TrafficLight(str, Enum):
    """Urgency of a supplier debt relative to its deadline."""

    GRAY = "gray"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    SETTLED = "settled"


@dataclass(frozen=True)
class BankAccount:
    """Bank account domain entity."""

    id: int
    bank_name: str
    reference_name: str
    account_type: AccountType
    initial_balance: Decimal
    current_balance: Decimal
    is_archived: bool
    created_at: datetime
    archived_at: Optional[datetime] = None


@dataclass(frozen=True)
class BankTransaction:
    """Ledger movement domain entity."""

    id: int
    account_id: int
    kind: TransactionKind
    amount: Decimal
    description: str
    reference: Optional[str]
    date: date
    status: RecordStatus
    destination_account_id: Optional[int]
    sale_id: Optional[int]
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    def effect_on(self, account_id: int) -> Decimal:
        """Signed balance effect of this movement on the given account."""
        if self.kind == TransactionKind.INCOME and self.account_id == account_id:
            return self.amount
        if self.kind == TransactionKind.EXPENSE and self.account_id == account_id:
            return -self.amount
        if self.kind == TransactionKind.TRANSFER:
            if self.account_id == account_id:
                return -self.amount
            if self.destination_account_id == account_id:
                return self.amount
        return Decimal("0.00")


@dataclass(frozen=True)
class Supplier:
    """Supplier (hotel, airline, tour operator) domain entity."""

    id: int
    name: str
    phone: Optional[str]
    service_type: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class SaleItem:
    """Service item of a sale, optionally owed to a supplier."""

    id: int
    sale_id: int
    description: str
    supplier_id: Optional[int]
    cost: Decimal
    supplier_deadline: Optional[date]


@dataclass(frozen=True)
class SaleItemInput:
    """Service item as entered when creating a sale."""

    description: str
    cost: Decimal
    supplier_id: Optional[int] = None
    supplier_deadline: Optional[date] = None


@dataclass(frozen=True)
class Sale:
    """Sale domain entity."""

    id: int
    client_name: str
    destination: Optional[str]
    total_price: Decimal
    net_cost: Decimal
    payment_type: PaymentType
    down_payment: Decimal
    installment_count: int
    frequency: PaymentFrequency
    sale_date: date
    status: SaleStatus
    supplier_id: Optional[int]
    supplier_deadline: Optional[date]
    created_at: datetime
    items: tuple[SaleItem, ...] = ()


@dataclass(frozen=True)
class PlannedInstallment:
    """Installment produced by the planner, before it is stored."""

    payment_number: int
    due_date: date
    amount: Decimal


@dataclass(frozen=True)
class Installment:
    """Stored installment of a sale's payment plan."""

    id: int
    sale_id: int
    payment_number: int
    due_date: date
    amount: Decimal
    paid_amount: Decimal
    status: InstallmentStatus
    paid_date: Optional[date]
    notes: Optional[str] = None

    @property
    def pending_amount(self) -> Decimal:
        return max(self.amount - self.paid_amount, Decimal("0.00"))


@dataclass(frozen=True)
class InstallmentAllocation:
    """Portion of one installment payment applied to one installment."""

    id: int
    transaction_id: int
    installment_id: int
    amount: Decimal
    previous_paid_date: Optional[date]


@dataclass(frozen=True)
class SupplierPayment:
    """Payment from a bank account to a supplier for a sale."""

    id: int
    supplier_id: int
    sale_id: int
    bank_account_id: int
    bank_transaction_id: Optional[int]
    amount: Decimal
    date: date
    notes: Optional[str]
    status: RecordStatus
    created_at: datetime


@dataclass(frozen=True)
class Page:
    """One page of a paginated listing."""

    items: tuple
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


@dataclass(frozen=True)
class BalanceCheck:
    """Stored balance compared with the balance recomputed from the ledger."""

    account_id: int
    stored: Decimal
    computed: Decimal

    @property
    def is_consistent(self) -> bool:
        return self.stored == self.computed


@dataclass(frozen=True)
class InstallmentView:
    """Installment with its status derived for a given day."""

    installment: Installment
    status: InstallmentStatus

    @property
    def pending_amount(self) -> Decimal:
        return self.installment.pending_amount


@dataclass(frozen=True)
class PlanSummary:
    """Totals of a sale's payment plan."""

    sale_id: int
    total_price: Decimal
    down_payment: Decimal
    total_paid: Decimal
    remaining: Decimal
    overdue_count: int
    next_due: Optional[Installment]


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of registering an installment payment."""

    transaction: BankTransaction
    updated_installments: tuple[Installment, ...]
    allocations: tuple[InstallmentAllocation, ...]
    remaining: Decimal


@dataclass(frozen=True)
class PaymentRecord:
    """Installment payment with its per-installment breakdown."""

    transaction: BankTransaction
    allocations: tuple[InstallmentAllocation, ...]


@dataclass(frozen=True)
class SaleDebt:
    """What one sale owes one supplier."""

    sale: Sale
    supplier_id: int
    debt: Decimal
    paid: Decimal
    remaining: Decimal
    deadline: Optional[date]
    days_until_deadline: Optional[int]
    traffic_light: TrafficLight
    payments: tuple[SupplierPayment, ...] = ()


@dataclass(frozen=True)
class DebtTotals:
    """Debt, paid and remaining totals."""

    total_debt: Decimal = Decimal("0.00")
    total_paid: Decimal = Decimal("0.00")
    total_remaining: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class SupplierDebtSummary:
    """Aggregated debt for one supplier."""

    supplier: Supplier
    totals: DebtTotals
    sales_count: int
    overdue_count: int


@dataclass(frozen=True)
class DebtOverview:
    """All suppliers with debt plus global totals."""

    suppliers: tuple[SupplierDebtSummary, ...]
    totals: DebtTotals


@dataclass(frozen=True)
class SupplierStatement:
    """Per-sale debt rows for one supplier."""

    supplier: Supplier
    sales: tuple[SaleDebt, ...]
    totals: DebtTotals = field(default_factory=DebtTotals)
