"""Supplier domain service: suppliers, per-sale debts and supplier payments."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from agencyledger.config import DEFAULT_DEADLINE_WARNING_DAYS, load_settings
from agencyledger.database.base import Database
from agencyledger.domain.entities import (
    DebtOverview,
    DebtTotals,
    RecordStatus,
    Sale,
    SaleDebt,
    SaleStatus,
    Supplier,
    SupplierDebtSummary,
    SupplierPayment,
    SupplierStatement,
    TrafficLight,
    TransactionKind,
)
from agencyledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    amount_exceeds_remaining,
    sale_not_found,
    supplier_not_found,
    supplier_payment_not_found,
)
from agencyledger.domain.ledger import LedgerService, validate_amount
from agencyledger.logging_config import log_audit
from agencyledger.utils.money import ZERO, money_sum


def traffic_light(
    deadline: Optional[date], remaining: Decimal, today: date, threshold: int = DEFAULT_DEADLINE_WARNING_DAYS
) -> TrafficLight:
    """Classify a supplier debt by how close its deadline is.

    A settled debt is SETTLED whatever its deadline says.
    """
    if remaining <= 0:
        return TrafficLight.SETTLED
    if deadline is None:
        return TrafficLight.GRAY
    days = (deadline - today).days
    if days < 0:
        return TrafficLight.RED
    if days <= threshold:
        return TrafficLight.YELLOW
    return TrafficLight.GREEN


def sale_supplier_debts(sale: Sale) -> dict[int, tuple[Decimal, Optional[date]]]:
    """What a sale owes each supplier, with the earliest deadline per supplier.

    Item costs are grouped by supplier. A sale with no supplier items but a
    sale-level supplier owes that supplier its net cost.
    """
    costs = defaultdict(list)
    deadlines = defaultdict(list)
    for item in sale.items:
        if item.supplier_id is None:
            continue
        costs[item.supplier_id].append(item.cost)
        if item.supplier_deadline is not None:
            deadlines[item.supplier_id].append(item.supplier_deadline)

    debts = {}
    for supplier_id, item_costs in costs.items():
        deadline = min(deadlines[supplier_id]) if deadlines[supplier_id] else sale.supplier_deadline
        debts[supplier_id] = (money_sum(item_costs), deadline)

    if not debts and sale.supplier_id is not None and sale.net_cost > 0:
        debts[sale.supplier_id] = (sale.net_cost, sale.supplier_deadline)
    return debts


class SupplierDebtService:
    """Service for suppliers and what the agency owes them."""

    def __init__(self, db: Database, warning_days: Optional[int] = None):
        """Initialize supplier debt service.

        Args:
            db: Database instance
            warning_days: Days before a deadline that turn a debt yellow
                (defaults to AGENCYLEDGER_DEADLINE_WARNING_DAYS)
        """
        self.db = db
        self.ledger = LedgerService(db)
        if warning_days is None:
            warning_days = load_settings().deadline_warning_days
        self.warning_days = warning_days

    def create_supplier(
        self, name: str, phone: Optional[str] = None, service_type: Optional[str] = None
    ) -> int:
        """Create a supplier.

        Raises:
            ValidationError: If name is empty
            ConflictError: If a supplier with that name exists
        """
        if not name or not name.strip():
            raise ValidationError("Supplier name is required")
        if self.db.get_supplier_by_name(name.strip()) is not None:
            raise ConflictError(f"Supplier '{name.strip()}' already exists")
        supplier_id = self.db.create_supplier(
            name=name.strip(), phone=phone, service_type=service_type
        )
        log_audit("CREATE", "suppliers", supplier_id, name=name.strip())
        return supplier_id

    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        """Get supplier by ID."""
        return self.db.get_supplier(supplier_id)

    def get_supplier_by_name(self, name: str) -> Optional[Supplier]:
        """Get supplier by name."""
        return self.db.get_supplier_by_name(name)

    def require_supplier(self, supplier_id: int) -> Supplier:
        """Get supplier by ID or raise NotFoundError."""
        supplier = self.db.get_supplier(supplier_id)
        if supplier is None:
            raise NotFoundError(supplier_not_found(supplier_id))
        return supplier

    def list_suppliers(self) -> list[Supplier]:
        """List all suppliers."""
        return self.db.list_suppliers()

    def _sale_debt(self, sale: Sale, supplier_id: int, debt: Decimal, deadline: Optional[date], today: date) -> SaleDebt:
        payments = self.db.list_supplier_payments(
            sale_id=sale.id, supplier_id=supplier_id, status=RecordStatus.ACTIVE
        )
        paid = money_sum(p.amount for p in payments)
        remaining = max(debt - paid, ZERO)
        return SaleDebt(
            sale=sale,
            supplier_id=supplier_id,
            debt=debt,
            paid=paid,
            remaining=remaining,
            deadline=deadline,
            days_until_deadline=(deadline - today).days if deadline is not None else None,
            traffic_light=traffic_light(deadline, remaining, today, self.warning_days),
            payments=tuple(payments),
        )

    def _all_sale_debts(self, today: date) -> list[SaleDebt]:
        rows = []
        for sale in self.db.list_sales(statuses=(SaleStatus.ACTIVE, SaleStatus.COMPLETED)):
            for supplier_id, (debt, deadline) in sale_supplier_debts(sale).items():
                rows.append(self._sale_debt(sale, supplier_id, debt, deadline, today))
        return rows

    def sale_debt(
        self, sale_id: int, supplier_id: int, today: Optional[date] = None, for_update: bool = False
    ) -> SaleDebt:
        """What one sale owes one supplier.

        With for_update the sale row stays locked until the enclosing unit of
        work ends, so concurrent payments for the sale see each other.

        Raises:
            NotFoundError: If the sale does not exist or owes nothing to the supplier
        """
        sale = self.db.get_sale(sale_id, for_update=for_update)
        if sale is None:
            raise NotFoundError(sale_not_found(sale_id))
        debts = sale_supplier_debts(sale)
        if supplier_id not in debts:
            raise NotFoundError(f"Sale {sale_id} has no debt with supplier {supplier_id}")
        debt, deadline = debts[supplier_id]
        return self._sale_debt(sale, supplier_id, debt, deadline, today or date.today())

    def list_supplier_debts(self, today: Optional[date] = None) -> DebtOverview:
        """Debt totals per supplier plus global totals.

        Returns:
            DebtOverview; suppliers ordered by name
        """
        today = today or date.today()
        grouped = defaultdict(list)
        for row in self._all_sale_debts(today):
            grouped[row.supplier_id].append(row)

        summaries = []
        for supplier_id, rows in grouped.items():
            supplier = self.db.get_supplier(supplier_id)
            if supplier is None:
                continue
            summaries.append(
                SupplierDebtSummary(
                    supplier=supplier,
                    totals=_totals(rows),
                    sales_count=len(rows),
                    overdue_count=sum(1 for r in rows if r.traffic_light == TrafficLight.RED),
                )
            )
        summaries.sort(key=lambda s: s.supplier.name)
        return DebtOverview(
            suppliers=tuple(summaries),
            totals=DebtTotals(
                total_debt=money_sum(s.totals.total_debt for s in summaries),
                total_paid=money_sum(s.totals.total_paid for s in summaries),
                total_remaining=money_sum(s.totals.total_remaining for s in summaries),
            ),
        )

    def list_supplier_sales(self, supplier_id: int, today: Optional[date] = None) -> SupplierStatement:
        """Per-sale debt rows for one supplier, most urgent deadline first."""
        supplier = self.require_supplier(supplier_id)
        rows = [
            row for row in self._all_sale_debts(today or date.today()) if row.supplier_id == supplier_id
        ]
        rows.sort(key=lambda r: (r.deadline is None, r.deadline or date.max, r.sale.id))
        return SupplierStatement(supplier=supplier, sales=tuple(rows), totals=_totals(rows))

    def register_payment(
        self,
        supplier_id: int,
        sale_id: int,
        bank_account_id: int,
        amount: Decimal,
        notes: Optional[str] = None,
        payment_date: Optional[date] = None,
    ) -> SupplierPayment:
        """Pay a supplier for a sale from a bank account.

        Args:
            supplier_id: Supplier being paid
            sale_id: Sale the payment is for
            bank_account_id: Account the money leaves
            amount: Amount paid
            notes: Optional note
            payment_date: Date of the payment (defaults to today)

        Returns:
            The created SupplierPayment

        Raises:
            ValidationError: If amount <= 0, funds are insufficient or the
                account is archived
            NotFoundError: If supplier, sale or account is missing, or the sale
                owes nothing to the supplier
            ConflictError: If amount exceeds the remaining debt
        """
        amount = validate_amount(amount)
        payment_date = payment_date or date.today()
        supplier = self.require_supplier(supplier_id)

        with self.db.unit_of_work():
            sale_debt = self.sale_debt(sale_id, supplier_id, today=payment_date, for_update=True)
            if amount > sale_debt.remaining:
                raise ConflictError(amount_exceeds_remaining(amount, sale_debt.remaining))

            account = self.db.get_account(bank_account_id, for_update=True)
            if account is None:
                raise NotFoundError(account_not_found(bank_account_id))
            if account.current_balance < amount:
                raise ValidationError(
                    f"Insufficient funds in '{account.reference_name}': "
                    f"balance {account.current_balance:,.2f}, payment {amount:,.2f}"
                )

            transaction = self.ledger.post(
                TransactionKind.EXPENSE,
                bank_account_id,
                amount,
                description=f"Supplier payment - {supplier.name} - {sale_debt.sale.client_name}",
                reference=f"Sale {sale_id}",
                txn_date=payment_date,
                sale_id=sale_id,
            )
            payment_id = self.db.create_supplier_payment(
                supplier_id=supplier_id,
                sale_id=sale_id,
                bank_account_id=bank_account_id,
                bank_transaction_id=transaction.id,
                amount=amount,
                date=payment_date,
                notes=notes,
            )
            payment = self.db.get_supplier_payment(payment_id)

        log_audit(
            "CREATE",
            "supplier_payments",
            payment_id,
            supplier_id=supplier_id,
            sale_id=sale_id,
            amount=amount,
            transaction_id=transaction.id,
        )
        return payment

    def cancel_payment(self, payment_id: int) -> SupplierPayment:
        """Cancel a supplier payment and restore the account balance.

        Raises:
            NotFoundError: If the payment does not exist
            ConflictError: If it is already cancelled
        """
        with self.db.unit_of_work():
            payment = self.db.get_supplier_payment(payment_id, for_update=True)
            if payment is None:
                raise NotFoundError(supplier_payment_not_found(payment_id))
            if payment.status == RecordStatus.CANCELLED:
                raise ConflictError(f"Supplier payment {payment_id} is already cancelled")

            self.db.set_supplier_payment_status(payment_id, RecordStatus.CANCELLED)
            if payment.bank_transaction_id is not None:
                self.ledger.reverse(payment.bank_transaction_id)
            cancelled = self.db.get_supplier_payment(payment_id)

        log_audit(
            "CANCEL",
            "supplier_payments",
            payment_id,
            amount=payment.amount,
            transaction_id=payment.bank_transaction_id,
        )
        return cancelled

    def list_payments(
        self, supplier_id: Optional[int] = None, sale_id: Optional[int] = None
    ) -> list[SupplierPayment]:
        """List supplier payments, cancelled ones included."""
        return self.db.list_supplier_payments(sale_id=sale_id, supplier_id=supplier_id)


def _totals(rows: list[SaleDebt]) -> DebtTotals:
    return DebtTotals(
        total_debt=money_sum(r.debt for r in rows),
        total_paid=money_sum(r.paid for r in rows),
        total_remaining=money_sum(r.remaining for r in rows),
    )
