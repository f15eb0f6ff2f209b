"""Sale domain service."""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from agencyledger.database.base import Database
from agencyledger.domain.entities import (
    InstallmentStatus,
    InstallmentView,
    PaymentFrequency,
    PaymentType,
    PlanSummary,
    Sale,
    SaleItemInput,
    SaleStatus,
    TransactionKind,
)
from agencyledger.domain.errors import (
    NotFoundError,
    ValidationError,
    sale_not_found,
    supplier_not_found,
)
from agencyledger.domain.installments import derive_status, generate_plan
from agencyledger.domain.ledger import LedgerService
from agencyledger.logging_config import log_audit
from agencyledger.utils.money import ZERO, money_sum, to_money


class SaleService:
    """Service for recording sales and reading their payment plans."""

    def __init__(self, db: Database):
        """Initialize sale service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)

    def create_sale(
        self,
        client_name: str,
        total_price: Decimal,
        payment_type: PaymentType,
        destination: Optional[str] = None,
        down_payment: Decimal = ZERO,
        installment_count: int = 1,
        frequency: PaymentFrequency = PaymentFrequency.QUINCENAL,
        start_date: Optional[date] = None,
        sale_date: Optional[date] = None,
        net_cost: Optional[Decimal] = None,
        items: Iterable[SaleItemInput] = (),
        supplier_id: Optional[int] = None,
        supplier_deadline: Optional[date] = None,
        bank_account_id: Optional[int] = None,
    ) -> int:
        """Record a sale, its service items and, for credit sales, its payment plan.

        When a bank account is given, the money received at sale time (the
        down payment, or the full price of a cash sale) is booked as income
        on that account in the same unit of work.

        Args:
            client_name: Client the sale belongs to
            total_price: Price charged to the client
            payment_type: CASH or CREDIT
            destination: Optional destination / package label
            down_payment: Amount paid up front (credit sales)
            installment_count: Number of installments (credit sales)
            frequency: Installment cadence (credit sales)
            start_date: Date the due dates are stepped from (defaults to sale date)
            sale_date: Date of the sale (defaults to today)
            net_cost: Cost owed to suppliers when no items are given
            items: Service items, each optionally owed to a supplier
            supplier_id: Sale-level supplier
            supplier_deadline: Deadline to pay the sale-level supplier
            bank_account_id: Account receiving the money paid at sale time

        Returns:
            Sale ID

        Raises:
            ValidationError: If prices or plan terms are invalid
            NotFoundError: If a referenced supplier or account does not exist
        """
        if not client_name or not client_name.strip():
            raise ValidationError("Client name is required")
        payment_type = PaymentType(payment_type)
        frequency = PaymentFrequency(frequency)
        total_price = to_money(total_price)
        down_payment = to_money(down_payment)
        sale_date = sale_date or date.today()
        items = list(items)

        if total_price <= 0:
            raise ValidationError("Total price must be greater than 0")
        if down_payment < 0:
            raise ValidationError("Down payment must not be negative")

        plan = generate_plan(
            total_price=total_price,
            down_payment=down_payment,
            installment_count=installment_count,
            frequency=frequency,
            start_date=start_date or sale_date,
            payment_type=payment_type,
        )
        if payment_type == PaymentType.CASH:
            # Cash sales are paid in full: no plan, no down payment split
            down_payment = ZERO
            installment_count = 0

        for item in items:
            if to_money(item.cost) < 0:
                raise ValidationError(f"Item '{item.description}' has a negative cost")
        if items:
            net_cost = money_sum(to_money(item.cost) for item in items)
        net_cost = to_money(net_cost) if net_cost is not None else ZERO
        if net_cost < 0:
            raise ValidationError("Net cost must not be negative")

        supplier_ids = {item.supplier_id for item in items if item.supplier_id is not None}
        if supplier_id is not None:
            supplier_ids.add(supplier_id)
        for referenced in supplier_ids:
            if self.db.get_supplier(referenced) is None:
                raise NotFoundError(supplier_not_found(referenced))

        with self.db.unit_of_work():
            sale_id = self.db.create_sale(
                client_name=client_name.strip(),
                destination=destination,
                total_price=total_price,
                net_cost=net_cost,
                payment_type=payment_type,
                down_payment=down_payment,
                installment_count=installment_count,
                frequency=frequency,
                sale_date=sale_date,
                status=SaleStatus.COMPLETED if payment_type == PaymentType.CASH else SaleStatus.ACTIVE,
                supplier_id=supplier_id,
                supplier_deadline=supplier_deadline,
            )
            for item in items:
                self.db.add_sale_item(
                    sale_id=sale_id,
                    description=item.description,
                    cost=to_money(item.cost),
                    supplier_id=item.supplier_id,
                    supplier_deadline=item.supplier_deadline,
                )
            for planned in plan:
                self.db.create_installment(
                    sale_id=sale_id,
                    payment_number=planned.payment_number,
                    due_date=planned.due_date,
                    amount=planned.amount,
                )
            received_now = total_price if payment_type == PaymentType.CASH else down_payment
            if bank_account_id is not None and received_now > 0:
                label = "Cash sale" if payment_type == PaymentType.CASH else "Down payment"
                self.ledger.post(
                    TransactionKind.INCOME,
                    bank_account_id,
                    received_now,
                    description=f"{label} - {client_name.strip()}"
                    + (f" - {destination}" if destination else ""),
                    reference=f"Sale {sale_id}",
                    txn_date=sale_date,
                    sale_id=sale_id,
                )

        log_audit(
            "CREATE",
            "sales",
            sale_id,
            payment_type=payment_type.value,
            total_price=total_price,
            down_payment=down_payment,
            installments=len(plan),
        )
        return sale_id

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID."""
        return self.db.get_sale(sale_id)

    def require_sale(self, sale_id: int) -> Sale:
        """Get sale by ID or raise NotFoundError."""
        sale = self.db.get_sale(sale_id)
        if sale is None:
            raise NotFoundError(sale_not_found(sale_id))
        return sale

    def list_sales(self, statuses: Optional[Iterable[SaleStatus]] = None) -> list[Sale]:
        """List sales newest first."""
        return self.db.list_sales(statuses=statuses)

    def list_installments(self, sale_id: int, today: Optional[date] = None) -> list[InstallmentView]:
        """List a sale's installments with their status derived for today."""
        self.require_sale(sale_id)
        today = today or date.today()
        return [
            InstallmentView(installment=installment, status=derive_status(installment, today))
            for installment in self.db.list_installments(sale_id)
        ]

    def plan_summary(self, sale_id: int, today: Optional[date] = None) -> PlanSummary:
        """Totals of a sale's plan. Total paid includes the down payment."""
        sale = self.require_sale(sale_id)
        views = self.list_installments(sale_id, today=today)
        if sale.payment_type == PaymentType.CASH:
            return PlanSummary(
                sale_id=sale_id,
                total_price=sale.total_price,
                down_payment=ZERO,
                total_paid=sale.total_price,
                remaining=ZERO,
                overdue_count=0,
                next_due=None,
            )

        paid = money_sum(view.installment.paid_amount for view in views)
        remaining = money_sum(view.pending_amount for view in views)
        next_due = next(
            (view.installment for view in views if view.status != InstallmentStatus.PAID), None
        )
        return PlanSummary(
            sale_id=sale_id,
            total_price=sale.total_price,
            down_payment=sale.down_payment,
            total_paid=sale.down_payment + paid,
            remaining=remaining,
            overdue_count=sum(1 for view in views if view.status == InstallmentStatus.OVERDUE),
            next_due=next_due,
        )
