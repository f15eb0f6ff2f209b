"""Installment payments: waterfall allocation, registration and reversal."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from agencyledger.database.base import Database
from agencyledger.domain.entities import (
    BankTransaction,
    Installment,
    InstallmentStatus,
    PaymentRecord,
    PaymentResult,
    PaymentType,
    RecordStatus,
    SaleStatus,
    TransactionKind,
)
from agencyledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    amount_exceeds_remaining,
    installment_not_found,
    sale_not_found,
    transaction_already_cancelled,
    transaction_not_found,
)
from agencyledger.domain.ledger import LedgerService, validate_amount
from agencyledger.logging_config import log_audit
from agencyledger.utils.money import money_sum

logger = logging.getLogger(__name__)


def allocate(
    installments: Sequence[Installment], start_installment_id: int, amount: Decimal
) -> list[tuple[int, Decimal]]:
    """Spread a payment over a plan, starting at the chosen installment.

    Installments are visited in ascending payment number from the target
    onward, then wrapping to the earlier ones. Fully paid installments are
    skipped; each visited one takes min(left, pending).

    Args:
        installments: The sale's installments
        start_installment_id: Installment the client chose to pay
        amount: Payment amount

    Returns:
        (installment_id, applied) pairs in application order. Whatever the
        plan cannot absorb is simply not allocated; callers check the total.
    """
    ordered = sorted(installments, key=lambda i: i.payment_number)
    start = next(
        (index for index, installment in enumerate(ordered) if installment.id == start_installment_id),
        None,
    )
    if start is None:
        raise NotFoundError(installment_not_found(start_installment_id))

    applied = []
    left = amount
    for installment in ordered[start:] + ordered[:start]:
        if left <= 0:
            break
        pending = installment.pending_amount
        if pending <= 0:
            continue
        portion = min(left, pending)
        applied.append((installment.id, portion))
        left -= portion
    return applied


def _stored_status(paid_amount: Decimal, amount: Decimal) -> InstallmentStatus:
    return InstallmentStatus.PAID if paid_amount >= amount else InstallmentStatus.PENDING


class PaymentAllocator:
    """Applies client payments to installment plans and reverses them."""

    def __init__(self, db: Database):
        """Initialize payment allocator.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)

    def register_payment(
        self,
        installment_id: int,
        amount: Decimal,
        bank_account_id: int,
        notes: Optional[str] = None,
        payment_date: Optional[date] = None,
    ) -> PaymentResult:
        """Register a client payment against a sale's plan.

        The payment starts at the given installment and cascades into the
        next ones. Installment updates, the INCOME transaction and the
        allocation rows are written in one unit of work.

        Args:
            installment_id: Installment the payment is made for
            amount: Amount received
            bank_account_id: Account the money is deposited into
            notes: Optional note stored on the touched installments
            payment_date: Date of the payment (defaults to today)

        Returns:
            PaymentResult with the transaction, updated installments,
            allocations and the plan's remaining amount

        Raises:
            ValidationError: If amount <= 0, the sale is not a credit sale or
                the account is archived
            NotFoundError: If the installment or account does not exist
            ConflictError: If amount exceeds what the plan still owes
        """
        amount = validate_amount(amount)
        payment_date = payment_date or date.today()

        with self.db.unit_of_work():
            target = self.db.get_installment(installment_id)
            if target is None:
                raise NotFoundError(installment_not_found(installment_id))
            sale = self.db.get_sale(target.sale_id)
            if sale is None:
                raise NotFoundError(sale_not_found(target.sale_id))
            if sale.payment_type != PaymentType.CREDIT:
                raise ValidationError(f"Sale {sale.id} is not a credit sale")

            installments = self.db.list_installments(sale.id, for_update=True)
            remaining = money_sum(i.pending_amount for i in installments)
            if amount > remaining:
                raise ConflictError(amount_exceeds_remaining(amount, remaining))

            by_id = {i.id: i for i in installments}
            plan = allocate(installments, installment_id, amount)
            logger.debug("Allocating payment of %s over %d installments", amount, len(plan))
            for touched_id, portion in plan:
                installment = by_id[touched_id]
                paid = installment.paid_amount + portion
                status = _stored_status(paid, installment.amount)
                self.db.update_installment_payment(
                    installment_id=touched_id,
                    paid_amount=paid,
                    status=status,
                    paid_date=payment_date if status == InstallmentStatus.PAID else installment.paid_date,
                    notes=notes,
                )

            transaction = self.ledger.post(
                TransactionKind.INCOME,
                bank_account_id,
                amount,
                description=f"Installment payment - {sale.client_name}",
                reference=f"Sale {sale.id}",
                txn_date=payment_date,
                sale_id=sale.id,
            )
            for touched_id, portion in plan:
                self.db.create_allocation(
                    transaction_id=transaction.id,
                    installment_id=touched_id,
                    amount=portion,
                    previous_paid_date=by_id[touched_id].paid_date,
                )

            updated = self.db.list_installments(sale.id)
            left = money_sum(i.pending_amount for i in updated)
            # 0.00 installments stay PENDING; completion follows the amount owed
            if left <= 0:
                self.db.update_sale_status(sale.id, SaleStatus.COMPLETED)
            allocations = self.db.list_allocations(transaction.id)

        log_audit(
            "PAYMENT",
            "sales",
            sale.id,
            transaction_id=transaction.id,
            amount=amount,
            installment_ids=",".join(str(touched_id) for touched_id, _ in plan),
        )
        touched = {touched_id for touched_id, _ in plan}
        return PaymentResult(
            transaction=transaction,
            updated_installments=tuple(i for i in updated if i.id in touched),
            allocations=tuple(allocations),
            remaining=left,
        )

    def cancel_payment(self, transaction_id: int) -> BankTransaction:
        """Reverse an installment payment by replaying its stored allocations.

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If it is not an installment payment
            ConflictError: If it is already cancelled or a later active
                payment touched the same installments
        """
        with self.db.unit_of_work():
            transaction = self.db.get_transaction(transaction_id, for_update=True)
            if transaction is None:
                raise NotFoundError(transaction_not_found(transaction_id))
            allocations = self.db.list_allocations(transaction_id)
            if not allocations:
                raise ValidationError(f"Transaction {transaction_id} is not an installment payment")
            if transaction.status == RecordStatus.CANCELLED:
                raise ConflictError(transaction_already_cancelled(transaction_id))

            touched_ids = [a.installment_id for a in allocations]
            later = [
                a
                for a in self.db.list_active_allocations_for_installments(touched_ids)
                if a.transaction_id > transaction_id
            ]
            if later:
                raise ConflictError(
                    f"Payment {transaction_id} was followed by payment {later[0].transaction_id} "
                    "on the same installments; cancel that one first"
                )

            sale_id = transaction.sale_id
            current = {i.id: i for i in self.db.list_installments(sale_id, for_update=True)}
            for allocation in allocations:
                installment = current[allocation.installment_id]
                paid = installment.paid_amount - allocation.amount
                status = _stored_status(paid, installment.amount)
                self.db.update_installment_payment(
                    installment_id=installment.id,
                    paid_amount=paid,
                    status=status,
                    paid_date=installment.paid_date if status == InstallmentStatus.PAID else allocation.previous_paid_date,
                )

            cancelled = self.ledger.reverse(transaction_id)
            sale = self.db.get_sale(sale_id)
            if sale.status == SaleStatus.COMPLETED:
                self.db.update_sale_status(sale_id, SaleStatus.ACTIVE)

        log_audit(
            "CANCEL_PAYMENT",
            "sales",
            sale_id,
            transaction_id=transaction_id,
            amount=cancelled.amount,
        )
        return cancelled

    def list_payments(self, sale_id: int) -> list[PaymentRecord]:
        """A sale's installment payments, each with its per-installment breakdown."""
        if self.db.get_sale(sale_id) is None:
            raise NotFoundError(sale_not_found(sale_id))
        return [
            PaymentRecord(
                transaction=transaction,
                allocations=tuple(self.db.list_allocations(transaction.id)),
            )
            for transaction in self.db.list_payment_transactions(sale_id)
        ]

