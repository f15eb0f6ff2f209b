"""Installment plan generation and status derivation.

Everything here is pure: no database access, no clock reads.
"""

from datetime import date
from decimal import Decimal

from agencyledger.domain.entities import (
    Installment,
    InstallmentStatus,
    PaymentFrequency,
    PaymentType,
    PlannedInstallment,
)
from agencyledger.domain.errors import ValidationError
from agencyledger.utils.money import to_money, split_with_remainder
from agencyledger.utils.schedule import quincenal_date, month_end_after

MIN_INSTALLMENTS = 1
MAX_INSTALLMENTS = 24


def validate_plan_terms(total_price: Decimal, down_payment: Decimal, installment_count: int) -> None:
    """Check price, down payment and count for a credit plan.

    Raises:
        ValidationError: If total <= 0, down payment is negative or not below
            the total, or the count is outside [1, 24]
    """
    if total_price <= 0:
        raise ValidationError("Total price must be greater than 0")
    if down_payment < 0:
        raise ValidationError("Down payment must not be negative")
    if down_payment >= total_price:
        raise ValidationError(
            f"Down payment ({down_payment:,.2f}) must be less than the total price ({total_price:,.2f})"
        )
    if not MIN_INSTALLMENTS <= installment_count <= MAX_INSTALLMENTS:
        raise ValidationError(
            f"Installment count must be between {MIN_INSTALLMENTS} and {MAX_INSTALLMENTS} "
            f"(got {installment_count})"
        )


def due_date_for(frequency: PaymentFrequency, start_date: date, payment_number: int) -> date:
    """Due date of the 1-based payment_number-th installment."""
    if frequency == PaymentFrequency.MENSUAL:
        return month_end_after(start_date, payment_number - 1)
    return quincenal_date(start_date, payment_number)


def generate_plan(
    total_price: Decimal,
    down_payment: Decimal,
    installment_count: int,
    frequency: PaymentFrequency,
    start_date: date,
    payment_type: PaymentType = PaymentType.CREDIT,
) -> list[PlannedInstallment]:
    """Generate the installments of a credit sale.

    The amount left after the down payment is split into equal amounts
    floored to whole currency units; the last installment absorbs the
    remainder, so the amounts always add up to total_price - down_payment.

    Args:
        total_price: Sale total
        down_payment: Amount paid up front
        installment_count: Number of installments (1..24)
        frequency: QUINCENAL (15th / month end) or MENSUAL (month end)
        start_date: Reference date the due dates are stepped from
        payment_type: CASH sales have no plan

    Returns:
        Planned installments ordered by payment number

    Raises:
        ValidationError: If the plan terms are invalid
    """
    if PaymentType(payment_type) == PaymentType.CASH:
        return []

    total_price = to_money(total_price)
    down_payment = to_money(down_payment)
    validate_plan_terms(total_price, down_payment, installment_count)

    amounts = split_with_remainder(total_price - down_payment, installment_count)
    frequency = PaymentFrequency(frequency)
    return [
        PlannedInstallment(
            payment_number=number,
            due_date=due_date_for(frequency, start_date, number),
            amount=amount,
        )
        for number, amount in enumerate(amounts, start=1)
    ]


def derive_status(installment: Installment, today: date) -> InstallmentStatus:
    """PAID when fully paid, OVERDUE when unpaid past its due date, else PENDING."""
    if installment.paid_amount >= installment.amount:
        return InstallmentStatus.PAID
    if installment.due_date < today:
        return InstallmentStatus.OVERDUE
    return InstallmentStatus.PENDING
