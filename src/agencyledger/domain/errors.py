"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only care about rejected input.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Operation conflicts with the current state (already cancelled, superseded, overpaid)."""


class InvariantViolation(RuntimeError):
    """A balance mutation did not land as expected.

    Raised inside a unit of work so the whole operation is rolled back.
    """


def account_not_found(account_id: int) -> str:
    """Return message for missing bank account."""
    return f"Bank account {account_id} not found"


def account_archived(account_id: int) -> str:
    """Return message for operations on an archived account."""
    return f"Bank account {account_id} is archived"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Transaction {transaction_id} not found"


def transaction_already_cancelled(transaction_id: int) -> str:
    """Return message for a second cancellation attempt."""
    return f"Transaction {transaction_id} is already cancelled"


def sale_not_found(sale_id: int) -> str:
    """Return message for missing sale."""
    return f"Sale {sale_id} not found"


def installment_not_found(installment_id: int) -> str:
    """Return message for missing installment."""
    return f"Installment {installment_id} not found"


def supplier_not_found(supplier_id: int) -> str:
    """Return message for missing supplier."""
    return f"Supplier {supplier_id} not found"


def supplier_payment_not_found(payment_id: int) -> str:
    """Return message for missing supplier payment."""
    return f"Supplier payment {payment_id} not found"


def non_positive_amount(amount) -> str:
    """Return message for amounts that must be strictly positive."""
    return f"Amount must be greater than 0 (got {amount})"


def amount_exceeds_remaining(amount, remaining) -> str:
    """Return message when a payment is larger than the outstanding debt."""
    return f"Amount {amount:,.2f} exceeds the remaining debt ({remaining:,.2f})"
