"""Ledger domain service: bank balances under income, expense and transfer."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from agencyledger.database.base import Database
from agencyledger.domain.entities import (
    BankAccount,
    BankTransaction,
    BalanceCheck,
    Page,
    RecordStatus,
    TransactionKind,
)
from agencyledger.domain.errors import (
    ConflictError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
    account_archived,
    account_not_found,
    non_positive_amount,
    transaction_already_cancelled,
    transaction_not_found,
)
from agencyledger.logging_config import log_audit
from agencyledger.utils.money import to_money, money_sum

logger = logging.getLogger(__name__)


def _today() -> date:
    return date.today()


def validate_amount(amount: Decimal) -> Decimal:
    """Return amount as money, rejecting zero and negative values."""
    try:
        money = to_money(amount)
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e)) from e
    if money <= 0:
        raise ValidationError(non_positive_amount(amount))
    return money


class LedgerService:
    """Service that owns bank transactions and keeps account balances in step."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def _lock_open_account(self, account_id: int) -> BankAccount:
        account = self.db.get_account(account_id, for_update=True)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.is_archived:
            raise ValidationError(account_archived(account_id))
        return account

    def _move_balance(self, account: BankAccount, delta: Decimal) -> Decimal:
        """Apply delta to a locked account and check the write landed."""
        new_balance = self.db.adjust_account_balance(account.id, delta)
        if new_balance != account.current_balance + delta:
            raise InvariantViolation(
                f"Balance of account {account.id} is {new_balance}, "
                f"expected {account.current_balance + delta}"
            )
        return new_balance

    def post(
        self,
        kind: TransactionKind,
        account_id: int,
        amount: Decimal,
        description: str,
        reference: Optional[str] = None,
        txn_date: Optional[date] = None,
        sale_id: Optional[int] = None,
    ) -> BankTransaction:
        """Create an INCOME or EXPENSE and move the balance, joining the caller's unit of work.

        Services that record a payment of their own use this and write their
        own audit record.
        """
        if kind == TransactionKind.TRANSFER:
            raise ValidationError("Transfers are posted with apply_transfer")
        amount = validate_amount(amount)
        if not description or not description.strip():
            raise ValidationError("Description is required")

        with self.db.unit_of_work():
            account = self._lock_open_account(account_id)
            transaction_id = self.db.create_transaction(
                account_id=account_id,
                kind=kind,
                amount=amount,
                description=description.strip(),
                date=txn_date or _today(),
                reference=reference,
                sale_id=sale_id,
            )
            delta = amount if kind == TransactionKind.INCOME else -amount
            self._move_balance(account, delta)
            return self.db.get_transaction(transaction_id)

    def _apply_audited(self, kind: TransactionKind, account_id: int, amount: Decimal, **fields) -> BankTransaction:
        transaction = self.post(kind, account_id, amount, **fields)
        log_audit(
            "CREATE",
            "bank_transactions",
            transaction.id,
            kind=kind.value,
            account_id=account_id,
            amount=transaction.amount,
        )
        return transaction

    def apply_income(
        self,
        account_id: int,
        amount: Decimal,
        description: str,
        reference: Optional[str] = None,
        date: Optional[date] = None,
        sale_id: Optional[int] = None,
    ) -> BankTransaction:
        """Record money coming into an account.

        Raises:
            ValidationError: If amount <= 0, description is empty or the account is archived
            NotFoundError: If the account does not exist
        """
        return self._apply_audited(
            TransactionKind.INCOME,
            account_id,
            amount,
            description=description,
            reference=reference,
            txn_date=date,
            sale_id=sale_id,
        )

    def apply_expense(
        self,
        account_id: int,
        amount: Decimal,
        description: str,
        reference: Optional[str] = None,
        date: Optional[date] = None,
        sale_id: Optional[int] = None,
    ) -> BankTransaction:
        """Record money leaving an account.

        The balance may go negative: manual expenses are reported cash
        movements. Callers that pay down debt check funds themselves.
        """
        return self._apply_audited(
            TransactionKind.EXPENSE,
            account_id,
            amount,
            description=description,
            reference=reference,
            txn_date=date,
            sale_id=sale_id,
        )

    def apply_transfer(
        self,
        source_id: int,
        destination_id: int,
        amount: Decimal,
        description: str,
        reference: Optional[str] = None,
        date: Optional[date] = None,
    ) -> BankTransaction:
        """Move money between two accounts as a single transaction record.

        Raises:
            ValidationError: If amount <= 0, accounts are equal, missing destination
                or either account is archived
            NotFoundError: If either account does not exist
            InvariantViolation: If a balance leg did not land (the unit is rolled back)
        """
        transaction = self.post_transfer(
            source_id, destination_id, amount, description, reference=reference, txn_date=date
        )
        log_audit(
            "CREATE",
            "bank_transactions",
            transaction.id,
            kind=TransactionKind.TRANSFER.value,
            account_id=source_id,
            destination_account_id=destination_id,
            amount=transaction.amount,
        )
        return transaction

    def post_transfer(
        self,
        source_id: int,
        destination_id: int,
        amount: Decimal,
        description: str,
        reference: Optional[str] = None,
        txn_date: Optional[date] = None,
    ) -> BankTransaction:
        """Create a TRANSFER and move both balances, joining the caller's unit of work.

        Unaudited, like post.
        """
        amount = validate_amount(amount)
        if destination_id is None:
            raise ValidationError("A destination account is required for transfers")
        if source_id == destination_id:
            raise ValidationError("Destination account must be different from the source account")
        if not description or not description.strip():
            raise ValidationError("Description is required")

        with self.db.unit_of_work():
            # Lock in id order so two opposite transfers cannot deadlock
            locked = {
                account_id: self._lock_open_account(account_id)
                for account_id in sorted((source_id, destination_id))
            }
            transaction_id = self.db.create_transaction(
                account_id=source_id,
                kind=TransactionKind.TRANSFER,
                amount=amount,
                description=description.strip(),
                date=txn_date or _today(),
                reference=reference,
                destination_account_id=destination_id,
            )
            self._move_balance(locked[source_id], -amount)
            self._move_balance(locked[destination_id], amount)
            return self.db.get_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get transaction by ID."""
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> BankTransaction:
        """Get transaction by ID or raise NotFoundError."""
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def cancel(self, transaction_id: int) -> BankTransaction:
        """Cancel a manual transaction by applying its exact inverse.

        Transactions backing an installment payment or a supplier payment
        carry bookkeeping of their own and are cancelled through
        PaymentAllocator.cancel_payment / SupplierDebtService.cancel_payment.

        Raises:
            NotFoundError: If the transaction does not exist
            ConflictError: If it is already cancelled or backs a linked payment
        """
        with self.db.unit_of_work():
            transaction = self.require_transaction(transaction_id)
            if self.db.list_allocations(transaction_id):
                raise ConflictError(
                    f"Transaction {transaction_id} is an installment payment; "
                    "cancel it as a sale payment"
                )
            if self.db.get_supplier_payment_by_transaction(transaction_id) is not None:
                raise ConflictError(
                    f"Transaction {transaction_id} is a supplier payment; "
                    "cancel it as a supplier payment"
                )
            cancelled = self.reverse(transaction_id)

        log_audit(
            "CANCEL",
            "bank_transactions",
            transaction_id,
            kind=cancelled.kind.value,
            amount=cancelled.amount,
        )
        return cancelled

    def reverse(self, transaction_id: int) -> BankTransaction:
        """Undo a transaction's balance effect and mark it CANCELLED.

        Runs inside the caller's unit of work when there is one. Archived
        accounts are still corrected.

        Raises:
            NotFoundError: If the transaction does not exist
            ConflictError: If it is already cancelled
        """
        with self.db.unit_of_work():
            transaction = self.db.get_transaction(transaction_id, for_update=True)
            if transaction is None:
                raise NotFoundError(transaction_not_found(transaction_id))
            if transaction.status == RecordStatus.CANCELLED:
                raise ConflictError(transaction_already_cancelled(transaction_id))

            touched = [transaction.account_id]
            if transaction.destination_account_id is not None:
                touched.append(transaction.destination_account_id)
            for account_id in sorted(touched):
                account = self.db.get_account(account_id, for_update=True)
                if account is None:
                    raise InvariantViolation(account_not_found(account_id))
                self._move_balance(account, -transaction.effect_on(account_id))

            self.db.set_transaction_status(transaction_id, RecordStatus.CANCELLED)
            logger.debug("Reversed transaction %s", transaction_id)
            return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        account_id: Optional[int] = None,
        kind: Optional[TransactionKind] = None,
        status: Optional[RecordStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """List transactions newest first, one page at a time.

        Args:
            account_id: Only transactions touching this account
            kind: Optional kind filter
            status: Optional status filter
            start_date: Optional start date filter
            end_date: Optional end date filter
            search: Free text matched against description and reference
            page: 1-based page number
            limit: Page size

        Returns:
            Page of BankTransaction entities
        """
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if limit < 1:
            raise ValidationError("Limit must be at least 1")

        filters = dict(
            account_id=account_id,
            kind=kind,
            status=status,
            start_date=start_date,
            end_date=end_date,
            search=search.strip() if search else None,
        )
        total = self.db.count_transactions(**filters)
        items = self.db.list_transactions(**filters, offset=(page - 1) * limit, limit=limit)
        return Page(items=tuple(items), page=page, limit=limit, total=total)

    def ledger_balance(self, account_id: int) -> Decimal:
        """Recompute an account balance from its initial balance and ACTIVE transactions."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        transactions = self.db.list_transactions(account_id=account_id, status=RecordStatus.ACTIVE)
        return account.initial_balance + money_sum(t.effect_on(account_id) for t in transactions)

    def verify_balance(self, account_id: int) -> BalanceCheck:
        """Compare the stored balance with the recomputed one."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return BalanceCheck(
            account_id=account_id,
            stored=account.current_balance,
            computed=self.ledger_balance(account_id),
        )

    def reconcile_balance(self, account_id: int) -> BalanceCheck:
        """Overwrite the stored balance with the recomputed one.

        Returns:
            The check as it stood before the repair
        """
        with self.db.unit_of_work():
            self.db.get_account(account_id, for_update=True)
            check = self.verify_balance(account_id)
            if not check.is_consistent:
                self.db.set_account_balance(account_id, check.computed)

        if not check.is_consistent:
            logger.warning(
                "Balance drift repaired",
                extra={"account_id": account_id, "stored": str(check.stored), "computed": str(check.computed)},
            )
            log_audit("RECONCILE", "bank_accounts", account_id, stored=check.stored, computed=check.computed)
        return check
