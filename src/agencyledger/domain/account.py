"""Bank account domain service."""

from decimal import Decimal
from typing import Optional

from agencyledger.database.base import Database
from agencyledger.domain.entities import AccountType, BankAccount
from agencyledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
)
from agencyledger.domain.ledger import LedgerService
from agencyledger.logging_config import log_audit
from agencyledger.utils.money import to_money


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)

    def create_account(
        self,
        bank_name: str,
        reference_name: str,
        account_type: AccountType = AccountType.DEBIT,
        initial_balance: Decimal = Decimal("0.00"),
    ) -> int:
        """Create a new bank account.

        Args:
            bank_name: Bank name
            reference_name: Label the agency uses for the account (unique)
            account_type: DEBIT, CREDIT or SAVINGS
            initial_balance: Opening balance; the current balance starts here

        Returns:
            Account ID

        Raises:
            ValidationError: If a name is empty
            ConflictError: If the reference name already exists
        """
        if not bank_name or not bank_name.strip():
            raise ValidationError("Bank name is required")
        if not reference_name or not reference_name.strip():
            raise ValidationError("Reference name is required")
        if self.db.get_account_by_reference(reference_name.strip()) is not None:
            raise ConflictError(f"Account with reference '{reference_name}' already exists")

        account_id = self.db.create_account(
            bank_name=bank_name.strip(),
            reference_name=reference_name.strip(),
            account_type=AccountType(account_type),
            initial_balance=to_money(initial_balance),
        )
        log_audit("CREATE", "bank_accounts", account_id, initial_balance=to_money(initial_balance))
        return account_id

    def get_account(self, account_id: int) -> Optional[BankAccount]:
        """Get account by ID."""
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> BankAccount:
        """Get account by ID or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def get_account_by_reference(self, reference_name: str) -> Optional[BankAccount]:
        """Get account by reference name."""
        return self.db.get_account_by_reference(reference_name)

    def list_accounts(
        self, include_archived: bool = False, search: Optional[str] = None
    ) -> list[BankAccount]:
        """List accounts with their current balances."""
        return self.db.list_accounts(include_archived=include_archived, search=search)

    def edit_account(
        self,
        account_id: int,
        bank_name: Optional[str] = None,
        reference_name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
    ) -> None:
        """Edit descriptive fields. Balances only change through the ledger.

        Raises:
            NotFoundError: If the account does not exist
            ConflictError: If the new reference name is taken
        """
        self.require_account(account_id)
        if reference_name is not None:
            reference_name = reference_name.strip()
            if not reference_name:
                raise ValidationError("Reference name is required")
            existing = self.db.get_account_by_reference(reference_name)
            if existing is not None and existing.id != account_id:
                raise ConflictError(f"Account with reference '{reference_name}' already exists")

        self.db.update_account(
            account_id=account_id,
            bank_name=bank_name,
            reference_name=reference_name,
            account_type=account_type,
        )
        log_audit(
            "UPDATE",
            "bank_accounts",
            account_id,
            bank_name=bank_name,
            reference_name=reference_name,
            account_type=account_type.value if account_type else None,
        )

    def archive_account(
        self, account_id: int, transfer_to_account_id: Optional[int] = None
    ) -> BankAccount:
        """Archive an account, moving any positive balance out first.

        The account is never deleted: its transactions stay in the ledger.

        Args:
            account_id: Account to archive
            transfer_to_account_id: Account that receives the remaining balance
                (required when the balance is positive)

        Returns:
            The archived account

        Raises:
            NotFoundError: If either account does not exist
            ConflictError: If the account is already archived
            ValidationError: If a transfer target is needed but missing or invalid,
                or the balance is negative
        """
        transfer = None
        with self.db.unit_of_work():
            account = self.db.get_account(account_id, for_update=True)
            if account is None:
                raise NotFoundError(account_not_found(account_id))
            if account.is_archived:
                raise ConflictError(f"Bank account {account_id} is already archived")

            balance = account.current_balance
            if balance < 0:
                raise ValidationError(
                    f"Account '{account.reference_name}' has a negative balance ({balance:,.2f}); "
                    "settle it before archiving"
                )
            if balance > 0:
                if transfer_to_account_id is None:
                    raise ValidationError(
                        f"Account '{account.reference_name}' still holds {balance:,.2f}; "
                        "choose an account to transfer it to"
                    )
                transfer = self.ledger.post_transfer(
                    source_id=account_id,
                    destination_id=transfer_to_account_id,
                    amount=balance,
                    description=f"Balance transfer on archiving account {account.reference_name}",
                )

            self.db.archive_account(account_id)
            archived = self.db.get_account(account_id)

        if transfer is not None:
            log_audit(
                "CREATE",
                "bank_transactions",
                transfer.id,
                kind=transfer.kind.value,
                account_id=account_id,
                destination_account_id=transfer_to_account_id,
                amount=transfer.amount,
            )
        log_audit(
            "ARCHIVE",
            "bank_accounts",
            account_id,
            transferred=balance,
            transfer_to_account_id=transfer_to_account_id,
        )
        return archived
