"""Utility for resolving account references to IDs."""

from agencyledger.domain.account import AccountService
from agencyledger.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account reference name or ID to an account ID.

    Archived accounts resolve too; services decide what may be done with them.

    Args:
        account_service: AccountService instance
        account: Reference name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise NotFoundError(f"Account ID {account} not found")
        return account

    # Try to parse as integer (handles string IDs like "1")
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None
    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    account_obj = account_service.get_account_by_reference(account.strip())
    if account_obj is None:
        raise NotFoundError(f"Account '{account}' not found")
    return account_obj.id
