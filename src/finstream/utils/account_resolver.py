"""Utility for resolving account names to IDs."""

from finstream.domain.account import AccountService
from finstream.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Archived accounts resolve too; posting rules decide what may use them.

    Args:
        account_service: AccountService instance
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    if isinstance(account, int):
        account_id = account
    elif account.strip().isdigit():
        account_id = int(account)
    else:
        found = account_service.find_by_name(account.strip())
        if found is None:
            raise NotFoundError(f"Account '{account}' not found")
        return found.id

    if account_service.get_account(account_id) is None:
        raise NotFoundError(f"Account ID {account_id} not found")
    return account_id
