from decimal import Decimal
from typing import Dict, Iterator, Optional, Tuple

from errors import DuplicateTransactionError
from models import ClientAccount, LedgerEntry


class AccountStore:
    """
    Client accounts keyed by client id.
    Accounts are created on first reference and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def __iter__(self) -> Iterator[Tuple[int, ClientAccount]]:
        return iter(self._accounts.items())

    def __len__(self) -> int:
        return len(self._accounts)


class LedgerIndex:
    """
    Applied deposits keyed by transaction id, for dispute lookups.
    Transaction ids are unique across all clients.
    """

    def __init__(self):
        self._entries: Dict[int, LedgerEntry] = {}

    def record_deposit(self, transaction_id: int, client_id: int, amount: Decimal) -> LedgerEntry:
        """Store a deposit. Raises DuplicateTransactionError if the id is taken."""
        if transaction_id in self._entries:
            raise DuplicateTransactionError(transaction_id)
        entry = LedgerEntry(client_id=client_id, amount=amount)
        self._entries[transaction_id] = entry
        return entry

    def lookup(self, transaction_id: int) -> Optional[LedgerEntry]:
        """Retrieve stored deposit by ID. The returned entry is live, not a copy."""
        return self._entries.get(transaction_id)

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
