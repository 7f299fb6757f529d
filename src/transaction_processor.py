import logging
from decimal import DecimalException
from typing import Optional, Union

from config import EngineConfig
from errors import (
    AccountLockedError,
    ClientMismatchError,
    DuplicateTransactionError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidDisputeStateError,
    TransactionNotFoundError,
)
from models import (
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    DisputeStatus,
    LedgerEntry,
    Resolve,
    Transaction,
    Withdrawal,
    is_amount_in_range,
)
from state_manager import AccountStore, LedgerIndex

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to an account store and ledger index.

    Each record is either applied in full or not at all. A record that cannot
    be applied raises a TransactionRejectedError (deposit/withdrawal failed
    validation) or a TransactionIgnoredError (dispute-type record with nothing
    to act on). Apart from creating the client's account on first
    reference, neither leaves any trace in the store or the index.
    """

    def __init__(self, accounts: AccountStore, ledger: LedgerIndex, config: Optional[EngineConfig] = None):
        self._accounts = accounts
        self._ledger = ledger
        self._config = config or EngineConfig()

    def process_transaction(self, transaction: Transaction) -> ClientAccount:
        """Apply a single transaction and return the affected account."""
        account = self._accounts.get_or_create_account(transaction.client_id)

        try:
            match transaction:
                case Deposit():
                    self._handle_deposit(account, transaction)
                case Withdrawal():
                    self._handle_withdrawal(account, transaction)
                case Dispute():
                    self._handle_dispute(account, transaction)
                case Resolve():
                    self._handle_resolve(account, transaction)
                case Chargeback():
                    self._handle_chargeback(account, transaction)
                case _:
                    raise TypeError(f"Unsupported transaction record: {transaction!r}")
        except DecimalException:
            # A balance outgrew exact 4-place arithmetic; the account was not modified.
            raise InvalidAmountError(transaction.transaction_id, getattr(transaction, "amount", None)) from None

        return account

    def _handle_deposit(self, account: ClientAccount, transaction: Deposit) -> None:
        self._check_amount(transaction)

        if transaction.transaction_id in self._ledger:
            raise DuplicateTransactionError(transaction.transaction_id)

        self._check_not_locked(account, transaction)

        account.credit(transaction.amount)
        self._ledger.record_deposit(transaction.transaction_id, account.client_id, transaction.amount)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Withdrawal) -> None:
        self._check_amount(transaction)
        self._check_not_locked(account, transaction)

        if account.available < transaction.amount:
            raise InsufficientFundsError(transaction.transaction_id, account.available, transaction.amount)

        account.debit(transaction.amount)

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> None:
        entry = self._find_entry(transaction, DisputeStatus.NORMAL, "dispute")
        account.hold(entry.amount)
        entry.status = DisputeStatus.DISPUTED

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> None:
        entry = self._find_entry(transaction, DisputeStatus.DISPUTED, "resolve")
        account.release_hold(entry.amount)
        entry.status = DisputeStatus.NORMAL

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> None:
        entry = self._find_entry(transaction, DisputeStatus.DISPUTED, "charge back")
        account.charge_back(entry.amount)
        entry.status = DisputeStatus.CHARGED_BACK
        logger.info(f"Account {account.client_id} locked after chargeback of tx {transaction.transaction_id}")

    def _find_entry(self, transaction: Transaction, expected_status: DisputeStatus, action: str) -> LedgerEntry:
        """Resolve the deposit a dispute-type record refers to, or raise why it cannot be acted on."""
        entry = self._ledger.lookup(transaction.transaction_id)

        # Withdrawals never enter the ledger, so disputing one lands here too.
        if entry is None:
            raise TransactionNotFoundError(transaction.transaction_id)

        if entry.client_id != transaction.client_id:
            raise ClientMismatchError(transaction.transaction_id, entry.client_id, transaction.client_id)

        if entry.status is not expected_status:
            raise InvalidDisputeStateError(transaction.transaction_id, entry.status, action)

        return entry

    @staticmethod
    def _check_amount(transaction: Union[Deposit, Withdrawal]) -> None:
        amount = transaction.amount
        if not is_amount_in_range(amount) or amount <= 0:
            raise InvalidAmountError(transaction.transaction_id, amount)

    def _check_not_locked(self, account: ClientAccount, transaction: Union[Deposit, Withdrawal]) -> None:
        if account.locked and self._config.reject_locked_account_activity:
            raise AccountLockedError(transaction.transaction_id, account.client_id)
