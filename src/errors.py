from decimal import Decimal
from typing import Optional


class PaymentsEngineError(Exception):
    """Base class for every error raised by the payments engine."""


class TransactionStreamError(PaymentsEngineError):
    """The record stream cannot be read any further. Aborts the run."""


class RecordParseError(PaymentsEngineError):
    """A single input row could not be turned into a transaction record."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is None:
            return super().__str__()
        return f"line {self.line_number}: {super().__str__()}"


class TransactionRejectedError(PaymentsEngineError):
    """A deposit or withdrawal failed validation. Nothing was applied."""

    def __init__(self, message: str, transaction_id: int):
        super().__init__(message)
        self.transaction_id = transaction_id


class InvalidAmountError(TransactionRejectedError):
    def __init__(self, transaction_id: int, amount: Optional[Decimal]):
        super().__init__(f"tx {transaction_id}: invalid amount {amount}", transaction_id)
        self.amount = amount


class DuplicateTransactionError(TransactionRejectedError):
    def __init__(self, transaction_id: int):
        super().__init__(f"tx {transaction_id}: transaction id already used by a deposit", transaction_id)


class AccountLockedError(TransactionRejectedError):
    def __init__(self, transaction_id: int, client_id: int):
        super().__init__(f"tx {transaction_id}: account {client_id} is locked", transaction_id)
        self.client_id = client_id


class InsufficientFundsError(TransactionRejectedError):
    def __init__(self, transaction_id: int, available: Decimal, requested: Decimal):
        super().__init__(
            f"tx {transaction_id}: insufficient funds (available {available}, requested {requested})",
            transaction_id,
        )
        self.available = available
        self.requested = requested


class TransactionIgnoredError(PaymentsEngineError):
    """A dispute, resolve or chargeback referenced nothing it could act on."""

    def __init__(self, message: str, transaction_id: int):
        super().__init__(message)
        self.transaction_id = transaction_id


class TransactionNotFoundError(TransactionIgnoredError):
    def __init__(self, transaction_id: int):
        super().__init__(f"tx {transaction_id}: no disputable transaction with this id", transaction_id)


class ClientMismatchError(TransactionIgnoredError):
    def __init__(self, transaction_id: int, expected_client_id: int, client_id: int):
        super().__init__(
            f"tx {transaction_id}: belongs to client {expected_client_id}, not {client_id}",
            transaction_id,
        )
        self.expected_client_id = expected_client_id
        self.client_id = client_id


class InvalidDisputeStateError(TransactionIgnoredError):
    def __init__(self, transaction_id: int, status, action: str):
        super().__init__(f"tx {transaction_id}: cannot {action} a transaction in state {status.value}", transaction_id)
        self.status = status
        self.action = action
