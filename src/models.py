from dataclasses import dataclass
from decimal import Context, Decimal, Inexact, InvalidOperation, Overflow, DivisionByZero, ROUND_HALF_EVEN
from enum import Enum
from typing import Union

AMOUNT_PRECISION = Decimal("0.0001")

# Single amounts must stay below this; balances are sums of such amounts.
MAX_AMOUNT = Decimal("1e20")

# Rounds incoming amounts to 4 places. 50 digits leave room for any balance a
# realistic number of capped amounts can add up to.
AMOUNT_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN)

# Balance arithmetic must be exact: any rounding raises Inexact instead.
LEDGER_CONTEXT = Context(
    prec=50,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, Inexact, Overflow, DivisionByZero],
)


def quantize_amount(amount: Decimal) -> Decimal:
    """Round an amount to 4 fractional digits. Non-finite values are returned unchanged."""
    if not amount.is_finite():
        return amount
    return amount.quantize(AMOUNT_PRECISION, context=AMOUNT_CONTEXT)


def is_amount_in_range(amount: Decimal) -> bool:
    return amount.is_finite() and abs(amount) < MAX_AMOUNT


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeStatus(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


@dataclass(frozen=True)
class _Record:
    client_id: int
    transaction_id: int

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class _AmountRecord(_Record):
    amount: Decimal

    def __post_init__(self):
        amount = Decimal(self.amount)
        # Out-of-range amounts are kept as given and rejected when applied
        if is_amount_in_range(amount):
            amount = quantize_amount(amount)
        object.__setattr__(self, "amount", amount)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


class Deposit(_AmountRecord):
    pass


class Withdrawal(_AmountRecord):
    pass


class Dispute(_Record):
    pass


class Resolve(_Record):
    pass


class Chargeback(_Record):
    pass


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]

TRANSACTION_CLASSES = {
    TransactionType.DEPOSIT: Deposit,
    TransactionType.WITHDRAWAL: Withdrawal,
    TransactionType.DISPUTE: Dispute,
    TransactionType.RESOLVE: Resolve,
    TransactionType.CHARGEBACK: Chargeback,
}


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    # Every method computes all new values before assigning any, so a trapped
    # Inexact leaves the account untouched.

    def credit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.add(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.subtract(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        available = LEDGER_CONTEXT.subtract(self.available, amount)
        held = LEDGER_CONTEXT.add(self.held, amount)
        self.available, self.held = available, held

    def release_hold(self, amount: Decimal) -> None:
        held = LEDGER_CONTEXT.subtract(self.held, amount)
        available = LEDGER_CONTEXT.add(self.available, amount)
        self.available, self.held = available, held

    def charge_back(self, amount: Decimal) -> None:
        """Remove held funds permanently and freeze the account."""
        self.held = LEDGER_CONTEXT.subtract(self.held, amount)
        self.locked = True


@dataclass
class LedgerEntry:
    """A previously applied deposit that later records may dispute."""

    client_id: int
    amount: Decimal
    status: DisputeStatus = DisputeStatus.NORMAL


class ProcessingStats:
    """Counters for one engine run."""

    def __init__(self):
        self.processed = 0
        self.rejected = 0
        self.ignored = 0
        self.malformed = 0

    def record_success(self):
        self.processed += 1

    def record_rejection(self):
        self.rejected += 1

    def record_ignored(self):
        self.ignored += 1

    def record_malformed(self):
        self.malformed += 1

    def __repr__(self) -> str:
        return (
            f"ProcessingStats(processed={self.processed}, rejected={self.rejected}, "
            f"ignored={self.ignored}, malformed={self.malformed})"
        )
