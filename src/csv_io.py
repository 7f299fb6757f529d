"""CSV record source and result sink.

Input rows look like ``type, client, tx, amount``; output rows like
``client,available,held,total,locked``.
"""

import csv
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO, Tuple, Union

from errors import RecordParseError, TransactionStreamError
from models import (
    TRANSACTION_CLASSES,
    AMOUNT_CONTEXT,
    MAX_AMOUNT,
    ClientAccount,
    Deposit,
    Transaction,
    TransactionType,
    Withdrawal,
    is_amount_in_range,
    quantize_amount,
)


MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

INPUT_FIELDS = ("type", "client", "tx", "amount")
OUTPUT_FIELDS = ("client", "available", "held", "total", "locked")


def read_transactions(stream: TextIO) -> Iterator[Union[Transaction, RecordParseError]]:
    """
    Lazily parse transaction records from a CSV stream.

    Rows that cannot be parsed are yielded as RecordParseError instances so the
    caller can count and skip them. A stream that cannot be read or decoded
    raises TransactionStreamError.
    """
    try:
        reader = csv.DictReader(stream)
        for row in reader:
            try:
                yield parse_csv_row(row)
            except RecordParseError as e:
                e.line_number = reader.line_num
                yield e
    except (csv.Error, UnicodeDecodeError, OSError) as e:
        raise TransactionStreamError(f"Failed to read transaction stream: {e}") from e


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """Parse CSV row into a transaction record."""
    normalized = {
        k.strip().lower(): (v or "").strip()
        for k, v in row.items()
        if isinstance(k, str)
    }

    missing = [name for name in INPUT_FIELDS[:3] if not normalized.get(name)]
    if missing:
        raise RecordParseError(f"missing field(s) {', '.join(missing)} in row {row}")

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except ValueError:
        raise RecordParseError(f"unknown transaction type {normalized['type']!r}") from None

    client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID)

    record_class = TRANSACTION_CLASSES[transaction_type]
    if record_class in (Deposit, Withdrawal):
        amount = _parse_amount(normalized.get("amount", ""), transaction_type)
        return record_class(client_id=client_id, transaction_id=transaction_id, amount=amount)
    return record_class(client_id=client_id, transaction_id=transaction_id)


def _parse_id(value: str, field: str, maximum: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise RecordParseError(f"{field} must be an unsigned integer, got {value!r}") from None
    if not 0 <= parsed <= maximum:
        raise RecordParseError(f"{field} {parsed} out of range 0..{maximum}")
    return parsed


def _parse_amount(value: str, transaction_type: TransactionType) -> Decimal:
    if not value:
        raise RecordParseError(f"amount is required for {transaction_type.value}")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise RecordParseError(f"invalid amount {value!r}") from None
    if not amount.is_finite():
        raise RecordParseError(f"amount must be finite, got {value!r}")
    if not is_amount_in_range(amount):
        raise RecordParseError(f"amount {value!r} exceeds maximum magnitude {MAX_AMOUNT:f}")
    return amount


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = quantize_amount(value).normalize(AMOUNT_CONTEXT)
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


def format_account(account: ClientAccount) -> Tuple[str, ...]:
    return (
        str(account.client_id),
        format_decimal(account.available),
        format_decimal(account.held),
        format_decimal(account.total),
        str(account.locked).lower(),
    )


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> int:
    """Write accounts as CSV sorted by client id. Returns the number of rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    rows = 0
    for account in sorted(accounts, key=lambda a: a.client_id):
        writer.writerow(format_account(account))
        rows += 1
    return rows
