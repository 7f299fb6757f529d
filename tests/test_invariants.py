"""Property-based checks of the account invariants over random transaction streams."""

import sys
import os
from dataclasses import astuple
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import PaymentsEngineError, TransactionIgnoredError
from models import Chargeback, Deposit, Dispute, Resolve, Withdrawal
from state_manager import AccountStore, LedgerIndex
from transaction_processor import TransactionProcessor

clients = st.integers(min_value=1, max_value=3)
tx_ids = st.integers(min_value=1, max_value=12)
amounts = st.decimals(
    min_value=Decimal("-5"),
    max_value=Decimal("1000"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)
positive_amounts = st.decimals(min_value=Decimal("0.0001"), max_value=Decimal("1000"), places=4)

records = st.one_of(
    st.builds(Deposit, clients, tx_ids, amounts),
    st.builds(Withdrawal, clients, tx_ids, amounts),
    st.builds(Dispute, clients, tx_ids),
    st.builds(Resolve, clients, tx_ids),
    st.builds(Chargeback, clients, tx_ids),
)


def snapshot(accounts, ledger):
    return (
        sorted((client_id, astuple(account)) for client_id, account in accounts),
        {tx: astuple(ledger.lookup(tx)) for tx in range(1, 13) if tx in ledger},
    )


@settings(max_examples=200, deadline=None)
@given(st.lists(records, max_size=60))
def test_balances_stay_consistent(stream):
    accounts = AccountStore()
    ledger = LedgerIndex()
    processor = TransactionProcessor(accounts, ledger)

    for record in stream:
        before = snapshot(accounts, ledger)
        try:
            processor.process_transaction(record)
        except PaymentsEngineError:
            # A refused record leaves everything but the lazily created account untouched
            after = snapshot(accounts, ledger)
            assert [a for a in after[0] if a[0] != record.client_id] == \
                [a for a in before[0] if a[0] != record.client_id]
            assert after[1] == before[1]

        for _, account in accounts:
            assert account.total == account.available + account.held
            assert account.held >= 0


@settings(max_examples=100, deadline=None)
@given(st.lists(st.tuples(clients, positive_amounts), max_size=40))
def test_deposits_only_sum_up(deposits):
    accounts = AccountStore()
    processor = TransactionProcessor(accounts, LedgerIndex())

    for tx_id, (client_id, amount) in enumerate(deposits, start=1):
        processor.process_transaction(Deposit(client_id, tx_id, amount))

    for client_id, account in accounts:
        expected = sum((amount for c, amount in deposits if c == client_id), Decimal("0"))
        assert account.available == expected
        assert account.total == expected
        assert account.held == Decimal("0")


@settings(max_examples=100, deadline=None)
@given(st.lists(records, max_size=30), st.sampled_from([Dispute, Resolve, Chargeback]), clients, tx_ids)
def test_ignored_records_are_idempotent(stream, kind, client_id, tx_id):
    accounts = AccountStore()
    ledger = LedgerIndex()
    processor = TransactionProcessor(accounts, ledger)

    for record in stream:
        try:
            processor.process_transaction(record)
        except PaymentsEngineError:
            pass

    accounts.get_or_create_account(client_id)
    record = kind(client_id, tx_id)
    before = snapshot(accounts, ledger)
    try:
        processor.process_transaction(record)
    except TransactionIgnoredError:
        for _ in range(3):
            try:
                processor.process_transaction(record)
            except TransactionIgnoredError:
                pass
        assert snapshot(accounts, ledger) == before
