import logging
from typing import Dict, Iterable, Optional, Union

from config import EngineConfig
from csv_io import read_transactions
from errors import RecordParseError, TransactionIgnoredError, TransactionRejectedError
from models import ClientAccount, ProcessingStats, Transaction
from state_manager import AccountStore, LedgerIndex
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Feeds a transaction stream through the processor, one record at a time,
    in arrival order.

    Rejected and ignored records are logged and counted; they never stop the
    run. A TransactionStreamError from the source propagates to the caller,
    and the accounts keep every record applied before it.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._accounts = AccountStore()
        self._ledger = LedgerIndex()
        self._processor = TransactionProcessor(self._accounts, self._ledger, self._config)
        self.stats = ProcessingStats()

    @property
    def accounts(self) -> AccountStore:
        return self._accounts

    @property
    def ledger(self) -> LedgerIndex:
        return self._ledger

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        with open(filepath, "r", newline="") as f:
            return self.process_records(read_transactions(f))

    def process_records(self, records: Iterable[Union[Transaction, RecordParseError]]) -> Dict[int, ClientAccount]:
        """Apply records in order and return final account states."""
        try:
            for record in records:
                self._apply(record)
        finally:
            logger.info(
                f"Processing finished: {self.stats}, "
                f"{len(self._accounts)} accounts, {len(self._ledger)} disputable deposits"
            )

        return self._accounts.get_all_accounts()

    def _apply(self, record: Union[Transaction, RecordParseError]) -> None:
        if isinstance(record, RecordParseError):
            self.stats.record_malformed()
            logger.warning(f"Skipping malformed record: {record}")
            return

        try:
            self._processor.process_transaction(record)
        except TransactionRejectedError as e:
            self.stats.record_rejection()
            logger.warning(f"Rejected {record}: {e}")
        except TransactionIgnoredError as e:
            self.stats.record_ignored()
            logger.info(f"Ignored {record}: {e}")
        else:
            self.stats.record_success()
