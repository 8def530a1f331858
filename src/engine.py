import logging
from typing import Iterable, Optional

from models import Transaction, ProcessingStats
from ledger import AccountLedger
from processor import TransactionProcessor
from reader import open_transactions, read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a transaction log against a single ledger.
    Transactions are applied strictly in input order, one at a time.
    """

    def __init__(self, ledger: Optional[AccountLedger] = None):
        self._ledger = ledger if ledger is not None else AccountLedger()
        self._processor = TransactionProcessor(self._ledger)
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> AccountLedger:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process(self, transactions: Iterable[Transaction]) -> AccountLedger:
        """Apply transactions in order and return the ledger."""
        for transaction in transactions:
            result = self._processor.process(transaction)
            self._stats.record(result)
        return self._ledger

    def process_file(self, filepath: str) -> AccountLedger:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")
        with open_transactions(filepath) as f:
            self.process(read_transactions(f, self._stats))
        logger.info(f"Finished {filepath}: {self._stats}")
        return self._ledger
