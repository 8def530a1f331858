import logging
from typing import Optional, Tuple, assert_never

from models import Transaction, TransactionType, ClientAccount, Deposit, DisputeState, ProcessingResult
from ledger import AccountLedger

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to an AccountLedger, one at a time, in input order.

    Rule violations (locked account, insufficient funds, unknown deposit,
    invalid dispute transition) never raise: the transaction is ignored and
    the ledger is left untouched.
    """

    def __init__(self, ledger: AccountLedger):
        self._ledger = ledger

    def process(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            APPLIED: The ledger was updated
            IGNORED: The transaction had no effect
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)
            case _:
                assert_never(transaction.transaction_type)

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None:
            logger.warning(f"Deposit tx {transaction.transaction_id}: missing amount")
            return ProcessingResult.IGNORED

        account = self._ledger.get_or_create(transaction.client_id)
        if transaction.amount < 0:
            logger.warning(f"Deposit tx {transaction.transaction_id}: negative amount {transaction.amount}")
            return ProcessingResult.IGNORED

        if account.locked:
            logger.info(f"Deposit tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.IGNORED

        account.credit(transaction.amount)
        account.deposits.insert(transaction.transaction_id, Deposit(amount=transaction.amount))
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: missing amount")
            return ProcessingResult.IGNORED

        account = self._ledger.get_or_create(transaction.client_id)
        if transaction.amount < 0:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: negative amount {transaction.amount}")
            return ProcessingResult.IGNORED

        if account.locked:
            logger.info(f"Withdrawal tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.IGNORED

        if account.available < transaction.amount:
            logger.info(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {transaction.amount})")
            return ProcessingResult.IGNORED

        account.debit(transaction.amount)
        return ProcessingResult.APPLIED

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        found = self._find_deposit(transaction)
        if found is None:
            return ProcessingResult.IGNORED
        account, deposit = found

        if deposit.dispute != DisputeState.NONE:
            logger.info(f"Dispute for tx {transaction.transaction_id}: deposit is {deposit.dispute.value}")
            return ProcessingResult.IGNORED

        # The original deposit amount is held even if some of it was withdrawn since,
        # so available may go negative here.
        account.hold(deposit.amount)
        deposit.dispute = DisputeState.DISPUTED
        return ProcessingResult.APPLIED

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        found = self._find_deposit(transaction)
        if found is None:
            return ProcessingResult.IGNORED
        account, deposit = found

        if deposit.dispute != DisputeState.DISPUTED:
            logger.info(f"Resolve for tx {transaction.transaction_id}: deposit is not disputed")
            return ProcessingResult.IGNORED

        account.release_hold(deposit.amount)
        deposit.dispute = DisputeState.NONE
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        found = self._find_deposit(transaction)
        if found is None:
            return ProcessingResult.IGNORED
        account, deposit = found

        if deposit.dispute != DisputeState.DISPUTED:
            logger.info(f"Chargeback for tx {transaction.transaction_id}: deposit is not disputed")
            return ProcessingResult.IGNORED

        account.remove_held(deposit.amount)
        deposit.dispute = DisputeState.CHARGEBACK
        account.locked = True
        return ProcessingResult.APPLIED

    def _find_deposit(self, transaction: Transaction) -> Optional[Tuple[ClientAccount, Deposit]]:
        """Locate the deposit a dispute, resolve or chargeback refers to, scoped to its own client."""
        kind = transaction.transaction_type.value.capitalize()

        account = self._ledger.get(transaction.client_id)
        if account is None:
            logger.info(f"{kind} for tx {transaction.transaction_id}: unknown client {transaction.client_id}")
            return None

        deposit = account.deposits.get(transaction.transaction_id)
        if deposit is None:
            logger.info(f"{kind} for tx {transaction.transaction_id}: no such deposit for client {transaction.client_id}")
            return None

        return account, deposit


def apply(transaction: Transaction, ledger: AccountLedger) -> ProcessingResult:
    """Apply one transaction to ledger."""
    return TransactionProcessor(ledger).process(transaction)
