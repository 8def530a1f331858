import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from models import Transaction, TransactionType, ProcessingStats, MAX_CLIENT_ID, MAX_TRANSACTION_ID

logger = logging.getLogger(__name__)

AMOUNT_REQUIRED = {TransactionType.DEPOSIT, TransactionType.WITHDRAWAL}


class ParseError(ValueError):
    """A CSV row that cannot be turned into a Transaction."""


def open_transactions(filepath: str) -> TextIO:
    """Open a transactions CSV for reading. OSError propagates to the caller."""
    return open(filepath, "r", newline="")


def read_transactions(lines: Iterable[str], stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """
    Lazily parse CSV lines (header first) into transactions.
    Malformed rows are logged and skipped.
    """
    reader = csv.DictReader(lines, skipinitialspace=True)
    for row in reader:
        try:
            yield parse_row(row)
        except ParseError as e:
            logger.warning(f"Skipping row {reader.line_num}: {e}")
            if stats is not None:
                stats.record_skipped()


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """Parse CSV row into Transaction."""
    normalized = {
        k.strip().lower(): v.strip()
        for k, v in row.items()
        if isinstance(k, str) and isinstance(v, str)
    }

    try:
        transaction_type = TransactionType(normalized["type"])
    except KeyError:
        raise ParseError("missing type") from None
    except ValueError:
        raise ParseError(f"unknown transaction type {normalized['type']!r}") from None

    client_id = _parse_id(normalized, "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized, "tx", MAX_TRANSACTION_ID)

    amount = None
    if transaction_type in AMOUNT_REQUIRED:
        amount = _parse_amount(normalized.get("amount", ""), transaction_type)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(normalized: Dict[str, str], name: str, maximum: int) -> int:
    value = normalized.get(name, "")
    try:
        parsed = int(value)
    except ValueError:
        raise ParseError(f"invalid {name} {value!r}") from None
    if not 0 <= parsed <= maximum:
        raise ParseError(f"{name} {parsed} out of range")
    return parsed


def _parse_amount(value: str, transaction_type: TransactionType) -> Decimal:
    if not value:
        raise ParseError(f"missing amount for {transaction_type.value}")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ParseError(f"invalid amount {value!r}") from None
    if not amount.is_finite():
        raise ParseError(f"invalid amount {value!r}")
    return amount
