from dataclasses import dataclass, field
from decimal import Context, Decimal, ROUND_HALF_EVEN
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

AMOUNT_DECIMAL_PLACES = 4
MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

# Largest magnitude a balance can hold; results past it saturate.
MAX_AMOUNT = Decimal(2**96 - 1)
MIN_AMOUNT = -MAX_AMOUNT

_ARITHMETIC = Context(prec=64)
_ROUNDING_QUANTUM = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)


def _clamp(value: Decimal) -> Decimal:
    if value > MAX_AMOUNT:
        return MAX_AMOUNT
    if value < MIN_AMOUNT:
        return MIN_AMOUNT
    return value


def saturating_add(a: Decimal, b: Decimal) -> Decimal:
    return _clamp(_ARITHMETIC.add(a, b))


def saturating_sub(a: Decimal, b: Decimal) -> Decimal:
    return _clamp(_ARITHMETIC.subtract(a, b))


def round_amount(value: Decimal) -> Decimal:
    """Round to at most AMOUNT_DECIMAL_PLACES fractional digits (half-even).

    Values already within that scale are returned unchanged, so 1.5 stays 1.5.
    """
    if value.as_tuple().exponent >= -AMOUNT_DECIMAL_PLACES:
        return value
    return value.quantize(_ROUNDING_QUANTUM, rounding=ROUND_HALF_EVEN, context=_ARITHMETIC)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeState(Enum):
    NONE = "none"
    DISPUTED = "disputed"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class Deposit:
    amount: Decimal
    dispute: DisputeState = DisputeState.NONE


class DepositRegistry:
    """
    Deposits made on one account, keyed by transaction id.
    Withdrawals are never registered, so disputes can only ever target deposits.
    """

    def __init__(self):
        self._deposits: Dict[int, Deposit] = {}

    def insert(self, transaction_id: int, deposit: Deposit) -> None:
        """Register a deposit. Transaction ids are assumed unique; a repeat overwrites."""
        self._deposits[transaction_id] = deposit

    def get(self, transaction_id: int) -> Optional[Deposit]:
        return self._deposits.get(transaction_id)

    def values(self) -> Iterator[Deposit]:
        return iter(self._deposits.values())

    def items(self) -> Iterator[Tuple[int, Deposit]]:
        return iter(self._deposits.items())

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._deposits

    def __len__(self) -> int:
        return len(self._deposits)

    def __repr__(self) -> str:
        return f"DepositRegistry({self._deposits!r})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    locked: bool = False
    deposits: DepositRegistry = field(default_factory=DepositRegistry, repr=False, compare=False)

    def credit(self, amount: Decimal) -> None:
        self.available = saturating_add(self.available, amount)
        self.total = saturating_add(self.total, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = saturating_sub(self.available, amount)
        self.total = saturating_sub(self.total, amount)

    def hold(self, amount: Decimal) -> None:
        self.held = saturating_add(self.held, amount)
        self.available = saturating_sub(self.available, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.held = saturating_sub(self.held, amount)
        self.available = saturating_add(self.available, amount)

    def remove_held(self, amount: Decimal) -> None:
        self.held = saturating_sub(self.held, amount)
        self.total = saturating_sub(self.total, amount)

    def normalize(self) -> None:
        """Round balances for output. Only call once processing is finished."""
        self.available = round_amount(self.available)
        self.held = round_amount(self.held)
        self.total = round_amount(self.total)


class ProcessingStats:
    """Counters for a processing run."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.skipped = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        else:
            self.ignored += 1

    def record_skipped(self):
        self.skipped += 1

    def __repr__(self) -> str:
        return f"Applied: {self.applied}, Ignored: {self.ignored}, Skipped: {self.skipped}"
