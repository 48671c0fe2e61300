from collections import Counter
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_UP
from enum import Enum
from typing import ClassVar, Union

AMOUNT_PLACES = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_PLACES)

# Amounts and balances stay below this, so every sum of two of them fits
# LEDGER_CONTEXT exactly and quantizing never overflows.
BALANCE_LIMIT = Decimal(10) ** 30
LEDGER_CONTEXT = Context(prec=40, rounding=ROUND_HALF_UP)

MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1


class BalanceOverflowError(Exception):
    """Raised when a mutation would push a balance past BALANCE_LIMIT."""

    def __init__(self, client_id: int):
        super().__init__(f"balance limit exceeded for client {client_id}")
        self.client_id = client_id


def quantize_amount(value: Decimal) -> Decimal:
    """Round a monetary value to the ledger's fixed four decimal places."""
    return value.quantize(AMOUNT_QUANTUM, context=LEDGER_CONTEXT)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    SUCCESS = "success"
    DUPLICATE_TRANSACTION_ID = "duplicate_transaction_id"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    CLIENT_MISMATCH = "client_mismatch"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"
    ACCOUNT_LOCKED = "account_locked"
    BALANCE_OVERFLOW = "balance_overflow"

    @property
    def is_malformed(self) -> bool:
        """Malformed input, as opposed to an ordinary business rejection."""
        return self in (ProcessingResult.DUPLICATE_TRANSACTION_ID, ProcessingResult.BALANCE_OVERFLOW)


@dataclass(frozen=True)
class _Transaction:
    transaction_type: ClassVar[TransactionType]

    client_id: int
    transaction_id: int

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise ValueError(f"client id out of range: {self.client_id}")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise ValueError(f"transaction id out of range: {self.transaction_id}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class _AmountTransaction(_Transaction):
    """A transaction that moves money and can later be referenced by a dispute."""

    amount: Decimal

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"amount must be Decimal, got {type(self.amount)}")
        if not self.amount.is_finite():
            raise ValueError(f"amount must be finite, got {self.amount}")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if self.amount >= BALANCE_LIMIT:
            raise ValueError(f"amount too large: {self.amount}")
        object.__setattr__(self, "amount", quantize_amount(self.amount))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


class Deposit(_AmountTransaction):
    transaction_type = TransactionType.DEPOSIT


class Withdrawal(_AmountTransaction):
    transaction_type = TransactionType.WITHDRAWAL


class Dispute(_Transaction):
    transaction_type = TransactionType.DISPUTE


class Resolve(_Transaction):
    transaction_type = TransactionType.RESOLVE


class Chargeback(_Transaction):
    transaction_type = TransactionType.CHARGEBACK


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]

TRANSACTION_CLASSES = {
    cls.transaction_type: cls
    for cls in (Deposit, Withdrawal, Dispute, Resolve, Chargeback)
}


@dataclass
class HistoryEntry:
    """
    A recorded deposit or withdrawal. Only the dispute flags ever change.

    A charged back entry stays disputed for good; ``charged_back`` tells it
    apart from one whose dispute is still open.
    """

    transaction_id: int
    client_id: int
    amount: Decimal
    transaction_type: TransactionType
    is_disputed: bool = False
    charged_back: bool = False

    @property
    def is_open_dispute(self) -> bool:
        return self.is_disputed and not self.charged_back


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self._apply(LEDGER_CONTEXT.add(self.available, amount), self.held)

    def debit(self, amount: Decimal) -> None:
        self._apply(LEDGER_CONTEXT.subtract(self.available, amount), self.held)

    def hold(self, amount: Decimal) -> None:
        self._apply(
            LEDGER_CONTEXT.subtract(self.available, amount),
            LEDGER_CONTEXT.add(self.held, amount),
        )

    def release_hold(self, amount: Decimal) -> None:
        self._apply(
            LEDGER_CONTEXT.add(self.available, amount),
            LEDGER_CONTEXT.subtract(self.held, amount),
        )

    def remove_held(self, amount: Decimal) -> None:
        self._apply(self.available, LEDGER_CONTEXT.subtract(self.held, amount))

    def _apply(self, available: Decimal, held: Decimal) -> None:
        """Commit new balances, or raise and leave the account untouched."""
        total = LEDGER_CONTEXT.add(available, held)
        if any(abs(value) >= BALANCE_LIMIT for value in (available, held, total)):
            raise BalanceOverflowError(self.client_id)
        self.available = available
        self.held = held

    def lock(self) -> None:
        self.locked = True

    def snapshot(self) -> AccountSnapshot:
        available = quantize_amount(self.available)
        held = quantize_amount(self.held)
        return AccountSnapshot(
            client_id=self.client_id,
            available=available,
            held=held,
            total=LEDGER_CONTEXT.add(available, held),
            locked=self.locked,
        )


class ProcessingStats:
    """Counters for tracking processing outcomes over one run."""

    def __init__(self):
        self.processed = 0
        self.rejected = 0
        self.malformed = 0
        self.results: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        self.results[result] += 1
        if result is ProcessingResult.SUCCESS:
            self.processed += 1
        elif result.is_malformed:
            self.malformed += 1
        else:
            self.rejected += 1

    def record_parse_failure(self) -> None:
        self.malformed += 1

    def summary(self) -> str:
        return f"Processed: {self.processed}, Rejected: {self.rejected}, Malformed: {self.malformed}"
