from decimal import Decimal
from typing import Dict, Optional

from models import HistoryEntry, TransactionType


class DuplicateTransactionIdError(Exception):
    """Raised when a deposit or withdrawal reuses an already recorded transaction id."""

    def __init__(self, transaction_id: int):
        super().__init__(f"transaction id {transaction_id} already recorded")
        self.transaction_id = transaction_id


class TransactionHistory:
    """
    Append-only index of deposits and withdrawals, keyed by transaction id.
    Performs no authorization: callers validate a dispute transition
    before flipping the flag.
    """

    def __init__(self):
        self._entries: Dict[int, HistoryEntry] = {}

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self,
        transaction_id: int,
        client_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
    ) -> HistoryEntry:
        """Insert a new entry. The existing entry is kept if the id is taken."""
        if transaction_id in self._entries:
            raise DuplicateTransactionIdError(transaction_id)

        entry = HistoryEntry(
            transaction_id=transaction_id,
            client_id=client_id,
            amount=amount,
            transaction_type=transaction_type,
        )
        self._entries[transaction_id] = entry
        return entry

    def lookup(self, transaction_id: int) -> Optional[HistoryEntry]:
        return self._entries.get(transaction_id)

    def mark_disputed(self, transaction_id: int) -> None:
        self._entries[transaction_id].is_disputed = True

    def mark_resolved_or_chargedback(self, transaction_id: int, finalize: bool = False) -> None:
        """
        Close the dispute on an entry.

        A resolve clears the flag so the entry can be disputed again. A
        chargeback (finalize=True) keeps it set and marks the entry charged
        back, so it can never be disputed, resolved or charged back again.
        """
        entry = self._entries[transaction_id]
        if finalize:
            entry.charged_back = True
        else:
            entry.is_disputed = False
