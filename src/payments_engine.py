import csv
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional

from models import (
    TRANSACTION_CLASSES,
    AccountSnapshot,
    ClientAccount,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Folds an ordered transaction stream into final account states.
    Single pass, single thread: each record is applied before the next is read.
    """

    def __init__(self, report_stats: bool = False):
        self._report_stats = report_stats
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")

        # Undecodable bytes become U+FFFD, so the row fails to parse instead of aborting the run.
        with open(filepath, "r", newline="", encoding="utf-8", errors="replace") as f:
            accounts = self.process_transactions(self._read_transactions(f))

        logger.info("Processing complete")

        if self._report_stats:
            print(self._stats.summary(), file=sys.stderr)

        return accounts

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply transactions in order and return final account states."""
        for transaction in transactions:
            self.process_transaction(transaction)
        return self._state.get_all_accounts()

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        result = self._processor.process_transaction(transaction)
        self._stats.record(result)
        return result

    def snapshots(self) -> Iterator[AccountSnapshot]:
        return self._state.snapshots()

    def _read_transactions(self, lines: Iterable[str]) -> Iterator[Transaction]:
        """Parse CSV rows lazily, skipping any that are malformed."""
        reader = csv.DictReader(lines)
        while True:
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                # Oversized field or broken quoting; the reader resumes at the next line.
                logger.warning(f"Failed to read row at line {reader.reader.line_num}: {e}")
                self._stats.record_parse_failure()
                continue

            transaction = self._parse_csv_row(row)
            if transaction is None:
                self._stats.record_parse_failure()
            else:
                yield transaction

    def _parse_csv_row(self, row: Dict[Optional[str], Optional[str]]) -> Optional[Transaction]:
        """Parse CSV row into Transaction."""
        try:
            normalized = {
                k.strip(): (v or "").strip()
                for k, v in row.items()
                if k is not None
            }

            transaction_type = TransactionType(normalized["type"].lower())
            client_id = int(normalized["client"])
            transaction_id = int(normalized["tx"])

            transaction_class = TRANSACTION_CLASSES[transaction_type]
            if transaction_type in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL):
                amount_str = normalized.get("amount", "")
                if not amount_str:
                    raise ValueError(f"{transaction_type.value} requires an amount")
                return transaction_class(client_id, transaction_id, Decimal(amount_str))

            return transaction_class(client_id, transaction_id)
        except (KeyError, ValueError, InvalidOperation) as e:
            logger.warning(f"Failed to parse row {row}: {e}")
            return None
