import logging
from typing import Optional, Tuple, Union

from models import (
    BalanceOverflowError,
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    HistoryEntry,
    ProcessingResult,
    Resolve,
    Transaction,
    Withdrawal,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to state, one at a time, in input order.
    Returns ProcessingResult to indicate success or the rejection reason.
    A rejected transaction leaves every balance untouched.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied
            DUPLICATE_TRANSACTION_ID, BALANCE_OVERFLOW: Malformed input, the id
            was already used or the amounts cannot be represented
            anything else: Business rejection, e.g. insufficient funds or a
            reference to a transaction that does not exist for this client
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            logger.info(f"{transaction}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        try:
            match transaction:
                case Deposit():
                    return self._handle_deposit(account, transaction)
                case Withdrawal():
                    return self._handle_withdrawal(account, transaction)
                case Dispute():
                    return self._handle_dispute(account, transaction)
                case Resolve():
                    return self._handle_resolve(account, transaction)
                case Chargeback():
                    return self._handle_chargeback(account, transaction)
                case _:
                    raise TypeError(f"Unsupported transaction: {transaction!r}")
        except BalanceOverflowError as e:
            logger.warning(f"{transaction}: {e}, dropping record")
            return ProcessingResult.BALANCE_OVERFLOW

    def _handle_deposit(self, account: ClientAccount, transaction: Deposit) -> ProcessingResult:
        if self._is_duplicate(transaction):
            return ProcessingResult.DUPLICATE_TRANSACTION_ID

        account.credit(transaction.amount)
        self._record(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Withdrawal) -> ProcessingResult:
        if self._is_duplicate(transaction):
            return ProcessingResult.DUPLICATE_TRANSACTION_ID

        if account.available < transaction.amount:
            logger.info(f"{transaction}: insufficient funds (available {account.available})")
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._record(transaction)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> ProcessingResult:
        original, failure = self._find_referenced(transaction)
        if failure is not None:
            return failure

        if original.is_disputed:
            logger.info(f"{transaction}: transaction already disputed")
            return ProcessingResult.ALREADY_DISPUTED

        # A disputed withdrawal holds funds that already left, so available may go negative.
        account.hold(original.amount)
        self._state.history.mark_disputed(original.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> ProcessingResult:
        original, failure = self._find_referenced(transaction)
        if failure is not None:
            return failure

        if not original.is_open_dispute:
            logger.info(f"{transaction}: transaction is not disputed")
            return ProcessingResult.NOT_DISPUTED

        account.release_hold(original.amount)
        self._state.history.mark_resolved_or_chargedback(original.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> ProcessingResult:
        original, failure = self._find_referenced(transaction)
        if failure is not None:
            return failure

        if not original.is_open_dispute:
            logger.info(f"{transaction}: transaction is not disputed")
            return ProcessingResult.NOT_DISPUTED

        account.remove_held(original.amount)
        account.lock()
        self._state.history.mark_resolved_or_chargedback(original.transaction_id, finalize=True)
        return ProcessingResult.SUCCESS

    def _is_duplicate(self, transaction: Union[Deposit, Withdrawal]) -> bool:
        if transaction.transaction_id in self._state.history:
            logger.warning(f"{transaction}: transaction id already recorded, dropping record")
            return True
        return False

    def _record(self, transaction: Union[Deposit, Withdrawal]) -> None:
        """Record an applied deposit or withdrawal so it can be disputed later."""
        self._state.history.record(
            transaction.transaction_id,
            transaction.client_id,
            transaction.amount,
            transaction.transaction_type,
        )

    def _find_referenced(
        self, transaction: Union[Dispute, Resolve, Chargeback]
    ) -> Tuple[Optional[HistoryEntry], Optional[ProcessingResult]]:
        original = self._state.history.lookup(transaction.transaction_id)

        if original is None:
            logger.info(f"{transaction}: referenced transaction not found")
            return None, ProcessingResult.UNKNOWN_TRANSACTION

        if original.client_id != transaction.client_id:
            logger.warning(
                f"{transaction}: client mismatch "
                f"(transaction belongs to {original.client_id}, got {transaction.client_id})"
            )
            return None, ProcessingResult.CLIENT_MISMATCH

        return original, None
