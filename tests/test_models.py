import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import (
    BALANCE_LIMIT,
    TRANSACTION_CLASSES,
    BalanceOverflowError,
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    ProcessingResult,
    ProcessingStats,
    Resolve,
    TransactionType,
    Withdrawal,
)


class TestTransaction:
    def test_create_deposit(self):
        transaction = Deposit(client_id=1, transaction_id=1, amount=Decimal("100.0"))
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_has_no_amount(self):
        transaction = Dispute(client_id=1, transaction_id=1)
        assert transaction.transaction_type == TransactionType.DISPUTE
        assert not hasattr(transaction, "amount")

    def test_reference_kinds_reject_amount(self):
        with pytest.raises(TypeError):
            Resolve(1, 1, Decimal("5"))

    def test_amount_required_for_withdrawal(self):
        with pytest.raises(TypeError):
            Withdrawal(client_id=1, transaction_id=1)

    def test_amount_quantized_to_four_places(self):
        transaction = Deposit(1, 1, Decimal("1.23456"))
        assert transaction.amount == Decimal("1.2346")
        assert transaction.amount.as_tuple().exponent == -4

    def test_zero_amount_allowed(self):
        assert Deposit(1, 1, Decimal("0")).amount == Decimal("0")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            Deposit(1, 1, Decimal("-1"))

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            Withdrawal(1, 1, Decimal("Infinity"))
        with pytest.raises(ValueError, match="finite"):
            Withdrawal(1, 1, Decimal("NaN"))

    def test_amount_at_balance_limit_rejected(self):
        with pytest.raises(ValueError, match="too large"):
            Deposit(1, 1, BALANCE_LIMIT)
        assert Deposit(1, 1, Decimal("999999999999999999999999999999.9999")).amount < BALANCE_LIMIT

    def test_float_amount_rejected(self):
        with pytest.raises(ValueError, match="must be Decimal"):
            Deposit(1, 1, 1.5)

    def test_client_id_range(self):
        Dispute(client_id=65535, transaction_id=1)
        with pytest.raises(ValueError, match="client id"):
            Dispute(client_id=65536, transaction_id=1)
        with pytest.raises(ValueError, match="client id"):
            Dispute(client_id=-1, transaction_id=1)

    def test_transaction_id_range(self):
        Chargeback(client_id=1, transaction_id=2 ** 32 - 1)
        with pytest.raises(ValueError, match="transaction id"):
            Chargeback(client_id=1, transaction_id=2 ** 32)

    def test_kinds_with_same_fields_are_not_equal(self):
        assert Deposit(1, 1, Decimal("5")) != Withdrawal(1, 1, Decimal("5"))
        assert Dispute(1, 1) != Resolve(1, 1)
        assert Dispute(1, 1) == Dispute(1, 1)

    def test_transactions_are_immutable(self):
        transaction = Deposit(1, 1, Decimal("5"))
        with pytest.raises(AttributeError):
            transaction.amount = Decimal("10")

    def test_every_type_has_a_class(self):
        assert set(TRANSACTION_CLASSES) == set(TransactionType)
        for transaction_type, cls in TRANSACTION_CLASSES.items():
            assert cls.transaction_type is transaction_type

    def test_repr(self):
        assert repr(Deposit(1, 2, Decimal("3"))) == "Deposit(client=1, tx=2, amount=3.0000)"
        assert repr(Chargeback(1, 2)) == "Chargeback(client=1, tx=2)"


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=1,
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_hold_and_release_keep_total(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        account.hold(Decimal("90"))
        assert account.available == Decimal("-80")
        assert account.held == Decimal("90")
        assert account.total == Decimal("10")

        account.release_hold(Decimal("90"))
        assert account.available == Decimal("10")
        assert account.held == Decimal("0")

    def test_remove_held_reduces_total(self):
        account = ClientAccount(client_id=1, available=Decimal("0"), held=Decimal("100"))
        account.remove_held(Decimal("100"))
        account.lock()
        assert account.total == Decimal("0")
        assert account.locked is True

    def test_sum_past_default_precision_is_exact(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("9e23"))
        account.credit(Decimal("9e23"))

        assert account.available == Decimal("1.8e24")
        assert account.snapshot().total == Decimal("1800000000000000000000000.0000")

    def test_overflow_leaves_account_untouched(self):
        account = ClientAccount(client_id=1, available=Decimal("999999999999999999999999999999.9999"))

        with pytest.raises(BalanceOverflowError) as exc_info:
            account.credit(Decimal("0.0001"))

        assert exc_info.value.client_id == 1
        assert account.available == Decimal("999999999999999999999999999999.9999")
        assert account.held == Decimal("0")

    def test_snapshot_rounds_to_four_places(self):
        account = ClientAccount(client_id=7, available=Decimal("1.5"), held=Decimal("0.25"))
        snapshot = account.snapshot()
        assert snapshot.client_id == 7
        assert snapshot.available == Decimal("1.5000")
        assert snapshot.held == Decimal("0.2500")
        assert snapshot.total == Decimal("1.7500")
        assert snapshot.total.as_tuple().exponent == -4
        assert snapshot.locked is False


class TestProcessingResult:
    def test_enum_values(self):
        assert ProcessingResult.SUCCESS.value == "success"
        assert ProcessingResult.DUPLICATE_TRANSACTION_ID.value == "duplicate_transaction_id"
        assert ProcessingResult.ACCOUNT_LOCKED.value == "account_locked"

    def test_malformed_results(self):
        malformed = [result for result in ProcessingResult if result.is_malformed]
        assert malformed == [ProcessingResult.DUPLICATE_TRANSACTION_ID, ProcessingResult.BALANCE_OVERFLOW]


class TestProcessingStats:
    def test_classifies_results(self):
        stats = ProcessingStats()
        stats.record(ProcessingResult.SUCCESS)
        stats.record(ProcessingResult.SUCCESS)
        stats.record(ProcessingResult.INSUFFICIENT_FUNDS)
        stats.record(ProcessingResult.DUPLICATE_TRANSACTION_ID)
        stats.record_parse_failure()

        assert stats.processed == 2
        assert stats.rejected == 1
        assert stats.malformed == 2
        assert stats.results[ProcessingResult.INSUFFICIENT_FUNDS] == 1
        assert stats.summary() == "Processed: 2, Rejected: 1, Malformed: 2"
