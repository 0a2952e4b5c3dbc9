"""Unit tests for outstanding-amount and overdue calculations"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from accounts_receivable.domain.amounts import is_overdue, outstanding_amount, total_outstanding
from accounts_receivable.domain.models import ReceivableStatus


@dataclass
class Amounts:
    amount_expected: Decimal
    amount_received: Decimal | None


def test_outstanding_amount_partial_payment():
    """Remainder is expected minus received"""
    assert outstanding_amount(Decimal("5000.00"), Decimal("2500.00")) == Decimal("2500.00")


def test_outstanding_amount_overpayment_is_zero():
    """Over-payment never produces a negative remainder"""
    assert outstanding_amount(Decimal("100.00"), Decimal("150.00")) == Decimal("0.00")


def test_outstanding_amount_missing_received_counts_as_zero():
    assert outstanding_amount(Decimal("99.90"), None) == Decimal("99.90")


def test_total_outstanding_skips_negative_remainders():
    """Over-paid receivables do not offset what others still owe"""
    receivables = [
        Amounts(Decimal("1000.00"), Decimal("400.00")),
        Amounts(Decimal("200.00"), Decimal("500.00")),
        Amounts(Decimal("300.00"), Decimal("0.00")),
    ]
    assert total_outstanding(receivables) == Decimal("900.00")


def test_total_outstanding_empty_is_zero():
    assert total_outstanding([]) == Decimal("0.00")


def test_is_overdue_past_due_pending():
    """Stored status need not be OVERDUE for the receivable to be overdue"""
    today = date.today()
    assert is_overdue(today - timedelta(days=1), ReceivableStatus.PENDING, today) is True


def test_is_overdue_due_today_is_not_overdue():
    today = date.today()
    assert is_overdue(today, ReceivableStatus.PENDING, today) is False


def test_is_overdue_settled_statuses_never_overdue():
    today = date.today()
    yesterday = today - timedelta(days=1)
    for status in (ReceivableStatus.RECEIVED, ReceivableStatus.WRITTEN_OFF, ReceivableStatus.CANCELED):
        assert is_overdue(yesterday, status, today) is False


def test_is_overdue_future_due_with_overdue_status():
    """A stored OVERDUE status with a future due date is not overdue by date"""
    today = date.today()
    assert is_overdue(today + timedelta(days=3), ReceivableStatus.OVERDUE, today) is False
