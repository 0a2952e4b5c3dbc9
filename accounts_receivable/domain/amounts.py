"""Outstanding-amount and overdue calculations for receivables"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from accounts_receivable.domain.models import ReceivableStatus, SETTLED_STATUSES

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def outstanding_amount(amount_expected: Decimal, amount_received: Optional[Decimal]) -> Decimal:
    """
    Amount still owed on a single receivable.

    Over-payment yields zero rather than a negative remainder, so a client that
    paid too much on one invoice never offsets what another invoice still owes.

    Example:
        expected 5000.00, received 2500.00 → 2500.00
        expected 100.00,  received 150.00  → 0.00
    """
    remainder = amount_expected - (amount_received or ZERO)
    return max(remainder, ZERO).quantize(CENTS)


def total_outstanding(receivables: Iterable) -> Decimal:
    """Sum outstanding_amount over objects exposing amount_expected / amount_received"""
    total = sum(
        (outstanding_amount(r.amount_expected, r.amount_received) for r in receivables),
        ZERO,
    )
    return total.quantize(CENTS)


def is_overdue(due_date: date, status: ReceivableStatus, as_of: date) -> bool:
    """
    Due date has passed and the receivable is not settled.

    Independent of whether the stored status is literally OVERDUE.
    """
    return due_date < as_of and ReceivableStatus(status) not in SETTLED_STATUSES
