"""Domain models - pure Python dataclasses and enums representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, List, Optional


class ReceivableStatus(str, Enum):
    """Lifecycle status of a receivable. Any status may be set after any other."""

    PENDING = "PENDING"  # invoice issued, waiting for payment
    RECEIVED = "RECEIVED"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    OVERDUE = "OVERDUE"
    IN_DISPUTE = "IN_DISPUTE"  # client contests the charge
    WRITTEN_OFF = "WRITTEN_OFF"  # deemed uncollectible
    CANCELED = "CANCELED"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


# Statuses that end collection; never counted as overdue
SETTLED_STATUSES: FrozenSet[ReceivableStatus] = frozenset(
    {ReceivableStatus.RECEIVED, ReceivableStatus.WRITTEN_OFF, ReceivableStatus.CANCELED}
)

# Statuses that still contribute to the pending amount
OPEN_STATUSES: FrozenSet[ReceivableStatus] = frozenset(
    {
        ReceivableStatus.PENDING,
        ReceivableStatus.OVERDUE,
        ReceivableStatus.PARTIALLY_RECEIVED,
        ReceivableStatus.IN_DISPUTE,
    }
)


class _Unset:
    """Marker for a patch field the caller did not send"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass
class ReceivableData:
    """Caller-supplied receivable fields for create and full update"""

    client_id: Optional[uuid.UUID]
    project_id: Optional[int]
    description: str
    issue_date: date
    due_date: date
    amount_expected: Decimal
    invoice_reference: Optional[str] = None
    received_date: Optional[date] = None
    amount_received: Optional[Decimal] = None
    status: Optional[ReceivableStatus] = None
    blocker_reason: Optional[str] = None
    document_references: Optional[List[str]] = None


@dataclass(frozen=True)
class TokenClaims:
    """Claims extracted from a verified bearer token"""

    subject: str
    expires_at: datetime


@dataclass(frozen=True)
class UserIdentity:
    """Caller identity resolved through the auth service"""

    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_any_role(self, roles) -> bool:
        return not self.roles.isdisjoint(roles)
