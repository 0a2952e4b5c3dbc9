"""Data access layer for receivables"""

import uuid
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from accounts_receivable.domain.exceptions import ReceivableNotFoundError
from accounts_receivable.domain.models import ReceivableStatus
from accounts_receivable.infrastructure.database.models import Receivable


class ReceivableRepository:
    """Repository for receivables; flushes only, callers own the commit"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Receivable).order_by(Receivable.due_date, Receivable.created_at)

    def create(self, receivable: Receivable) -> Receivable:
        """Persist a new receivable and assign its id"""
        self.db.add(receivable)
        self.db.flush()  # Get ID without committing
        return receivable

    def find(self, receivable_id: uuid.UUID) -> Optional[Receivable]:
        return self.db.get(Receivable, receivable_id)

    def get(self, receivable_id: uuid.UUID) -> Receivable:
        """Fetch a receivable or raise ReceivableNotFoundError"""
        receivable = self.find(receivable_id)
        if receivable is None:
            raise ReceivableNotFoundError(receivable_id)
        return receivable

    def list_all(self) -> List[Receivable]:
        return self._query().all()

    def list_by_status(self, status: ReceivableStatus) -> List[Receivable]:
        return self._query().filter(Receivable.status == status).all()

    def list_by_statuses(self, statuses: Iterable[ReceivableStatus]) -> List[Receivable]:
        return self._query().filter(Receivable.status.in_(list(statuses))).all()

    def list_overdue(self, as_of: date, excluded_statuses: Iterable[ReceivableStatus]) -> List[Receivable]:
        """Receivables due strictly before as_of whose status is not excluded"""
        return (
            self._query()
            .filter(Receivable.due_date < as_of)
            .filter(Receivable.status.not_in(list(excluded_statuses)))
            .all()
        )

    def list_with_blockers(self) -> List[Receivable]:
        return (
            self._query()
            .filter(Receivable.blocker_reason.is_not(None))
            .filter(Receivable.blocker_reason != "")
            .all()
        )

    def list_by_client(self, client_id: uuid.UUID) -> List[Receivable]:
        return self._query().filter(Receivable.client_id == client_id).all()

    def list_by_project(self, project_id: int) -> List[Receivable]:
        return self._query().filter(Receivable.project_id == project_id).all()

    def invoice_reference_taken(self, invoice_reference: str, exclude_id: uuid.UUID | None = None) -> bool:
        query = self.db.query(Receivable.id).filter(Receivable.invoice_reference == invoice_reference)
        if exclude_id is not None:
            query = query.filter(Receivable.id != exclude_id)
        return query.first() is not None

    def update(self, receivable: Receivable) -> Receivable:
        """Flush changes to a tracked receivable; the id is never reassigned"""
        self.db.flush()
        return receivable

    def delete(self, receivable_id: uuid.UUID) -> None:
        """Physically remove a receivable and its document references"""
        receivable = self.get(receivable_id)
        self.db.delete(receivable)
        self.db.flush()
