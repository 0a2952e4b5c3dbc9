"""Receivable lifecycle: creation defaults, updates, status patches, totals and documents"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from accounts_receivable.domain.amounts import ZERO, total_outstanding
from accounts_receivable.domain.exceptions import DuplicateInvoiceReferenceError, InvalidArgumentError
from accounts_receivable.domain.models import (
    OPEN_STATUSES,
    SETTLED_STATUSES,
    UNSET,
    ReceivableData,
    ReceivableStatus,
)
from accounts_receivable.infrastructure.clients.documents import DocumentStorage
from accounts_receivable.infrastructure.database.models import Receivable
from accounts_receivable.infrastructure.database.repositories import ReceivableRepository
from accounts_receivable.utils.date_utils import today

logger = logging.getLogger(__name__)


class ReceivableService:
    """
    Business rules for receivables.

    Each write commits its own transaction. Status transitions are not
    restricted: any status may be applied after any other.
    """

    def __init__(self, db: Session, document_storage: DocumentStorage):
        self.db = db
        self.repository = ReceivableRepository(db)
        self.document_storage = document_storage

    # --- validation helpers ---

    @staticmethod
    def _require_references(data: ReceivableData) -> None:
        if data.client_id is None or data.project_id is None:
            raise InvalidArgumentError("Client ID and Project ID are required")

    @staticmethod
    def _require_non_negative(amount_received: Optional[Decimal]) -> None:
        if amount_received is not None and amount_received < 0:
            raise InvalidArgumentError("Amount received cannot be negative")

    @staticmethod
    def _clean_invoice_reference(invoice_reference: Optional[str]) -> Optional[str]:
        """Blank references are stored as null so they never collide on the unique index"""
        if invoice_reference is None or not invoice_reference.strip():
            return None
        return invoice_reference

    def _require_unique_invoice(self, invoice_reference: Optional[str], exclude_id: uuid.UUID | None = None) -> None:
        if invoice_reference and self.repository.invoice_reference_taken(invoice_reference, exclude_id):
            raise DuplicateInvoiceReferenceError(invoice_reference)

    # --- CRUD ---

    def create(self, data: ReceivableData) -> Receivable:
        """Create a receivable, defaulting status to PENDING and amount received to zero"""
        logger.info(
            "Creating receivable",
            extra={"client_id": str(data.client_id), "project_id": data.project_id},
        )
        self._require_references(data)
        self._require_non_negative(data.amount_received)
        invoice_reference = self._clean_invoice_reference(data.invoice_reference)
        self._require_unique_invoice(invoice_reference)

        receivable = Receivable(
            client_id=data.client_id,
            project_id=data.project_id,
            description=data.description,
            invoice_reference=invoice_reference,
            issue_date=data.issue_date,
            due_date=data.due_date,
            received_date=data.received_date,
            amount_expected=data.amount_expected,
            amount_received=data.amount_received if data.amount_received is not None else ZERO,
            status=data.status or ReceivableStatus.PENDING,
            blocker_reason=data.blocker_reason,
        )
        receivable.document_references = list(data.document_references or [])

        self.repository.create(receivable)
        self.db.commit()
        self.db.refresh(receivable)
        logger.info("Receivable created", extra={"receivable_id": str(receivable.id)})
        return receivable

    def get(self, receivable_id: uuid.UUID) -> Receivable:
        return self.repository.get(receivable_id)

    def list_all(self) -> List[Receivable]:
        return self.repository.list_all()

    def list_by_status(self, status: ReceivableStatus) -> List[Receivable]:
        return self.repository.list_by_status(status)

    def list_overdue(self, as_of: date | None = None) -> List[Receivable]:
        """Due date passed and not settled, whatever the stored status says"""
        return self.repository.list_overdue(as_of or today(), SETTLED_STATUSES)

    def list_blocked(self) -> List[Receivable]:
        return self.repository.list_with_blockers()

    def list_by_client(self, client_id: uuid.UUID) -> List[Receivable]:
        return self.repository.list_by_client(client_id)

    def list_by_project(self, project_id: int) -> List[Receivable]:
        return self.repository.list_by_project(project_id)

    def update(self, receivable_id: uuid.UUID, data: ReceivableData) -> Receivable:
        """Overwrite every mutable field; the document list is replaced wholesale"""
        logger.info("Updating receivable", extra={"receivable_id": str(receivable_id)})
        receivable = self.repository.get(receivable_id)

        self._require_references(data)
        if data.status is None:
            raise InvalidArgumentError("Status is required for update")
        self._require_non_negative(data.amount_received)
        invoice_reference = self._clean_invoice_reference(data.invoice_reference)
        self._require_unique_invoice(invoice_reference, exclude_id=receivable.id)

        receivable.client_id = data.client_id
        receivable.project_id = data.project_id
        receivable.description = data.description
        receivable.invoice_reference = invoice_reference
        receivable.issue_date = data.issue_date
        receivable.due_date = data.due_date
        receivable.received_date = data.received_date
        receivable.amount_expected = data.amount_expected
        receivable.amount_received = data.amount_received if data.amount_received is not None else ZERO
        receivable.status = data.status
        receivable.blocker_reason = data.blocker_reason
        receivable.document_references = list(data.document_references or [])

        self.repository.update(receivable)
        self.db.commit()
        self.db.refresh(receivable)
        return receivable

    def patch_status(
        self,
        receivable_id: uuid.UUID,
        status: ReceivableStatus,
        received_date: Optional[date] = None,
        amount_received: Optional[Decimal] = None,
        blocker_reason=UNSET,
    ) -> Receivable:
        """
        Apply a status change plus optional payment details.

        - status: always applied
        - received_date: set when given, never cleared
        - amount_received: absolute total received to date, not an increment
        - blocker_reason: UNSET leaves it alone, blank clears it, text sets it
        """
        logger.info(
            "Patching receivable status",
            extra={
                "receivable_id": str(receivable_id),
                "new_status": ReceivableStatus(status).value,
                "amount_received": str(amount_received) if amount_received is not None else None,
            },
        )
        receivable = self.repository.get(receivable_id)
        self._require_non_negative(amount_received)

        receivable.status = status
        if received_date is not None:
            receivable.received_date = received_date
        if amount_received is not None:
            receivable.amount_received = amount_received
        if blocker_reason is not UNSET and blocker_reason is not None:
            receivable.blocker_reason = blocker_reason if blocker_reason.strip() else None

        self.repository.update(receivable)
        self.db.commit()
        self.db.refresh(receivable)
        return receivable

    def delete(self, receivable_id: uuid.UUID) -> None:
        """Physically remove a receivable"""
        logger.info("Deleting receivable", extra={"receivable_id": str(receivable_id)})
        # TODO: check contract/billing dependencies before deleting once those services expose a lookup
        self.repository.delete(receivable_id)
        self.db.commit()

    # --- aggregates ---

    def total_pending_amount(self) -> Decimal:
        """Outstanding remainder over PENDING, OVERDUE, PARTIALLY_RECEIVED and IN_DISPUTE"""
        total = total_outstanding(self.repository.list_by_statuses(OPEN_STATUSES))
        logger.debug("Total pending amount calculated", extra={"total": str(total)})
        return total

    def total_overdue_amount(self, as_of: date | None = None) -> Decimal:
        """Outstanding remainder over receivables selected by the overdue query"""
        total = total_outstanding(self.list_overdue(as_of))
        logger.debug("Total overdue amount calculated", extra={"total": str(total)})
        return total

    # --- document references ---

    def add_document(
        self,
        receivable_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> str:
        receivable = self.repository.get(receivable_id)
        reference = self.document_storage.store(filename, content, content_type)
        receivable.document_references.append(reference)
        self.repository.update(receivable)
        self.db.commit()
        logger.info(
            "Document reference added",
            extra={"receivable_id": str(receivable_id), "document_reference": reference},
        )
        return reference

    def remove_document(self, receivable_id: uuid.UUID, reference: str) -> bool:
        """Remove a reference; an unknown reference is logged and ignored. Returns whether one was removed."""
        receivable = self.repository.get(receivable_id)
        if reference not in receivable.document_references:
            logger.warning(
                "Document reference not found on receivable",
                extra={"receivable_id": str(receivable_id), "document_reference": reference},
            )
            return False

        receivable.document_references.remove(reference)
        self.repository.update(receivable)
        self.db.commit()
        self.document_storage.delete(reference)
        logger.info(
            "Document reference removed",
            extra={"receivable_id": str(receivable_id), "document_reference": reference},
        )
        return True

    def list_documents(self, receivable_id: uuid.UUID) -> List[str]:
        receivable = self.repository.get(receivable_id)
        return list(receivable.document_references)
