"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from accounts_receivable.domain.amounts import is_overdue
from accounts_receivable.domain.models import ReceivableData, ReceivableStatus
from accounts_receivable.utils.date_utils import today


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case accepted on input"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReceivableRequest(CamelModel):
    """Request body for POST /receivables and PUT /receivables/{id}"""

    id: Optional[uuid.UUID] = Field(None, description="Ignored; ids are generated by the service")
    # Optional here so a missing reference surfaces as InvalidArgumentError from the service
    client_id: Optional[uuid.UUID] = Field(None, description="Billing client identifier")
    project_id: Optional[int] = Field(None, description="Project identifier")
    description: str = Field(..., min_length=1, max_length=300)
    invoice_reference: Optional[str] = Field(None, max_length=100)
    issue_date: date
    due_date: date
    received_date: Optional[date] = None
    amount_expected: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    amount_received: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    status: Optional[ReceivableStatus] = None
    blocker_reason: Optional[str] = Field(None, max_length=1000)
    document_references: Optional[List[str]] = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Description cannot be blank")
        return value

    @field_validator("invoice_reference")
    @classmethod
    def blank_invoice_reference_is_null(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    def to_domain(self) -> ReceivableData:
        return ReceivableData(
            client_id=self.client_id,
            project_id=self.project_id,
            description=self.description,
            issue_date=self.issue_date,
            due_date=self.due_date,
            amount_expected=self.amount_expected,
            invoice_reference=self.invoice_reference,
            received_date=self.received_date,
            amount_received=self.amount_received,
            status=self.status,
            blocker_reason=self.blocker_reason,
            document_references=self.document_references,
        )


class ReceivableResponse(CamelModel):
    """Receivable as returned by every read and write endpoint"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    client_id: uuid.UUID
    project_id: int
    description: str
    invoice_reference: Optional[str] = None
    issue_date: date
    due_date: date
    received_date: Optional[date] = None
    amount_expected: Decimal
    amount_received: Decimal
    status: ReceivableStatus
    blocker_reason: Optional[str] = None
    document_references: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("document_references", mode="before")
    @classmethod
    def copy_references(cls, value):
        return list(value) if value is not None else []

    @computed_field
    @property
    def status_label(self) -> str:
        return self.status.label

    @computed_field
    @property
    def overdue(self) -> bool:
        """Due date passed and status not settled, regardless of the stored status"""
        return is_overdue(self.due_date, self.status, today())


class ErrorResponse(BaseModel):
    """Body returned for 4xx/5xx responses"""

    detail: str
