"""SQLAlchemy ORM models for receivables and their document references"""

import uuid

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from accounts_receivable.domain.models import ReceivableStatus

Base = declarative_base()


class Receivable(Base):
    """Amount owed by a client for a project"""

    __tablename__ = "receivables"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    project_id = Column(Integer, nullable=False, index=True)
    description = Column(String(300), nullable=False)
    invoice_reference = Column(String(100), nullable=True, unique=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    received_date = Column(Date, nullable=True)
    amount_expected = Column(Numeric(15, 2), nullable=False)
    amount_received = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(
        Enum(ReceivableStatus, native_enum=False, length=20, validate_strings=True),
        nullable=False,
        default=ReceivableStatus.PENDING,
        index=True,
    )
    blocker_reason = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    documents = relationship(
        "ReceivableDocument",
        back_populates="receivable",
        cascade="all, delete-orphan",
        order_by="ReceivableDocument.id",
    )

    # Plain list of reference strings backed by the child table
    document_references = association_proxy(
        "documents",
        "reference",
        creator=lambda reference: ReceivableDocument(reference=reference),
    )


class ReceivableDocument(Base):
    """Opaque reference to a supporting document held by the storage service"""

    __tablename__ = "receivable_document_references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    receivable_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("receivables.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reference = Column("document_reference", String(500), nullable=False)

    receivable = relationship("Receivable", back_populates="documents")
