"""Receivable endpoints: CRUD, status patch, summaries and document references"""

import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status

from accounts_receivable.api.dependencies import (
    authorize_request,
    get_receivable_service,
    get_request_id,
)
from accounts_receivable.api.v1.schemas import ErrorResponse, ReceivableRequest, ReceivableResponse
from accounts_receivable.domain.exceptions import InvalidArgumentError
from accounts_receivable.domain.models import UNSET, ReceivableStatus
from accounts_receivable.infrastructure.observability.logging import log_receivable_event
from accounts_receivable.infrastructure.observability.metrics import record_receivable_operation
from accounts_receivable.services.receivables import ReceivableService

router = APIRouter(
    prefix="/receivables",
    dependencies=[Depends(authorize_request)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        403: {"model": ErrorResponse, "description": "Insufficient role"},
    },
)

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Receivable not found"}}
BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid input"}}


def _username(request: Request) -> Optional[str]:
    return getattr(request.state, "username", None)


# --- CREATE ---


@router.post(
    "",
    response_model=ReceivableResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, 409: {"model": ErrorResponse}},
)
def create_receivable(
    body: ReceivableRequest,
    request: Request,
    response: Response,
    service: ReceivableService = Depends(get_receivable_service),
):
    """Create a receivable; status defaults to PENDING and amount received to zero"""
    receivable = service.create(body.to_domain())

    response.headers["Location"] = str(request.url_for("get_receivable", receivable_id=str(receivable.id)))
    record_receivable_operation("create", receivable.status.value)
    log_receivable_event(get_request_id(request), "create", str(receivable.id), _username(request))
    return receivable


# --- READ ---
# Fixed paths are registered before /{receivable_id} so they are not parsed as ids


@router.get("", response_model=List[ReceivableResponse])
def list_receivables(
    status_filter: Optional[ReceivableStatus] = Query(None, alias="status", description="Filter by status"),
    has_blocker: Optional[bool] = Query(None, alias="hasBlocker", description="Only receivables with a blocker"),
    client_id: Optional[uuid.UUID] = Query(None, alias="clientId"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    service: ReceivableService = Depends(get_receivable_service),
):
    """
    List receivables.

    Filters are exclusive, applied in order: hasBlocker=true, status, clientId, projectId.
    """
    if has_blocker:
        return service.list_blocked()
    if status_filter is not None:
        return service.list_by_status(status_filter)
    if client_id is not None:
        return service.list_by_client(client_id)
    if project_id is not None:
        return service.list_by_project(project_id)
    return service.list_all()


@router.get("/overdue", response_model=List[ReceivableResponse])
def list_overdue_receivables(service: ReceivableService = Depends(get_receivable_service)):
    """Receivables past due date that are not received, written off or canceled"""
    return service.list_overdue()


@router.get("/summary/pending-amount", response_model=Decimal)
def get_total_pending_amount(service: ReceivableService = Depends(get_receivable_service)):
    """Total still owed on open receivables; over-payments count as zero"""
    return service.total_pending_amount()


@router.get("/summary/overdue-amount", response_model=Decimal)
def get_total_overdue_amount(service: ReceivableService = Depends(get_receivable_service)):
    """Total still owed on overdue receivables"""
    return service.total_overdue_amount()


@router.get("/{receivable_id}", response_model=ReceivableResponse, responses={**NOT_FOUND})
def get_receivable(receivable_id: uuid.UUID, service: ReceivableService = Depends(get_receivable_service)):
    return service.get(receivable_id)


# --- UPDATE ---


@router.put("/{receivable_id}", response_model=ReceivableResponse, responses={**NOT_FOUND, **BAD_REQUEST})
def update_receivable(
    receivable_id: uuid.UUID,
    body: ReceivableRequest,
    request: Request,
    service: ReceivableService = Depends(get_receivable_service),
):
    """Replace every mutable field of a receivable"""
    receivable = service.update(receivable_id, body.to_domain())

    record_receivable_operation("update", receivable.status.value)
    log_receivable_event(get_request_id(request), "update", str(receivable.id), _username(request))
    return receivable


@router.patch("/{receivable_id}/status", response_model=ReceivableResponse, responses={**NOT_FOUND, **BAD_REQUEST})
def patch_receivable_status(
    receivable_id: uuid.UUID,
    request: Request,
    new_status: ReceivableStatus = Query(..., alias="status", description="New status"),
    received_date: Optional[date] = Query(None, alias="receivedDate", description="Date payment was received"),
    amount_received: Optional[Decimal] = Query(
        None,
        alias="amountReceived",
        ge=0,
        max_digits=15,
        decimal_places=2,
        description="Total received to date",
    ),
    blocker_reason: Optional[str] = Query(
        None,
        alias="blockerReason",
        max_length=1000,
        description="Omit to keep the current reason; send empty to clear it",
    ),
    service: ReceivableService = Depends(get_receivable_service),
):
    """Set status and, optionally, payment details and blocker reason"""
    receivable = service.patch_status(
        receivable_id,
        new_status,
        received_date=received_date,
        amount_received=amount_received,
        # An absent query parameter arrives as None; an explicit empty value arrives as ""
        blocker_reason=UNSET if blocker_reason is None else blocker_reason,
    )

    record_receivable_operation("patch_status", receivable.status.value)
    log_receivable_event(
        get_request_id(request),
        "patch_status",
        str(receivable.id),
        _username(request),
        new_status=receivable.status.value,
    )
    return receivable


# --- DELETE ---


@router.delete("/{receivable_id}", status_code=status.HTTP_204_NO_CONTENT, responses={**NOT_FOUND})
def delete_receivable(
    receivable_id: uuid.UUID,
    request: Request,
    service: ReceivableService = Depends(get_receivable_service),
):
    service.delete(receivable_id)

    record_receivable_operation("delete")
    log_receivable_event(get_request_id(request), "delete", str(receivable_id), _username(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- DOCUMENT REFERENCES ---


@router.post(
    "/{receivable_id}/documents",
    response_model=str,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **BAD_REQUEST},
)
def upload_receivable_document(
    receivable_id: uuid.UUID,
    request: Request,
    response: Response,
    file: UploadFile = File(...),
    service: ReceivableService = Depends(get_receivable_service),
):
    """Store a supporting document and attach its reference"""
    content = file.file.read()
    if not content:
        raise InvalidArgumentError("File cannot be empty")

    reference = service.add_document(receivable_id, file.filename or "upload", content, file.content_type)

    response.headers["Location"] = str(
        request.url_for("delete_receivable_document", receivable_id=str(receivable_id), document_reference=reference)
    )
    record_receivable_operation("add_document")
    log_receivable_event(
        get_request_id(request), "add_document", str(receivable_id), _username(request), document_reference=reference
    )
    return reference


@router.get("/{receivable_id}/documents", response_model=List[str], responses={**NOT_FOUND})
def list_receivable_documents(receivable_id: uuid.UUID, service: ReceivableService = Depends(get_receivable_service)):
    return service.list_documents(receivable_id)


@router.delete(
    "/{receivable_id}/documents/{document_reference}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND},
)
def delete_receivable_document(
    receivable_id: uuid.UUID,
    document_reference: str,
    request: Request,
    service: ReceivableService = Depends(get_receivable_service),
):
    """Detach a document reference; an unknown reference still answers 204"""
    if service.remove_document(receivable_id, document_reference):
        record_receivable_operation("remove_document")
        log_receivable_event(
            get_request_id(request),
            "remove_document",
            str(receivable_id),
            _username(request),
            document_reference=document_reference,
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
