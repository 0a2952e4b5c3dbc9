"""Dependency injection for FastAPI endpoints"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from accounts_receivable.domain.access import AccessDecision, AccessGate
from accounts_receivable.domain.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    AuthServiceUnavailableError,
    UserNotFoundError,
)
from accounts_receivable.domain.models import UserIdentity
from accounts_receivable.infrastructure.clients.auth import AuthServiceClient
from accounts_receivable.infrastructure.clients.documents import DocumentStorage, StubDocumentStorage
from accounts_receivable.infrastructure.database.session import get_db
from accounts_receivable.infrastructure.observability.logging import log_auth_failure
from accounts_receivable.infrastructure.observability.metrics import auth_failures_counter
from accounts_receivable.infrastructure.security.tokens import TokenValidator
from accounts_receivable.services.receivables import ReceivableService

logger = logging.getLogger(__name__)

# auto_error=False so a missing header flows through the same 401 path as a bad token
bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_token_validator(request: Request) -> TokenValidator:
    """Validator built once at startup by the app factory"""
    return request.app.state.token_validator


def get_access_gate(request: Request) -> AccessGate:
    return request.app.state.access_gate


def get_auth_client() -> AuthServiceClient:
    """Provide auth service client instance"""
    return AuthServiceClient()


def get_document_storage() -> DocumentStorage:
    """Provide document storage backend"""
    return StubDocumentStorage()


def get_receivable_service(
    db: Session = Depends(get_db),
    document_storage: DocumentStorage = Depends(get_document_storage),
) -> ReceivableService:
    return ReceivableService(db, document_storage)


def _reject(request: Request, reason: str, username: Optional[str] = None) -> AuthenticationError:
    auth_failures_counter.labels(reason=reason).inc()
    log_auth_failure(get_request_id(request), reason, request.method, request.url.path, username)
    return AuthenticationError("Could not validate credentials")


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    validator: TokenValidator = Depends(get_token_validator),
    auth_client: AuthServiceClient = Depends(get_auth_client),
) -> UserIdentity:
    """
    Resolve the caller from the bearer token.

    Token validity is checked first, then the subject is looked up in the auth
    service. Every failure, including auth service outages, becomes the same
    generic AuthenticationError; upstream details stay in the logs.
    """
    if credentials is None or not credentials.credentials:
        raise _reject(request, "missing_token")

    claims = validator.validate(credentials.credentials)
    if claims is None:
        raise _reject(request, "invalid_token")

    try:
        identity = await auth_client.lookup_user(claims.subject)
    except UserNotFoundError:
        raise _reject(request, "user_not_found", claims.subject)
    except AuthServiceUnavailableError:
        raise _reject(request, "auth_unavailable", claims.subject)

    if identity.username != claims.subject:
        raise _reject(request, "subject_mismatch", claims.subject)

    request.state.username = identity.username
    return identity


async def authorize_request(
    request: Request,
    gate: AccessGate = Depends(get_access_gate),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    validator: TokenValidator = Depends(get_token_validator),
    auth_client: AuthServiceClient = Depends(get_auth_client),
) -> Optional[UserIdentity]:
    """Router-level guard applying the access table to the current request"""
    if not gate.requires_authentication(request.method, request.url.path):
        return None

    identity = await get_current_user(request, credentials, validator, auth_client)

    decision = gate.evaluate(request.method, request.url.path, identity)
    if decision is AccessDecision.FORBIDDEN:
        auth_failures_counter.labels(reason="forbidden").inc()
        log_auth_failure(get_request_id(request), "forbidden", request.method, request.url.path, identity.username)
        raise AccessDeniedError(f"User {identity.username} is not allowed to {request.method} {request.url.path}")
    if decision is AccessDecision.UNAUTHENTICATED:
        raise _reject(request, "missing_identity")

    return identity
