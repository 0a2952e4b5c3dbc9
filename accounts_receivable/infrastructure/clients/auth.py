"""Auth service HTTP client for resolving token subjects to role-bearing identities"""

import logging

import httpx

from accounts_receivable.config import settings
from accounts_receivable.domain.exceptions import AuthServiceUnavailableError, UserNotFoundError
from accounts_receivable.domain.models import UserIdentity
from accounts_receivable.infrastructure.observability.metrics import auth_service_failures_counter

logger = logging.getLogger(__name__)

ROLE_PREFIX = "ROLE_"


def normalize_roles(roles) -> frozenset:
    """Upper-case role names and drop any ROLE_ prefix; None means no roles"""
    normalized = set()
    for role in roles or []:
        name = str(role).strip().upper()
        if name.startswith(ROLE_PREFIX):
            name = name[len(ROLE_PREFIX):]
        if name:
            normalized.add(name)
    return frozenset(normalized)


class AuthServiceClient:
    """Client for the external auth service user directory"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.auth_service_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def lookup_user(self, username: str) -> UserIdentity:
        """
        Fetch a user and its roles by username. Single attempt, no retry.

        Raises:
            UserNotFoundError: Auth service answered 404 or an empty body
            AuthServiceUnavailableError: On timeout, network errors, other
                non-2xx statuses, or a malformed body
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(f"{self.base_url}/api/users/username/{username}")
                if response.status_code == 404:
                    logger.warning("User not found in auth service", extra={"username": username})
                    raise UserNotFoundError(f"User not found: {username}")
                response.raise_for_status()

                data = response.json()
                if data is None:
                    logger.warning("Auth service returned empty user", extra={"username": username})
                    raise UserNotFoundError(f"User not found: {username}")

                return UserIdentity(
                    username=data["username"],
                    roles=normalize_roles(data.get("roles")),
                )

            except httpx.TimeoutException as e:
                auth_service_failures_counter.labels(reason="timeout").inc()
                logger.error(
                    "Auth service timeout",
                    extra={"username": username, "timeout_seconds": self.timeout},
                )
                raise AuthServiceUnavailableError(f"Auth service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                auth_service_failures_counter.labels(reason="http_status").inc()
                logger.error(
                    "Auth service error response",
                    extra={
                        "username": username,
                        "upstream_status": e.response.status_code,
                        "upstream_body": e.response.text,
                    },
                )
                raise AuthServiceUnavailableError(
                    f"Auth service error: {e.response.status_code}",
                    status_code=e.response.status_code,
                    body=e.response.text,
                ) from e
            except httpx.RequestError as e:
                auth_service_failures_counter.labels(reason="network").inc()
                logger.error("Auth service unreachable", extra={"username": username, "error": str(e)})
                raise AuthServiceUnavailableError(f"Auth service unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                auth_service_failures_counter.labels(reason="malformed_body").inc()
                logger.error(
                    "Invalid user payload from auth service",
                    extra={
                        "username": username,
                        "upstream_status": response.status_code,
                        "upstream_body": response.text,
                    },
                )
                raise AuthServiceUnavailableError(
                    f"Invalid user data from auth service: {e}",
                    status_code=response.status_code,
                    body=response.text,
                ) from e
