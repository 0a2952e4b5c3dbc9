"""Unit tests for the auth service user lookup client"""

import httpx
import pytest

from accounts_receivable.domain.exceptions import AuthServiceUnavailableError, UserNotFoundError
from accounts_receivable.infrastructure.clients.auth import AuthServiceClient, normalize_roles


def client_for(handler) -> AuthServiceClient:
    return AuthServiceClient(
        base_url="http://auth.test",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def test_normalize_roles():
    """Roles are upper-cased and stripped of any ROLE_ prefix"""
    assert normalize_roles(["admin", "ROLE_sales", " Manager "]) == frozenset({"ADMIN", "SALES", "MANAGER"})
    assert normalize_roles(None) == frozenset()


async def test_lookup_user_success():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/users/username/alice"
        return httpx.Response(
            200,
            json={"id": "3f1c", "username": "alice", "password": "$2a$hash", "roles": ["accountant", "ROLE_SALES"]},
        )

    identity = await client_for(handler).lookup_user("alice")

    assert identity.username == "alice"
    assert identity.roles == frozenset({"ACCOUNTANT", "SALES"})


async def test_lookup_user_null_roles_means_no_roles():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"username": "bob", "roles": None})

    identity = await client_for(handler).lookup_user("bob")

    assert identity.roles == frozenset()


async def test_lookup_user_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not found"})

    with pytest.raises(UserNotFoundError):
        await client_for(handler).lookup_user("ghost")


async def test_lookup_user_server_error_is_not_reported_as_not_found():
    """Upstream failures surface as unavailability, with status and body kept for logs"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance window")

    with pytest.raises(AuthServiceUnavailableError) as exc_info:
        await client_for(handler).lookup_user("alice")

    assert not isinstance(exc_info.value, UserNotFoundError)
    assert exc_info.value.status_code == 503
    assert exc_info.value.body == "maintenance window"


async def test_lookup_user_malformed_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy error</html>")

    with pytest.raises(AuthServiceUnavailableError):
        await client_for(handler).lookup_user("alice")


async def test_lookup_user_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AuthServiceUnavailableError):
        await client_for(handler).lookup_user("alice")


async def test_lookup_user_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(AuthServiceUnavailableError) as exc_info:
        await client_for(handler).lookup_user("alice")

    assert "timeout" in str(exc_info.value)
