"""Unit tests for bearer token validation"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from jose import jwt

from accounts_receivable.config import settings
from accounts_receivable.domain.exceptions import ConfigurationError, InvalidTokenError
from accounts_receivable.infrastructure.security.tokens import TokenValidator


@pytest.fixture
def validator() -> TokenValidator:
    return TokenValidator(settings.jwt_secret_key, ["HS256", "HS384", "HS512"])


@pytest.mark.parametrize("key", ["", "   ", None])
def test_missing_key_fails_construction(key):
    """Validator cannot be built without a signing key"""
    with pytest.raises(ConfigurationError):
        TokenValidator(key)


def test_valid_token_returns_subject_and_expiry(validator: TokenValidator, make_token):
    token = make_token("accountant", expires_in=timedelta(minutes=5))

    claims = validator.validate(token)

    assert claims is not None
    assert claims.subject == "accountant"
    assert claims.expires_at > datetime.now(timezone.utc)


def test_expired_token_rejected(validator: TokenValidator, make_token):
    """Well-signed, well-formed but expired token is invalid"""
    token = make_token("admin", expires_in=timedelta(minutes=-1))

    assert validator.validate(token) is None
    with pytest.raises(InvalidTokenError) as exc_info:
        validator.decode(token)
    assert exc_info.value.reason == "expired"


def test_expiry_checked_against_service_clock(validator: TokenValidator, make_token):
    """Expiry is enforced even when the signing library still accepts the token"""
    token = make_token("admin", expires_in=timedelta(seconds=60))
    later = datetime.now(timezone.utc) + timedelta(minutes=5)

    with patch("accounts_receivable.infrastructure.security.tokens.utc_now", return_value=later):
        with pytest.raises(InvalidTokenError) as exc_info:
            validator.decode(token)

    assert exc_info.value.reason == "expired"


def test_wrong_signature_rejected(validator: TokenValidator, make_token):
    token = make_token("admin", secret="some-other-secret-key-of-similar-length!!")

    with pytest.raises(InvalidTokenError) as exc_info:
        validator.decode(token)
    assert exc_info.value.reason == "bad_signature"
    assert validator.validate(token) is None


def test_malformed_token_rejected(validator: TokenValidator):
    with pytest.raises(InvalidTokenError) as exc_info:
        validator.decode("not-a-jwt")
    assert exc_info.value.reason == "malformed"
    assert validator.validate("not-a-jwt") is None


def test_disallowed_algorithm_rejected(make_token):
    validator = TokenValidator(settings.jwt_secret_key, ["HS512"])
    token = make_token("admin", algorithm="HS256")

    with pytest.raises(InvalidTokenError) as exc_info:
        validator.decode(token)
    assert exc_info.value.reason == "unsupported_algorithm"


def test_token_without_subject_rejected(validator: TokenValidator, make_token):
    token = make_token(subject=None)

    with pytest.raises(InvalidTokenError) as exc_info:
        validator.decode(token)
    assert exc_info.value.reason == "missing_claims"


def test_token_without_expiry_rejected(validator: TokenValidator, make_token):
    token = make_token("admin", expires_in=None)

    assert validator.validate(token) is None


def test_expected_subject_mismatch_rejected(validator: TokenValidator, make_token):
    token = make_token("sales")

    assert validator.validate(token, expected_subject="sales") is not None
    assert validator.validate(token, expected_subject="admin") is None


def test_out_of_range_expiry_is_malformed(validator: TokenValidator):
    """A signed token whose exp cannot be represented as a date is invalid, not an error"""
    token = jwt.encode({"sub": "admin", "exp": 10**20}, settings.jwt_secret_key, algorithm="HS256")

    with pytest.raises(InvalidTokenError) as exc_info:
        validator.decode(token)
    assert exc_info.value.reason == "malformed"
    assert validator.validate(token) is None
