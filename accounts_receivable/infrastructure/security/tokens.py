"""Bearer token verification with a pre-shared HMAC key"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from accounts_receivable.domain.exceptions import ConfigurationError, InvalidTokenError
from accounts_receivable.domain.models import TokenClaims
from accounts_receivable.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

EXPIRED = "expired"
BAD_SIGNATURE = "bad_signature"
MALFORMED = "malformed"
UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
MISSING_CLAIMS = "missing_claims"
SUBJECT_MISMATCH = "subject_mismatch"


class TokenValidator:
    """Verifies signed bearer tokens and extracts subject and expiry"""

    def __init__(self, secret_key: str, algorithms: Sequence[str] = ("HS256",)):
        if not secret_key or not secret_key.strip():
            logger.error("JWT secret key is not configured (JWT_SECRET_KEY)")
            raise ConfigurationError("JWT secret key must be configured")
        if not algorithms:
            raise ConfigurationError("At least one JWT algorithm must be allowed")
        self._secret_key = secret_key
        self.algorithms = list(algorithms)

    def decode(self, token: str) -> TokenClaims:
        """
        Verify the token and return its claims.

        Raises:
            InvalidTokenError: reason is one of expired, bad_signature, malformed,
                unsupported_algorithm, missing_claims
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise InvalidTokenError(MALFORMED, str(e)) from e

        if header.get("alg") not in self.algorithms:
            raise InvalidTokenError(UNSUPPORTED_ALGORITHM, f"Algorithm not allowed: {header.get('alg')}")

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=self.algorithms)
        except ExpiredSignatureError as e:
            raise InvalidTokenError(EXPIRED, str(e)) from e
        except JWTClaimsError as e:
            raise InvalidTokenError(MALFORMED, str(e)) from e
        except JWTError as e:
            raise InvalidTokenError(BAD_SIGNATURE, str(e)) from e

        subject = payload.get("sub")
        exp = payload.get("exp")
        if not subject or exp is None:
            raise InvalidTokenError(MISSING_CLAIMS, "Token must carry sub and exp claims")

        try:
            expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError, TypeError) as e:
            raise InvalidTokenError(MALFORMED, f"Unusable exp claim: {exp!r}") from e
        # Checked here as well as by the library so expiry never depends on its leeway settings
        if expires_at < utc_now():
            raise InvalidTokenError(EXPIRED, f"Token expired at {expires_at.isoformat()}")

        return TokenClaims(subject=str(subject), expires_at=expires_at)

    def validate(self, token: str, expected_subject: Optional[str] = None) -> Optional[TokenClaims]:
        """Return claims for a valid token, None for any kind of invalid token"""
        try:
            claims = self.decode(token)
        except InvalidTokenError as e:
            logger.warning("JWT validation failed", extra={"reason": e.reason, "detail": str(e)})
            return None

        if expected_subject is not None and claims.subject != expected_subject:
            logger.warning(
                "JWT subject mismatch",
                extra={"reason": SUBJECT_MISMATCH, "subject": claims.subject},
            )
            return None

        return claims
