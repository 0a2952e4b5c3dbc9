"""Role-based access rules for HTTP requests"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Sequence

from accounts_receivable.domain.models import UserIdentity

ADMIN = "ADMIN"
MANAGER = "MANAGER"
ACCOUNTANT = "ACCOUNTANT"
FINANCIAL_VIEWER = "FINANCIAL_VIEWER"
SALES = "SALES"

READ_ROLES = frozenset({ADMIN, MANAGER, ACCOUNTANT, FINANCIAL_VIEWER, SALES})
WRITE_ROLES = frozenset({ADMIN, ACCOUNTANT, SALES})
STATUS_ROLES = frozenset({ADMIN, ACCOUNTANT, SALES, MANAGER})
DELETE_ROLES = frozenset({ADMIN})


class AccessDecision(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AccessRule:
    """
    One row of the access table.

    method=None matches any verb. A pattern ending in "/**" matches its base
    path and every subpath. public rules need no identity; otherwise an empty
    role set means any authenticated identity is enough.
    """

    method: Optional[str]
    pattern: str
    roles: FrozenSet[str] = frozenset()
    public: bool = False

    def matches(self, method: str, path: str) -> bool:
        if self.method is not None and self.method != method.upper():
            return False
        return path_matches(self.pattern, path)


def _normalize_path(path: str) -> str:
    path = "/" + path.strip("/")
    return path


def path_matches(pattern: str, path: str) -> bool:
    path = _normalize_path(path)
    if pattern.endswith("/**"):
        base = _normalize_path(pattern[:-3])
        if base == "/":
            return True
        return path == base or path.startswith(base + "/")
    return path == _normalize_path(pattern)


# Evaluated top to bottom, first match wins
DEFAULT_RULES: Sequence[AccessRule] = (
    AccessRule(None, "/health", public=True),
    AccessRule(None, "/metrics", public=True),
    AccessRule(None, "/docs/**", public=True),
    AccessRule(None, "/redoc/**", public=True),
    AccessRule(None, "/openapi.json", public=True),
    AccessRule("GET", "/receivables/**", roles=READ_ROLES),
    AccessRule("POST", "/receivables", roles=WRITE_ROLES),
    AccessRule("PUT", "/receivables/**", roles=WRITE_ROLES),
    AccessRule("PATCH", "/receivables/**", roles=STATUS_ROLES),
    AccessRule("DELETE", "/receivables/**", roles=DELETE_ROLES),
    AccessRule(None, "/**"),
)


class AccessGate:
    """Maps (method, path, identity) to an access decision using a static rule table"""

    def __init__(self, rules: Sequence[AccessRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def match(self, method: str, path: str) -> AccessRule:
        for rule in self.rules:
            if rule.matches(method, path):
                return rule
        # Unreachable with DEFAULT_RULES; custom tables fall back to authenticated-only
        return AccessRule(None, "/**")

    def requires_authentication(self, method: str, path: str) -> bool:
        return not self.match(method, path).public

    def evaluate(self, method: str, path: str, identity: Optional[UserIdentity]) -> AccessDecision:
        rule = self.match(method, path)
        if rule.public:
            return AccessDecision.ALLOW
        if identity is None:
            return AccessDecision.UNAUTHENTICATED
        if not rule.roles or identity.has_any_role(rule.roles):
            return AccessDecision.ALLOW
        return AccessDecision.FORBIDDEN

    def is_allowed(self, method: str, path: str, identity: Optional[UserIdentity]) -> bool:
        return self.evaluate(method, path, identity) is AccessDecision.ALLOW
