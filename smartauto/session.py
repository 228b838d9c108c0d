"""Per-request session context for the authenticated customer.

A context is built fresh for each request from its bearer token and is
either anonymous or authenticated. Submission flows read the identity from
it to stamp ``user_id`` and ``customer_email`` on what they persist.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import NotAuthenticated


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str


@dataclass
class AuthContext:
    identity: Optional[Identity] = None
    token: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, token: str, claims: Dict[str, Any]) -> "AuthContext":
        identity = Identity(user_id=claims["sub"], email=claims.get("email") or "")
        return cls(identity=identity, token=token, claims=dict(claims))

    @property
    def authenticated(self) -> bool:
        return self.identity is not None and bool(self.identity.email)

    @property
    def role(self) -> Optional[str]:
        return self.claims.get("role")

    def require(self) -> Identity:
        if not self.authenticated:
            raise NotAuthenticated()
        return self.identity

    def sign_out(self) -> None:
        self.identity = None
        self.token = None
        self.claims = {}
