"""Plain data records handed out by the accounts app.

Logic code never receives ORM instances: repositories convert rows to
these frozen records, so nothing outside the adapters can save them.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    """An identity without its password hash."""

    id: str
    name: str
    email: str
    is_admin: bool
    created_at: datetime


@dataclass(frozen=True, slots=True)
class TokenRecord:
    """Metadata of an issued token (never the secret)."""

    token_id: str
    identity_id: str
    name: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """Result of issuing a token.

    `bearer` is the only copy of the plaintext secret that will ever
    exist; hand it to the client and drop it.
    """

    token_id: str
    bearer: str

    def __repr__(self) -> str:
        """Keep the bearer out of logs and tracebacks."""
        return f'IssuedToken(token_id={self.token_id[:8]!r}, bearer=***)'
