"""Token authority: opaque bearer tokens bound to identities.

A bearer is `<tokenId>|<secret>`. The token id is a public lookup key,
so verification is one indexed lookup plus one constant-time compare
instead of a scan over every stored digest. Only the SHA256 digest of
the secret is persisted; the secret has 256 bits of entropy and is
never reused, so no per-token salt is needed.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Final

from django.conf import settings

from server.apps.accounts.entities import IssuedToken, TokenRecord
from server.apps.accounts.exceptions import (
    IdentityNotFoundError,
    MalformedTokenError,
    TokenMismatchError,
    TokenNotFoundError,
)
from server.apps.accounts.infrastructure.repositories import (
    DjangoIdentityRepository,
    DjangoTokenRepository,
    IdentityRepository,
    TokenRepository,
)
from server.apps.accounts.logic.credential_store import CredentialStore

logger = logging.getLogger(__name__)

BEARER_SEPARATOR: Final = '|'
DEFAULT_TOKEN_NAME: Final = 'api-token'

# Token id length in bytes (generates 32 hex chars)
_TOKEN_ID_BYTES: Final = 16
_MIN_SECRET_BYTES: Final = 32


def get_secret_bytes() -> int:
    """Get bearer secret entropy in bytes.

    Returns:
        ACCESS_TOKEN_SECRET_BYTES from settings (default 32), never
        less than 32.
    """
    configured = getattr(settings, 'ACCESS_TOKEN_SECRET_BYTES', _MIN_SECRET_BYTES)
    return max(configured, _MIN_SECRET_BYTES)


def is_single_token_per_login() -> bool:
    """Check whether a login revokes the identity's earlier tokens.

    Returns:
        ACCESS_SINGLE_TOKEN_PER_LOGIN from settings (default False).
    """
    return getattr(settings, 'ACCESS_SINGLE_TOKEN_PER_LOGIN', False)


def digest_secret(secret: str) -> str:
    """Compute the stored one-way digest of a bearer secret.

    Args:
        secret: Plaintext secret part of a bearer.

    Returns:
        Hex-encoded SHA256 digest.
    """
    return hashlib.sha256(secret.encode()).hexdigest()


def split_bearer(bearer: str) -> tuple[str, str]:
    """Split a bearer into token id and secret.

    Args:
        bearer: Presented bearer string.

    Returns:
        Tuple of (token_id, secret).

    Raises:
        MalformedTokenError: If the bearer is not printable ASCII,
            contains whitespace, or does not split into exactly two non-empty
            parts on the separator.
    """
    if not bearer.isascii() or not bearer.isprintable():
        raise MalformedTokenError('Bearer must be printable ASCII')
    if any(char.isspace() for char in bearer):
        raise MalformedTokenError('Bearer must not contain whitespace')

    token_id, separator, secret = bearer.partition(BEARER_SEPARATOR)
    if not separator or not token_id or not secret:
        raise MalformedTokenError('Bearer must be <tokenId>|<secret>')
    if BEARER_SEPARATOR in secret:
        raise MalformedTokenError('Bearer secret must not contain a separator')
    return token_id, secret


class TokenAuthority:
    """Issues, verifies and revokes bearer tokens."""

    def __init__(
        self,
        tokens: TokenRepository | None = None,
        identities: IdentityRepository | None = None,
    ) -> None:
        """Initialize the authority.

        Args:
            tokens: Token repository, the Django adapter by default.
            identities: Identity repository used for issuance lookups.
        """
        self._tokens = tokens or DjangoTokenRepository()
        self._identities = identities or DjangoIdentityRepository()

    def issue(
        self,
        identity_id: str,
        name: str = DEFAULT_TOKEN_NAME,
    ) -> IssuedToken:
        """Issue a new token for an identity.

        Args:
            identity_id: Identity the token is bound to.
            name: Label for the token.

        Returns:
            IssuedToken carrying the only copy of the bearer.

        Raises:
            IdentityNotFoundError: If the identity does not exist.
        """
        if self._identities.get(identity_id) is None:
            raise IdentityNotFoundError(identity_id)

        token_id = secrets.token_hex(_TOKEN_ID_BYTES)
        secret = secrets.token_urlsafe(get_secret_bytes())

        self._tokens.add(
            token_id=token_id,
            identity_id=identity_id,
            name=name,
            digest=digest_secret(secret),
        )
        logger.info(
            'Token issued for identity %s: %s',
            identity_id,
            token_id[:8],
        )
        return IssuedToken(
            token_id=token_id,
            bearer=f'{token_id}{BEARER_SEPARATOR}{secret}',
        )

    def verify(self, bearer: str) -> str:
        """Resolve a bearer to the identity it is bound to.

        Args:
            bearer: Presented `<tokenId>|<secret>` string.

        Returns:
            The bound identity id.

        Raises:
            MalformedTokenError: If the bearer cannot be parsed.
            TokenNotFoundError: If the token id is unknown or revoked.
            TokenMismatchError: If the secret does not match.
        """
        token_id, secret = split_bearer(bearer)

        found = self._tokens.get_with_digest(token_id)
        if found is None:
            logger.warning('Unknown token presented: %s', token_id[:8])
            raise TokenNotFoundError(token_id[:8])

        token, stored_digest = found
        if not hmac.compare_digest(digest_secret(secret), stored_digest):
            logger.warning('Token secret mismatch: %s', token_id[:8])
            raise TokenMismatchError(token_id[:8])

        return token.identity_id

    def revoke(self, token_id: str) -> None:
        """Revoke one token. Revoking an unknown token is a no-op."""
        if self._tokens.delete(token_id):
            logger.info('Token revoked: %s', token_id[:8])

    def revoke_all_for_identity(self, identity_id: str) -> int:
        """Revoke every token of an identity.

        Args:
            identity_id: Identity whose tokens are revoked.

        Returns:
            Number of tokens revoked.
        """
        revoked = self._tokens.delete_for_identity(identity_id)
        logger.info(
            'Revoked %d tokens for identity %s',
            revoked,
            identity_id,
        )
        return revoked

    def list_tokens(self, identity_id: str) -> list[TokenRecord]:
        """List an identity's tokens, newest first."""
        return self._tokens.list_for_identity(identity_id)

    def login(
        self,
        credentials: CredentialStore,
        email: str,
        password: str,
        name: str = DEFAULT_TOKEN_NAME,
    ) -> IssuedToken:
        """Authenticate with email/password and issue a token.

        When ACCESS_SINGLE_TOKEN_PER_LOGIN is enabled the identity's
        earlier tokens are revoked first; by default they stay valid.

        Args:
            credentials: Credential store checking the password.
            email: Login email.
            password: Plaintext password.
            name: Label for the new token.

        Returns:
            Newly issued token.

        Raises:
            InvalidCredentialsError: If the credentials do not match.
        """
        identity = credentials.verify_credentials(email, password)
        if is_single_token_per_login():
            self.revoke_all_for_identity(identity.id)
        return self.issue(identity.id, name=name)
