"""Repository protocols and Django ORM adapters for accounts app."""

import logging
from typing import Protocol, final

from django.db import IntegrityError, transaction

from server.apps.accounts.entities import IdentityRecord, TokenRecord
from server.apps.accounts.exceptions import DuplicateEmailError
from server.apps.accounts.models import AccessToken, Identity
from server.common.exceptions import translate_backend_errors

logger = logging.getLogger(__name__)


class IdentityRepository(Protocol):
    """Persistence of identities and their password hashes."""

    def add(
        self,
        name: str,
        email: str,
        password_hash: str,
        is_admin: bool,
    ) -> IdentityRecord:
        """Store a new identity, raising DuplicateEmailError on clash."""

    def get(self, identity_id: str) -> IdentityRecord | None:
        """Return the identity with this id, if any."""

    def get_with_hash(self, email: str) -> tuple[IdentityRecord, str] | None:
        """Return the identity for an email together with its hash."""

    def update_password_hash(self, identity_id: str, password_hash: str) -> bool:
        """Replace the hash, returning False if the identity is missing."""

    def update_admin(self, identity_id: str, is_admin: bool) -> IdentityRecord | None:
        """Set the admin flag, returning None if the identity is missing."""

    def update_profile(
        self,
        identity_id: str,
        name: str,
        email: str,
    ) -> IdentityRecord | None:
        """Replace name and email, raising DuplicateEmailError on clash."""

    def delete(self, identity_id: str) -> bool:
        """Delete an identity, returning False if it was missing."""

    def list_all(self) -> list[IdentityRecord]:
        """List every identity ordered by email."""


class TokenRepository(Protocol):
    """Persistence of token digests."""

    def add(
        self,
        token_id: str,
        identity_id: str,
        name: str,
        digest: str,
    ) -> TokenRecord:
        """Store a token digest."""

    def get_with_digest(self, token_id: str) -> tuple[TokenRecord, str] | None:
        """Return the token and its stored digest, if any."""

    def delete(self, token_id: str) -> int:
        """Delete one token, returning the number of rows removed."""

    def delete_for_identity(self, identity_id: str) -> int:
        """Delete every token of an identity."""

    def list_for_identity(self, identity_id: str) -> list[TokenRecord]:
        """List the tokens of an identity, newest first."""


def _identity_record(identity: Identity) -> IdentityRecord:
    return IdentityRecord(
        id=identity.id,
        name=identity.name,
        email=identity.email,
        is_admin=identity.is_admin,
        created_at=identity.created_at,
    )


def _token_record(token: AccessToken) -> TokenRecord:
    return TokenRecord(
        token_id=token.token_id,
        identity_id=token.identity_id,
        name=token.name,
        created_at=token.created_at,
    )


@final
class DjangoIdentityRepository:
    """IdentityRepository backed by the `accounts.Identity` model."""

    def add(
        self,
        name: str,
        email: str,
        password_hash: str,
        is_admin: bool,
    ) -> IdentityRecord:
        """Store a new identity.

        Args:
            name: Display name.
            email: Normalized login email.
            password_hash: Encoded hash from Django's password hashers.
            is_admin: Admin flag.

        Returns:
            The stored identity.

        Raises:
            DuplicateEmailError: If the email is already claimed.
        """
        with translate_backend_errors('identity add'):
            try:
                # Savepoint so a clash does not break an outer transaction
                with transaction.atomic():
                    identity = Identity.objects.create(
                        name=name,
                        email=email,
                        password=password_hash,
                        is_admin=is_admin,
                    )
            except IntegrityError as exc:
                raise DuplicateEmailError(email) from exc
        return _identity_record(identity)

    def get(self, identity_id: str) -> IdentityRecord | None:
        """Return the identity with this id, if any."""
        with translate_backend_errors('identity lookup'):
            identity = Identity.objects.filter(id=identity_id).first()
        return _identity_record(identity) if identity else None

    def get_with_hash(self, email: str) -> tuple[IdentityRecord, str] | None:
        """Return the identity for an email together with its hash.

        Emails are compared case-insensitively, matching how the
        credential store normalizes them at registration.
        """
        with translate_backend_errors('identity lookup'):
            identity = Identity.objects.filter(email__iexact=email).first()
        if identity is None:
            return None
        return _identity_record(identity), identity.password

    def update_password_hash(self, identity_id: str, password_hash: str) -> bool:
        """Replace the stored password hash."""
        with translate_backend_errors('password update'):
            updated = Identity.objects.filter(id=identity_id).update(
                password=password_hash,
            )
        return updated > 0

    def update_admin(self, identity_id: str, is_admin: bool) -> IdentityRecord | None:
        """Set the admin flag."""
        with translate_backend_errors('admin flag update'):
            updated = Identity.objects.filter(id=identity_id).update(
                is_admin=is_admin,
            )
        if not updated:
            return None
        return self.get(identity_id)

    def update_profile(
        self,
        identity_id: str,
        name: str,
        email: str,
    ) -> IdentityRecord | None:
        """Replace name and email.

        Raises:
            DuplicateEmailError: If another identity claims the email.
        """
        with translate_backend_errors('profile update'):
            try:
                with transaction.atomic():
                    updated = Identity.objects.filter(id=identity_id).update(
                        name=name,
                        email=email,
                    )
            except IntegrityError as exc:
                raise DuplicateEmailError(email) from exc
        if not updated:
            return None
        return self.get(identity_id)

    def delete(self, identity_id: str) -> bool:
        """Delete an identity; tokens, files and grants cascade."""
        with translate_backend_errors('identity delete'):
            deleted, _ = Identity.objects.filter(id=identity_id).delete()
        return deleted > 0

    def list_all(self) -> list[IdentityRecord]:
        """List every identity ordered by email."""
        with translate_backend_errors('identity listing'):
            identities = list(Identity.objects.order_by('email'))
        return [_identity_record(identity) for identity in identities]


@final
class DjangoTokenRepository:
    """TokenRepository backed by the `accounts.AccessToken` model."""

    def add(
        self,
        token_id: str,
        identity_id: str,
        name: str,
        digest: str,
    ) -> TokenRecord:
        """Store a token digest."""
        with translate_backend_errors('token add'):
            token = AccessToken.objects.create(
                token_id=token_id,
                identity_id=identity_id,
                name=name,
                digest=digest,
            )
        return _token_record(token)

    def get_with_digest(self, token_id: str) -> tuple[TokenRecord, str] | None:
        """Return the token and its stored digest, if any."""
        with translate_backend_errors('token lookup'):
            token = AccessToken.objects.filter(token_id=token_id).first()
        if token is None:
            return None
        return _token_record(token), token.digest

    def delete(self, token_id: str) -> int:
        """Delete one token."""
        with translate_backend_errors('token delete'):
            deleted, _ = AccessToken.objects.filter(token_id=token_id).delete()
        return deleted

    def delete_for_identity(self, identity_id: str) -> int:
        """Delete every token of an identity."""
        with translate_backend_errors('token delete'):
            deleted, _ = AccessToken.objects.filter(
                identity_id=identity_id,
            ).delete()
        return deleted

    def list_for_identity(self, identity_id: str) -> list[TokenRecord]:
        """List the tokens of an identity, newest first."""
        with translate_backend_errors('token listing'):
            tokens = list(
                AccessToken.objects.filter(
                    identity_id=identity_id,
                ).order_by('-created_at'),
            )
        return [_token_record(token) for token in tokens]
