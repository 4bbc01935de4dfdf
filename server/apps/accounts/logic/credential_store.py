"""Credential store: identities and salted password hashes."""

import logging

from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.hashers import check_password, make_password

from server.apps.accounts.entities import IdentityRecord
from server.apps.accounts.exceptions import (
    DuplicateEmailError,
    IdentityNotFoundError,
    InvalidCredentialsError,
)
from server.apps.accounts.infrastructure.repositories import (
    DjangoIdentityRepository,
    IdentityRepository,
)

logger = logging.getLogger(__name__)


class CredentialStore:
    """Lookup and hash-check facade over an identity repository.

    Passwords go through Django's configured password hashers (bcrypt
    first, see PASSWORD_HASHERS) and are never stored or logged in
    plaintext.
    """

    def __init__(self, identities: IdentityRepository | None = None) -> None:
        """Initialize the store.

        Args:
            identities: Identity repository, the Django adapter by default.
        """
        self._identities = identities or DjangoIdentityRepository()

    def register(
        self,
        name: str,
        email: str,
        password: str,
        is_admin: bool = False,
    ) -> IdentityRecord:
        """Create a new identity.

        Args:
            name: Display name.
            email: Login email, normalized before storing.
            password: Plaintext password.
            is_admin: Whether the identity bypasses permission checks.

        Returns:
            The created identity.

        Raises:
            DuplicateEmailError: If the email is already claimed.
        """
        normalized = BaseUserManager.normalize_email(email)
        if self._identities.get_with_hash(normalized) is not None:
            logger.warning('Registration with claimed email rejected')
            raise DuplicateEmailError(normalized)

        identity = self._identities.add(
            name=name,
            email=normalized,
            password_hash=make_password(password),
            is_admin=is_admin,
        )
        logger.info(
            'Identity registered: %s (admin: %s)',
            identity.id,
            identity.is_admin,
        )
        return identity

    def verify_credentials(self, email: str, password: str) -> IdentityRecord:
        """Check an email/password pair.

        Args:
            email: Login email.
            password: Plaintext password.

        Returns:
            The authenticated identity.

        Raises:
            InvalidCredentialsError: On unknown email or wrong password,
                indistinguishably.
        """
        found = self._identities.get_with_hash(
            BaseUserManager.normalize_email(email),
        )
        if found is None:
            # Hash anyway so an unknown email costs as much as a bad password
            make_password(password)
            logger.warning('Authentication failed')
            raise InvalidCredentialsError

        identity, password_hash = found
        if not check_password(password, password_hash):
            logger.warning('Authentication failed')
            raise InvalidCredentialsError

        logger.info('Identity authenticated: %s', identity.id)
        return identity

    def update_password(self, identity_id: str, new_password: str) -> None:
        """Re-hash and replace an identity's password.

        Outstanding tokens are left alone; revoking them is the
        caller's policy decision.

        Args:
            identity_id: Identity to update.
            new_password: New plaintext password.

        Raises:
            IdentityNotFoundError: If the identity does not exist.
        """
        updated = self._identities.update_password_hash(
            identity_id,
            make_password(new_password),
        )
        if not updated:
            raise IdentityNotFoundError(identity_id)
        logger.info('Password replaced for identity %s', identity_id)

    def get_identity(self, identity_id: str) -> IdentityRecord | None:
        """Look up an identity by id."""
        return self._identities.get(identity_id)

    def find_by_email(self, email: str) -> IdentityRecord | None:
        """Look up an identity by email (administrative tooling only)."""
        found = self._identities.get_with_hash(
            BaseUserManager.normalize_email(email),
        )
        return found[0] if found else None

    def set_admin(self, identity_id: str, is_admin: bool) -> IdentityRecord:
        """Grant or withdraw the admin flag.

        Raises:
            IdentityNotFoundError: If the identity does not exist.
        """
        identity = self._identities.update_admin(identity_id, is_admin)
        if identity is None:
            raise IdentityNotFoundError(identity_id)
        logger.info(
            'Admin flag for identity %s set to %s',
            identity_id,
            is_admin,
        )
        return identity

    def list_identities(self) -> list[IdentityRecord]:
        """List every identity ordered by email (administrative tooling)."""
        return self._identities.list_all()

    def update_profile(
        self,
        identity_id: str,
        name: str | None = None,
        email: str | None = None,
    ) -> IdentityRecord:
        """Change an identity's name and/or email.

        The admin flag is not part of the profile; see `set_admin`.

        Args:
            identity_id: Identity to update.
            name: New display name, unchanged if None.
            email: New login email, unchanged if None.

        Returns:
            The updated identity.

        Raises:
            IdentityNotFoundError: If the identity does not exist.
            DuplicateEmailError: If another identity claims the email.
        """
        current = self._identities.get(identity_id)
        if current is None:
            raise IdentityNotFoundError(identity_id)

        new_email = current.email
        if email is not None:
            new_email = BaseUserManager.normalize_email(email)
            found = self._identities.get_with_hash(new_email)
            if found is not None and found[0].id != identity_id:
                logger.warning('Profile update with claimed email rejected')
                raise DuplicateEmailError(new_email)

        updated = self._identities.update_profile(
            identity_id,
            name=current.name if name is None else name,
            email=new_email,
        )
        if updated is None:
            raise IdentityNotFoundError(identity_id)
        logger.info('Profile updated for identity %s', identity_id)
        return updated

    def delete_identity(self, identity_id: str) -> None:
        """Delete an identity together with its tokens and grants.

        Owned file records cascade too, but their blobs do not: purge
        them first with `FileRegistry.purge_owner` in the same
        transaction, as the `delete_identity` command does.

        Raises:
            IdentityNotFoundError: If the identity does not exist.
        """
        if not self._identities.delete(identity_id):
            raise IdentityNotFoundError(identity_id)
        logger.info('Identity deleted: %s', identity_id)
