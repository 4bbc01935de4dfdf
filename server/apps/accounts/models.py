"""Database models for accounts app."""

import secrets
from typing import ClassVar, Final, final

from django.conf import settings
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models
from django.db.models.functions import Lower

# Constants for field max lengths
_ID_MAX_LENGTH: Final = 32
_NAME_MAX_LENGTH: Final = 150
_TOKEN_ID_MAX_LENGTH: Final = 64
_TOKEN_NAME_MAX_LENGTH: Final = 100
_DIGEST_MAX_LENGTH: Final = 64  # SHA256 hex length

# Identity id entropy (generates 24 hex chars)
_IDENTITY_ID_BYTES: Final = 12


def generate_identity_id() -> str:
    """Generate an opaque identity id.

    Returns:
        Random id such as 'usr_3f9a0c...'.
    """
    return 'usr_{0}'.format(secrets.token_hex(_IDENTITY_ID_BYTES))


class IdentityManager(BaseUserManager):
    """Manager creating identities with hashed passwords."""

    use_in_migrations = True

    def create_user(
        self,
        email: str,
        password: str | None = None,
        name: str = '',
        is_admin: bool = False,
    ) -> 'Identity':
        """Create and save an identity.

        Args:
            email: Login email, normalized before saving.
            password: Plaintext password, hashed before saving.
            name: Display name.
            is_admin: Whether the identity bypasses permission checks.

        Returns:
            Saved Identity instance.
        """
        identity = self.model(
            email=self.normalize_email(email),
            name=name,
            is_admin=is_admin,
        )
        identity.set_password(password)
        identity.save(using=self._db)
        return identity

    def create_superuser(
        self,
        email: str,
        password: str | None = None,
        name: str = '',
    ) -> 'Identity':
        """Create an admin identity (used by `createsuperuser`)."""
        return self.create_user(email, password, name=name, is_admin=True)


@final
class Identity(AbstractBaseUser):
    """A user of the system.

    The id is opaque and immutable. Admin identities bypass every
    per-file permission check in the file registry.
    """

    id = models.CharField(
        primary_key=True,
        max_length=_ID_MAX_LENGTH,
        default=generate_identity_id,
        editable=False,
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        blank=True,
        default='',
    )

    email = models.EmailField(
        unique=True,
        help_text='Login email, unique across identities',
    )

    is_admin = models.BooleanField(
        default=False,
        help_text='Bypasses per-file permission checks',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = IdentityManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS: ClassVar[list[str]] = ['name']

    class Meta:
        """Model metadata."""

        verbose_name = 'Identity'  # type: ignore[mutable-override]
        verbose_name_plural = 'Identities'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['email']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            # Lookups ignore case, so two emails may not differ only by it
            models.UniqueConstraint(
                Lower('email'),
                name='identities_email_ci_unique',
            ),
        ]

    def __str__(self) -> str:
        """String representation."""
        return self.email

    @property
    def is_staff(self) -> bool:
        """Admin identities may use the Django admin site."""
        return self.is_admin

    def has_perm(self, perm: str, obj: object = None) -> bool:
        """Admin identities hold every model permission."""
        return self.is_admin

    def has_module_perms(self, app_label: str) -> bool:
        """Admin identities see every app in the admin site."""
        return self.is_admin


@final
class AccessToken(models.Model):
    """Persisted half of a bearer token.

    Only the SHA256 digest of the secret is stored. The secret itself
    is returned once at issuance and can never be recovered.
    """

    token_id = models.CharField(
        primary_key=True,
        max_length=_TOKEN_ID_MAX_LENGTH,
        help_text='Public lookup key, first part of the bearer',
    )

    identity = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='access_tokens',
        db_index=True,
    )

    name = models.CharField(
        max_length=_TOKEN_NAME_MAX_LENGTH,
        default='api-token',
        help_text='Label chosen at issuance',
    )

    digest = models.CharField(
        max_length=_DIGEST_MAX_LENGTH,
        help_text='SHA256 hex digest of the secret',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Access Token'  # type: ignore[mutable-override]
        verbose_name_plural = 'Access Tokens'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['identity', '-created_at'],
                name='tokens_identity_recent_idx',
            ),
        ]

    def __str__(self) -> str:
        """String representation."""
        return f'{self.identity_id}:{self.name} ({self.token_id[:8]})'
