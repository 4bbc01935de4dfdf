"""Database models for files app."""

import secrets
from typing import ClassVar, Final, final

from django.conf import settings
from django.db import models

# Constants for field max lengths
_ID_MAX_LENGTH: Final = 32
_NAME_MAX_LENGTH: Final = 255
_CONTENT_REF_MAX_LENGTH: Final = 512
_MIME_TYPE_MAX_LENGTH: Final = 255

# File id entropy (generates 24 hex chars)
_FILE_ID_BYTES: Final = 12


def generate_file_id() -> str:
    """Generate an opaque file id.

    Returns:
        Random id such as 'fil_3f9a0c...'.
    """
    return 'fil_{0}'.format(secrets.token_hex(_FILE_ID_BYTES))


@final
class File(models.Model):
    """A file in the catalog.

    The record holds metadata and a reference to the blob holding the
    bytes. The owner is set at creation and never changes; the owner
    passes every permission check without a grant row.
    """

    id = models.CharField(
        primary_key=True,
        max_length=_ID_MAX_LENGTH,
        default=generate_file_id,
        editable=False,
    )

    # Owner relationship
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Display name chosen by the owner',
    )

    content_ref = models.CharField(
        max_length=_CONTENT_REF_MAX_LENGTH,
        unique=True,
        help_text='Opaque blob handle returned by the blob store',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        default='application/octet-stream',
        help_text='MIME type guessed from the file name',
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize "my files" listings
            models.Index(
                fields=['owner', '-created_at'],
                name='files_owner_recent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_non_negative',
            ),
        ]

    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'


@final
class PermissionGrant(models.Model):
    """Capabilities granted on one file to one grantee.

    At most one row exists per (file, grantee). A row with no
    capability left is never kept: the ledger prunes it.
    """

    file = models.ForeignKey(
        File,
        on_delete=models.CASCADE,
        related_name='grants',
    )

    grantee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='file_grants',
        db_index=True,
    )

    can_read = models.BooleanField(default=False)
    can_write = models.BooleanField(default=False)
    can_delete = models.BooleanField(default=False)

    granted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Permission Grant'  # type: ignore[mutable-override]
        verbose_name_plural = 'Permission Grants'  # type: ignore[mutable-override]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            # One capability set per grantee and file; upserts rely on it
            models.UniqueConstraint(
                fields=['file', 'grantee'],
                name='grants_file_grantee_unique',
            ),
        ]

    def __str__(self) -> str:
        """String representation."""
        flags = ''.join(
            letter if enabled else '-'
            for letter, enabled in (
                ('r', self.can_read),
                ('w', self.can_write),
                ('d', self.can_delete),
            )
        )
        return f'{self.file_id}:{self.grantee_id} [{flags}]'


@final
class OrphanedBlob(models.Model):
    """A blob left behind after its file record was deleted.

    Recorded when every deletion attempt fails, so the
    `cleanup_orphaned_blobs` command can reclaim it later.
    """

    content_ref = models.CharField(
        max_length=_CONTENT_REF_MAX_LENGTH,
        unique=True,
    )

    attempts = models.PositiveIntegerField(
        default=0,
        help_text='Failed deletion attempts so far',
    )

    last_error = models.TextField(blank=True, default='')

    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Orphaned Blob'  # type: ignore[mutable-override]
        verbose_name_plural = 'Orphaned Blobs'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['recorded_at']

    def __str__(self) -> str:
        """String representation."""
        return f'{self.content_ref} ({self.attempts} attempts)'
