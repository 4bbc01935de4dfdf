"""Blob store: opaque byte storage behind put/get/delete.

The default adapter writes through Django's `default_storage`, which
settings point at an S3-compatible bucket via django-storages.
"""

import logging
import uuid
from typing import BinaryIO, Protocol, final

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.base import File as DjangoFile
from django.core.files.storage import Storage, default_storage

from server.common.exceptions import translate_backend_errors

logger = logging.getLogger(__name__)

# Errors raised by S3 (botocore) or filesystem storage backends
BLOB_BACKEND_ERRORS = (BotoCoreError, ClientError, OSError)


def get_blob_prefix() -> str:
    """Get key prefix for new blobs.

    Returns:
        ACCESS_BLOB_PREFIX from settings or 'blobs'.
    """
    return getattr(settings, 'ACCESS_BLOB_PREFIX', 'blobs')


class BlobStore(Protocol):
    """Opaque byte storage used by the file registry."""

    def put(self, content: bytes | BinaryIO) -> str:
        """Store content and return its blob reference."""

    def get(self, blob_ref: str) -> bytes:
        """Return the content of a blob."""

    def delete(self, blob_ref: str) -> None:
        """Remove a blob."""


@final
class StorageBlobStore:
    """BlobStore over a Django storage backend.

    Every put gets a fresh random key, so blobs are never overwritten
    and a reference always names exactly one content.
    """

    def __init__(
        self,
        storage: Storage | None = None,
        prefix: str | None = None,
    ) -> None:
        """Initialize the blob store.

        Args:
            storage: Django storage, `default_storage` by default.
            prefix: Key prefix, ACCESS_BLOB_PREFIX by default.
        """
        self._storage = storage or default_storage
        self._prefix = (prefix or get_blob_prefix()).strip('/')

    def put(self, content: bytes | BinaryIO) -> str:
        """Upload content under a new random key.

        Args:
            content: Raw bytes or a binary file-like object.

        Returns:
            Blob reference (the storage name actually used).

        Raises:
            BackendUnavailableError: If the upload fails.
        """
        name = f'{self._prefix}/{uuid.uuid4().hex}'
        if isinstance(content, bytes):
            payload: DjangoFile = ContentFile(content)
        else:
            payload = DjangoFile(content)

        with translate_backend_errors('blob upload', *BLOB_BACKEND_ERRORS):
            logger.info('Uploading blob to storage: %s', name)
            saved_name = self._storage.save(name, payload)
        logger.info('Blob uploaded successfully: %s', saved_name)
        return saved_name

    def get(self, blob_ref: str) -> bytes:
        """Download a blob.

        Raises:
            BackendUnavailableError: If the blob cannot be read.
        """
        with translate_backend_errors('blob download', *BLOB_BACKEND_ERRORS):
            with self._storage.open(blob_ref, 'rb') as blob:
                return blob.read()

    def delete(self, blob_ref: str) -> None:
        """Delete a blob.

        Raises:
            BackendUnavailableError: If the backend refuses the delete.
        """
        with translate_backend_errors('blob delete', *BLOB_BACKEND_ERRORS):
            logger.info('Deleting blob from storage: %s', blob_ref)
            self._storage.delete(blob_ref)
        logger.info('Blob deleted: %s', blob_ref)

    def exists(self, blob_ref: str) -> bool:
        """Check whether a blob is present in storage."""
        with translate_backend_errors('blob lookup', *BLOB_BACKEND_ERRORS):
            return self._storage.exists(blob_ref)


def discard_blob(blob_store: BlobStore, blob_ref: str) -> bool:
    """Delete a blob whose record could not be written.

    Called when a database write fails after the blob was uploaded.
    This is a best-effort operation: a failure is logged, not raised,
    because the caller is already propagating the original error.

    Args:
        blob_store: Store holding the blob.
        blob_ref: Reference of the blob to remove.

    Returns:
        True if the blob was removed, False if it is left orphaned.
    """
    try:
        logger.warning('Rolling back upload, deleting blob: %s', blob_ref)
        blob_store.delete(blob_ref)
    except Exception:
        logger.exception('Failed to roll back upload, orphaned blob: %s', blob_ref)
        return False
    logger.info('Successfully rolled back blob upload: %s', blob_ref)
    return True
