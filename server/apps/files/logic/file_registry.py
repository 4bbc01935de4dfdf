"""Access-controlled file registry.

Every operation takes a requester id that the request boundary has
already resolved through the token authority, and consults the
permission ledger before touching anything.

Admin override: identities flagged `is_admin` bypass every permission
check below. This is a deliberate blanket escape hatch. It is applied
in exactly one place, `FileRegistry._authorize`, and never inside the
ledger.

File lifecycle: nonexistent -> active -> deleted. Deletion is terminal
and removes the file's grants with it.
"""

import io
import logging
from collections.abc import Iterable
from typing import BinaryIO, Final

from django.conf import settings

from server.apps.accounts.infrastructure.repositories import (
    DjangoIdentityRepository,
    IdentityRepository,
)
from server.apps.files.entities import (
    ALL_CAPABILITIES,
    Capability,
    FileRecord,
    GrantRecord,
    parse_capabilities,
)
from server.apps.files.exceptions import ForbiddenError, NotFoundError
from server.apps.files.infrastructure.blob_store import (
    BlobStore,
    StorageBlobStore,
    discard_blob,
)
from server.apps.files.infrastructure.metadata import (
    detect_mime_type,
    validate_file_name,
    validate_size,
)
from server.apps.files.infrastructure.repositories import (
    DjangoFileRepository,
    FileRepository,
)
from server.apps.files.logic.permission_ledger import PermissionLedger
from server.common.exceptions import BackendUnavailableError

logger = logging.getLogger(__name__)

# Action name for operations reserved to the owner (and admins)
OWNER_ONLY: Final = 'manage sharing of'


def get_blob_delete_attempts() -> int:
    """Get how often a blob deletion is tried before giving up.

    Returns:
        ACCESS_BLOB_DELETE_ATTEMPTS from settings (default 3), at least 1.
    """
    return max(1, getattr(settings, 'ACCESS_BLOB_DELETE_ATTEMPTS', 3))


def _measure(content: bytes | BinaryIO) -> int:
    """Get content size in bytes, leaving file objects rewound."""
    if isinstance(content, bytes):
        return len(content)
    content.seek(0, io.SEEK_END)
    size = content.tell()
    content.seek(0)
    return size


class FileRegistry:
    """The file catalog callers invoke."""

    def __init__(
        self,
        files: FileRepository | None = None,
        ledger: PermissionLedger | None = None,
        identities: IdentityRepository | None = None,
        blob_store: BlobStore | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            files: File repository, the Django adapter by default.
            ledger: Permission ledger, Django-backed by default.
            identities: Identity lookups for admin flags and grantees.
            blob_store: Blob store, `default_storage`-backed by default.
        """
        self._files = files or DjangoFileRepository()
        self._ledger = ledger or PermissionLedger()
        self._identities = identities or DjangoIdentityRepository()
        self._blob_store = blob_store or StorageBlobStore()

    def create(
        self,
        owner_id: str,
        name: str,
        blob_ref: str,
        size: int,
    ) -> FileRecord:
        """Register an already stored blob as a new file.

        No grant row is written for the owner: ownership is checked
        directly.

        Args:
            owner_id: Authenticated identity becoming the owner.
            name: Display name.
            blob_ref: Reference returned by the blob store.
            size: Blob size in bytes.

        Returns:
            The new file.

        Raises:
            ValidationError: If the name or size is invalid.
            NotFoundError: If the owner identity does not exist.
        """
        normalized = validate_file_name(name)
        validate_size(size)
        self._require_identity(owner_id)
        return self._add_record(owner_id, normalized, blob_ref, size)

    def upload(
        self,
        owner_id: str,
        name: str,
        content: bytes | BinaryIO,
    ) -> FileRecord:
        """Store content and create its file record.

        Transaction safety: upload to the blob store first, then create
        the record. If the record cannot be created the uploaded blob
        is deleted again (rollback).

        Args:
            owner_id: Authenticated identity becoming the owner.
            name: Display name.
            content: Raw bytes or a binary file-like object.

        Returns:
            The new file.

        Raises:
            ValidationError: If the name is invalid.
            NotFoundError: If the owner identity does not exist.
            BackendUnavailableError: If storage or database fail.
        """
        normalized = validate_file_name(name)
        self._require_identity(owner_id)
        size = _measure(content)

        blob_ref = self._blob_store.put(content)
        try:
            return self._add_record(owner_id, normalized, blob_ref, size)
        except Exception:
            logger.exception(
                'Creating file record failed, rolling back blob upload: %s',
                blob_ref,
            )
            discard_blob(self._blob_store, blob_ref)
            raise

    def read(self, requester_id: str, file_id: str) -> FileRecord:
        """Return a file's metadata.

        Raises:
            NotFoundError: If the file does not exist (or was deleted).
            ForbiddenError: If the requester may not read it.
        """
        file_record = self._get_active(file_id)
        self._authorize(requester_id, file_record, Capability.READ)
        return file_record

    def download(
        self,
        requester_id: str,
        file_id: str,
    ) -> tuple[FileRecord, bytes]:
        """Return a file's metadata and content.

        Raises:
            NotFoundError: If the file does not exist (or was deleted).
            ForbiddenError: If the requester may not read it.
            BackendUnavailableError: If the blob cannot be fetched.
        """
        file_record = self.read(requester_id, file_id)
        return file_record, self._blob_store.get(file_record.content_ref)

    def update(self, requester_id: str, file_id: str, name: str) -> FileRecord:
        """Rename a file.

        The name is the only mutable field; sharing changes go through
        `share` and `unshare`.

        Raises:
            NotFoundError: If the file does not exist (or was deleted).
            ForbiddenError: If the requester may not write it.
            ValidationError: If the new name is invalid.
        """
        file_record = self._get_active(file_id)
        self._authorize(requester_id, file_record, Capability.WRITE)
        normalized = validate_file_name(name)

        updated = self._files.rename(file_id, normalized)
        if updated is None:
            raise NotFoundError('file', file_id)
        logger.info('File renamed: %s by %s', file_id, requester_id)
        return updated

    def delete(self, requester_id: str, file_id: str) -> None:
        """Delete a file, its grants and its blob.

        The record and its grants are removed together in one
        transaction first; the blob is deleted only once the outermost
        transaction commits. If the transaction fails or is rolled back
        later, nothing changes. If the blob cannot be deleted after
        ACCESS_BLOB_DELETE_ATTEMPTS tries it is recorded as orphaned
        for `cleanup_orphaned_blobs`.

        Raises:
            NotFoundError: If the file does not exist (or was deleted).
            ForbiddenError: If the requester may not delete it.
            BackendUnavailableError: If the database transaction fails.
        """
        file_record = self._get_active(file_id)
        self._authorize(requester_id, file_record, Capability.DELETE)

        with self._files.atomic():
            revoked = self._remove_record(file_record)
        logger.info(
            'File deleted: %s by %s (%d grants removed)',
            file_id,
            requester_id,
            revoked,
        )

    def purge_owner(self, owner_id: str) -> int:
        """Delete every file of an owner, e.g. before removing the owner.

        Same path as `delete` without permission checks: records and
        grants go in one transaction, blobs after it commits.

        Args:
            owner_id: Identity whose files are removed.

        Returns:
            Number of files deleted.
        """
        owned = self._files.list_by_owner(owner_id)
        with self._files.atomic():
            for file_record in owned:
                self._remove_record(file_record)
        logger.info('Purged %d files of %s', len(owned), owner_id)
        return len(owned)

    def share(
        self,
        requester_id: str,
        file_id: str,
        grantee_id: str,
        capabilities: Iterable[str],
    ) -> frozenset[Capability]:
        """Set the capabilities of a grantee on a file.

        Replaces any earlier grant of that grantee; an empty set
        removes it.

        Raises:
            NotFoundError: If the file or the grantee does not exist.
            ForbiddenError: If the requester is neither owner nor admin.
            InvalidCapabilityError: If a capability name is unknown.
        """
        file_record = self._get_active(file_id)
        self._authorize(requester_id, file_record, None)
        self._require_identity(grantee_id)
        if grantee_id == file_record.owner_id:
            # The owner holds everything without a grant row
            parse_capabilities(capabilities)
            logger.info('Ignoring share of %s with its owner', file_id)
            return ALL_CAPABILITIES
        return self._ledger.grant(file_id, grantee_id, capabilities)

    def unshare(self, requester_id: str, file_id: str, grantee_id: str) -> None:
        """Remove a grantee's access to a file.

        Raises:
            NotFoundError: If the file does not exist.
            ForbiddenError: If the requester is neither owner nor admin.
        """
        file_record = self._get_active(file_id)
        self._authorize(requester_id, file_record, None)
        self._ledger.revoke(file_id, grantee_id)

    def list_grants(self, requester_id: str, file_id: str) -> list[GrantRecord]:
        """Show who a file is shared with (owner and admins only)."""
        file_record = self._get_active(file_id)
        self._authorize(requester_id, file_record, None)
        return self._ledger.list_grants(file_id)

    def list_owned(self, requester_id: str) -> list[FileRecord]:
        """List the requester's own files, newest first."""
        return self._files.list_by_owner(requester_id)

    def list_shared_with(self, requester_id: str) -> list[FileRecord]:
        """List files other owners shared with the requester for reading."""
        file_ids = self._ledger.shared_file_ids(requester_id, Capability.READ)
        if not file_ids:
            return []
        return self._files.list_by_ids(file_ids)

    def _add_record(
        self,
        owner_id: str,
        name: str,
        blob_ref: str,
        size: int,
    ) -> FileRecord:
        file_record = self._files.add(
            owner_id=owner_id,
            name=name,
            content_ref=blob_ref,
            size_bytes=size,
            mime_type=detect_mime_type(name),
        )
        logger.info('File created: %s by %s', file_record.id, owner_id)
        return file_record

    def _remove_record(self, file_record: FileRecord) -> int:
        """Delete record and grants, scheduling the blob for after commit.

        Must run inside `self._files.atomic()`.

        Returns:
            Number of grants removed.
        """
        revoked = self._ledger.revoke_all(file_record.id)
        if not self._files.delete(file_record.id):
            raise NotFoundError('file', file_record.id)
        blob_ref = file_record.content_ref
        self._files.on_commit(lambda: self._delete_blob(blob_ref))
        return revoked

    def _get_active(self, file_id: str) -> FileRecord:
        file_record = self._files.get(file_id)
        if file_record is None:
            raise NotFoundError('file', file_id)
        return file_record

    def _require_identity(self, identity_id: str) -> None:
        if self._identities.get(identity_id) is None:
            raise NotFoundError('identity', identity_id)

    def _authorize(
        self,
        requester_id: str,
        file_record: FileRecord,
        capability: Capability | None,
    ) -> None:
        """Enforce access to a file.

        Args:
            requester_id: Identity performing the operation.
            file_record: Target file.
            capability: Required capability, or None for operations
                reserved to the owner.

        Raises:
            ForbiddenError: If access is denied.
        """
        requester = self._identities.get(requester_id)
        if requester is not None and requester.is_admin:
            logger.info(
                'Admin override by %s on file %s',
                requester_id,
                file_record.id,
            )
            return

        if capability is None:
            allowed = requester_id == file_record.owner_id
        else:
            allowed = self._ledger.check(
                file_record.id,
                requester_id,
                capability,
                file_record.owner_id,
            )
        if not allowed:
            action = capability or OWNER_ONLY
            logger.warning(
                'Access denied: %s may not %s file %s',
                requester_id,
                action,
                file_record.id,
            )
            raise ForbiddenError(requester_id, file_record.id, str(action))

    def _delete_blob(self, blob_ref: str) -> None:
        attempts = get_blob_delete_attempts()
        last_error: BackendUnavailableError | None = None
        for attempt in range(1, attempts + 1):
            try:
                self._blob_store.delete(blob_ref)
            except BackendUnavailableError as exc:
                last_error = exc
                logger.warning(
                    'Blob delete attempt %d/%d failed: %s',
                    attempt,
                    attempts,
                    blob_ref,
                )
            else:
                return

        # The record is gone; keep the blob on file for later cleanup
        try:
            self._files.record_orphaned_blob(blob_ref, str(last_error))
        except BackendUnavailableError:
            logger.exception('Failed to record orphaned blob: %s', blob_ref)
