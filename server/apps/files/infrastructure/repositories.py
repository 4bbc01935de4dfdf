"""Repository protocols and Django ORM adapters for files app."""

import logging
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from typing import Final, Protocol, final

from django.db import transaction
from django.db.models import F

from server.apps.files.entities import Capability, FileRecord, GrantRecord
from server.apps.files.models import File, OrphanedBlob, PermissionGrant
from server.common.exceptions import translate_backend_errors

logger = logging.getLogger(__name__)

# Capability -> boolean column of PermissionGrant
_CAPABILITY_FIELDS: Final = {
    Capability.READ: 'can_read',
    Capability.WRITE: 'can_write',
    Capability.DELETE: 'can_delete',
}


class FileRepository(Protocol):
    """Persistence of file records."""

    def atomic(self) -> AbstractContextManager[object]:
        """Return a context manager making enclosed writes one unit."""

    def on_commit(self, callback: Callable[[], object]) -> None:
        """Run a callback once the enclosing writes are durable."""

    def add(
        self,
        owner_id: str,
        name: str,
        content_ref: str,
        size_bytes: int,
        mime_type: str,
    ) -> FileRecord:
        """Store a new file record."""

    def get(self, file_id: str) -> FileRecord | None:
        """Return the file with this id, if any."""

    def rename(self, file_id: str, name: str) -> FileRecord | None:
        """Rename a file and refresh its update time."""

    def delete(self, file_id: str) -> bool:
        """Delete a file record, returning False if it was missing."""

    def list_by_owner(self, owner_id: str) -> list[FileRecord]:
        """List the files of an owner, newest first."""

    def list_by_ids(self, file_ids: Iterable[str]) -> list[FileRecord]:
        """List the files with the given ids, newest first."""

    def record_orphaned_blob(self, content_ref: str, error: str) -> None:
        """Remember a blob whose deletion failed."""


class GrantRepository(Protocol):
    """Persistence of permission grants."""

    def upsert(
        self,
        file_id: str,
        grantee_id: str,
        capabilities: frozenset[Capability],
    ) -> None:
        """Insert or replace the capability set of a grantee on a file."""

    def get(self, file_id: str, grantee_id: str) -> GrantRecord | None:
        """Return the grant of a grantee on a file, if any."""

    def delete(self, file_id: str, grantee_id: str) -> int:
        """Delete one grant."""

    def delete_for_file(self, file_id: str) -> int:
        """Delete every grant on a file."""

    def list_for_file(self, file_id: str) -> list[GrantRecord]:
        """List the grants on a file."""

    def file_ids_for_grantee(
        self,
        grantee_id: str,
        capability: Capability,
    ) -> list[str]:
        """List ids of files where the grantee holds a capability."""


def _file_record(file_instance: File) -> FileRecord:
    return FileRecord(
        id=file_instance.id,
        owner_id=file_instance.owner_id,
        name=file_instance.name,
        content_ref=file_instance.content_ref,
        size_bytes=file_instance.size_bytes,
        mime_type=file_instance.mime_type,
        created_at=file_instance.created_at,
        updated_at=file_instance.updated_at,
    )


def _grant_record(grant: PermissionGrant) -> GrantRecord:
    capabilities = frozenset(
        capability
        for capability, field_name in _CAPABILITY_FIELDS.items()
        if getattr(grant, field_name)
    )
    return GrantRecord(
        file_id=grant.file_id,
        grantee_id=grant.grantee_id,
        capabilities=capabilities,
    )


@final
class DjangoFileRepository:
    """FileRepository backed by the `files.File` model."""

    def atomic(self) -> AbstractContextManager[object]:
        """Return a database transaction."""
        return transaction.atomic()

    def on_commit(self, callback: Callable[[], object]) -> None:
        """Run a callback after the outermost transaction commits.

        Outside a transaction the callback runs immediately; if the
        transaction rolls back it never runs.
        """
        transaction.on_commit(callback)

    def add(
        self,
        owner_id: str,
        name: str,
        content_ref: str,
        size_bytes: int,
        mime_type: str,
    ) -> FileRecord:
        """Store a new file record."""
        with translate_backend_errors('file add'):
            file_instance = File.objects.create(
                owner_id=owner_id,
                name=name,
                content_ref=content_ref,
                size_bytes=size_bytes,
                mime_type=mime_type,
            )
        logger.info(
            'File record created in database: %s (owner: %s)',
            file_instance.id,
            owner_id,
        )
        return _file_record(file_instance)

    def get(self, file_id: str) -> FileRecord | None:
        """Return the file with this id, if any."""
        with translate_backend_errors('file lookup'):
            file_instance = File.objects.filter(id=file_id).first()
        return _file_record(file_instance) if file_instance else None

    def rename(self, file_id: str, name: str) -> FileRecord | None:
        """Rename a file and refresh its update time."""
        with translate_backend_errors('file rename'):
            file_instance = File.objects.filter(id=file_id).first()
            if file_instance is None:
                return None
            file_instance.name = name
            file_instance.save(update_fields=['name', 'updated_at'])
        return _file_record(file_instance)

    def delete(self, file_id: str) -> bool:
        """Delete a file record (its grants cascade with it)."""
        with translate_backend_errors('file delete'):
            deleted, _ = File.objects.filter(id=file_id).delete()
        return deleted > 0

    def list_by_owner(self, owner_id: str) -> list[FileRecord]:
        """List the files of an owner, newest first."""
        with translate_backend_errors('file listing'):
            files = list(File.objects.filter(owner_id=owner_id))
        return [_file_record(file_instance) for file_instance in files]

    def list_by_ids(self, file_ids: Iterable[str]) -> list[FileRecord]:
        """List the files with the given ids, newest first."""
        with translate_backend_errors('file listing'):
            files = list(File.objects.filter(id__in=list(file_ids)))
        return [_file_record(file_instance) for file_instance in files]

    def record_orphaned_blob(self, content_ref: str, error: str) -> None:
        """Remember a blob whose deletion failed, counting attempts."""
        with translate_backend_errors('orphan record'):
            orphan, created = OrphanedBlob.objects.get_or_create(
                content_ref=content_ref,
                defaults={'attempts': 1, 'last_error': error},
            )
            if not created:
                OrphanedBlob.objects.filter(pk=orphan.pk).update(
                    attempts=F('attempts') + 1,
                    last_error=error,
                )
        logger.warning('Orphaned blob recorded: %s', content_ref)


@final
class DjangoGrantRepository:
    """GrantRepository backed by the `files.PermissionGrant` model."""

    def upsert(
        self,
        file_id: str,
        grantee_id: str,
        capabilities: frozenset[Capability],
    ) -> None:
        """Insert or replace a capability set in one statement.

        Uses the database's native upsert (INSERT ... ON CONFLICT DO
        UPDATE), so concurrent writers never interleave a read and a
        write: the last statement to commit wins.
        """
        flags = {
            field_name: capability in capabilities
            for capability, field_name in _CAPABILITY_FIELDS.items()
        }
        with translate_backend_errors('grant upsert'):
            PermissionGrant.objects.bulk_create(
                [PermissionGrant(file_id=file_id, grantee_id=grantee_id, **flags)],
                update_conflicts=True,
                unique_fields=['file', 'grantee'],
                update_fields=[*_CAPABILITY_FIELDS.values(), 'updated_at'],
            )

    def get(self, file_id: str, grantee_id: str) -> GrantRecord | None:
        """Return the grant of a grantee on a file, if any."""
        with translate_backend_errors('grant lookup'):
            grant = PermissionGrant.objects.filter(
                file_id=file_id,
                grantee_id=grantee_id,
            ).first()
        return _grant_record(grant) if grant else None

    def delete(self, file_id: str, grantee_id: str) -> int:
        """Delete one grant."""
        with translate_backend_errors('grant delete'):
            deleted, _ = PermissionGrant.objects.filter(
                file_id=file_id,
                grantee_id=grantee_id,
            ).delete()
        return deleted

    def delete_for_file(self, file_id: str) -> int:
        """Delete every grant on a file."""
        with translate_backend_errors('grant delete'):
            deleted, _ = PermissionGrant.objects.filter(file_id=file_id).delete()
        return deleted

    def list_for_file(self, file_id: str) -> list[GrantRecord]:
        """List the grants on a file."""
        with translate_backend_errors('grant listing'):
            grants = list(PermissionGrant.objects.filter(file_id=file_id))
        return [_grant_record(grant) for grant in grants]

    def file_ids_for_grantee(
        self,
        grantee_id: str,
        capability: Capability,
    ) -> list[str]:
        """List ids of files where the grantee holds a capability."""
        with translate_backend_errors('grant listing'):
            return list(
                PermissionGrant.objects.filter(
                    grantee_id=grantee_id,
                    **{_CAPABILITY_FIELDS[capability]: True},
                ).values_list('file_id', flat=True),
            )
