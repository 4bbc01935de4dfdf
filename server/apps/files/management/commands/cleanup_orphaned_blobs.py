"""Management command to delete blobs left behind by file deletions."""

import logging
from typing import Any, Final

from django.core.management.base import BaseCommand

from server.apps.files.infrastructure.blob_store import StorageBlobStore
from server.apps.files.models import OrphanedBlob
from server.common.exceptions import BackendUnavailableError

_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Retry deletion of blobs whose file records are already gone."""

    help = 'Delete orphaned blobs recorded after failed file deletions'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max blobs to process (default: {_DEFAULT_BATCH_SIZE})',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        blob_store = StorageBlobStore()

        orphans = OrphanedBlob.objects.order_by('recorded_at')[:batch_size]

        count = 0
        failed = 0

        for orphan in orphans:
            if dry_run:
                self.stdout.write(
                    f'Would delete: {orphan.content_ref} '
                    f'(attempts: {orphan.attempts}, '
                    f'recorded: {orphan.recorded_at})',
                )
                count += 1
                continue

            try:
                blob_store.delete(orphan.content_ref)
            except BackendUnavailableError as exc:
                self.stderr.write(
                    f'Failed to delete {orphan.content_ref}: {exc}',
                )
                orphan.attempts += 1
                orphan.last_error = str(exc)
                orphan.save(update_fields=['attempts', 'last_error'])
                failed += 1
                continue

            orphan.delete()
            count += 1
            logger.info('Purged orphaned blob: %s', orphan.content_ref)

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would purge {count} orphaned blobs'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Purged {count} orphaned blobs, {failed} failed',
                ),
            )
