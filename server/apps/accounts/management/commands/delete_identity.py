"""Management command to delete an identity and everything it owns."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from server.apps.accounts.logic.credential_store import CredentialStore
from server.apps.files.logic.file_registry import FileRegistry


class Command(BaseCommand):
    """Delete an identity, its tokens, its grants and its files."""

    help = 'Delete the identity with the given email and all of its files'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('email', help='Email of the identity')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        store = CredentialStore()
        identity = store.find_by_email(options['email'])
        if identity is None:
            raise CommandError(f'Identity with email {options["email"]} not found')

        registry = FileRegistry()
        if options['dry_run']:
            owned = registry.list_owned(identity.id)
            self.stdout.write(
                self.style.SUCCESS(
                    f'Would delete {identity.email} and {len(owned)} files',
                ),
            )
            return

        # Blobs are removed after this commits, via the orphan path on failure
        with transaction.atomic():
            purged = registry.purge_owner(identity.id)
            store.delete_identity(identity.id)

        self.stdout.write(
            self.style.SUCCESS(f'Deleted {identity.email} and {purged} files'),
        )
